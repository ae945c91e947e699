"""Plan builders and raw wire helpers shared by tests."""

from relplan.plan import (
    SQL,
    Aggregate,
    Alias,
    Deduplicate,
    ExpressionString,
    Filter,
    Join,
    JoinType,
    Limit,
    Literal,
    LocalRelation,
    Offset,
    Project,
    QualifiedAttribute,
    Range,
    Read,
    RelationCommon,
    Repartition,
    Sample,
    SetOperation,
    SetOpType,
    Sort,
    SortDirection,
    SortField,
    SortNulls,
    SubqueryAlias,
    Unknown,
    UnresolvedAttribute,
    UnresolvedFunction,
)


def table(name: str) -> Read:
    return Read.table(name)


def col(name: str) -> UnresolvedAttribute:
    return UnresolvedAttribute(name)


def limit_chain(levels: int):
    """Return ``levels`` nested relations: Limits over a single Range."""
    node = Range(end=10, step=1)
    count = 1
    while count < levels:
        node = Limit(node, count)
        count += 1
    return node


def alias_chain(levels: int):
    """Return ``levels`` nested expressions: Aliases over a boolean literal."""
    expr = Literal(True)
    count = 1
    while count < levels:
        expr = Alias(expr, f"a{count}")
        count += 1
    return expr


def under_limits(node, count: int):
    """Wrap ``node`` in ``count`` Limit relations."""
    while count > 0:
        node = Limit(node, count)
        count -= 1
    return node


def sample_relations():
    """One structurally valid plan per operator variant (some variants twice)."""
    return [
        table("spark_catalog.db.users"),
        Read.source(
            "csv",
            schema="id INT, name STRING",
            options={"Header": "true", "sep": ","},
        ),
        Read.source("parquet"),
        Project(
            table("t"),
            [
                col("id"),
                Literal(None),
                Literal(True),
                Literal(2.5),
                Literal("x"),
                Alias(UnresolvedFunction("upper", [col("name")]), "upper_name"),
            ],
        ),
        Filter(table("t"), UnresolvedFunction(">", [col("age"), Literal(18)])),
        Join(
            table("a"),
            table("b"),
            JoinType.LEFT_OUTER,
            join_condition=ExpressionString("a.id = b.id"),
        ),
        Join(table("a"), table("b"), JoinType.INNER, using_columns=["id"]),
        SetOperation(table("a"), table("b"), SetOpType.UNION, is_all=True, by_name=True),
        SetOperation(table("a"), table("b"), SetOpType.EXCEPT),
        Sort(
            table("t"),
            [
                SortField(col("age"), SortDirection.DESCENDING, SortNulls.LAST),
                SortField(col("name")),
            ],
            is_global=True,
        ),
        Limit(table("t"), 10),
        Offset(table("t"), 5),
        Aggregate(
            table("t"),
            [col("city")],
            [col("city"), Alias(UnresolvedFunction("count", [Literal(1)]), "n")],
        ),
        SQL("SELECT * FROM t WHERE x > 1"),
        LocalRelation(
            [QualifiedAttribute("id", "bigint"), QualifiedAttribute("name", "string")]
        ),
        Sample(table("t"), 0.1, 0.5, with_replacement=True, seed=42),
        Sample(table("t"), 0.0, 1.0),
        Deduplicate(table("t"), column_names=["id", "name"]),
        Deduplicate(table("t"), all_columns_as_keys=True),
        Range(start=0, end=100, step=3, num_partitions=4),
        Range(start=-5, end=5, step=2),
        SubqueryAlias(table("t"), "u", qualifier=["spark_catalog", "db"]),
        Repartition(table("t"), 8, shuffle=True),
        Unknown(),
        Limit(Range(end=5, step=1), 1, common=RelationCommon("df.limit(1) at line 3")),
    ]


def varint(value: int) -> bytes:
    """Protobuf base-128 varint encoding of a non-negative int."""
    out = bytearray()
    while True:
        bits = value & 0x7F
        value >>= 7
        if value:
            out.append(bits | 0x80)
        else:
            out.append(bits)
            return bytes(out)


def length_delimited_field(number: int, payload: bytes) -> bytes:
    """Raw bytes of a length-delimited (wire type 2) field."""
    return varint((number << 3) | 2) + varint(len(payload)) + payload


def varint_field(number: int, value: int) -> bytes:
    """Raw bytes of a varint (wire type 0) field."""
    return varint(number << 3) + varint(value)
