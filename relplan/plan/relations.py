"""Relation plan nodes.

A plan is a tree of ``Relation`` nodes. Every node is exactly one operator
variant; leaves (Read, SQL, LocalRelation, Range, Unknown) have no children
and combinators own one or two child relations. Nodes are immutable:
rewrites build new trees through ``with_children``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import IntEnum
from types import MappingProxyType
from typing import ClassVar, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Type

from ..errors import UnsupportedOperation
from .expressions import Expression, QualifiedAttribute
from .options import CaseInsensitiveOptions
from .unknown import NO_UNKNOWN_FIELDS, UnknownFields


class JoinType(IntEnum):
    """Join types. ``UNSPECIFIED`` means the producer did not set one."""

    UNSPECIFIED = 0
    INNER = 1
    FULL_OUTER = 2
    LEFT_OUTER = 3
    RIGHT_OUTER = 4
    LEFT_ANTI = 5
    LEFT_SEMI = 6


class SetOpType(IntEnum):
    """Set operation types."""

    UNSPECIFIED = 0
    INTERSECT = 1
    UNION = 2
    EXCEPT = 3


class SortDirection(IntEnum):
    """Sort directions."""

    UNSPECIFIED = 0
    ASCENDING = 1
    DESCENDING = 2


class SortNulls(IntEnum):
    """Placement of nulls in sort output."""

    UNSPECIFIED = 0
    FIRST = 1
    LAST = 2


@dataclass(frozen=True)
class RelationCommon:
    """Metadata shared by all relations. Diagnostic only."""

    source_info: str = ""
    unknown_fields: bytes = field(default=b"", repr=False)


def _freeze(node, *names: str) -> None:
    for name in names:
        object.__setattr__(node, name, tuple(getattr(node, name)))


class Relation(ABC):
    """Base class for relation plan nodes."""

    VARIANT_ID: ClassVar[int]
    FIELD_NAME: ClassVar[str]
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def wire_id(self) -> int:
        """Return the numeric oneof identity of this node."""
        return self.VARIANT_ID

    def variant_name(self) -> str:
        return self.__class__.__name__

    def children(self) -> List[Optional["Relation"]]:
        """Return child nodes in declaration order."""
        return [getattr(self, name) for name in self.CHILD_FIELDS]

    def named_children(self) -> List[Tuple[str, Optional["Relation"]]]:
        """Return (slot name, child) pairs."""
        return [(name, getattr(self, name)) for name in self.CHILD_FIELDS]

    def with_children(self, children: Sequence["Relation"]) -> "Relation":
        """Create a new node with different children (immutable)."""
        if len(children) != len(self.CHILD_FIELDS):
            raise ValueError(
                f"{self.variant_name()} expects {len(self.CHILD_FIELDS)} "
                f"children, got {len(children)}"
            )
        if not self.CHILD_FIELDS:
            return self
        changes = dict(zip(self.CHILD_FIELDS, children))
        return replace(self, **changes)

    @abstractmethod
    def accept(self, visitor: "RelationVisitor"):
        """Accept a visitor for the visitor pattern."""
        pass

    def __repr__(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class NamedTable:
    """Table reference by multi-part identifier, e.g. ``db.schema.table``."""

    unparsed_identifier: str
    unknown_fields: bytes = field(default=b"", repr=False)


@dataclass(frozen=True)
class DataSource:
    """External data source read through a named format."""

    format: str
    schema: Optional[str] = None  # None lets the engine infer the schema
    options: Mapping[str, str] = field(default_factory=dict)
    unknown_fields: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        # Read-only copy; key casing is kept as given.
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def option_map(self) -> CaseInsensitiveOptions:
        """Return the options with case-insensitive lookup."""
        return CaseInsensitiveOptions(self.options)

    def get_option(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.option_map().get(key, default)


@dataclass(frozen=True)
class Read(Relation):
    """Read a named table or an external data source."""

    VARIANT_ID: ClassVar[int] = 2
    FIELD_NAME: ClassVar[str] = "read"

    named_table: Optional[NamedTable] = None
    data_source: Optional[DataSource] = None
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    @classmethod
    def table(cls, identifier: str, **kwargs) -> "Read":
        return cls(named_table=NamedTable(identifier), **kwargs)

    @classmethod
    def source(
        cls,
        format: str,
        schema: Optional[str] = None,
        options: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> "Read":
        if options is None:
            options = {}
        return cls(data_source=DataSource(format, schema, options), **kwargs)

    def accept(self, visitor):
        return visitor.visit_read(self)

    def __repr__(self) -> str:
        if self.named_table is not None:
            return f"Read(table={self.named_table.unparsed_identifier})"
        if self.data_source is not None:
            return f"Read(format={self.data_source.format})"
        return "Read()"


@dataclass(frozen=True)
class Project(Relation):
    """Project (select) specific expressions."""

    VARIANT_ID: ClassVar[int] = 3
    FIELD_NAME: ClassVar[str] = "project"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    expressions: Tuple[Expression, ...] = ()
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "expressions")

    def accept(self, visitor):
        return visitor.visit_project(self)

    def __repr__(self) -> str:
        return f"Project({len(self.expressions)} expressions)"


@dataclass(frozen=True)
class Filter(Relation):
    """Filter rows based on a boolean condition."""

    VARIANT_ID: ClassVar[int] = 4
    FIELD_NAME: ClassVar[str] = "filter"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    condition: Optional[Expression]
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_filter(self)

    def __repr__(self) -> str:
        return f"Filter({self.condition})"


@dataclass(frozen=True)
class Join(Relation):
    """Join two inputs.

    ``join_condition`` and ``using_columns`` are alternatives; a join with
    neither is a cross product.
    """

    VARIANT_ID: ClassVar[int] = 5
    FIELD_NAME: ClassVar[str] = "join"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("left", "right")

    left: Relation
    right: Relation
    join_type: JoinType
    join_condition: Optional[Expression] = None
    using_columns: Tuple[str, ...] = ()
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "using_columns")

    def accept(self, visitor):
        return visitor.visit_join(self)

    def __repr__(self) -> str:
        if self.using_columns:
            return f"Join({self.join_type.name}, using={list(self.using_columns)})"
        return f"Join({self.join_type.name}, {self.join_condition})"


@dataclass(frozen=True)
class SetOperation(Relation):
    """INTERSECT, UNION or EXCEPT of two inputs."""

    VARIANT_ID: ClassVar[int] = 6
    FIELD_NAME: ClassVar[str] = "set_op"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("left", "right")

    left: Relation
    right: Relation
    set_op_type: SetOpType
    is_all: bool = False
    by_name: bool = False
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_set_operation(self)

    def __repr__(self) -> str:
        suffix = " ALL" if self.is_all else ""
        return f"SetOperation({self.set_op_type.name}{suffix})"


@dataclass(frozen=True)
class SortField:
    """Single sort key."""

    expression: Optional[Expression]
    direction: SortDirection = SortDirection.UNSPECIFIED
    nulls: SortNulls = SortNulls.UNSPECIFIED
    unknown_fields: bytes = field(default=b"", repr=False)


@dataclass(frozen=True)
class Sort(Relation):
    """Sort rows."""

    VARIANT_ID: ClassVar[int] = 7
    FIELD_NAME: ClassVar[str] = "sort"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    sort_fields: Tuple[SortField, ...] = ()
    is_global: bool = False
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "sort_fields")

    def accept(self, visitor):
        return visitor.visit_sort(self)

    def __repr__(self) -> str:
        return f"Sort({len(self.sort_fields)} keys)"


@dataclass(frozen=True)
class Limit(Relation):
    """Limit number of rows."""

    VARIANT_ID: ClassVar[int] = 8
    FIELD_NAME: ClassVar[str] = "limit"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    limit: int
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_limit(self)

    def __repr__(self) -> str:
        return f"Limit({self.limit})"


@dataclass(frozen=True)
class Aggregate(Relation):
    """Aggregate with grouping."""

    VARIANT_ID: ClassVar[int] = 9
    FIELD_NAME: ClassVar[str] = "aggregate"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    grouping_expressions: Tuple[Expression, ...] = ()
    result_expressions: Tuple[Expression, ...] = ()
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "grouping_expressions", "result_expressions")

    def accept(self, visitor):
        return visitor.visit_aggregate(self)

    def __repr__(self) -> str:
        return (
            f"Aggregate(groups={len(self.grouping_expressions)}, "
            f"results={len(self.result_expressions)})"
        )


@dataclass(frozen=True)
class SQL(Relation):
    """Relation produced by a SQL query."""

    VARIANT_ID: ClassVar[int] = 10
    FIELD_NAME: ClassVar[str] = "sql"

    query: str
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_sql(self)

    def __repr__(self) -> str:
        return f"SQL({self.query!r})"


@dataclass(frozen=True)
class LocalRelation(Relation):
    """Client-side relation; only its schema is carried."""

    VARIANT_ID: ClassVar[int] = 11
    FIELD_NAME: ClassVar[str] = "local_relation"

    attributes: Tuple[QualifiedAttribute, ...] = ()
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "attributes")

    def accept(self, visitor):
        return visitor.visit_local_relation(self)

    def __repr__(self) -> str:
        return f"LocalRelation({list(self.attributes)})"


@dataclass(frozen=True)
class Sample(Relation):
    """Sample a fraction of the input.

    Bounds are fractions; their ordering is checked by the engine.
    """

    VARIANT_ID: ClassVar[int] = 12
    FIELD_NAME: ClassVar[str] = "sample"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    lower_bound: float
    upper_bound: float
    with_replacement: bool = False
    seed: Optional[int] = None
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)
    seed_unknown_fields: bytes = field(default=b"", repr=False)

    def accept(self, visitor):
        return visitor.visit_sample(self)

    def __repr__(self) -> str:
        return f"Sample({self.lower_bound}, {self.upper_bound})"


@dataclass(frozen=True)
class Offset(Relation):
    """Skip leading rows of the input."""

    VARIANT_ID: ClassVar[int] = 13
    FIELD_NAME: ClassVar[str] = "offset"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    offset: int
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_offset(self)

    def __repr__(self) -> str:
        return f"Offset({self.offset})"


@dataclass(frozen=True)
class Deduplicate(Relation):
    """Remove duplicate rows, keyed on a column subset or on all columns."""

    VARIANT_ID: ClassVar[int] = 14
    FIELD_NAME: ClassVar[str] = "deduplicate"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    column_names: Tuple[str, ...] = ()
    all_columns_as_keys: bool = False
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "column_names")

    def accept(self, visitor):
        return visitor.visit_deduplicate(self)

    def __repr__(self) -> str:
        if self.all_columns_as_keys:
            return "Deduplicate(all columns)"
        return f"Deduplicate({list(self.column_names)})"


@dataclass(frozen=True)
class Range(Relation):
    """Generate the integers ``start, start + step, ...`` below ``end``.

    ``end`` and ``step`` are required; None means the producer left them
    unset. ``num_partitions`` of None means the engine default.
    """

    VARIANT_ID: ClassVar[int] = 15
    FIELD_NAME: ClassVar[str] = "range"

    start: int = 0
    end: Optional[int] = None
    step: Optional[int] = None
    num_partitions: Optional[int] = None
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)
    num_partitions_unknown_fields: bytes = field(default=b"", repr=False)

    def accept(self, visitor):
        return visitor.visit_range(self)

    def __repr__(self) -> str:
        return f"Range({self.start}, {self.end}, {self.step})"


@dataclass(frozen=True)
class SubqueryAlias(Relation):
    """Give the input relation an alias."""

    VARIANT_ID: ClassVar[int] = 16
    FIELD_NAME: ClassVar[str] = "subquery_alias"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    alias: str
    qualifier: Tuple[str, ...] = ()
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        _freeze(self, "qualifier")

    def accept(self, visitor):
        return visitor.visit_subquery_alias(self)

    def __repr__(self) -> str:
        return f"SubqueryAlias({'.'.join([*self.qualifier, self.alias])})"


@dataclass(frozen=True)
class Repartition(Relation):
    """Change the partitioning of the input."""

    VARIANT_ID: ClassVar[int] = 17
    FIELD_NAME: ClassVar[str] = "repartition"
    CHILD_FIELDS: ClassVar[Tuple[str, ...]] = ("input",)

    input: Relation
    num_partitions: int
    shuffle: bool = False
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_repartition(self)

    def __repr__(self) -> str:
        return f"Repartition({self.num_partitions}, shuffle={self.shuffle})"


@dataclass(frozen=True)
class Unknown(Relation):
    """Placeholder variant used for testing. Never executable."""

    VARIANT_ID: ClassVar[int] = 999
    FIELD_NAME: ClassVar[str] = "unknown"

    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_unknown(self)


@dataclass(frozen=True)
class UnrecognizedRelation(Relation):
    """Variant whose oneof id is not known to this version.

    The raw envelope fields live in ``unknown_fields.envelope`` so that
    re-encoding reproduces the original variant.
    """

    VARIANT_ID: ClassVar[int] = -1
    FIELD_NAME: ClassVar[str] = ""

    variant_id: int
    common: Optional[RelationCommon] = None
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def wire_id(self) -> int:
        return self.variant_id

    def accept(self, visitor):
        return visitor.visit_unknown(self)

    def __repr__(self) -> str:
        return f"UnrecognizedRelation(id={self.variant_id})"


class RelationVisitor(ABC):
    """Visitor interface for relation nodes.

    Every operator has an abstract method, so a visitor that misses one
    cannot be instantiated. ``visit_unknown`` is the only catch-all and
    handles both ``Unknown`` and ``UnrecognizedRelation``.
    """

    @abstractmethod
    def visit_read(self, node: Read):
        pass

    @abstractmethod
    def visit_project(self, node: Project):
        pass

    @abstractmethod
    def visit_filter(self, node: Filter):
        pass

    @abstractmethod
    def visit_join(self, node: Join):
        pass

    @abstractmethod
    def visit_set_operation(self, node: SetOperation):
        pass

    @abstractmethod
    def visit_sort(self, node: Sort):
        pass

    @abstractmethod
    def visit_limit(self, node: Limit):
        pass

    @abstractmethod
    def visit_aggregate(self, node: Aggregate):
        pass

    @abstractmethod
    def visit_sql(self, node: SQL):
        pass

    @abstractmethod
    def visit_local_relation(self, node: LocalRelation):
        pass

    @abstractmethod
    def visit_sample(self, node: Sample):
        pass

    @abstractmethod
    def visit_offset(self, node: Offset):
        pass

    @abstractmethod
    def visit_deduplicate(self, node: Deduplicate):
        pass

    @abstractmethod
    def visit_range(self, node: Range):
        pass

    @abstractmethod
    def visit_subquery_alias(self, node: SubqueryAlias):
        pass

    @abstractmethod
    def visit_repartition(self, node: Repartition):
        pass

    def visit_unknown(self, node: Relation):
        raise UnsupportedOperation(node.wire_id(), node.variant_name())


# Oneof numbers that belonged to removed operators. Never reassign them.
RETIRED_VARIANT_IDS: FrozenSet[int] = frozenset()


def _build_registry(classes: List[Type[Relation]]) -> Dict[int, Type[Relation]]:
    registry: Dict[int, Type[Relation]] = {}
    for cls in classes:
        variant_id = cls.VARIANT_ID
        if variant_id in RETIRED_VARIANT_IDS:
            raise RuntimeError(f"{cls.__name__} uses retired variant id {variant_id}")
        if variant_id in registry:
            other = registry[variant_id].__name__
            raise RuntimeError(
                f"Variant id {variant_id} assigned to both {other} and {cls.__name__}"
            )
        registry[variant_id] = cls
    return registry


RELATION_VARIANTS: Dict[int, Type[Relation]] = _build_registry(
    [
        Read,
        Project,
        Filter,
        Join,
        SetOperation,
        Sort,
        Limit,
        Aggregate,
        SQL,
        LocalRelation,
        Sample,
        Offset,
        Deduplicate,
        Range,
        SubqueryAlias,
        Repartition,
        Unknown,
    ]
)
