"""Protobuf wire schema for relation plans.

The schema is declared here as descriptor protos and registered in a
private descriptor pool at import time, so no generated code is needed.
Field and oneof numbers are permanent: a number is never reused, even after
its field is removed (see ``reserved`` below).
"""

from typing import Dict, List, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "relplan.v1"
FILE_NAME = "relplan/v1/relations.proto"

_Field = descriptor_pb2.FieldDescriptorProto

STRING = _Field.TYPE_STRING
BOOL = _Field.TYPE_BOOL
INT32 = _Field.TYPE_INT32
INT64 = _Field.TYPE_INT64
DOUBLE = _Field.TYPE_DOUBLE
MESSAGE = _Field.TYPE_MESSAGE
ENUM = _Field.TYPE_ENUM


def _field(
    name: str,
    number: int,
    kind: int,
    type_name: Optional[str] = None,
    repeated: bool = False,
    oneof: Optional[str] = None,
    optional: bool = False,
) -> Dict:
    return {
        "name": name,
        "number": number,
        "kind": kind,
        "type_name": type_name,
        "repeated": repeated,
        "oneof": oneof,
        "optional": optional,
    }


def _enum(name: str, values: Sequence[str]) -> descriptor_pb2.EnumDescriptorProto:
    enum = descriptor_pb2.EnumDescriptorProto(name=name)
    number = 0
    while number < len(values):
        enum.value.add(name=values[number], number=number)
        number += 1
    return enum


def _map_entry(name: str) -> descriptor_pb2.DescriptorProto:
    entry = _message(
        name,
        [_field("key", 1, STRING), _field("value", 2, STRING)],
    )
    entry.options.map_entry = True
    return entry


def _message(
    name: str,
    fields: Sequence[Dict] = (),
    nested: Sequence[descriptor_pb2.DescriptorProto] = (),
    enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
    oneofs: Sequence[str] = (),
    reserved: Sequence[int] = (),
) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(name=name)
    oneof_index: Dict[str, int] = {}
    for oneof_name in oneofs:
        oneof_index[oneof_name] = len(message.oneof_decl)
        message.oneof_decl.add(name=oneof_name)
    # Synthetic oneofs for proto3 optional must follow the real ones.
    for field_def in fields:
        if field_def["optional"]:
            synthetic = f"_{field_def['name']}"
            oneof_index[synthetic] = len(message.oneof_decl)
            message.oneof_decl.add(name=synthetic)
    for field_def in fields:
        field = message.field.add(
            name=field_def["name"],
            number=field_def["number"],
            type=field_def["kind"],
            json_name=_json_name(field_def["name"]),
        )
        if field_def["repeated"]:
            field.label = _Field.LABEL_REPEATED
        else:
            field.label = _Field.LABEL_OPTIONAL
        if field_def["type_name"]:
            field.type_name = f".{PACKAGE}.{field_def['type_name']}"
        if field_def["oneof"]:
            field.oneof_index = oneof_index[field_def["oneof"]]
        if field_def["optional"]:
            field.proto3_optional = True
            field.oneof_index = oneof_index[f"_{field_def['name']}"]
    for number in reserved:
        message.reserved_range.add(start=number, end=number + 1)
    message.nested_type.extend(nested)
    message.enum_type.extend(enums)
    return message


def _json_name(name: str) -> str:
    parts = name.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


def _relation(name: str, number: int) -> Dict:
    return _field(name, number, MESSAGE, "Relation")


def _expressions(name: str, number: int) -> Dict:
    return _field(name, number, MESSAGE, "Expression", repeated=True)


# Relation oneof members: (field name, number, message type).
RELATION_VARIANT_FIELDS: List[Tuple[str, int, str]] = [
    ("read", 2, "Read"),
    ("project", 3, "Project"),
    ("filter", 4, "Filter"),
    ("join", 5, "Join"),
    ("set_op", 6, "SetOperation"),
    ("sort", 7, "Sort"),
    ("limit", 8, "Limit"),
    ("aggregate", 9, "Aggregate"),
    ("sql", 10, "SQL"),
    ("local_relation", 11, "LocalRelation"),
    ("sample", 12, "Sample"),
    ("offset", 13, "Offset"),
    ("deduplicate", 14, "Deduplicate"),
    ("range", 15, "Range"),
    ("subquery_alias", 16, "SubqueryAlias"),
    ("repartition", 17, "Repartition"),
    ("unknown", 999, "Unknown"),
]

# Expression oneof members: (field name, number, message type).
EXPRESSION_VARIANT_FIELDS: List[Tuple[str, int, str]] = [
    ("literal", 1, "Expression.Literal"),
    ("unresolved_attribute", 2, "Expression.UnresolvedAttribute"),
    ("unresolved_function", 3, "Expression.UnresolvedFunction"),
    ("expression_string", 4, "Expression.ExpressionString"),
    ("alias", 5, "Expression.Alias"),
]


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=FILE_NAME, package=PACKAGE, syntax="proto3"
    )

    expression = _message(
        "Expression",
        [
            _field(name, number, MESSAGE, type_name, oneof="expr_type")
            for name, number, type_name in EXPRESSION_VARIANT_FIELDS
        ],
        nested=[
            _message(
                "Literal",
                [
                    _field("null", 1, BOOL, oneof="literal_type"),
                    _field("boolean", 2, BOOL, oneof="literal_type"),
                    _field("long", 3, INT64, oneof="literal_type"),
                    _field("double", 4, DOUBLE, oneof="literal_type"),
                    _field("string", 5, STRING, oneof="literal_type"),
                ],
                oneofs=["literal_type"],
            ),
            _message("UnresolvedAttribute", [_field("unparsed_identifier", 1, STRING)]),
            _message(
                "UnresolvedFunction",
                [
                    _field("function_name", 1, STRING),
                    _expressions("arguments", 2),
                ],
            ),
            _message("ExpressionString", [_field("expression", 1, STRING)]),
            _message(
                "Alias",
                [
                    _field("expr", 1, MESSAGE, "Expression"),
                    _field("name", 2, STRING),
                ],
            ),
            _message(
                "QualifiedAttribute",
                [_field("name", 1, STRING), _field("type", 2, STRING)],
            ),
        ],
        oneofs=["expr_type"],
    )

    relation_fields = [_field("common", 1, MESSAGE, "RelationCommon")]
    for name, number, type_name in RELATION_VARIANT_FIELDS:
        relation_fields.append(_field(name, number, MESSAGE, type_name, oneof="rel_type"))
    relation = _message("Relation", relation_fields, oneofs=["rel_type"])

    messages = [
        expression,
        relation,
        _message("Unknown"),
        _message("RelationCommon", [_field("source_info", 1, STRING)]),
        _message("SQL", [_field("query", 1, STRING)]),
        _message(
            "Read",
            [
                _field("named_table", 1, MESSAGE, "Read.NamedTable", oneof="read_type"),
                _field("data_source", 2, MESSAGE, "Read.DataSource", oneof="read_type"),
            ],
            nested=[
                _message("NamedTable", [_field("unparsed_identifier", 1, STRING)]),
                _message(
                    "DataSource",
                    [
                        _field("format", 1, STRING),
                        _field("schema", 2, STRING, optional=True),
                        _field(
                            "options",
                            3,
                            MESSAGE,
                            "Read.DataSource.OptionsEntry",
                            repeated=True,
                        ),
                    ],
                    nested=[_map_entry("OptionsEntry")],
                ),
            ],
            oneofs=["read_type"],
        ),
        _message(
            "Project",
            [_relation("input", 1), _expressions("expressions", 3)],
            reserved=[2],
        ),
        _message(
            "Filter",
            [_relation("input", 1), _field("condition", 2, MESSAGE, "Expression")],
        ),
        _message(
            "Join",
            [
                _relation("left", 1),
                _relation("right", 2),
                _field("join_condition", 3, MESSAGE, "Expression"),
                _field("join_type", 4, ENUM, "Join.JoinType"),
                _field("using_columns", 5, STRING, repeated=True),
            ],
            enums=[
                _enum(
                    "JoinType",
                    [
                        "JOIN_TYPE_UNSPECIFIED",
                        "JOIN_TYPE_INNER",
                        "JOIN_TYPE_FULL_OUTER",
                        "JOIN_TYPE_LEFT_OUTER",
                        "JOIN_TYPE_RIGHT_OUTER",
                        "JOIN_TYPE_LEFT_ANTI",
                        "JOIN_TYPE_LEFT_SEMI",
                    ],
                )
            ],
        ),
        _message(
            "SetOperation",
            [
                _relation("left_input", 1),
                _relation("right_input", 2),
                _field("set_op_type", 3, ENUM, "SetOperation.SetOpType"),
                _field("is_all", 4, BOOL),
                _field("by_name", 5, BOOL),
            ],
            enums=[
                _enum(
                    "SetOpType",
                    [
                        "SET_OP_TYPE_UNSPECIFIED",
                        "SET_OP_TYPE_INTERSECT",
                        "SET_OP_TYPE_UNION",
                        "SET_OP_TYPE_EXCEPT",
                    ],
                )
            ],
        ),
        _message("Limit", [_relation("input", 1), _field("limit", 2, INT32)]),
        _message("Offset", [_relation("input", 1), _field("offset", 2, INT32)]),
        _message(
            "Aggregate",
            [
                _relation("input", 1),
                _expressions("grouping_expressions", 2),
                _expressions("result_expressions", 3),
            ],
        ),
        _message(
            "Sort",
            [
                _relation("input", 1),
                _field("sort_fields", 2, MESSAGE, "Sort.SortField", repeated=True),
                _field("is_global", 3, BOOL),
            ],
            nested=[
                _message(
                    "SortField",
                    [
                        _field("expression", 1, MESSAGE, "Expression"),
                        _field("direction", 2, ENUM, "Sort.SortDirection"),
                        _field("nulls", 3, ENUM, "Sort.SortNulls"),
                    ],
                )
            ],
            enums=[
                _enum(
                    "SortDirection",
                    [
                        "SORT_DIRECTION_UNSPECIFIED",
                        "SORT_DIRECTION_ASCENDING",
                        "SORT_DIRECTION_DESCENDING",
                    ],
                ),
                _enum(
                    "SortNulls",
                    ["SORT_NULLS_UNSPECIFIED", "SORT_NULLS_FIRST", "SORT_NULLS_LAST"],
                ),
            ],
        ),
        _message(
            "Deduplicate",
            [
                _relation("input", 1),
                _field("column_names", 2, STRING, repeated=True),
                _field("all_columns_as_keys", 3, BOOL),
            ],
        ),
        _message(
            "LocalRelation",
            [
                _field(
                    "attributes",
                    1,
                    MESSAGE,
                    "Expression.QualifiedAttribute",
                    repeated=True,
                )
            ],
        ),
        _message(
            "Sample",
            [
                _relation("input", 1),
                _field("lower_bound", 2, DOUBLE),
                _field("upper_bound", 3, DOUBLE),
                _field("with_replacement", 4, BOOL),
                _field("seed", 5, MESSAGE, "Sample.Seed"),
            ],
            nested=[_message("Seed", [_field("seed", 1, INT64)])],
        ),
        _message(
            "Range",
            [
                _field("start", 1, INT64),
                _field("end", 2, INT64, optional=True),
                _field("step", 3, INT64, optional=True),
                _field("num_partitions", 4, MESSAGE, "Range.NumPartitions"),
            ],
            nested=[_message("NumPartitions", [_field("num_partitions", 1, INT32)])],
        ),
        _message(
            "SubqueryAlias",
            [
                _relation("input", 1),
                _field("alias", 2, STRING),
                _field("qualifier", 3, STRING, repeated=True),
            ],
        ),
        _message(
            "Repartition",
            [
                _relation("input", 1),
                _field("num_partitions", 2, INT32),
                _field("shuffle", 3, BOOL),
            ],
        ),
    ]
    file_proto.message_type.extend(messages)
    return file_proto


FILE_DESCRIPTOR_PROTO = _build_file()

_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(FILE_DESCRIPTOR_PROTO.SerializeToString())


def message_class(name: str):
    """Return the generated message class for ``relplan.v1.<name>``."""
    descriptor = _pool.FindMessageTypeByName(f"{PACKAGE}.{name}")
    return message_factory.GetMessageClass(descriptor)


Relation = message_class("Relation")
RelationCommon = message_class("RelationCommon")
Expression = message_class("Expression")
QualifiedAttribute = message_class("Expression.QualifiedAttribute")
