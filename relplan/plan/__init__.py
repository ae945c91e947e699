"""Relation plan node model."""

from .relations import (
    Relation,
    RelationVisitor,
    RelationCommon,
    RELATION_VARIANTS,
    RETIRED_VARIANT_IDS,
    JoinType,
    SetOpType,
    SortDirection,
    SortNulls,
    NamedTable,
    DataSource,
    SortField,
    Read,
    Project,
    Filter,
    Join,
    SetOperation,
    Sort,
    Limit,
    Offset,
    Aggregate,
    SQL,
    LocalRelation,
    Sample,
    Deduplicate,
    Range,
    SubqueryAlias,
    Repartition,
    Unknown,
    UnrecognizedRelation,
)
from .expressions import (
    Expression,
    ExpressionVisitor,
    Literal,
    UnresolvedAttribute,
    UnresolvedFunction,
    ExpressionString,
    Alias,
    UnrecognizedExpression,
    QualifiedAttribute,
)
from .options import CaseInsensitiveOptions
from .unknown import UnknownFields, NO_UNKNOWN_FIELDS
from .traversal import walk, walk_post_order, depth, transform_up
from .explain import explain

__all__ = [
    # Relations
    "Relation",
    "RelationVisitor",
    "RelationCommon",
    "UnknownFields",
    "NO_UNKNOWN_FIELDS",
    "RELATION_VARIANTS",
    "RETIRED_VARIANT_IDS",
    "JoinType",
    "SetOpType",
    "SortDirection",
    "SortNulls",
    "NamedTable",
    "DataSource",
    "SortField",
    "Read",
    "Project",
    "Filter",
    "Join",
    "SetOperation",
    "Sort",
    "Limit",
    "Offset",
    "Aggregate",
    "SQL",
    "LocalRelation",
    "Sample",
    "Deduplicate",
    "Range",
    "SubqueryAlias",
    "Repartition",
    "Unknown",
    "UnrecognizedRelation",
    # Expressions
    "Expression",
    "ExpressionVisitor",
    "Literal",
    "UnresolvedAttribute",
    "UnresolvedFunction",
    "ExpressionString",
    "Alias",
    "UnrecognizedExpression",
    "QualifiedAttribute",
    # Helpers
    "CaseInsensitiveOptions",
    "walk",
    "walk_post_order",
    "depth",
    "transform_up",
    "explain",
]
