"""Structural validation of relation plans."""

import logging
from typing import Optional

from ..config import ValidatorConfig
from ..errors import PlanDepthError, StructuralError
from ..plan.expressions import Expression
from ..plan.options import colliding_keys
from ..plan.relations import (
    SQL,
    Aggregate,
    Deduplicate,
    Filter,
    Join,
    JoinType,
    Limit,
    LocalRelation,
    Offset,
    Project,
    Range,
    Read,
    Relation,
    RelationVisitor,
    Repartition,
    Sample,
    SetOperation,
    SetOpType,
    Sort,
    SubqueryAlias,
)

logger = logging.getLogger(__name__)


class RelationValidator(RelationVisitor):
    """Checks that a relation tree is structurally sound.

    Children are validated before their parent, so the first error reported
    is the deepest one on the leftmost failing path. Nothing is repaired:
    every violation raises ``StructuralError``.

    Each ``visit_*`` method returns the first rule the node breaks, or None.
    The validator keeps no per-call state, so one instance may be shared.
    """

    def __init__(self, config: Optional[ValidatorConfig] = None):
        if config is None:
            config = ValidatorConfig()
        self.config = config

    def validate(self, relation: Relation) -> None:
        """Validate a relation tree.

        Args:
            relation: Root of the tree to check

        Raises:
            StructuralError: If any node violates a structural rule
            PlanDepthError: If the tree is nested deeper than allowed
        """
        self._validate_node(relation, "root", 1)

    def is_valid(self, relation: Relation) -> bool:
        """Return True if ``validate`` would pass."""
        try:
            self.validate(relation)
        except StructuralError as exc:
            logger.debug(f"Relation failed validation: {exc}")
            return False
        return True

    def _validate_node(self, node: Relation, path: str, depth: int) -> None:
        if depth > self.config.max_depth:
            raise PlanDepthError(depth, self.config.max_depth, path=path)
        if not isinstance(node, Relation):
            raise StructuralError(
                "relation must have exactly one active variant", path=path
            )
        for name, child in node.named_children():
            if child is None:
                raise StructuralError(
                    f"missing required child '{name}'",
                    path=path,
                    variant=node.variant_name(),
                )
            self._validate_node(child, f"{path}.{name}", depth + 1)
        reason = node.accept(self)
        if reason:
            raise StructuralError(reason, path=path, variant=node.variant_name())

    def _check_expressions(self, exprs, field_name: str) -> Optional[str]:
        for expr in exprs:
            if not isinstance(expr, Expression):
                return f"{field_name} must contain only expressions"
        return None

    def visit_read(self, node: Read) -> Optional[str]:
        has_table = node.named_table is not None
        has_source = node.data_source is not None
        if has_table == has_source:
            return "read must set exactly one of named_table or data_source"
        if has_table:
            if not node.named_table.unparsed_identifier:
                return "named_table requires an identifier"
            return None
        source = node.data_source
        if not source.format:
            return "data_source requires a format"
        collisions = colliding_keys(source.options)
        if collisions:
            return f"data_source option keys collide case-insensitively: {collisions}"
        return None

    def visit_project(self, node: Project) -> Optional[str]:
        return self._check_expressions(node.expressions, "expressions")

    def visit_filter(self, node: Filter) -> Optional[str]:
        if node.condition is None:
            return "filter requires a condition"
        return None

    def visit_join(self, node: Join) -> Optional[str]:
        if node.join_condition is not None and node.using_columns:
            return "join_condition and using_columns are mutually exclusive"
        if node.join_type == JoinType.UNSPECIFIED:
            return "join_type must be specified"
        return None

    def visit_set_operation(self, node: SetOperation) -> Optional[str]:
        if node.set_op_type == SetOpType.UNSPECIFIED:
            return "set_op_type must be specified"
        if node.by_name and node.set_op_type != SetOpType.UNION:
            return "by_name is only supported for UNION"
        return None

    def visit_sort(self, node: Sort) -> Optional[str]:
        if not node.sort_fields:
            return "sort requires at least one sort field"
        for index, sort_field in enumerate(node.sort_fields):
            if sort_field.expression is None:
                return f"sort field {index} requires an expression"
        return None

    def visit_limit(self, node: Limit) -> Optional[str]:
        if node.limit < 0:
            return f"limit must be non-negative, got {node.limit}"
        return None

    def visit_aggregate(self, node: Aggregate) -> Optional[str]:
        return self._check_expressions(
            node.grouping_expressions, "grouping_expressions"
        ) or self._check_expressions(node.result_expressions, "result_expressions")

    def visit_sql(self, node: SQL) -> Optional[str]:
        if not node.query or not node.query.strip():
            return "sql requires query text"
        return None

    def visit_local_relation(self, node: LocalRelation) -> Optional[str]:
        for attribute in node.attributes:
            if not attribute.name:
                return "local relation attributes require a name"
        return None

    def visit_sample(self, node: Sample) -> Optional[str]:
        # Bound ordering is engine policy; only presence is structural.
        if node.lower_bound is None or node.upper_bound is None:
            return "sample requires lower_bound and upper_bound"
        return None

    def visit_offset(self, node: Offset) -> Optional[str]:
        if node.offset < 0:
            return f"offset must be non-negative, got {node.offset}"
        return None

    def visit_deduplicate(self, node: Deduplicate) -> Optional[str]:
        if node.all_columns_as_keys and node.column_names:
            return "all_columns_as_keys and column_names are mutually exclusive"
        return None

    def visit_range(self, node: Range) -> Optional[str]:
        if node.end is None:
            return "range requires end"
        if node.step is None:
            return "range requires step"
        if node.step == 0:
            return "range step must not be zero"
        if node.num_partitions is not None and node.num_partitions <= 0:
            return f"range num_partitions must be positive, got {node.num_partitions}"
        return None

    def visit_subquery_alias(self, node: SubqueryAlias) -> Optional[str]:
        if not node.alias:
            return "subquery alias requires an alias"
        return None

    def visit_repartition(self, node: Repartition) -> Optional[str]:
        if node.num_partitions <= 0:
            return (
                f"repartition num_partitions must be positive, got {node.num_partitions}"
            )
        return None

    def visit_unknown(self, node: Relation) -> Optional[str]:
        logger.debug(
            f"Passing placeholder relation id={node.wire_id()} ({node.variant_name()}); "
            f"not executable"
        )
        return None


def validate(relation: Relation) -> None:
    """Validate a relation tree with default settings."""
    RelationValidator().validate(relation)


def is_valid(relation: Relation) -> bool:
    """Return True if the relation tree is structurally valid."""
    return RelationValidator().is_valid(relation)
