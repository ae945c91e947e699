"""Text rendering of relation trees."""

from typing import Callable, Dict, List

import sqlglot
from sqlglot import errors as sqlglot_errors

from .relations import (
    SQL,
    Aggregate,
    Filter,
    Join,
    Project,
    Read,
    Relation,
    Sort,
)


def explain(relation: Relation) -> List[str]:
    """Return one line per node, children indented under their parent."""
    formatter = _PlanFormatter()
    return formatter.format(relation)


def normalize_sql(query: str) -> str:
    """Return ``query`` in sqlglot's canonical form, or unchanged if it does not parse."""
    try:
        statements = sqlglot.transpile(query)
    except (sqlglot_errors.ParseError, sqlglot_errors.TokenError):
        return query
    if len(statements) != 1:
        return query
    return statements[0]


class _PlanFormatter:
    """Utility to format relation plans as text."""

    def __init__(self):
        self._detail_builders: Dict[type, Callable[[Relation], str]] = {}
        self._detail_builders[Read] = self._read_detail
        self._detail_builders[Project] = self._project_detail
        self._detail_builders[Filter] = self._filter_detail
        self._detail_builders[Join] = self._join_detail
        self._detail_builders[Sort] = self._sort_detail
        self._detail_builders[Aggregate] = self._aggregate_detail
        self._detail_builders[SQL] = self._sql_detail

    def format(self, node: Relation) -> List[str]:
        lines: List[str] = []
        self._append_node_line(node, "", 0, lines)
        return lines

    def _append_node_line(
        self, node: Relation, slot: str, depth: int, lines: List[str]
    ) -> None:
        indent = self._build_indent(depth)
        if node is None:
            lines.append(f"{indent}<missing {slot}>")
            return
        header = self._build_header(node)
        lines.append(f"{indent}{header}")
        for name, child in node.named_children():
            self._append_node_line(child, name, depth + 1, lines)

    def _build_indent(self, depth: int) -> str:
        if depth == 0:
            return ""
        return f"{'  ' * depth}-> "

    def _build_header(self, node: Relation) -> str:
        if isinstance(node, SQL):
            header = node.variant_name()
        else:
            header = repr(node)
        detail = self._detail_for(node)
        if detail:
            header = f"{header} {detail}"
        if node.common is not None and node.common.source_info:
            header = f"{header} [{node.common.source_info}]"
        return header

    def _detail_for(self, node: Relation) -> str:
        builder = self._detail_builders.get(type(node))
        if builder is None:
            return ""
        return builder(node)

    def _read_detail(self, node: Read) -> str:
        source = node.data_source
        if source is None:
            return ""
        parts = []
        if source.schema is not None:
            parts.append(f"schema={source.schema}")
        if source.options:
            options = ", ".join(f"{k}={v}" for k, v in sorted(source.options.items()))
            parts.append(f"options={{{options}}}")
        return " ".join(parts)

    def _project_detail(self, node: Project) -> str:
        return f"[{self._format_expressions(node.expressions)}]"

    def _filter_detail(self, node: Filter) -> str:
        if node.condition is None:
            return ""
        return f"condition={node.condition.to_sql()}"

    def _join_detail(self, node: Join) -> str:
        if node.join_condition is None:
            return ""
        return f"on={node.join_condition.to_sql()}"

    def _sort_detail(self, node: Sort) -> str:
        keys = []
        for sort_field in node.sort_fields:
            if sort_field.expression is None:
                keys.append("<missing>")
                continue
            key = sort_field.expression.to_sql()
            if sort_field.direction:
                key = f"{key} {sort_field.direction.name}"
            if sort_field.nulls:
                key = f"{key} NULLS {sort_field.nulls.name}"
            keys.append(key)
        scope = "global" if node.is_global else "partition"
        return f"keys=[{', '.join(keys)}] scope={scope}"

    def _aggregate_detail(self, node: Aggregate) -> str:
        groups = self._format_expressions(node.grouping_expressions)
        results = self._format_expressions(node.result_expressions)
        return f"group_by=[{groups}] results=[{results}]"

    def _sql_detail(self, node: SQL) -> str:
        return f"query={normalize_sql(node.query)}"

    def _format_expressions(self, exprs) -> str:
        return ", ".join(expr.to_sql() for expr in exprs)
