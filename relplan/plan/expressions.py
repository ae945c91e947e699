"""Expression nodes referenced by relation plans.

The plan IR never interprets expressions: it only carries them between
producer and consumer. This module ships the small catalog needed to build
and serialize plans, each node able to render itself as SQL text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Tuple

from sqlglot import exp

from .unknown import NO_UNKNOWN_FIELDS, UnknownFields


class Expression(ABC):
    """Base class for all expressions."""

    VARIANT_ID: ClassVar[int]
    FIELD_NAME: ClassVar[str]

    @abstractmethod
    def accept(self, visitor):
        """Accept a visitor for the visitor pattern."""
        pass

    @abstractmethod
    def to_sqlglot(self) -> exp.Expression:
        """Build the equivalent sqlglot expression tree."""
        pass

    def to_sql(self) -> str:
        """Convert expression to SQL string."""
        return self.to_sqlglot().sql()


@dataclass(frozen=True)
class Literal(Expression):
    """Literal value expression.

    Supported values are None, bool, int (64-bit), float and str.
    """

    VARIANT_ID: ClassVar[int] = 1
    FIELD_NAME: ClassVar[str] = "literal"

    value: Any
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_literal(self)

    def to_sqlglot(self) -> exp.Expression:
        if self.value is None:
            return exp.Null()
        if isinstance(self.value, bool):
            return exp.Boolean(this=self.value)
        if isinstance(self.value, (int, float)):
            return exp.Literal.number(self.value)
        return exp.Literal.string(str(self.value))

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


@dataclass(frozen=True)
class UnresolvedAttribute(Expression):
    """Column reference by (possibly qualified) name, e.g. ``t.id``."""

    VARIANT_ID: ClassVar[int] = 2
    FIELD_NAME: ClassVar[str] = "unresolved_attribute"

    unparsed_identifier: str
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_unresolved_attribute(self)

    def to_sqlglot(self) -> exp.Expression:
        return exp.to_column(self.unparsed_identifier)

    def __repr__(self) -> str:
        return f"UnresolvedAttribute({self.unparsed_identifier})"


@dataclass(frozen=True)
class UnresolvedFunction(Expression):
    """Function call by name; resolution is left to the engine."""

    VARIANT_ID: ClassVar[int] = 3
    FIELD_NAME: ClassVar[str] = "unresolved_function"

    function_name: str
    arguments: Tuple[Expression, ...] = ()
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "arguments", tuple(self.arguments))

    def accept(self, visitor):
        return visitor.visit_unresolved_function(self)

    def to_sqlglot(self) -> exp.Expression:
        args = [arg.to_sqlglot() for arg in self.arguments]
        return exp.Anonymous(this=self.function_name, expressions=args)

    def __repr__(self) -> str:
        return f"UnresolvedFunction({self.function_name}, {list(self.arguments)})"


@dataclass(frozen=True)
class ExpressionString(Expression):
    """Raw SQL expression text, carried verbatim."""

    VARIANT_ID: ClassVar[int] = 4
    FIELD_NAME: ClassVar[str] = "expression_string"

    expression: str
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_expression_string(self)

    def to_sqlglot(self) -> exp.Expression:
        return exp.Var(this=self.expression)

    def __repr__(self) -> str:
        return f"ExpressionString({self.expression!r})"


@dataclass(frozen=True)
class Alias(Expression):
    """Expression with an output name."""

    VARIANT_ID: ClassVar[int] = 5
    FIELD_NAME: ClassVar[str] = "alias"

    expr: Expression
    name: str
    unknown_fields: UnknownFields = field(default=NO_UNKNOWN_FIELDS, repr=False)

    def accept(self, visitor):
        return visitor.visit_alias(self)

    def to_sqlglot(self) -> exp.Expression:
        return exp.alias_(self.expr.to_sqlglot(), self.name)

    def __repr__(self) -> str:
        return f"Alias({self.expr}, {self.name})"


@dataclass(frozen=True)
class UnrecognizedExpression(Expression):
    """Expression variant unknown to this version of the library.

    ``payload`` holds the raw wire bytes so the expression survives a
    decode/encode cycle unchanged.
    """

    variant_id: int
    payload: bytes = field(default=b"", repr=False)

    def accept(self, visitor):
        return visitor.visit_unrecognized(self)

    def to_sqlglot(self) -> exp.Expression:
        return exp.Var(this=f"<unrecognized expression {self.variant_id}>")

    def __repr__(self) -> str:
        return f"UnrecognizedExpression(id={self.variant_id})"


@dataclass(frozen=True)
class QualifiedAttribute:
    """Named, typed attribute used to describe a local relation schema."""

    name: str
    type: str = ""
    unknown_fields: bytes = field(default=b"", repr=False)

    def __repr__(self) -> str:
        if self.type:
            return f"{self.name}: {self.type}"
        return self.name


class ExpressionVisitor(ABC):
    """Visitor interface for expressions."""

    @abstractmethod
    def visit_literal(self, expr: Literal):
        pass

    @abstractmethod
    def visit_unresolved_attribute(self, expr: UnresolvedAttribute):
        pass

    @abstractmethod
    def visit_unresolved_function(self, expr: UnresolvedFunction):
        pass

    @abstractmethod
    def visit_expression_string(self, expr: ExpressionString):
        pass

    @abstractmethod
    def visit_alias(self, expr: Alias):
        pass

    @abstractmethod
    def visit_unrecognized(self, expr: UnrecognizedExpression):
        pass
