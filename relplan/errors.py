"""Error taxonomy for relation plans."""

from typing import Optional


class PlanError(Exception):
    """Base class for all relation plan errors."""

    pass


class DecodeError(PlanError):
    """Raised when bytes cannot be decoded into a relation plan.

    The message is fatal for the payload that produced it; callers should
    discard it rather than attempt partial recovery.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path:
            return f"{self.message} (at {self.path})"
        return self.message


class StructuralError(PlanError):
    """Raised when a plan violates a structural invariant."""

    def __init__(
        self,
        reason: str,
        path: Optional[str] = None,
        variant: Optional[str] = None,
    ):
        self.reason = reason
        self.path = path
        self.variant = variant
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.variant:
            context.append(f"variant={self.variant}")
        if self.path:
            context.append(f"path={self.path}")
        if not context:
            return self.reason
        return f"{self.reason} ({', '.join(context)})"


class PlanDepthError(StructuralError):
    """Raised when a plan is nested deeper than the configured maximum."""

    def __init__(self, depth: int, limit: int, path: Optional[str] = None):
        self.depth = depth
        self.limit = limit
        super().__init__(
            f"plan nesting depth {depth} exceeds maximum of {limit}", path=path
        )


class UnsupportedOperation(PlanError):
    """Raised at the execution boundary for placeholder or unrecognized variants."""

    def __init__(self, variant_id: int, variant_name: Optional[str] = None):
        self.variant_id = variant_id
        self.variant_name = variant_name
        if variant_name:
            message = f"Unsupported relation variant '{variant_name}' (id={variant_id})"
        else:
            message = f"Unsupported relation variant id={variant_id}"
        super().__init__(message)
