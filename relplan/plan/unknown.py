"""Opaque wire fields carried through decode/encode unchanged."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UnknownFields:
    """Wire fields not recognized by this version, kept as raw bytes.

    ``envelope`` belongs to the outer ``Relation`` or ``Expression`` message,
    ``message`` to the variant message inside it.
    """

    envelope: bytes = b""
    message: bytes = b""

    def __bool__(self) -> bool:
        return bool(self.envelope or self.message)


NO_UNKNOWN_FIELDS = UnknownFields()
