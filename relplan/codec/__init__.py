"""Wire codec for relation plans."""

from .codec import (
    RelationCodec,
    encode,
    decode,
    to_json,
    from_json,
    unknown_field_bytes,
    unrecognized_variant_id,
)

__all__ = [
    "RelationCodec",
    "encode",
    "decode",
    "to_json",
    "from_json",
    "unknown_field_bytes",
    "unrecognized_variant_id",
]
