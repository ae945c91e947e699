"""Case-insensitive view over data source options."""

from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional


class CaseInsensitiveOptions(Mapping):
    """Read-only mapping whose key lookups ignore case.

    The wrapped dict is never rewritten, so the original key casing is what
    gets serialized. Iteration yields the original keys.
    """

    def __init__(self, options: Optional[Dict[str, str]] = None):
        if options is None:
            options = {}
        self._options = options
        self._index: Dict[str, str] = {}
        for key in options:
            self._index[key.lower()] = key

    def __getitem__(self, key: str) -> str:
        original = self._index.get(key.lower())
        if original is None:
            raise KeyError(key)
        return self._options[original]

    def __iter__(self) -> Iterator[str]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def original_key(self, key: str) -> Optional[str]:
        """Return the key as stored, or None if absent."""
        return self._index.get(key.lower())

    def __repr__(self) -> str:
        return f"CaseInsensitiveOptions({self._options!r})"


def colliding_keys(options: Dict[str, str]) -> List[str]:
    """Return keys that differ from an earlier key only by case."""
    seen = set()
    collisions: List[str] = []
    for key in options:
        folded = key.lower()
        if folded in seen:
            collisions.append(key)
        seen.add(folded)
    return collisions
