"""Edge deduplication for one classification run."""

from __future__ import annotations

from typing import Set, Tuple

from .models import STRUCTURAL_KINDS, EdgeKey


class EdgeRegistry:
    """Remembers every edge handed out; refuses self edges and repeats."""

    def __init__(self) -> None:
        self._seen: Set[EdgeKey] = set()
        self._structural: Set[Tuple[str, str]] = set()

    def register(self, key: EdgeKey) -> bool:
        if key.src == key.dst or key in self._seen:
            return False
        self._seen.add(key)
        if key.kind in STRUCTURAL_KINDS:
            self._structural.add((key.src, key.dst))
        return True

    def has_structural(self, src: str, dst: str) -> bool:
        """True once an inheritance, realization or association edge joins the pair."""
        return (src, dst) in self._structural

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)
