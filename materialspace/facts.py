"""In-memory store of ground facts with first-argument indexes."""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Set, Tuple

from .errors import ArityError, FactStoreLocked

logger = logging.getLogger(__name__)

Fact = Tuple[Hashable, ...]


class _Wildcard:
    _instance: Optional["_Wildcard"] = None

    def __new__(cls) -> "_Wildcard":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:  # pragma: no cover - trivial string formatting
        return "ANY"


ANY = _Wildcard()

RELATION_ARITIES: Dict[str, int] = {
    "paper": 1,
    "ink": 1,
    "shape": 2,
    "colour": 2,
    "has_shape": 2,
    "has_colour": 2,
    "device": 2,
    "pixel_depth": 2,
    "screen": 4,
    "paper_pos": 4,
    "paper_dims": 3,
    "contains": 2,
    "base_object": 1,
    "at_rest": 1,
    "raised": 1,
    "rest_elevation": 2,
}

# Positions indexed in addition to the first argument.
_EXTRA_INDEXES: Dict[str, Tuple[int, ...]] = {
    "contains": (1,),
}


class FactStore:
    """Holds ground facts for one query session.

    Facts are kept per relation in insertion order. Every relation is indexed
    by its first argument, and ``contains`` also by its second, so role checks
    and parent lookups do not scan the whole relation.
    """

    def __init__(self, arities: Optional[Dict[str, int]] = None):
        self._arities: Dict[str, int] = dict(RELATION_ARITIES if arities is None else arities)
        self._facts: Dict[str, List[Fact]] = defaultdict(list)
        self._seen: Dict[str, Set[Fact]] = defaultdict(set)
        self._indexes: Dict[Tuple[str, int], Dict[Hashable, List[Fact]]] = {}
        self._active_sessions = 0

    # -- lifecycle -----------------------------------------------------

    @property
    def locked(self) -> bool:
        return self._active_sessions > 0

    def _check_writable(self) -> None:
        if self._active_sessions:
            raise FactStoreLocked("fact store is read-only while a query is active")

    def reset(self) -> None:
        """Drop every fact; arities declared so far are kept."""

        self._check_writable()
        self._facts.clear()
        self._seen.clear()
        self._indexes.clear()
        logger.debug("Fact store reset")

    @contextmanager
    def session(self) -> Iterator["FactStore"]:
        """Lock the store against writes for the duration of a query."""

        self._active_sessions += 1
        try:
            yield self
        finally:
            self._active_sessions -= 1

    # -- writes --------------------------------------------------------

    def _check_arity(self, relation: str, size: int) -> None:
        expected = self._arities.get(relation)
        if expected is None:
            self._arities[relation] = size
        elif expected != size:
            raise ArityError(f"{relation} takes {expected} argument(s), got {size}")

    def assert_fact(self, relation: str, *args: Hashable) -> bool:
        """Add ``relation(*args)``; returns ``False`` when the fact already existed."""

        self._check_writable()
        if not args:
            raise ArityError(f"{relation} requires at least one argument")
        self._check_arity(relation, len(args))
        fact = tuple(args)
        seen = self._seen[relation]
        if fact in seen:
            return False
        seen.add(fact)
        self._facts[relation].append(fact)
        for position in self._index_positions(relation):
            index = self._indexes.setdefault((relation, position), {})
            index.setdefault(fact[position], []).append(fact)
        return True

    def assert_facts(self, relation: str, rows: Sequence[Sequence[Hashable]]) -> int:
        added = 0
        for row in rows:
            if self.assert_fact(relation, *row):
                added += 1
        return added

    # -- reads ---------------------------------------------------------

    def _index_positions(self, relation: str) -> Tuple[int, ...]:
        return (0,) + _EXTRA_INDEXES.get(relation, ())

    def arity(self, relation: str) -> Optional[int]:
        return self._arities.get(relation)

    def relations(self) -> List[str]:
        return [name for name, facts in self._facts.items() if facts]

    def query(self, relation: str, pattern: Sequence[Any] = ()) -> Iterator[Fact]:
        """Yield facts of ``relation`` matching ``pattern`` in insertion order.

        ``pattern`` holds one entry per argument, either a value or ``ANY``.
        An empty pattern matches every fact.
        """

        facts = self._facts.get(relation)
        if not facts:
            return iter(())
        if not pattern:
            return iter(list(facts))
        expected = self._arities.get(relation)
        if expected is not None and len(pattern) != expected:
            raise ArityError(f"{relation} takes {expected} argument(s), pattern has {len(pattern)}")

        candidates: Sequence[Fact] = facts
        for position in self._index_positions(relation):
            key = pattern[position]
            if key is not ANY:
                candidates = self._indexes.get((relation, position), {}).get(key, [])
                break
        return self._filter(list(candidates), pattern)

    @staticmethod
    def _filter(candidates: Sequence[Fact], pattern: Sequence[Any]) -> Iterator[Fact]:
        for fact in candidates:
            if all(want is ANY or want == have for want, have in zip(pattern, fact)):
                yield fact

    def has(self, relation: str, *args: Any) -> bool:
        """Return ``True`` when at least one fact matches ``args`` (``ANY`` allowed)."""

        for _ in self.query(relation, args):
            return True
        return False

    def first(self, relation: str, key: Hashable) -> Optional[Fact]:
        """Return the first fact of ``relation`` whose first argument is ``key``."""

        matches = self._indexes.get((relation, 0), {}).get(key)
        return matches[0] if matches else None

    def count(self, relation: str) -> int:
        return len(self._facts.get(relation, ()))

    def __len__(self) -> int:
        return sum(len(facts) for facts in self._facts.values())

    def __repr__(self) -> str:  # pragma: no cover - trivial string formatting
        summary = ", ".join(f"{name}={len(facts)}" for name, facts in self._facts.items() if facts)
        return f"FactStore({summary})"


__all__ = ["ANY", "Fact", "FactStore", "RELATION_ARITIES"]
