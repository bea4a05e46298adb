"""Material exclusion: two papers never occupy the same point in space.

Two distinct objects in the same container may overlap in x/y only when
they lie on different planes. Objects in different containers never collide;
container bounds are assumed disjoint and are not cross-checked, so two
nested papers whose absolute rectangles overlap are accepted. Ink is painted
onto paper and occupies no volume of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Dict, Hashable, List, Optional, Sequence

import numpy as np

from .config import SearchOptions
from .facts import FactStore
from .fd import ConstraintStore, Var
from .goals import SUCCEED, Env, Goal, conde, conj, eq, neq, relation
from .hierarchy import ROOT_SCOPE, parent_of, scope
from .logging_utils import debug_log_call
from .relations import different_plane, intersect, material, not_intersect

logger = logging.getLogger(__name__)


@relation
def _clear(env: Env, store: ConstraintStore, a: Any, b: Any) -> Goal:
    first, second = store.walk(a), store.walk(b)
    if env.facts.has("paper", first) and env.facts.has("paper", second):
        return conde(
            (intersect(a, b), different_plane(a, b)),
            (not_intersect(a, b),),
        )
    return SUCCEED


@relation
def pauli(env: Env, store: ConstraintStore, a: Any, b: Any) -> Goal:
    shared, left, right = Var("scope"), Var("scope.a"), Var("scope.b")
    return conde(
        (material(a), eq(a, b)),
        (material(a), material(b), neq(a, b), scope(a, shared), scope(b, shared), _clear(a, b)),
        (material(a), material(b), neq(a, b), scope(a, left), scope(b, right), neq(left, right)),
    )


@relation
def exclusion_holds(env: Env, store: ConstraintStore) -> Goal:
    """``pauli`` for every unordered pair of distinct papers in the store."""

    papers = [row[0] for row in env.facts.query("paper")]
    return conj(*(pauli(a, b) for a, b in combinations(papers, 2)))


@dataclass
class ExclusionViolation:
    first: Hashable
    second: Hashable
    scope: Hashable
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial string formatting
        return self.message


def _violation(first: Hashable, second: Hashable, scope_id: Hashable, detail: str) -> ExclusionViolation:
    where = "the root scope" if scope_id == ROOT_SCOPE else repr(scope_id)
    return ExclusionViolation(
        first=first,
        second=second,
        scope=scope_id,
        message=f"{first!r} and {second!r} in {where} {detail}",
    )


def _ground_violations(
    names: Sequence[Hashable], scopes: Sequence[Hashable], boxes: np.ndarray
) -> List[ExclusionViolation]:
    if len(names) < 2:
        return []
    x, y, z, w, h = (boxes[:, column] for column in range(5))
    right, bottom = x + w, y + h
    overlap = (
        (x[:, None] < right[None, :])
        & (x[None, :] < right[:, None])
        & (y[:, None] < bottom[None, :])
        & (y[None, :] < bottom[:, None])
    )
    codes: Dict[Hashable, int] = {}
    scope_ids = np.array([codes.setdefault(item, len(codes)) for item in scopes])
    same_scope = scope_ids[:, None] == scope_ids[None, :]
    same_plane = z[:, None] == z[None, :]
    clash = np.triu(overlap & same_scope & same_plane, k=1)
    violations = []
    for i, j in zip(*np.nonzero(clash)):
        violations.append(_violation(names[i], names[j], scopes[i], f"overlap on plane z={int(z[i])}"))
    return violations


@debug_log_call(logger, log_result=False)
def check_exclusion(
    facts: FactStore,
    env: Optional[Env] = None,
    options: Optional[SearchOptions] = None,
) -> List[ExclusionViolation]:
    """Return every pair of papers that breaks material exclusion.

    Papers with stored position and size are screened together; a pair in
    which either paper has free geometry is violated only when no placement
    satisfies ``pauli``. That placement search runs under ``options``, so its
    node budget applies and :class:`SearchBudgetExceeded` propagates.
    """

    from .search import Search

    if env is None:
        if options is not None and options.constants is not None:
            env = Env(facts, options.constants)
        else:
            env = Env(facts)
    names: List[Hashable] = []
    scopes: List[Hashable] = []
    rows: List[List[int]] = []
    free: List[Hashable] = []
    scope_of: Dict[Hashable, Hashable] = {}
    for (name,) in facts.query("paper"):
        parent = parent_of(facts, name)
        scope_of[name] = ROOT_SCOPE if parent is None or facts.has("base_object", name) else parent
        pos, dims = facts.first("paper_pos", name), facts.first("paper_dims", name)
        if pos is None or dims is None:
            free.append(name)
            continue
        names.append(name)
        scopes.append(scope_of[name])
        rows.append([pos[1], pos[2], pos[3], dims[1], dims[2]])

    boxes = np.array(rows, dtype=np.int64).reshape(-1, 5)
    violations = _ground_violations(names, scopes, boxes)

    search = Search(env, options)
    for a, b in combinations(list(scope_of), 2):
        if a not in free and b not in free:
            continue
        if scope_of[a] != scope_of[b]:
            continue
        if search.first(pauli(a, b)) is None:
            violations.append(_violation(a, b, scope_of[a], "cannot be placed apart"))

    logger.info("Exclusion check over %d paper(s): %d violation(s)", len(scope_of), len(violations))
    return violations


__all__ = ["ExclusionViolation", "check_exclusion", "exclusion_holds", "pauli"]
