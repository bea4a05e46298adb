"""Containment forest: parents, absolute positions and elevations.

Stored positions are relative to the containing paper; a root's stored
position is already absolute. Rest elevations work the same way: a contained
object's offset is added to its container's *current* elevation.
"""

from __future__ import annotations

import logging
from typing import Any, Hashable, List, Optional, Tuple

from .config import LayoutConstants, get_layout_constants
from .errors import CycleDetected, InvalidState, UnknownEntity
from .facts import ANY, FactStore
from .fd import ConstraintStore, Var
from .goals import SUCCEED, Env, Fail, Goal, add, conde, conj, eq, relation
from .logging_utils import debug_log_call
from .relations import contains, material, paper, paper_pos

logger = logging.getLogger(__name__)

ROOT_SCOPE = "<root>"


# -- direct evaluation over ground facts ----------------------------------


def parent_of(facts: FactStore, obj: Hashable) -> Optional[Hashable]:
    rows = list(facts.query("contains", (ANY, obj)))
    if len(rows) > 1:
        containers = ", ".join(repr(row[0]) for row in rows)
        raise InvalidState(f"{obj!r} has more than one container: {containers}")
    return rows[0][0] if rows else None


def children_of(facts: FactStore, container: Hashable) -> List[Hashable]:
    return [row[1] for row in facts.query("contains", (container, ANY))]


def is_root(facts: FactStore, obj: Hashable) -> bool:
    return facts.has("base_object", obj) or parent_of(facts, obj) is None


def ancestors(facts: FactStore, obj: Hashable) -> List[Hashable]:
    """Containers of ``obj`` from the nearest up to its root."""

    chain: List[Hashable] = []
    seen = {obj}
    current = parent_of(facts, obj)
    while current is not None:
        if current in seen:
            raise CycleDetected([obj, *chain, current])
        seen.add(current)
        chain.append(current)
        current = parent_of(facts, current)
    return chain


def _require_material(facts: FactStore, obj: Hashable) -> None:
    if not (facts.has("paper", obj) or facts.has("ink", obj)):
        raise UnknownEntity(f"{obj!r} is neither paper nor ink")


@debug_log_call(logger)
def absolute_position(facts: FactStore, obj: Hashable) -> Tuple[int, int, int]:
    """Sum the stored positions of ``obj`` and all of its containers."""

    _require_material(facts, obj)
    total = [0, 0, 0]
    for node in (obj, *ancestors(facts, obj)):
        row = facts.first("paper_pos", node)
        if row is None:
            raise UnknownEntity(f"no stored position for {node!r}")
        for axis in range(3):
            total[axis] += row[axis + 1]
    return total[0], total[1], total[2]


def _offset(facts: FactStore, obj: Hashable) -> int:
    row = facts.first("rest_elevation", obj)
    return 0 if row is None else row[1]


def _is_raised(facts: FactStore, obj: Hashable) -> bool:
    at_rest = facts.has("at_rest", obj)
    raised = facts.has("raised", obj)
    if at_rest == raised:
        state = "both at rest and raised" if raised else "neither at rest nor raised"
        raise InvalidState(f"{obj!r} is {state}")
    return raised


def _resting(facts: FactStore, obj: Hashable, constants: LayoutConstants, trail: Tuple[Hashable, ...]) -> int:
    if obj in trail:
        raise CycleDetected([*trail, obj])
    parent = None if facts.has("base_object", obj) else parent_of(facts, obj)
    if parent is None:
        return _offset(facts, obj)
    return _current(facts, parent, constants, trail + (obj,)) + _offset(facts, obj)


def _current(facts: FactStore, obj: Hashable, constants: LayoutConstants, trail: Tuple[Hashable, ...]) -> int:
    raised = _is_raised(facts, obj)
    resting = _resting(facts, obj, constants, trail)
    return resting + constants.raise_offset if raised else resting


@debug_log_call(logger)
def resting_elevation(facts: FactStore, obj: Hashable, constants: Optional[LayoutConstants] = None) -> int:
    _require_material(facts, obj)
    return _resting(facts, obj, constants or get_layout_constants(), ())


@debug_log_call(logger)
def current_elevation(facts: FactStore, obj: Hashable, constants: Optional[LayoutConstants] = None) -> int:
    """Rest elevation, plus the raise offset when the object is raised."""

    _require_material(facts, obj)
    return _current(facts, obj, constants or get_layout_constants(), ())


@debug_log_call(logger, log_result=False)
def validate_forest(facts: FactStore) -> List[Hashable]:
    """Check the containment relation is a forest and return its roots.

    Raises :class:`InvalidState` for an object with several containers or one
    marked as a base object while also contained, and :class:`CycleDetected`
    for a containment loop.
    """

    objects: List[Hashable] = []
    for relation_name in ("paper", "ink"):
        objects.extend(row[0] for row in facts.query(relation_name))
    for container, obj in facts.query("contains"):
        for item in (container, obj):
            if item not in objects:
                objects.append(item)

    roots: List[Hashable] = []
    for obj in objects:
        parent = parent_of(facts, obj)
        if parent is not None and facts.has("base_object", obj):
            raise InvalidState(f"{obj!r} is a base object but contained by {parent!r}")
        ancestors(facts, obj)
        if parent is None:
            roots.append(obj)
    logger.info("Containment forest has %d object(s) and %d root(s)", len(objects), len(roots))
    return roots


# -- goal forms -----------------------------------------------------------


@relation
def root(env: Env, store: ConstraintStore, p: Any) -> Goal:
    obj = store.walk(p)
    if isinstance(obj, Var):
        return conj(material(p), root(p))
    if is_root(env.facts, obj):
        return SUCCEED
    return Fail(f"{obj!r} is contained")


def scope(p: Any, c: Any) -> Goal:
    """``c`` is the container of ``p``, or ``ROOT_SCOPE`` for roots."""
    return conde((contains(c, p),), (root(p), eq(c, ROOT_SCOPE)))


def absolute_pos(p: Any, x: Any, y: Any, z: Any) -> Goal:
    return _absolute(p, x, y, z, ())


@relation
def _absolute(env: Env, store: ConstraintStore, p: Any, x: Any, y: Any, z: Any, trail: Tuple[Any, ...]) -> Goal:
    obj = store.walk(p)
    if isinstance(obj, Var):
        return conj(paper(p), _absolute(p, x, y, z, trail))
    if obj in trail:
        raise CycleDetected([*trail, obj])
    px, py, pz = Var("px"), Var("py"), Var("pz")
    c, cx, cy, cz = Var("c"), Var("cx"), Var("cy"), Var("cz")
    return conj(
        paper_pos(p, px, py, pz),
        conde(
            (
                contains(c, p),
                _absolute(c, cx, cy, cz, trail + (obj,)),
                add(px, cx, x),
                add(py, cy, y),
                add(pz, cz, z),
            ),
            (root(p), eq(x, px), eq(y, py), eq(z, pz)),
        ),
    )


@relation
def rest_elevation(env: Env, store: ConstraintStore, p: Any, z: Any) -> Goal:
    obj = store.walk(p)
    if isinstance(obj, Var):
        return conj(material(p), rest_elevation(p, z))
    return eq(z, resting_elevation(env.facts, obj, env.constants))


@relation
def elevation(env: Env, store: ConstraintStore, p: Any, z: Any) -> Goal:
    # At-rest and raised are paper states; ink has only a rest elevation.
    obj = store.walk(p)
    if isinstance(obj, Var):
        return conj(paper(p), elevation(p, z))
    if not env.facts.has("paper", obj):
        return Fail(f"{obj!r} is not a paper")
    return eq(z, current_elevation(env.facts, obj, env.constants))


__all__ = [
    "ROOT_SCOPE",
    "absolute_pos",
    "absolute_position",
    "ancestors",
    "children_of",
    "current_elevation",
    "elevation",
    "is_root",
    "parent_of",
    "rest_elevation",
    "resting_elevation",
    "root",
    "scope",
    "validate_forest",
]
