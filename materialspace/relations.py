"""Material vocabulary and the derived geometric relations.

Every relation checks roles before it touches geometry, and relations over
two objects require them to be distinct. Positions used here are the stored,
container-relative ones; absolute coordinates live in
:mod:`materialspace.hierarchy`.

A paper's geometry is a *cell*: the integers from its ``paper_pos`` and
``paper_dims`` facts when present, otherwise fresh bounded variables. The
cell is created once per search branch, so every relation mentioning the same
paper constrains the same variables.
"""

from __future__ import annotations

from typing import Any, Tuple

from .fd import ConstraintStore, Var
from .goals import (
    Env,
    Goal,
    Remember,
    add,
    conde,
    conj,
    disj,
    eq,
    fact,
    fd_eq,
    fd_neq,
    ge,
    gt,
    le,
    lt,
    neq,
    none_of_equal,
    relation,
    within,
)


# -- roles ----------------------------------------------------------------


def paper(p: Any) -> Goal:
    return fact("paper", p)


def ink(i: Any) -> Goal:
    return fact("ink", i)


def material(o: Any) -> Goal:
    return disj(paper(o), ink(o))


def contains(container: Any, obj: Any) -> Goal:
    """One-hop containment; the transitive closure is the hierarchy's job."""
    return fact("contains", container, obj)


@relation
def paper_shape(env: Env, store: ConstraintStore, p: Any, s: Any, d: Any) -> Goal:
    # Paper can only be a rounded rectangle.
    return conj(paper(p), fact("has_shape", p, s), eq(s, env.constants.paper_shape), fact("shape", s, d))


def ink_shape(i: Any, s: Any, d: Any) -> Goal:
    return conj(ink(i), fact("has_shape", i, s), fact("shape", s, d))


@relation
def paper_colour(env: Env, store: ConstraintStore, p: Any, c: Any, shade: Any) -> Goal:
    return conj(paper(p), fact("has_colour", p, c), eq(c, env.constants.paper_colour), fact("colour", c, shade))


def ink_colour(i: Any, c: Any, shade: Any) -> Goal:
    return conj(ink(i), fact("has_colour", i, c), fact("colour", c, shade))


# -- geometry cells -------------------------------------------------------


def position_cell(env: Env, store: ConstraintStore, p: Any) -> Tuple[Tuple[Any, Any, Any], Goal]:
    """Return ``(x, y, z)`` for a ground paper and the goal that installs it."""

    key = ("pos", p)
    cell = store.cell(key)
    if cell is not None:
        return cell, conj()
    row = env.facts.first("paper_pos", p)
    lo, hi = env.constants.axis_bounds
    if row is not None:
        cell = tuple(row[1:])
        return cell, conj(Remember(key, cell), ge(cell[2], 0))
    cell = (Var(f"{p}.x"), Var(f"{p}.y"), Var(f"{p}.z"))
    return cell, conj(
        Remember(key, cell),
        within(cell[0], lo, hi),
        within(cell[1], lo, hi),
        within(cell[2], 0, hi),
    )


def size_cell(env: Env, store: ConstraintStore, p: Any) -> Tuple[Tuple[Any, Any], Goal]:
    """Return ``(w, h)`` for a ground paper and the goal that installs it."""

    key = ("dims", p)
    cell = store.cell(key)
    if cell is not None:
        return cell, conj()
    row = env.facts.first("paper_dims", p)
    _, hi = env.constants.axis_bounds
    if row is not None:
        cell = tuple(row[1:])
        return cell, conj(Remember(key, cell), ge(cell[0], 0), ge(cell[1], 0))
    cell = (Var(f"{p}.w"), Var(f"{p}.h"))
    return cell, conj(Remember(key, cell), within(cell[0], 0, hi), within(cell[1], 0, hi))


@relation
def _position(env: Env, store: ConstraintStore, p: Any, x: Any, y: Any, z: Any) -> Goal:
    (cx, cy, cz), install = position_cell(env, store, store.walk(p))
    return conj(install, eq(x, cx), eq(y, cy), eq(z, cz))


@relation
def _dimensions(env: Env, store: ConstraintStore, p: Any, w: Any, h: Any, d: Any) -> Goal:
    (cw, ch), install = size_cell(env, store, store.walk(p))
    return conj(install, eq(w, cw), eq(h, ch), eq(d, env.constants.paper_depth))


def paper_pos(p: Any, x: Any, y: Any, z: Any) -> Goal:
    """Paper lives in 3-D space; x and y are free, z is never negative."""
    return conj(paper(p), _position(p, x, y, z))


def paper_dims(p: Any, w: Any, h: Any, d: Any) -> Goal:
    """Width and height are non-negative, depth is always one unit."""
    return conj(paper(p), _dimensions(p, w, h, d))


class Box:
    """Fresh variables describing one paper inside a relation."""

    def __init__(self, tag: str):
        self.x, self.y, self.z = Var(f"{tag}.x"), Var(f"{tag}.y"), Var(f"{tag}.z")
        self.w, self.h, self.d = Var(f"{tag}.w"), Var(f"{tag}.h"), Var(f"{tag}.d")
        self.right, self.bottom = Var(f"{tag}.x+w"), Var(f"{tag}.y+h")

    def bind(self, p: Any) -> Goal:
        return conj(
            _position(p, self.x, self.y, self.z),
            _dimensions(p, self.w, self.h, self.d),
            add(self.x, self.w, self.right),
            add(self.y, self.h, self.bottom),
        )


def _pair(p1: Any, p2: Any) -> Goal:
    return conj(paper(p1), paper(p2), neq(p1, p2))


def _planes(p1: Any, p2: Any) -> Tuple[Var, Var, Goal]:
    z1, z2 = Var("z1"), Var("z2")
    goal = conj(_pair(p1, p2), _position(p1, Var("x1"), Var("y1"), z1), _position(p2, Var("x2"), Var("y2"), z2))
    return z1, z2, goal


# -- planes and stacking --------------------------------------------------


@relation
def same_plane(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    z1, z2, goal = _planes(p1, p2)
    return conj(goal, fd_eq(z1, z2))


@relation
def different_plane(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    z1, z2, goal = _planes(p1, p2)
    return conj(goal, fd_neq(z1, z2))


@relation
def over(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    z1, z2, goal = _planes(p1, p2)
    return conj(goal, gt(z1, z2))


@relation
def under(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    z1, z2, goal = _planes(p1, p2)
    return conj(goal, lt(z1, z2))


# -- overlap --------------------------------------------------------------


def _overlap_conditions(a: Box, b: Box) -> Tuple[Tuple[Any, Any], ...]:
    # Half-open intervals: each pair (lo, hi) must satisfy lo < hi.
    return ((a.x, b.right), (b.x, a.right), (a.y, b.bottom), (b.y, a.bottom))


@relation
def intersect(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    a, b = Box("a"), Box("b")
    conditions = _overlap_conditions(a, b)
    return conj(_pair(p1, p2), a.bind(p1), b.bind(p2), *(lt(lo, hi) for lo, hi in conditions))


@relation
def not_intersect(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    """Negation of :func:`intersect` with mutually exclusive branches."""

    a, b = Box("a"), Box("b")
    conditions = _overlap_conditions(a, b)
    branches = []
    for index, (lo, hi) in enumerate(conditions):
        held = tuple(lt(x, y) for x, y in conditions[:index])
        branches.append(conj(*held, ge(lo, hi)))
    return conj(_pair(p1, p2), a.bind(p1), b.bind(p2), disj(*branches))


@relation
def inside(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    """``p1``'s rectangle lies within ``p2``'s on all four sides, whatever their z."""

    a, b = Box("a"), Box("b")
    return conj(
        _pair(p1, p2),
        a.bind(p1),
        b.bind(p2),
        ge(a.x, b.x),
        ge(a.y, b.y),
        le(a.right, b.right),
        le(a.bottom, b.bottom),
    )


# -- seams ----------------------------------------------------------------


@relation
def seam(env: Env, store: ConstraintStore, p1: Any, p2: Any) -> Goal:
    """Coplanar papers sharing one full edge: p1 above p2, or p1 left of p2.

    Exactly one configuration may hold; both at once needs a zero-size paper.
    """

    a, b = Box("a"), Box("b")
    vertical = ((a.x, b.x), (a.w, b.w), (a.bottom, b.y))
    horizontal = ((a.y, b.y), (a.h, b.h), (a.right, b.x))
    return conj(
        _pair(p1, p2),
        a.bind(p1),
        b.bind(p2),
        fd_eq(a.z, b.z),
        conde(
            (*(fd_eq(x, y) for x, y in vertical), none_of_equal(horizontal)),
            (*(fd_eq(x, y) for x, y in horizontal), none_of_equal(vertical)),
        ),
    )


__all__ = [
    "Box",
    "contains",
    "different_plane",
    "ink",
    "ink_colour",
    "ink_shape",
    "inside",
    "intersect",
    "material",
    "not_intersect",
    "over",
    "paper",
    "paper_colour",
    "paper_dims",
    "paper_pos",
    "paper_shape",
    "position_cell",
    "same_plane",
    "seam",
    "size_cell",
    "under",
]
