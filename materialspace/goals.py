"""Goal trees evaluated by the query engine.

A goal is plain data: conjunctions, disjunctions, unifications, arithmetic
constraints, fact lookups and deferred relation calls. Relations written with
:func:`relation` are expanded only when the search reaches them, which is what
lets recursive relations (absolute position over the containment forest)
terminate on finite data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Optional, Tuple

from .config import LayoutConstants, get_layout_constants
from .facts import FactStore
from .fd import Constraint, ConstraintStore, Eq, Ge, Gt, Le, Lt, Neq, Product, Sum, Var


@dataclass
class Env:
    """Read-only context handed to every relation expansion."""

    facts: FactStore
    constants: LayoutConstants = field(default_factory=get_layout_constants)


class Goal:
    """Base class of goal tree nodes."""


@dataclass(frozen=True)
class Succeed(Goal):
    pass


@dataclass(frozen=True)
class Fail(Goal):
    reason: str = ""


@dataclass(frozen=True)
class Unify(Goal):
    a: Any
    b: Any


@dataclass(frozen=True)
class Distinct(Goal):
    a: Any
    b: Any


@dataclass(frozen=True)
class Post(Goal):
    constraint: Constraint


@dataclass(frozen=True)
class Domain(Goal):
    term: Any
    lo: int
    hi: int


@dataclass(frozen=True)
class Conj(Goal):
    goals: Tuple[Goal, ...]


@dataclass(frozen=True)
class Disj(Goal):
    goals: Tuple[Goal, ...]


@dataclass(frozen=True)
class Facts(Goal):
    relation: str
    args: Tuple[Any, ...]


@dataclass(frozen=True)
class Call(Goal):
    name: str
    fn: Callable[..., Goal] = field(compare=False)
    args: Tuple[Any, ...] = ()

    def expand(self, env: Env, store: ConstraintStore) -> Goal:
        return self.fn(env, store, *self.args)

    def __repr__(self) -> str:
        return f"{self.name}({', '.join(repr(arg) for arg in self.args)})"


@dataclass(frozen=True)
class Remember(Goal):
    """Record a per-branch cell in the constraint store."""

    key: Any
    value: Any


@dataclass(frozen=True)
class Label(Goal):
    """Enumerate integer domains in ascending order.

    ``variables=None`` labels every open domain of the store, oldest first.
    """

    variables: Optional[Tuple[Var, ...]] = None


SUCCEED = Succeed()


def relation(fn: Callable[..., Goal]) -> Callable[..., Call]:
    """Turn ``fn(env, store, *args) -> Goal`` into a lazily expanded goal constructor."""

    @wraps(fn)
    def build(*args: Any) -> Call:
        return Call(fn.__name__, fn, args)

    build.expand = fn  # type: ignore[attr-defined]
    return build


def conj(*goals: Goal) -> Goal:
    flat = []
    for goal in goals:
        if isinstance(goal, Conj):
            flat.extend(goal.goals)
        elif not isinstance(goal, Succeed):
            flat.append(goal)
    if not flat:
        return SUCCEED
    if len(flat) == 1:
        return flat[0]
    return Conj(tuple(flat))


def disj(*goals: Goal) -> Goal:
    branches = tuple(goal for goal in goals if not isinstance(goal, Fail))
    if not branches:
        return Fail("no branches")
    if len(branches) == 1:
        return branches[0]
    return Disj(branches)


def conde(*clauses: Tuple[Goal, ...]) -> Goal:
    """Disjunction of conjunctions, one clause per branch."""

    return disj(*(conj(*clause) for clause in clauses))


def fact(relation_name: str, *args: Any) -> Facts:
    return Facts(relation_name, tuple(args))


def eq(a: Any, b: Any) -> Unify:
    return Unify(a, b)


def neq(a: Any, b: Any) -> Distinct:
    return Distinct(a, b)


def fd_eq(a: Any, b: Any) -> Post:
    return Post(Eq(a, b))


def fd_neq(a: Any, b: Any) -> Post:
    return Post(Neq(a, b))


def lt(a: Any, b: Any) -> Post:
    return Post(Lt(a, b))


def le(a: Any, b: Any) -> Post:
    return Post(Le(a, b))


def gt(a: Any, b: Any) -> Post:
    return Post(Gt(a, b))


def ge(a: Any, b: Any) -> Post:
    return Post(Ge(a, b))


def add(a: Any, b: Any, c: Any) -> Post:
    """``a + b == c``"""
    return Post(Sum(a, b, c))


def mul(a: Any, b: Any, c: Any) -> Post:
    """``a * b == c``"""
    return Post(Product(a, b, c))


def within(term: Any, lo: int, hi: int) -> Domain:
    return Domain(term, lo, hi)


def none_of_equal(pairs: Tuple[Tuple[Any, Any], ...]) -> Goal:
    """Negate ``all(a == b for a, b in pairs)`` with mutually exclusive branches.

    Branch ``k`` holds the first ``k`` equalities and breaks equality ``k``,
    so no assignment satisfies two branches.
    """

    branches = []
    for index, (a, b) in enumerate(pairs):
        prefix = tuple(fd_eq(x, y) for x, y in pairs[:index])
        branches.append(conj(*prefix, fd_neq(a, b)))
    return disj(*branches)


__all__ = [
    "Call",
    "Conj",
    "Disj",
    "Distinct",
    "Domain",
    "Env",
    "Fail",
    "Facts",
    "Goal",
    "Label",
    "Post",
    "Remember",
    "SUCCEED",
    "Succeed",
    "Unify",
    "add",
    "conde",
    "conj",
    "disj",
    "eq",
    "fact",
    "fd_eq",
    "fd_neq",
    "ge",
    "gt",
    "le",
    "lt",
    "mul",
    "neq",
    "none_of_equal",
    "relation",
    "within",
]
