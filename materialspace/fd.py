"""Finite-domain integer variables and a copy-on-write constraint store.

The store is a value: every operation returns a new ``ConstraintStore`` and
leaves the receiver untouched, so the query engine can hand the same store to
several disjunction branches without them observing each other's bindings.

Integer domains are closed intervals. Posting a constraint runs bound
propagation over every pending constraint until nothing narrows further; a
domain that shrinks to one value binds its variable, and an empty domain
raises :class:`~materialspace.errors.Unsatisfiable`.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field, replace
from fractions import Fraction
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from .errors import Unsatisfiable

logger = logging.getLogger(__name__)

Bounds = Tuple[int, int]
DEFAULT_BOUNDS: Bounds = (-10000, 10000)


class Var:
    """A logic variable. Identity is the object itself."""

    __slots__ = ("name", "serial")
    _serials = itertools.count()

    def __init__(self, name: str = "_"):
        self.name = name
        self.serial = next(Var._serials)

    def __repr__(self) -> str:
        return f"?{self.name}.{self.serial}"


def fresh(*names: str) -> Tuple[Var, ...]:
    return tuple(Var(name) for name in names)


_UNBOUND = object()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class _Scratch:
    """Mutable working copy used while a single store operation runs."""

    def __init__(self, store: "ConstraintStore"):
        self.subst: Dict[Var, Any] = dict(store.subst)
        self.domains: Dict[Var, Bounds] = dict(store.domains)
        self.default = store.default_bounds
        self.changed = False

    def walk(self, term: Any) -> Any:
        while isinstance(term, Var):
            bound = self.subst.get(term, _UNBOUND)
            if bound is _UNBOUND:
                return term
            term = bound
        return term

    def bounds(self, term: Any) -> Bounds:
        term = self.walk(term)
        if isinstance(term, Var):
            domain = self.domains.get(term)
            if domain is None:
                domain = self.default
                self.domains[term] = domain
            return domain
        if not _is_int(term):
            raise Unsatisfiable(f"{term!r} is not an integer")
        return term, term

    def tighten(self, term: Any, lo: int, hi: int) -> None:
        term = self.walk(term)
        cur_lo, cur_hi = self.bounds(term)
        new_lo = max(lo, cur_lo)
        new_hi = min(hi, cur_hi)
        if new_lo > new_hi:
            raise Unsatisfiable(f"empty domain for {term!r}: [{new_lo}, {new_hi}]")
        if not isinstance(term, Var) or (new_lo, new_hi) == (cur_lo, cur_hi):
            return
        self.changed = True
        if new_lo == new_hi:
            del self.domains[term]
            self.subst[term] = new_lo
        else:
            self.domains[term] = (new_lo, new_hi)


class Constraint:
    """Arithmetic relation between integer terms."""

    def terms(self) -> Tuple[Any, ...]:
        raise NotImplementedError

    def narrow(self, scratch: _Scratch) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class Eq(Constraint):
    a: Any
    b: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b)

    def narrow(self, scratch: _Scratch) -> None:
        lo, hi = scratch.bounds(self.b)
        scratch.tighten(self.a, lo, hi)
        lo, hi = scratch.bounds(self.a)
        scratch.tighten(self.b, lo, hi)


@dataclass(frozen=True)
class Neq(Constraint):
    a: Any
    b: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b)

    def narrow(self, scratch: _Scratch) -> None:
        a, b = scratch.walk(self.a), scratch.walk(self.b)
        if isinstance(a, Var) and a is b:
            raise Unsatisfiable(f"{a!r} != itself")
        for fixed, other in ((a, b), (b, a)):
            lo, hi = scratch.bounds(fixed)
            if lo != hi:
                continue
            other_lo, other_hi = scratch.bounds(other)
            if other_lo == lo == other_hi:
                raise Unsatisfiable(f"{lo} != {lo}")
            if other_lo == lo:
                scratch.tighten(other, lo + 1, other_hi)
            elif other_hi == lo:
                scratch.tighten(other, other_lo, lo - 1)


@dataclass(frozen=True)
class Le(Constraint):
    a: Any
    b: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b)

    def narrow(self, scratch: _Scratch, gap: int = 0) -> None:
        a_lo, _ = scratch.bounds(self.a)
        _, b_hi = scratch.bounds(self.b)
        scratch.tighten(self.a, a_lo, b_hi - gap)
        a_lo, _ = scratch.bounds(self.a)
        b_lo, b_hi = scratch.bounds(self.b)
        scratch.tighten(self.b, a_lo + gap, b_hi)


@dataclass(frozen=True)
class Lt(Le):
    def narrow(self, scratch: _Scratch, gap: int = 1) -> None:
        super().narrow(scratch, gap)


@dataclass(frozen=True)
class Ge(Constraint):
    a: Any
    b: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b)

    def narrow(self, scratch: _Scratch) -> None:
        Le(self.b, self.a).narrow(scratch)


@dataclass(frozen=True)
class Gt(Constraint):
    a: Any
    b: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b)

    def narrow(self, scratch: _Scratch) -> None:
        Lt(self.b, self.a).narrow(scratch)


@dataclass(frozen=True)
class Sum(Constraint):
    """``a + b == c``."""

    a: Any
    b: Any
    c: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b, self.c)

    def narrow(self, scratch: _Scratch) -> None:
        a_lo, a_hi = scratch.bounds(self.a)
        b_lo, b_hi = scratch.bounds(self.b)
        scratch.tighten(self.c, a_lo + b_lo, a_hi + b_hi)
        c_lo, c_hi = scratch.bounds(self.c)
        scratch.tighten(self.a, c_lo - b_hi, c_hi - b_lo)
        a_lo, a_hi = scratch.bounds(self.a)
        scratch.tighten(self.b, c_lo - a_hi, c_hi - a_lo)


@dataclass(frozen=True)
class Product(Constraint):
    """``a * b == c``."""

    a: Any
    b: Any
    c: Any

    def terms(self) -> Tuple[Any, ...]:
        return (self.a, self.b, self.c)

    def narrow(self, scratch: _Scratch) -> None:
        a_lo, a_hi = scratch.bounds(self.a)
        b_lo, b_hi = scratch.bounds(self.b)
        corners = (a_lo * b_lo, a_lo * b_hi, a_hi * b_lo, a_hi * b_hi)
        scratch.tighten(self.c, min(corners), max(corners))
        self._divide(scratch, self.a, self.b)
        self._divide(scratch, self.b, self.a)

    def _divide(self, scratch: _Scratch, target: Any, divisor: Any) -> None:
        d_lo, d_hi = scratch.bounds(divisor)
        if d_lo <= 0 <= d_hi:
            # Interval division is unbounded when the divisor can be zero.
            return
        c_lo, c_hi = scratch.bounds(self.c)
        quotients = [Fraction(n, d) for n in (c_lo, c_hi) for d in (d_lo, d_hi)]
        t_lo, t_hi = scratch.bounds(target)
        scratch.tighten(target, max(t_lo, math.ceil(min(quotients))), min(t_hi, math.floor(max(quotients))))


def _propagate(scratch: _Scratch, constraints: Iterable[Constraint]) -> Tuple[Constraint, ...]:
    pending = tuple(constraints)
    rounds = 0
    while True:
        scratch.changed = False
        for constraint in pending:
            constraint.narrow(scratch)
        rounds += 1
        if not scratch.changed:
            break
    if rounds > 1 and logger.isEnabledFor(logging.DEBUG):
        logger.debug("Propagation reached fixpoint after %d rounds over %d constraints", rounds, len(pending))
    return tuple(
        constraint
        for constraint in pending
        if any(isinstance(scratch.walk(term), Var) for term in constraint.terms())
    )


@dataclass(frozen=True)
class ConstraintStore:
    """Immutable bindings, integer domains and pending constraints.

    The mappings are never mutated once a store is built; operations copy
    them into a scratch area and build a fresh store from the result.
    """

    subst: Mapping[Var, Any] = field(default_factory=dict)
    domains: Mapping[Var, Bounds] = field(default_factory=dict)
    constraints: Tuple[Constraint, ...] = ()
    diseqs: Tuple[Tuple[Any, Any], ...] = ()
    cells: Mapping[Hashable, Any] = field(default_factory=dict)
    default_bounds: Bounds = DEFAULT_BOUNDS

    # -- reads ---------------------------------------------------------

    def walk(self, term: Any) -> Any:
        while isinstance(term, Var):
            bound = self.subst.get(term, _UNBOUND)
            if bound is _UNBOUND:
                return term
            term = bound
        return term

    def reify(self, term: Any) -> Any:
        term = self.walk(term)
        if isinstance(term, tuple):
            return tuple(self.reify(item) for item in term)
        return term

    def bounds(self, term: Any) -> Optional[Bounds]:
        """Return the interval of an integer term, ``None`` for symbolic terms."""

        term = self.walk(term)
        if isinstance(term, Var):
            return self.domains.get(term, self.default_bounds)
        if _is_int(term):
            return term, term
        return None

    def is_ground(self, term: Any) -> bool:
        return not isinstance(self.walk(term), Var)

    def open_domains(self) -> List[Var]:
        """Unbound variables that carry a domain, oldest first."""

        return sorted(
            (var for var in self.domains if isinstance(self.walk(var), Var)),
            key=lambda var: var.serial,
        )

    def cell(self, key: Hashable) -> Any:
        return self.cells.get(key)

    # -- writes --------------------------------------------------------

    def _commit(self, scratch: _Scratch, constraints: Iterable[Constraint], diseqs: Iterable[Tuple[Any, Any]]) -> "ConstraintStore":
        remaining = _propagate(scratch, constraints)
        pending: List[Tuple[Any, Any]] = []
        for left, right in diseqs:
            left, right = scratch.walk(left), scratch.walk(right)
            if isinstance(left, Var) or isinstance(right, Var):
                if left is right:
                    raise Unsatisfiable(f"{left!r} must differ from itself")
                pending.append((left, right))
            elif left == right:
                raise Unsatisfiable(f"{left!r} must differ from {right!r}")
        return replace(
            self,
            subst=scratch.subst,
            domains=scratch.domains,
            constraints=remaining,
            diseqs=tuple(pending),
        )

    def unify(self, a: Any, b: Any) -> "ConstraintStore":
        scratch = _Scratch(self)
        a, b = scratch.walk(a), scratch.walk(b)
        if a is b:
            return self
        if isinstance(a, Var) and isinstance(b, Var):
            left = scratch.domains.pop(a, None)
            scratch.subst[a] = b
            if left is not None:
                scratch.tighten(b, *left)
        elif isinstance(a, Var) or isinstance(b, Var):
            var, value = (a, b) if isinstance(a, Var) else (b, a)
            if var in scratch.domains:
                if not _is_int(value):
                    raise Unsatisfiable(f"integer variable {var!r} cannot take {value!r}")
                scratch.tighten(var, value, value)
            else:
                scratch.subst[var] = value
        elif a != b or _is_int(a) != _is_int(b):
            raise Unsatisfiable(f"{a!r} does not unify with {b!r}")
        else:
            return self
        return self._commit(scratch, self.constraints, self.diseqs)

    def distinct(self, a: Any, b: Any) -> "ConstraintStore":
        """Require ``a`` and ``b`` to denote different values."""

        scratch = _Scratch(self)
        return self._commit(scratch, self.constraints, self.diseqs + ((a, b),))

    def post(self, constraint: Constraint) -> "ConstraintStore":
        scratch = _Scratch(self)
        if isinstance(constraint, Eq):
            a, b = scratch.walk(constraint.a), scratch.walk(constraint.b)
            scratch.bounds(a)
            scratch.bounds(b)
            if isinstance(a, Var) and isinstance(b, Var):
                # Alias the two variables so a later Neq between them fails at once.
                if a is not b:
                    left = scratch.domains.pop(a)
                    scratch.subst[a] = b
                    scratch.tighten(b, *left)
                return self._commit(scratch, self.constraints, self.diseqs)
        return self._commit(scratch, self.constraints + (constraint,), self.diseqs)

    def declare(self, term: Any, lo: int, hi: int) -> "ConstraintStore":
        """Restrict an integer term to ``[lo, hi]``."""

        scratch = _Scratch(self)
        scratch.tighten(term, lo, hi)
        return self._commit(scratch, self.constraints, self.diseqs)

    def with_cell(self, key: Hashable, value: Any) -> "ConstraintStore":
        cells = dict(self.cells)
        cells[key] = value
        return replace(self, cells=cells)


__all__ = [
    "Bounds",
    "Constraint",
    "ConstraintStore",
    "DEFAULT_BOUNDS",
    "Eq",
    "Ge",
    "Gt",
    "Le",
    "Lt",
    "Neq",
    "Product",
    "Sum",
    "Var",
    "fresh",
]
