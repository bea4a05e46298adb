"""Depth-first backtracking search over goal trees.

The engine keeps an explicit stack of ``(store, agenda)`` frames. The head of
the agenda is reduced one step at a time; a disjunction pushes one frame per
branch, in reverse so branches are explored in declaration order, and each
branch owns its constraint store. ``Unsatisfiable`` discards the frame and the
loop resumes with the most recent alternative.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, replace
from itertools import islice
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import SearchOptions
from .consistency import exclusion_holds, pauli
from .errors import SearchBudgetExceeded, TypeGuardFailure, Unsatisfiable
from .facts import ANY, FactStore
from .fd import ConstraintStore, Var, fresh
from .goals import (
    Call,
    Conj,
    Disj,
    Distinct,
    Domain,
    Env,
    Fail,
    Facts,
    Goal,
    Label,
    Post,
    Remember,
    Succeed,
    Unify,
    conj,
)
from .hierarchy import absolute_pos, elevation, rest_elevation
from .layout import (
    associated_content,
    bar_height,
    floating_action,
    margin,
    on_screen,
    side_menu_margin,
    toolbar,
    touch_target,
    valid_bar_height,
    visible,
)
from .relations import (
    contains,
    different_plane,
    ink_colour,
    ink_shape,
    inside,
    intersect,
    not_intersect,
    over,
    paper_colour,
    paper_dims,
    paper_pos,
    paper_shape,
    same_plane,
    seam,
    under,
)

logger = logging.getLogger(__name__)

Frame = Tuple[ConstraintStore, Tuple[Goal, ...]]
Bindings = Dict[str, Any]


@dataclass(frozen=True)
class _Choose(Goal):
    """Try ``var = value``, leaving ``var > value`` as the alternative."""

    var: Var
    value: int
    label: Label


class Search:
    def __init__(self, env: Env, options: Optional[SearchOptions] = None):
        self.env = env
        self.options = options or SearchOptions()
        self.nodes = 0

    def initial_store(self) -> ConstraintStore:
        return ConstraintStore(default_bounds=tuple(self.env.constants.axis_bounds))

    def run(self, goal: Goal, store: Optional[ConstraintStore] = None) -> Iterator[ConstraintStore]:
        """Yield every store in which ``goal`` holds, depth first."""

        stack: List[Frame] = [(store or self.initial_store(), (goal,))]
        budget = self.options.node_budget
        self.nodes = 0
        with self.env.facts.session():
            while stack:
                self.nodes += 1
                if self.nodes > budget:
                    raise SearchBudgetExceeded(budget)
                current, agenda = stack.pop()
                if not agenda:
                    yield current
                    continue
                head, rest = agenda[0], agenda[1:]
                try:
                    self._step(head, rest, current, stack)
                except Unsatisfiable as exc:
                    if logger.isEnabledFor(logging.DEBUG):
                        logger.debug("Backtrack at %r: %s", head, exc)

    def first(self, goal: Goal) -> Optional[ConstraintStore]:
        stores = self.run(conj(goal, Label()))
        try:
            return next(stores, None)
        finally:
            stores.close()

    def _step(self, head: Goal, rest: Tuple[Goal, ...], store: ConstraintStore, stack: List[Frame]) -> None:
        if isinstance(head, Conj):
            stack.append((store, head.goals + rest))
        elif isinstance(head, Disj):
            for branch in reversed(head.goals):
                stack.append((store, (branch,) + rest))
        elif isinstance(head, Call):
            stack.append((store, (head.expand(self.env, store),) + rest))
        elif isinstance(head, Facts):
            self._match(head, rest, store, stack)
        elif isinstance(head, Unify):
            stack.append((store.unify(head.a, head.b), rest))
        elif isinstance(head, Post):
            stack.append((store.post(head.constraint), rest))
        elif isinstance(head, Distinct):
            stack.append((store.distinct(head.a, head.b), rest))
        elif isinstance(head, Domain):
            stack.append((store.declare(head.term, head.lo, head.hi), rest))
        elif isinstance(head, Remember):
            stack.append((store.with_cell(head.key, head.value), rest))
        elif isinstance(head, Label):
            self._label(head, rest, store, stack)
        elif isinstance(head, _Choose):
            self._choose(head, rest, store, stack)
        elif isinstance(head, Succeed):
            stack.append((store, rest))
        elif isinstance(head, Fail):
            if head.reason and logger.isEnabledFor(logging.DEBUG):
                logger.debug("Fail: %s", head.reason)
        else:
            raise TypeError(f"unsupported goal {head!r}")

    def _match(self, head: Facts, rest: Tuple[Goal, ...], store: ConstraintStore, stack: List[Frame]) -> None:
        args = [store.walk(arg) for arg in head.args]
        pattern = tuple(ANY if isinstance(arg, Var) else arg for arg in args)
        matches = list(self.env.facts.query(head.relation, pattern))
        for row in reversed(matches):
            branch = store
            try:
                for arg, value in zip(args, row):
                    if isinstance(arg, Var):
                        branch = branch.unify(arg, value)
            except Unsatisfiable:
                continue
            stack.append((branch, rest))

    def _label(self, head: Label, rest: Tuple[Goal, ...], store: ConstraintStore, stack: List[Frame]) -> None:
        candidates = head.variables if head.variables is not None else store.open_domains()
        for var in candidates:
            term = store.walk(var)
            if isinstance(term, Var) and term in store.domains:
                lo, _ = store.domains[term]
                stack.append((store, (_Choose(term, lo, head),) + rest))
                return
        stack.append((store, rest))

    def _choose(self, head: _Choose, rest: Tuple[Goal, ...], store: ConstraintStore, stack: List[Frame]) -> None:
        lo, hi = store.bounds(head.var)
        value = max(head.value, lo)
        if value > hi:
            return
        if value < hi:
            stack.append((store, (replace(head, value=value + 1),) + rest))
        stack.append((store.unify(head.var, value), (head.label,) + rest))


class Solutions:
    """Lazy, restartable sequence of answers to a goal.

    Each iteration starts a new search, so the same object can be consumed
    several times and yields the same answers in the same order.
    """

    def __init__(
        self,
        facts: FactStore,
        goal: Goal,
        variables: Sequence[Var],
        options: Optional[SearchOptions] = None,
    ):
        self.facts = facts
        self.goal = goal
        self.variables = tuple(variables)
        self.options = options or SearchOptions()
        self.nodes = 0

    def _env(self) -> Env:
        if self.options.constants is not None:
            return Env(self.facts, self.options.constants)
        return Env(self.facts)

    def __iter__(self) -> Iterator[Bindings]:
        search = Search(self._env(), self.options)
        goal = self.goal
        if self.options.enforce_exclusion:
            goal = conj(goal, exclusion_holds())
        goal = conj(goal, Label())
        logger.info("Searching for answers over %d variable(s)", len(self.variables))
        found = 0
        stores = search.run(goal)
        try:
            for store in stores:
                found += 1
                yield self._reify(store)
        finally:
            stores.close()
            self.nodes = search.nodes
            logger.info("Search yielded %d answer(s) after %d node(s)", found, search.nodes)

    def _reify(self, store: ConstraintStore) -> Bindings:
        placeholders: Dict[Var, str] = {}
        answer: Bindings = {}
        for var in self.variables:
            value = store.reify(var)
            if isinstance(value, Var):
                value = placeholders.setdefault(value, f"_{len(placeholders)}")
            answer[var.name] = value
        return answer

    def take(self, n: Optional[int]) -> List[Bindings]:
        if n is None:
            return list(self)
        return list(islice(self, n))


def solve(
    facts: FactStore,
    goal: Goal,
    n: Optional[int] = None,
    *,
    variables: Sequence[Var] = (),
    options: Optional[SearchOptions] = None,
) -> List[Bindings]:
    """Return up to ``n`` answers (all of them when ``n`` is ``None``).

    Fewer answers than requested means the search space is exhausted. When
    ``goal`` is a call to a registered relation, its ground arguments are
    role-checked first and a mismatch raises :class:`TypeGuardFailure`;
    nested goals with the wrong kind of object just fail their branch.
    """

    if isinstance(goal, Call) and goal.name in RELATIONS:
        build, _ = RELATIONS[goal.name]
        if getattr(build, "expand", None) is goal.fn:
            check_roles(facts, goal.name, goal.args)
    return Solutions(facts, goal, variables, options).take(n)


def run(
    facts: FactStore,
    n: Optional[int],
    fn: Callable[..., Goal],
    options: Optional[SearchOptions] = None,
) -> List[Bindings]:
    """Create one fresh variable per parameter of ``fn`` and solve its goal."""

    names = list(inspect.signature(fn).parameters)
    variables = fresh(*names)
    return solve(facts, fn(*variables), n, variables=variables, options=options)


# -- direct evaluation ----------------------------------------------------

_ROLE_CHECKS: Dict[str, Callable[[FactStore, Any], bool]] = {
    "paper": lambda facts, value: facts.has("paper", value),
    "ink": lambda facts, value: facts.has("ink", value),
    "material": lambda facts, value: facts.has("paper", value) or facts.has("ink", value),
    "device": lambda facts, value: facts.has("device", value, ANY),
}

_PAIR = ("paper", "paper")

RELATIONS: Dict[str, Tuple[Callable[..., Goal], Tuple[Optional[str], ...]]] = {
    "same_plane": (same_plane, _PAIR),
    "different_plane": (different_plane, _PAIR),
    "over": (over, _PAIR),
    "under": (under, _PAIR),
    "intersect": (intersect, _PAIR),
    "not_intersect": (not_intersect, _PAIR),
    "inside": (inside, _PAIR),
    "seam": (seam, _PAIR),
    "contains": (contains, ("paper", "material")),
    "pauli": (pauli, ("material", "material")),
    "paper_pos": (paper_pos, ("paper", None, None, None)),
    "paper_dims": (paper_dims, ("paper", None, None, None)),
    "paper_shape": (paper_shape, ("paper", None, None)),
    "paper_colour": (paper_colour, ("paper", None, None)),
    "ink_shape": (ink_shape, ("ink", None, None)),
    "ink_colour": (ink_colour, ("ink", None, None)),
    "absolute_pos": (absolute_pos, ("paper", None, None, None)),
    "rest_elevation": (rest_elevation, ("material", None)),
    "elevation": (elevation, ("paper", None)),
    "touch_target": (touch_target, ("paper",)),
    "visible": (visible, ("device", "paper")),
    "on_screen": (on_screen, ("device", "paper")),
    "toolbar": (toolbar, ("device", "paper")),
    "bar_height": (bar_height, ("device", None)),
    "valid_bar_height": (valid_bar_height, ("device", None)),
    "margin": (margin, ("device", None)),
    "associated_content": (associated_content, ("device", None)),
    "floating_action": (floating_action, ("device", None)),
    "side_menu_margin": (side_menu_margin, ("device", None)),
}


def check_roles(facts: FactStore, name: str, args: Sequence[Any]) -> None:
    """Raise :class:`TypeGuardFailure` when an argument lacks its required role."""

    try:
        _, roles = RELATIONS[name]
    except KeyError as exc:
        raise KeyError(f"unknown relation {name!r}") from exc
    if len(args) != len(roles):
        raise TypeError(f"{name} takes {len(roles)} argument(s), got {len(args)}")
    for value, role in zip(args, roles):
        if role is None or isinstance(value, Var):
            continue
        if not _ROLE_CHECKS[role](facts, value):
            raise TypeGuardFailure(name, value, role)


def holds(facts: FactStore, name: str, *args: Any, options: Optional[SearchOptions] = None) -> bool:
    """Yes/no evaluation of a registered relation.

    Role guards are checked before the search starts. Scene-wide exclusion is
    not enforced here, so ``holds(facts, "pauli", a, b)`` can report a
    violating pair.
    """

    check_roles(facts, name, args)
    build, _ = RELATIONS[name]
    options = replace(options or SearchOptions(), enforce_exclusion=False)
    return bool(Solutions(facts, build(*args), (), options).take(1))


__all__ = [
    "RELATIONS",
    "Search",
    "Solutions",
    "check_roles",
    "holds",
    "run",
    "solve",
]
