"""Exception hierarchy shared by the fact store, solver and resolvers."""

from __future__ import annotations

from typing import Any, Sequence


class MaterialSpaceError(Exception):
    """Base class for every error raised by :mod:`materialspace`."""


class Unsatisfiable(MaterialSpaceError):
    """A constraint store collapsed to an empty domain.

    Raised during normal search and consumed by the backtracking loop; callers
    only ever observe it as "fewer solutions than requested".
    """


class TypeGuardFailure(MaterialSpaceError):
    """A relation was invoked on an entity lacking the required role."""

    def __init__(self, relation: str, argument: Any, role: str):
        super().__init__(f"{relation}: {argument!r} is not a {role}")
        self.relation = relation
        self.argument = argument
        self.role = role


class CycleDetected(MaterialSpaceError):
    """The containment relation does not form a forest."""

    def __init__(self, chain: Sequence[Any]):
        rendered = " -> ".join(str(item) for item in chain)
        super().__init__(f"containment cycle detected: {rendered}")
        self.chain = tuple(chain)


class InvalidState(MaterialSpaceError):
    """An object is neither at rest nor raised, both, or has several parents."""


class SearchBudgetExceeded(MaterialSpaceError):
    """The search explored more nodes than ``SearchOptions.node_budget``."""

    def __init__(self, budget: int):
        super().__init__(f"search node budget of {budget} exhausted")
        self.budget = budget


class ArityError(MaterialSpaceError, ValueError):
    """A fact was asserted or queried with the wrong number of arguments."""


class FactStoreLocked(MaterialSpaceError, RuntimeError):
    """The fact store was modified while a query session was active."""


class UnknownEntity(MaterialSpaceError, LookupError):
    """A direct evaluation referenced an entity or fact that does not exist."""


class SceneError(MaterialSpaceError, ValueError):
    """A scene configuration could not be turned into facts."""


__all__ = [
    "ArityError",
    "CycleDetected",
    "FactStoreLocked",
    "InvalidState",
    "MaterialSpaceError",
    "SceneError",
    "SearchBudgetExceeded",
    "TypeGuardFailure",
    "UnknownEntity",
    "Unsatisfiable",
]
