from .config import LayoutConstants, SearchOptions, get_layout_constants, set_layout_constants
from .consistency import ExclusionViolation, check_exclusion, exclusion_holds, pauli
from .errors import (
    ArityError,
    CycleDetected,
    FactStoreLocked,
    InvalidState,
    MaterialSpaceError,
    SceneError,
    SearchBudgetExceeded,
    TypeGuardFailure,
    UnknownEntity,
    Unsatisfiable,
)
from .facts import ANY, FactStore
from .fd import ConstraintStore, Var, fresh
from .goals import Env, conde, conj, disj, eq, neq, relation
from .hierarchy import (
    absolute_pos,
    absolute_position,
    current_elevation,
    elevation,
    rest_elevation,
    resting_elevation,
    validate_forest,
)
from .scene import Scene, build_store, load_scene, scene_from_dict
from .search import RELATIONS, Search, Solutions, holds, run, solve

__all__ = [
    'ANY',
    'ArityError',
    'ConstraintStore',
    'CycleDetected',
    'Env',
    'ExclusionViolation',
    'FactStore',
    'FactStoreLocked',
    'InvalidState',
    'LayoutConstants',
    'MaterialSpaceError',
    'RELATIONS',
    'Scene',
    'SceneError',
    'Search',
    'SearchBudgetExceeded',
    'SearchOptions',
    'Solutions',
    'TypeGuardFailure',
    'UnknownEntity',
    'Unsatisfiable',
    'Var',
    'absolute_pos',
    'absolute_position',
    'build_store',
    'check_exclusion',
    'conde',
    'conj',
    'current_elevation',
    'disj',
    'elevation',
    'eq',
    'exclusion_holds',
    'fresh',
    'get_layout_constants',
    'holds',
    'load_scene',
    'neq',
    'pauli',
    'relation',
    'rest_elevation',
    'resting_elevation',
    'run',
    'scene_from_dict',
    'set_layout_constants',
    'solve',
    'validate_forest',
]
