"""Layout rules: devices, baseline grids, keylines, toolbars and visibility.

All numbers come from :class:`~materialspace.config.LayoutConstants`; the
rules here only turn them into equalities and bounds.
"""

from __future__ import annotations

from typing import Any, Dict

from .fd import ConstraintStore, Var
from .goals import Env, Goal, add, conj, fact, fd_eq, ge, le, lt, mul, relation, within
from .hierarchy import absolute_pos
from .relations import paper, paper_dims, paper_pos


def device(d: Any, kind: Any) -> Goal:
    return fact("device", d, kind)


def screen(d: Any, w: Any, h: Any, depth: Any) -> Goal:
    return fact("screen", d, w, h, depth)


def pixel(d: Any, px: Any, dp: Any) -> Goal:
    """``px`` pixels cover ``dp`` design units on device ``d``."""

    depth = Var("pixel_depth")
    return conj(device(d, Var("kind")), fact("pixel_depth", d, depth), mul(depth, dp, px))


@relation
def axis(env: Env, store: ConstraintStore, x: Any, y: Any, z: Any) -> Goal:
    lo, hi = env.constants.axis_bounds
    return conj(within(x, lo, hi), within(y, lo, hi), within(z, lo, hi))


# -- per-device constants -------------------------------------------------


@relation
def _device_constant(env: Env, store: ConstraintStore, table: str, kind: Any, value: Any) -> Goal:
    constants: Dict[str, int] = getattr(env.constants, table)
    fixed = constants.get(store.walk(kind))
    if fixed is None:
        return ge(value, 0)
    return fd_eq(value, fixed)


def _per_device(table: str, d: Any, value: Any) -> Goal:
    kind = Var("kind")
    return conj(device(d, kind), _device_constant(table, kind, value))


def bar_height(d: Any, h: Any) -> Goal:
    """Standard toolbar height for the device class."""
    return _per_device("toolbar_heights", d, h)


def margin(d: Any, m: Any) -> Goal:
    return _per_device("margins", d, m)


def associated_content(d: Any, m: Any) -> Goal:
    return _per_device("associated_content", d, m)


def floating_action(d: Any, m: Any) -> Goal:
    return _per_device("floating_action", d, m)


def side_menu_margin(d: Any, m: Any) -> Goal:
    return _per_device("side_menu_margin", d, m)


def valid_bar_height(d: Any, h: Any) -> Goal:
    """Toolbars may be taller than standard, in whole multiples of it."""

    increment, steps = Var("increment"), Var("steps")
    return conj(bar_height(d, increment), ge(steps, 1), mul(increment, steps, h))


def toolbar(d: Any, p: Any) -> Goal:
    """A strip of paper pinned to the left edge, at or above the top of the screen."""

    x, y, z = Var("x"), Var("y"), Var("z")
    w, h, depth = Var("w"), Var("h"), Var("depth")
    return conj(
        device(d, Var("kind")),
        paper_pos(p, x, y, z),
        paper_dims(p, w, h, depth),
        valid_bar_height(d, h),
        le(y, 0),
        fd_eq(x, 0),
    )


# -- baseline grids -------------------------------------------------------


@relation
def _snap(env: Env, store: ConstraintStore, grid: str, x: Any) -> Goal:
    return mul(getattr(env.constants, grid), Var("multiple"), x)


def component_snap(x: Any) -> Goal:
    """Components align to the 8-unit square baseline grid."""
    return _snap("component_grid", x)


def type_snap(x: Any) -> Goal:
    return _snap("type_grid", x)


def icon_snap(x: Any) -> Goal:
    return _snap("icon_grid", x)


@relation
def touch_target(env: Env, store: ConstraintStore, p: Any) -> Goal:
    w, h = Var("w"), Var("h")
    minimum = env.constants.touch_target
    return conj(paper(p), paper_dims(p, w, h, Var("depth")), ge(w, minimum), ge(h, minimum))


# -- visibility -----------------------------------------------------------


def _on_device(d: Any, p: Any):
    sw, sh, sd = Var("screen.w"), Var("screen.h"), Var("screen.depth")
    x, y, z = Var("abs.x"), Var("abs.y"), Var("abs.z")
    w, h = Var("w"), Var("h")
    right, bottom = Var("abs.x+w"), Var("abs.y+h")
    goal = conj(
        paper(p),
        screen(d, sw, sh, sd),
        absolute_pos(p, x, y, z),
        paper_dims(p, w, h, Var("depth")),
        le(z, sd),
        add(x, w, right),
        add(y, h, bottom),
    )
    return goal, (sw, sh), (x, y, right, bottom)


def visible(d: Any, p: Any) -> Goal:
    """Some part of the paper's absolute rectangle falls on the screen."""

    goal, (sw, sh), (x, y, right, bottom) = _on_device(d, p)
    return conj(goal, lt(x, sw), lt(0, right), lt(y, sh), lt(0, bottom))


def on_screen(d: Any, p: Any) -> Goal:
    """The paper's absolute rectangle fits entirely on the screen."""

    goal, (sw, sh), (x, y, right, bottom) = _on_device(d, p)
    return conj(goal, le(right, sw), le(0, x), le(bottom, sh), le(0, y))


__all__ = [
    "associated_content",
    "axis",
    "bar_height",
    "component_snap",
    "device",
    "floating_action",
    "icon_snap",
    "margin",
    "on_screen",
    "pixel",
    "screen",
    "side_menu_margin",
    "toolbar",
    "touch_target",
    "type_snap",
    "valid_bar_height",
    "visible",
]
