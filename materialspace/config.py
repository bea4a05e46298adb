"""Layout constants and search options consumed by the relation layer."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

DEVICE_KINDS: Tuple[str, ...] = ("mobile", "tablet", "desktop")


@dataclass
class LayoutConstants:
    """Design constants, all in design units.

    The relation layer only turns these into equalities and bounds; it never
    derives them. A device kind missing from a per-device table leaves the
    corresponding value unconstrained apart from ``>= 0``.
    """

    axis_bounds: Tuple[int, int] = (-10000, 10000)
    raise_offset: int = 6
    paper_depth: int = 1
    component_grid: int = 8
    type_grid: int = 4
    icon_grid: int = 4
    touch_target: int = 48
    paper_shape: str = "rounded-rect"
    paper_colour: str = "white"
    toolbar_heights: Dict[str, int] = field(
        default_factory=lambda: {"mobile": 56, "tablet": 56, "desktop": 64}
    )
    margins: Dict[str, int] = field(
        default_factory=lambda: {"mobile": 16, "tablet": 24, "desktop": 24}
    )
    associated_content: Dict[str, int] = field(
        default_factory=lambda: {"mobile": 72, "tablet": 80, "desktop": 80}
    )
    floating_action: Dict[str, int] = field(
        default_factory=lambda: {"mobile": 32, "tablet": 24, "desktop": 24}
    )
    side_menu_margin: Dict[str, int] = field(default_factory=lambda: {"mobile": 56})


@dataclass
class SearchOptions:
    """Query engine options."""

    node_budget: int = 200_000
    enforce_exclusion: bool = True
    constants: Optional[LayoutConstants] = None


_LAYOUT_CONSTANTS = LayoutConstants()


def get_layout_constants() -> LayoutConstants:
    return copy.deepcopy(_LAYOUT_CONSTANTS)


def set_layout_constants(constants: LayoutConstants) -> None:
    global _LAYOUT_CONSTANTS
    _LAYOUT_CONSTANTS = copy.deepcopy(constants)


__all__ = [
    "DEVICE_KINDS",
    "LayoutConstants",
    "SearchOptions",
    "get_layout_constants",
    "set_layout_constants",
]
