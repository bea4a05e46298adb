"""Static scene configuration and its translation into facts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .config import DEVICE_KINDS, LayoutConstants, get_layout_constants
from .errors import SceneError
from .facts import FactStore

logger = logging.getLogger(__name__)

STATES = ("at-rest", "raised")


@dataclass
class DeviceSpec:
    id: str
    kind: str
    pixel_depth: int = 1
    screen: Tuple[int, int, int] = (0, 0, 0)


@dataclass
class PaperSpec:
    id: str
    position: Optional[Tuple[int, int, int]] = None
    size: Optional[Tuple[int, int]] = None
    rest_elevation: int = 0
    state: Optional[str] = "at-rest"
    parent: Optional[str] = None
    shape: Optional[str] = None
    colour: Optional[str] = None


@dataclass
class InkSpec:
    id: str
    shape: Optional[str] = None
    colour: Optional[str] = None
    parent: Optional[str] = None


@dataclass
class Scene:
    devices: List[DeviceSpec] = field(default_factory=list)
    shapes: Dict[str, str] = field(default_factory=dict)
    colours: Dict[str, str] = field(default_factory=dict)
    papers: List[PaperSpec] = field(default_factory=list)
    inks: List[InkSpec] = field(default_factory=list)

    def paper(self, paper_id: str) -> PaperSpec:
        for spec in self.papers:
            if spec.id == paper_id:
                return spec
        raise SceneError(f"unknown paper {paper_id!r}")

    def _with_paper(self, paper_id: str, **changes: Any) -> "Scene":
        self.paper(paper_id)
        papers = [replace(spec, **changes) if spec.id == paper_id else spec for spec in self.papers]
        return replace(self, papers=papers)

    def raise_object(self, paper_id: str) -> "Scene":
        return self._with_paper(paper_id, state="raised")

    def rest_object(self, paper_id: str) -> "Scene":
        return self._with_paper(paper_id, state="at-rest")

    def move_object(
        self,
        paper_id: str,
        x: Optional[int] = None,
        y: Optional[int] = None,
        z: Optional[int] = None,
    ) -> "Scene":
        """Return a scene in which the paper's stored position is updated."""

        old = self.paper(paper_id).position or (0, 0, 0)
        position = (
            old[0] if x is None else x,
            old[1] if y is None else y,
            old[2] if z is None else z,
        )
        return self._with_paper(paper_id, position=position)


def _int_tuple(value: Any, size: int, label: str) -> Optional[Tuple[int, ...]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != size:
        raise SceneError(f"{label} must be a list of {size} integers, got {value!r}")
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in value):
        raise SceneError(f"{label} must contain integers, got {value!r}")
    return tuple(value)


def scene_from_dict(data: Mapping[str, Any]) -> Scene:
    try:
        devices = [
            DeviceSpec(
                id=str(item["id"]),
                kind=str(item["kind"]),
                pixel_depth=int(item.get("pixel_depth", 1)),
                screen=_int_tuple(item.get("screen", (0, 0, 0)), 3, f"device {item['id']} screen"),
            )
            for item in data.get("devices", [])
        ]
        papers = [
            PaperSpec(
                id=str(item["id"]),
                position=_int_tuple(item.get("position"), 3, f"paper {item['id']} position"),
                size=_int_tuple(item.get("size"), 2, f"paper {item['id']} size"),
                rest_elevation=int(item.get("rest_elevation", 0)),
                state=item.get("state", "at-rest"),
                parent=item.get("parent"),
                shape=item.get("shape"),
                colour=item.get("colour"),
            )
            for item in data.get("papers", [])
        ]
        inks = [
            InkSpec(
                id=str(item["id"]),
                shape=item.get("shape"),
                colour=item.get("colour"),
                parent=item.get("parent"),
            )
            for item in data.get("inks", [])
        ]
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, SceneError):
            raise
        raise SceneError(f"malformed scene: {exc}") from exc
    return Scene(
        devices=devices,
        shapes={str(name): str(desc) for name, desc in dict(data.get("shapes", {})).items()},
        colours={str(name): str(shade) for name, shade in dict(data.get("colours", {})).items()},
        papers=papers,
        inks=inks,
    )


def load_scene(path: Union[str, Path]) -> Scene:
    path = Path(path)
    logger.info("Loading scene from %s", path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SceneError(f"{path}: invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SceneError(f"{path}: scene must be a JSON object")
    return scene_from_dict(data)


def validate_scene(scene: Scene, constants: Optional[LayoutConstants] = None) -> None:
    constants = constants or get_layout_constants()
    ids: List[str] = []
    for spec in [*scene.papers, *scene.inks]:
        if spec.id in ids:
            raise SceneError(f"duplicate object id {spec.id!r}")
        ids.append(spec.id)
    paper_ids = {spec.id for spec in scene.papers}

    for item in scene.devices:
        if item.kind not in DEVICE_KINDS:
            raise SceneError(f"device {item.id!r} has unknown kind {item.kind!r}")

    for spec in scene.papers:
        if spec.shape is not None and spec.shape != constants.paper_shape:
            raise SceneError(f"paper {spec.id!r} must be {constants.paper_shape}, got {spec.shape!r}")
        if spec.colour is not None and spec.colour != constants.paper_colour:
            raise SceneError(f"paper {spec.id!r} must be {constants.paper_colour}, got {spec.colour!r}")
        if spec.size is not None and min(spec.size) < 0:
            raise SceneError(f"paper {spec.id!r} has negative size {spec.size}")
        if spec.position is not None and spec.position[2] < 0:
            raise SceneError(f"paper {spec.id!r} has negative z {spec.position[2]}")
        if spec.state is not None and spec.state not in STATES:
            raise SceneError(f"paper {spec.id!r} has unknown state {spec.state!r}")

    for spec in [*scene.papers, *scene.inks]:
        if spec.parent is not None and spec.parent not in paper_ids:
            raise SceneError(f"{spec.id!r} is contained by unknown paper {spec.parent!r}")
        if spec.shape is not None and spec.shape not in scene.shapes:
            raise SceneError(f"{spec.id!r} uses undeclared shape {spec.shape!r}")
        if spec.colour is not None and spec.colour not in scene.colours:
            raise SceneError(f"{spec.id!r} uses undeclared colour {spec.colour!r}")


def build_store(scene: Scene, facts: Optional[FactStore] = None, constants: Optional[LayoutConstants] = None) -> FactStore:
    """Batch-load ``scene`` into ``facts`` (reset first) or a new store."""

    validate_scene(scene, constants)
    if facts is None:
        facts = FactStore()
    else:
        facts.reset()

    for name, description in scene.shapes.items():
        facts.assert_fact("shape", name, description)
    for name, shade in scene.colours.items():
        facts.assert_fact("colour", name, shade)
    for item in scene.devices:
        facts.assert_fact("device", item.id, item.kind)
        facts.assert_fact("pixel_depth", item.id, item.pixel_depth)
        facts.assert_fact("screen", item.id, *item.screen)

    for spec in scene.papers:
        facts.assert_fact("paper", spec.id)
        if spec.position is not None:
            facts.assert_fact("paper_pos", spec.id, *spec.position)
        if spec.size is not None:
            facts.assert_fact("paper_dims", spec.id, *spec.size)
        facts.assert_fact("rest_elevation", spec.id, spec.rest_elevation)
        if spec.state == "at-rest":
            facts.assert_fact("at_rest", spec.id)
        elif spec.state == "raised":
            facts.assert_fact("raised", spec.id)

    for spec in scene.inks:
        facts.assert_fact("ink", spec.id)

    for spec in [*scene.papers, *scene.inks]:
        if spec.parent is None:
            facts.assert_fact("base_object", spec.id)
        else:
            facts.assert_fact("contains", spec.parent, spec.id)
        if spec.shape is not None:
            facts.assert_fact("has_shape", spec.id, spec.shape)
        if spec.colour is not None:
            facts.assert_fact("has_colour", spec.id, spec.colour)

    logger.info(
        "Loaded %d fact(s): %d paper(s), %d ink(s), %d device(s)",
        len(facts),
        len(scene.papers),
        len(scene.inks),
        len(scene.devices),
    )
    return facts


__all__ = [
    "DeviceSpec",
    "InkSpec",
    "PaperSpec",
    "STATES",
    "Scene",
    "build_store",
    "load_scene",
    "scene_from_dict",
    "validate_scene",
]
