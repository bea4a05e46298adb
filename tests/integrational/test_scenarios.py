from __future__ import annotations

from itertools import permutations, product
from pathlib import Path

import pytest

from materialspace import (
    absolute_position,
    build_store,
    check_exclusion,
    current_elevation,
    holds,
    load_scene,
    scene_from_dict,
    validate_forest,
)
from materialspace.demo import run_demo

EXAMPLES_DIR = Path(__file__).resolve().parents[2] / "examples"


def _same_container(p2_position):
    return {
        "devices": [{"id": "mobile", "kind": "mobile", "screen": [800, 600, 10]}],
        "papers": [
            {"id": "card", "position": [0, 0, 0], "size": [100, 100]},
            {"id": "P1", "parent": "card", "position": [0, 0, 0], "size": [10, 10]},
            {"id": "P2", "parent": "card", "position": list(p2_position), "size": [10, 10]},
        ],
    }


def test_overlap_on_one_plane():
    facts = build_store(scene_from_dict(_same_container((5, 5, 0))))
    assert holds(facts, "intersect", "P1", "P2")
    assert holds(facts, "same_plane", "P1", "P2")
    assert not holds(facts, "pauli", "P1", "P2")
    assert [(item.first, item.second) for item in check_exclusion(facts)] == [("P1", "P2")]


def test_overlap_across_planes():
    facts = build_store(scene_from_dict(_same_container((5, 5, 1))))
    assert holds(facts, "different_plane", "P1", "P2")
    assert holds(facts, "pauli", "P1", "P2")
    assert check_exclusion(facts) == []


def test_seam_between_stacked_papers():
    scene = {
        "papers": [
            {"id": "card", "position": [0, 0, 0], "size": [100, 100]},
            {"id": "A", "parent": "card", "position": [0, 0, 0], "size": [10, 20]},
            {"id": "B", "parent": "card", "position": [0, 20, 0], "size": [10, 15]},
        ]
    }
    facts = build_store(scene_from_dict(scene))
    assert holds(facts, "seam", "A", "B")
    assert not holds(facts, "intersect", "A", "B")
    assert holds(facts, "pauli", "A", "B")


def test_visibility_after_moving_a_paper():
    scene = scene_from_dict(
        {
            "devices": [{"id": "mobile", "kind": "mobile", "screen": [800, 600, 10]}],
            "papers": [{"id": "nav", "position": [10, 10, 0], "size": [50, 50]}],
        }
    )
    facts = build_store(scene)
    assert holds(facts, "on_screen", "mobile", "nav")

    facts = build_store(scene.move_object("nav", x=790))
    assert holds(facts, "visible", "mobile", "nav")
    assert not holds(facts, "on_screen", "mobile", "nav")


def test_raise_and_rest_round_trip():
    scene = scene_from_dict({"papers": [{"id": "p", "position": [0, 0, 0], "size": [10, 10]}]})
    assert current_elevation(build_store(scene), "p") == 0

    raised = scene.raise_object("p")
    facts = build_store(raised)
    assert current_elevation(facts, "p") == 6
    assert holds(facts, "elevation", "p", 6)

    rested = raised.rest_object("p")
    assert current_elevation(build_store(rested), "p") == 0


NESTED = {
    "papers": [
        {"id": "sheet", "position": [3, 4, 0], "size": [200, 200], "rest_elevation": 1},
        {"id": "left", "parent": "sheet", "position": [0, 0, 1], "size": [100, 200], "rest_elevation": 1},
        {"id": "right", "parent": "sheet", "position": [100, 0, 1], "size": [100, 200], "rest_elevation": 1},
        {"id": "chip", "parent": "left", "position": [10, 10, 1], "size": [20, 20], "state": "raised"},
        {"id": "badge", "parent": "right", "position": [0, 10, 1], "size": [20, 20]},
        {"id": "tab", "parent": "right", "position": [0, 40, 1], "size": [60, 10]},
    ],
    "inks": [{"id": "title", "parent": "left"}],
}
PAPERS = [paper["id"] for paper in NESTED["papers"]]


@pytest.fixture(scope="module")
def nested_facts():
    return build_store(scene_from_dict(NESTED))


def test_nested_scene_is_a_consistent_forest(nested_facts):
    assert validate_forest(nested_facts) == ["sheet"]
    assert check_exclusion(nested_facts) == []


@pytest.mark.parametrize("name", [*PAPERS, "title"])
def test_pauli_holds_for_every_object_and_itself(nested_facts, name):
    assert holds(nested_facts, "pauli", name, name)


@pytest.mark.parametrize(
    "a, b",
    [("chip", "badge"), ("chip", "tab"), ("chip", "right"), ("title", "badge")],
)
def test_pauli_holds_across_containers(nested_facts, a, b):
    assert holds(nested_facts, "pauli", a, b)
    assert holds(nested_facts, "pauli", b, a)


@pytest.mark.parametrize("offset", list(product((0, 5), (0, 5), (0, 1))))
def test_pauli_across_containers_ignores_coordinates(offset):
    scene = {
        "papers": [
            {"id": "one", "position": [0, 0, 0], "size": [10, 10]},
            {"id": "two", "position": [20, 0, 0], "size": [10, 10]},
            {"id": "a", "parent": "one", "position": [0, 0, 0], "size": [10, 10]},
            {"id": "b", "parent": "two", "position": list(offset), "size": [10, 10]},
        ]
    }
    facts = build_store(scene_from_dict(scene))
    assert holds(facts, "pauli", "a", "b")


def test_intersect_is_symmetric_and_inside_implies_intersect(nested_facts):
    for a, b in permutations(PAPERS, 2):
        assert holds(nested_facts, "intersect", a, b) == holds(nested_facts, "intersect", b, a)
        if holds(nested_facts, "inside", a, b):
            assert holds(nested_facts, "intersect", a, b)


def test_root_absolute_position_round_trip(nested_facts):
    assert absolute_position(nested_facts, "sheet") == (3, 4, 0)
    assert absolute_position(nested_facts, "chip") == (13, 14, 2)
    assert absolute_position(nested_facts, "tab") == (103, 44, 2)


def test_toggling_nested_objects_restores_elevation():
    scene = scene_from_dict(NESTED)
    before = {name: current_elevation(build_store(scene), name) for name in PAPERS}
    toggled = scene.raise_object("left").rest_object("left")
    after = {name: current_elevation(build_store(toggled), name) for name in PAPERS}
    assert after == before
    raised = build_store(scene.raise_object("left"))
    assert current_elevation(raised, "chip") == before["chip"] + 6


def test_example_scene_is_clean():
    facts = build_store(load_scene(EXAMPLES_DIR / "cards.json"))
    assert validate_forest(facts) == ["sheet"]
    assert check_exclusion(facts) == []
    assert current_elevation(facts, "fab") == 6


def test_demo_places_paper_on_screen(capsys):
    answers = run_demo()
    assert answers == [{"p": "nav", "x": 0, "y": 0, "z": 0, "w": 0, "h": 0, "pd": 1}]
    assert "p=nav" in capsys.readouterr().out
