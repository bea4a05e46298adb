import pytest

from materialspace import (
    SearchBudgetExceeded,
    SearchOptions,
    build_store,
    check_exclusion,
    fresh,
    holds,
    scene_from_dict,
    solve,
)
from materialspace.consistency import ExclusionViolation, pauli
from materialspace.hierarchy import ROOT_SCOPE
from materialspace.relations import paper


def _sheet(*cards, inks=()):
    papers = [{"id": "sheet", "position": [0, 0, 0], "size": [400, 400]}]
    for name, position, size in cards:
        card = {"id": name, "parent": "sheet", "position": list(position)}
        if size is not None:
            card["size"] = list(size)
        papers.append(card)
    return build_store(scene_from_dict({"papers": papers, "inks": list(inks)}))


def test_pauli_holds_for_an_object_and_itself():
    facts = _sheet(("card", (0, 0, 0), (10, 10)))
    assert holds(facts, "pauli", "card", "card")


def test_overlap_on_one_plane_breaks_pauli():
    facts = _sheet(("p1", (0, 0, 0), (10, 10)), ("p2", (5, 5, 0), (10, 10)))
    assert holds(facts, "intersect", "p1", "p2")
    assert holds(facts, "same_plane", "p1", "p2")
    assert not holds(facts, "pauli", "p1", "p2")


def test_overlap_on_different_planes_satisfies_pauli():
    facts = _sheet(("p1", (0, 0, 0), (10, 10)), ("p2", (5, 5, 1), (10, 10)))
    assert holds(facts, "pauli", "p1", "p2")


def test_seam_neighbours_satisfy_pauli():
    facts = _sheet(("top", (0, 0, 0), (10, 20)), ("bottom", (0, 20, 0), (10, 15)))
    assert holds(facts, "seam", "top", "bottom")
    assert holds(facts, "pauli", "top", "bottom")
    assert check_exclusion(facts) == []


@pytest.mark.parametrize(
    "first, second",
    [
        ((0, 0, 0), (0, 0, 0)),
        ((0, 0, 0), (5, 5, 0)),
        ((100, 100, 3), (0, 0, 3)),
    ],
)
def test_objects_in_different_containers_never_collide(first, second):
    scene = {
        "papers": [
            {"id": "left", "position": [0, 0, 0], "size": [50, 50]},
            {"id": "right", "position": [0, 0, 1], "size": [50, 50]},
            {"id": "a", "parent": "left", "position": list(first), "size": [10, 10]},
            {"id": "b", "parent": "right", "position": list(second), "size": [10, 10]},
        ]
    }
    facts = build_store(scene_from_dict(scene))
    assert holds(facts, "pauli", "a", "b")
    assert check_exclusion(facts) == []


def test_ink_takes_no_space():
    facts = _sheet(
        ("card", (0, 0, 0), (10, 10)),
        inks=[{"id": "dot", "parent": "sheet"}],
    )
    assert holds(facts, "pauli", "card", "dot")
    assert holds(facts, "pauli", "dot", "dot")


def test_roots_share_one_scope():
    scene = {
        "papers": [
            {"id": "one", "position": [0, 0, 0], "size": [10, 10]},
            {"id": "two", "position": [5, 5, 0], "size": [10, 10]},
        ]
    }
    facts = build_store(scene_from_dict(scene))
    assert not holds(facts, "pauli", "one", "two")
    (violation,) = check_exclusion(facts)
    assert violation.scope == ROOT_SCOPE


def test_check_exclusion_reports_overlapping_pairs():
    facts = _sheet(
        ("p1", (0, 0, 0), (10, 10)),
        ("p2", (5, 5, 0), (10, 10)),
        ("p3", (5, 5, 1), (10, 10)),
        ("p4", (100, 100, 0), (10, 10)),
    )
    violations = check_exclusion(facts)
    assert violations == [
        ExclusionViolation(
            first="p1",
            second="p2",
            scope="sheet",
            message="'p1' and 'p2' in 'sheet' overlap on plane z=0",
        )
    ]
    assert str(violations[0]) == violations[0].message


def test_free_geometry_is_placed_apart():
    facts = _sheet(("card", (0, 0, 0), (10, 10)), ("note", (0, 0, 0), None))
    assert check_exclusion(facts) == []


def test_free_geometry_search_honours_node_budget():
    facts = _sheet(("card", (0, 0, 0), (10, 10)), ("note", (0, 0, 0), None))
    with pytest.raises(SearchBudgetExceeded):
        check_exclusion(facts, options=SearchOptions(node_budget=5))


def test_answers_respect_exclusion_unless_disabled():
    facts = _sheet(("p1", (0, 0, 0), (10, 10)), ("p2", (5, 5, 0), (10, 10)))
    (p,) = fresh("p")
    assert solve(facts, paper(p), variables=(p,)) == []
    relaxed = SearchOptions(enforce_exclusion=False)
    assert [answer["p"] for answer in solve(facts, paper(p), variables=(p,), options=relaxed)] == [
        "sheet",
        "p1",
        "p2",
    ]


def test_pauli_enumerates_material_pairs():
    facts = _sheet(("p1", (0, 0, 0), (10, 10)), ("p2", (50, 50, 0), (10, 10)))
    a, b = fresh("a", "b")
    answers = solve(facts, pauli("p1", b), variables=(b,))
    assert [answer["b"] for answer in answers] == ["p1", "p2", "sheet"]
    assert solve(facts, pauli(a, a), 1, variables=(a,)) == [{"a": "sheet"}]
