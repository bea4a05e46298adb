import pytest

from materialspace.errors import ArityError, FactStoreLocked
from materialspace.facts import ANY, FactStore


def _store():
    facts = FactStore()
    facts.assert_fact("paper", "sheet")
    facts.assert_fact("paper", "card")
    facts.assert_fact("paper", "fab")
    facts.assert_fact("contains", "sheet", "card")
    facts.assert_fact("contains", "sheet", "fab")
    facts.assert_fact("paper_pos", "card", 16, 72, 1)
    return facts


def test_query_returns_facts_in_insertion_order():
    facts = _store()
    assert list(facts.query("paper")) == [("sheet",), ("card",), ("fab",)]


def test_query_by_first_argument():
    facts = _store()
    assert list(facts.query("contains", ("sheet", ANY))) == [("sheet", "card"), ("sheet", "fab")]
    assert list(facts.query("paper_pos", ("card", ANY, ANY, ANY))) == [("card", 16, 72, 1)]
    assert list(facts.query("paper_pos", ("sheet", ANY, ANY, ANY))) == []


def test_contains_is_searchable_by_second_argument():
    facts = _store()
    assert list(facts.query("contains", (ANY, "fab"))) == [("sheet", "fab")]
    assert list(facts.query("contains", (ANY, "sheet"))) == []


def test_duplicate_facts_are_ignored():
    facts = _store()
    assert facts.assert_fact("paper", "card") is False
    assert facts.count("paper") == 3
    assert facts.assert_facts("ink", [("dot",), ("dot",), ("line",)]) == 2


def test_has_first_and_len():
    facts = _store()
    assert facts.has("paper", "card")
    assert not facts.has("ink", "card")
    assert facts.has("contains", ANY, "card")
    assert facts.first("paper_pos", "card") == ("card", 16, 72, 1)
    assert facts.first("paper_pos", "fab") is None
    assert len(facts) == 6
    assert facts.relations() == ["paper", "contains", "paper_pos"]


@pytest.mark.parametrize(
    "relation, args",
    [
        ("paper", ("a", "b")),
        ("paper_pos", ("a", 1, 2)),
        ("contains", ("a",)),
    ],
)
def test_wrong_arity_is_rejected(relation, args):
    facts = FactStore()
    with pytest.raises(ArityError):
        facts.assert_fact(relation, *args)


def test_unknown_relation_takes_arity_from_first_fact():
    facts = FactStore()
    facts.assert_fact("note", "a", "b")
    assert facts.arity("note") == 2
    with pytest.raises(ArityError):
        facts.assert_fact("note", "c")


def test_pattern_with_wrong_length_is_rejected():
    facts = _store()
    with pytest.raises(ArityError):
        list(facts.query("contains", ("sheet",)))


def test_store_is_read_only_during_a_session():
    facts = _store()
    with facts.session():
        assert facts.locked
        with pytest.raises(FactStoreLocked):
            facts.assert_fact("paper", "late")
        with pytest.raises(FactStoreLocked):
            facts.reset()
    assert not facts.locked
    assert facts.assert_fact("paper", "late")


def test_reset_clears_facts_but_keeps_arities():
    facts = _store()
    facts.reset()
    assert len(facts) == 0
    assert list(facts.query("paper")) == []
    with pytest.raises(ArityError):
        facts.assert_fact("paper_pos", "card", 1)
