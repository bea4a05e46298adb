import pytest

from materialspace.errors import Unsatisfiable
from materialspace.fd import (
    ConstraintStore,
    Eq,
    Ge,
    Gt,
    Le,
    Lt,
    Neq,
    Product,
    Sum,
    Var,
    fresh,
)


def test_unify_binds_and_walks_through_chains():
    x, y = fresh("x", "y")
    store = ConstraintStore().unify(x, y).unify(y, "card")
    assert store.walk(x) == "card"
    assert store.reify((x, y, 3)) == ("card", "card", 3)


def test_unify_mismatch_is_unsatisfiable():
    x = Var("x")
    store = ConstraintStore().unify(x, "card")
    with pytest.raises(Unsatisfiable):
        store.unify(x, "sheet")
    with pytest.raises(Unsatisfiable):
        ConstraintStore().unify(1, True)


def test_declare_narrows_and_binds_singletons():
    x = Var("x")
    store = ConstraintStore().declare(x, 0, 10)
    assert store.bounds(x) == (0, 10)
    store = store.declare(x, 10, 20)
    assert store.walk(x) == 10
    with pytest.raises(Unsatisfiable):
        store.declare(x, 11, 20)


def test_integer_variable_rejects_symbols():
    x = Var("x")
    store = ConstraintStore().declare(x, 0, 10)
    with pytest.raises(Unsatisfiable):
        store.unify(x, "card")
    with pytest.raises(Unsatisfiable):
        store.unify(x, 11)


def test_stores_are_independent_values():
    x = Var("x")
    base = ConstraintStore().declare(x, 0, 10)
    left = base.unify(x, 3)
    right = base.post(Gt(x, 7))
    assert base.bounds(x) == (0, 10)
    assert left.walk(x) == 3
    assert right.bounds(x) == (8, 10)


def test_less_than_propagates_both_ways():
    x, y = fresh("x", "y")
    store = ConstraintStore().declare(x, 0, 10).declare(y, 0, 10).post(Lt(x, y))
    assert store.bounds(x) == (0, 9)
    assert store.bounds(y) == (1, 10)
    store = store.unify(y, 4)
    assert store.bounds(x) == (0, 3)


def test_le_ge_and_gt():
    x = Var("x")
    store = ConstraintStore().declare(x, 0, 10)
    assert store.post(Le(x, 4)).bounds(x) == (0, 4)
    assert store.post(Ge(x, 4)).bounds(x) == (4, 10)
    assert store.post(Gt(x, 9)).walk(x) == 10
    with pytest.raises(Unsatisfiable):
        store.post(Lt(x, 0))


def test_sum_propagation():
    a, b, c = fresh("a", "b", "c")
    store = ConstraintStore().declare(a, 1, 3).unify(b, 2).post(Sum(a, b, c))
    assert store.bounds(c) == (3, 5)
    store = store.unify(c, 4)
    assert store.walk(a) == 2
    assert store.constraints == ()


def test_product_divides_bounds():
    multiple, x = fresh("multiple", "x")
    store = ConstraintStore().declare(x, 0, 100).post(Product(8, multiple, x))
    assert store.bounds(multiple)[1] == 12
    assert store.unify(x, 16).walk(multiple) == 2
    with pytest.raises(Unsatisfiable):
        store.unify(x, 12)


def test_neq_prunes_domain_edges():
    x = Var("x")
    store = ConstraintStore().declare(x, 0, 3)
    assert store.post(Neq(x, 0)).bounds(x) == (1, 3)
    assert store.post(Neq(x, 3)).bounds(x) == (0, 2)
    assert store.post(Neq(x, 0)).post(Neq(x, 1)).post(Neq(x, 2)).walk(x) == 3
    with pytest.raises(Unsatisfiable):
        store.post(Neq(x, x))


def test_equality_between_variables_aliases_them():
    z1, z2 = fresh("z1", "z2")
    store = ConstraintStore().declare(z1, 0, 5).declare(z2, 3, 9).post(Eq(z1, z2))
    assert store.bounds(z1) == (3, 5)
    assert store.walk(z1) is store.walk(z2)
    with pytest.raises(Unsatisfiable):
        store.post(Neq(z1, z2))


def test_distinct_fails_once_both_sides_agree():
    x, y = fresh("x", "y")
    store = ConstraintStore().distinct(x, y)
    assert store.unify(x, "a").unify(y, "b").walk(y) == "b"
    with pytest.raises(Unsatisfiable):
        store.unify(x, "a").unify(y, "a")
    with pytest.raises(Unsatisfiable):
        store.unify(x, y)


def test_open_domains_are_sorted_oldest_first():
    x, y, z = fresh("x", "y", "z")
    store = ConstraintStore().declare(z, 0, 1).declare(x, 0, 1).declare(y, 0, 1).unify(y, 0)
    assert store.open_domains() == [x, z]


def test_default_bounds_apply_to_unconstrained_integers():
    x = Var("x")
    store = ConstraintStore(default_bounds=(-5, 5)).post(Le(x, 2))
    assert store.bounds(x) == (-5, 2)
    assert ConstraintStore().bounds("card") is None
