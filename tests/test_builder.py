"""Tests for contractir.builder: tree shapes and expression numbering."""

from __future__ import annotations

import pytest

from contractir.assertions import And, Expr, ForAll, Implies, expression_ids
from contractir.builder import build
from contractir.helpers import e, forall, h, implies
from contractir.ids import IdAllocator


@pytest.fixture
def alloc() -> IdAllocator:
    return IdAllocator()


def test_single_item_is_not_wrapped(alloc: IdAllocator) -> None:
    a = build([e("a > b", "a", "b")], alloc.open_scope())
    assert isinstance(a, Expr)
    assert a.expr.id == 101
    assert a.expr.handle.source == "a > b"


def test_several_items_conjoin_in_order(alloc: IdAllocator) -> None:
    scope = alloc.open_scope()
    a = build([e("true"), implies(e("p"), e("q")), e("true")], scope)
    assert isinstance(a, And)
    first, middle, last = a.conjuncts
    assert isinstance(first, Expr) and isinstance(last, Expr)
    assert isinstance(middle, Implies)
    assert expression_ids(a) == [101, 102, 103, 104]
    assert {x.expr.spec_id for x in (first, last)} == {scope.spec_id}


def test_zero_items_rejected(alloc: IdAllocator) -> None:
    with pytest.raises(ValueError):
        build([], alloc.open_scope())


def test_duplicates_are_kept(alloc: IdAllocator) -> None:
    a = build([e("x"), e("x")], alloc.open_scope())
    assert isinstance(a, And)
    assert len(a.conjuncts) == 2
    assert expression_ids(a) == [101, 102]


class TestQuantifier:
    def test_headline_then_triggers_then_body(self, alloc: IdAllocator) -> None:
        item = forall(
            [("i", "usize"), ("j", "usize")],
            implies(e("i < j", "i", "j"), e("f(i) <= f(j)", "i", "j")),
            triggers=[[h("f(i)", "i"), h("f(j)", "j")]],
        )
        a = build([item], alloc.open_scope())
        assert isinstance(a, ForAll)
        assert a.vars.id == 101
        assert [v.name for v in a.vars.vars] == ["i", "j"]
        assert len(a.vars) == 2
        (group,) = a.triggers
        assert [t.id for t in group] == [102, 103]
        assert isinstance(a.body, Implies)
        assert expression_ids(a) == [101, 102, 103, 104, 105]

    def test_trigger_ids_differ_from_headline(self, alloc: IdAllocator) -> None:
        item = forall(
            [("x", "i32")],
            e("g(x) > 0", "x"),
            triggers=[[h("g(x)", "x")], [h("k(x)", "x")]],
        )
        a = build([item], alloc.open_scope())
        assert isinstance(a, ForAll)
        trigger_ids = {t.id for group in a.triggers for t in group}
        assert a.vars.id not in trigger_ids
        assert len(a.triggers) == 2

    def test_no_triggers_is_an_empty_set(self, alloc: IdAllocator) -> None:
        a = build([forall([("x", "i32")], e("x == x", "x"))], alloc.open_scope())
        assert isinstance(a, ForAll)
        assert a.triggers is not None
        assert len(a.triggers) == 0

    def test_nested_quantifiers_share_the_block_scope(self, alloc: IdAllocator) -> None:
        # forall(|a: i32| forall(|b: i32| a==a ==> b==b))
        item = forall(
            [("a", "i32")],
            forall([("b", "i32")], implies(e("a==a", "a"), e("b==b", "b"))),
        )
        scope = alloc.open_scope()
        a = build([item], scope)
        assert isinstance(a, ForAll)
        assert isinstance(a.body, ForAll)
        assert a.body.vars.spec_id == scope.spec_id
        assert expression_ids(a) == [101, 102, 103, 104]

    def test_quantifier_among_other_items(self, alloc: IdAllocator) -> None:
        a = build(
            [e("n > 0", "n"), forall([("i", "usize")], e("v[i] >= 0", "i"))],
            alloc.open_scope(),
        )
        assert isinstance(a, And)
        assert expression_ids(a) == [101, 102, 103]
