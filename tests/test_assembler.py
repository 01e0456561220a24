"""Tests for contractir.assembler: records, the table and whole passes."""

from __future__ import annotations

import pytest

from contractir.assembler import assemble, encode_all, encode_declaration
from contractir.assertions import And, Expr, Implies, expression_ids
from contractir.clauses import Declaration
from contractir.collector import collect
from contractir.config import EncoderConfig
from contractir.context import EncodingContext, SpecificationTable
from contractir.errors import ConflictingSpecification, MalformedContract
from contractir.helpers import (
    after_expiry,
    after_expiry_if,
    e,
    ensures,
    forall,
    h,
    implies,
    invariant,
    loop,
    predicate,
    procedure,
    requires,
    struct,
)
from contractir.result import Err, Ok
from contractir.serialization import normalize_ids, serialize
from contractir.spec import LoopSpecification, ProcedureSpecification, StructSpecification


def _max_decl() -> Declaration:
    return procedure(
        "demo::max",
        requires(e("a > b", "a", "b")),
        ensures(e("result == max(a, b)", "a", "b", "result")),
        params=["a", "b"],
    )


@pytest.fixture
def ctx() -> EncodingContext:
    return EncodingContext()


class TestEndToEnd:
    def test_pre_and_post(self, ctx: EncodingContext) -> None:
        spec = encode_declaration(ctx, _max_decl()).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        (pre,) = spec.pres
        (post,) = spec.posts
        assert isinstance(pre, Expr) and pre.expr.id == 101
        assert isinstance(post, Expr) and post.expr.id == 101
        assert pre.expr.spec_id != post.expr.spec_id
        assert spec.pledges == ()
        assert spec.predicate_body is None
        assert spec.pure is False
        assert spec.trusted is False
        assert ctx.get_specification("demo::max") is spec

    def test_postconditions_conjoin_in_declaration_order(self, ctx: EncodingContext) -> None:
        decl = procedure(
            "f",
            ensures(e("true")),
            ensures(implies(e("p"), e("q"))),
            ensures(e("true")),
        )
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        post = spec.postcondition()
        assert isinstance(post, And)
        kinds = [type(c) for c in post.conjuncts]
        assert kinds == [Expr, Implies, Expr]
        assert spec.precondition() is None

    def test_two_blocks_render_in_order(self, ctx: EncodingContext) -> None:
        decl = procedure("f", ensures(e("B1")), ensures(e("B2")))
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        text = serialize(spec)
        assert text.index('"B1"') < text.index('"B2"')

    def test_flags_copied(self, ctx: EncodingContext) -> None:
        decl = procedure("id", ensures(e("result == x", "x", "result")), params=["x"], pure=True, trusted=True)
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        assert spec.pure and spec.trusted

    def test_declaration_without_contracts(self, ctx: EncodingContext) -> None:
        spec = encode_declaration(ctx, procedure("g", pure=True)).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        assert spec.is_empty()
        assert spec.pure


class TestPredicates:
    def test_predicate_body(self, ctx: EncodingContext) -> None:
        decl = procedure("forall_identity", predicate(forall([("x", "i32")], e("identity(x) == x", "x"))))
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        assert spec.is_predicate
        assert spec.pres == spec.posts == spec.pledges == ()
        assert spec.predicate_body is not None
        assert expression_ids(spec.predicate_body) == [101, 102]

    def test_predicate_and_precondition_conflict(self, ctx: EncodingContext) -> None:
        decl = procedure("p", predicate(e("true")), requires(e("x > 0", "x")), params=["x"])
        result = encode_declaration(ctx, decl)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConflictingSpecification)
        assert result.error.decl == "p"
        assert ctx.get_specification("p") is None
        assert len(ctx.specs) == 0
        assert len(ctx.allocator) == 0

    def test_assemble_raises_directly(self, ctx: EncodingContext) -> None:
        c = collect(procedure("p", predicate(e("true")), after_expiry(e("q"))))
        with pytest.raises(ConflictingSpecification):
            assemble(ctx, "p", c.pres, c.posts, c.pledges, c.predicate)


class TestPledges:
    def test_pledges_in_record(self, ctx: EncodingContext) -> None:
        decl = procedure(
            "get_mut",
            after_expiry(e("v.len() == old(v.len())", "v"), reference=h("result")),
            after_expiry_if([e("before", "v")], [e("after", "v")], reference=h("result")),
            params=["v"],
        )
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, ProcedureSpecification)
        first, second = spec.pledges
        assert first.lhs is None
        assert second.lhs is not None
        assert isinstance(second.lhs, Expr) and isinstance(second.rhs, Expr)
        assert second.lhs.expr.spec_id == second.rhs.expr.spec_id
        assert (second.lhs.expr.id, second.rhs.expr.id) == (101, 102)


class TestLoops:
    def test_loop_invariants(self, ctx: EncodingContext) -> None:
        decl = loop("f::loop0", invariant(e("i <= n", "i", "n")), invariant(e("s >= 0", "s")))
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, LoopSpecification)
        assert ctx.get_loop_specification("f::loop0") is spec
        assert ctx.get_specification("f::loop0") is None
        assert isinstance(spec.invariant(), And)


class TestStructs:
    def test_struct_invariants(self, ctx: EncodingContext) -> None:
        decl = struct("demo::Buf", invariant(e("len <= cap", "len", "cap")), fields=["len", "cap"])
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, StructSpecification)
        assert ctx.get_struct_specification("demo::Buf") is spec
        assert ctx.get_loop_specification("demo::Buf") is None
        assert ctx.get_specification("demo::Buf") is None
        inv = spec.invariant()
        assert isinstance(inv, Expr) and inv.expr.id == 101

    def test_each_invariant_block_gets_its_own_id(self, ctx: EncodingContext) -> None:
        decl = struct("S", invariant(e("a")), invariant(e("b")))
        spec = encode_declaration(ctx, decl).unwrap()
        assert isinstance(spec, StructSpecification)
        first, second = spec.invariants
        assert isinstance(first, Expr) and isinstance(second, Expr)
        assert first.expr.spec_id != second.expr.spec_id


class TestDeterminism:
    def test_reencoding_is_idempotent(self) -> None:
        decl = procedure(
            "f",
            requires(forall([("i", "usize")], implies(e("i < n", "i", "n"), e("v[i] > 0", "i")), triggers=[[h("v[i]", "i")]])),
            ensures(e("true"), e("result > 0", "result")),
            after_expiry_if([e("p")], [e("q")], reference=h("result")),
            params=["n", "v"],
        )
        first = encode_declaration(EncodingContext(), decl).unwrap()
        second = encode_declaration(EncodingContext(), decl).unwrap()
        assert first != second  # fresh specification ids
        assert normalize_ids(serialize(first)) == normalize_ids(serialize(second))

    def test_last_write_wins(self, ctx: EncodingContext) -> None:
        decl = _max_decl()
        first = encode_declaration(ctx, decl).unwrap()
        second = encode_declaration(ctx, decl).unwrap()
        assert ctx.get_specification("demo::max") is second
        assert first is not second
        assert len(ctx.specs) == 1

    def test_failed_reencoding_withdraws_record(self, ctx: EncodingContext) -> None:
        encode_declaration(ctx, procedure("p", requires(e("x > 0", "x")), params=["x"])).unwrap()
        assert ctx.get_specification("p") is not None
        again = procedure("p", predicate(e("x > 0", "x")), requires(e("x > 0", "x")), params=["x"])
        result = encode_declaration(ctx, again)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConflictingSpecification)
        assert ctx.get_specification("p") is None
        assert "p" not in ctx.specs

    def test_failure_leaves_other_records(self, ctx: EncodingContext) -> None:
        encode_declaration(ctx, _max_decl()).unwrap()
        assert isinstance(encode_declaration(ctx, procedure("q", ensures())), Err)
        assert ctx.get_specification("demo::max") is not None


class TestEncodeAll:
    def test_failure_does_not_stop_the_pass(self, ctx: EncodingContext) -> None:
        decls = [
            _max_decl(),
            procedure("bad", requires(forall([("x", "i32")], e("x > 0", "x"), triggers=[[h("y", "y")]]))),
            procedure("ok", ensures(e("true"))),
        ]
        report = encode_all(ctx, decls)
        assert report.encoded == ("demo::max", "ok")
        assert report.failed == ("bad",)
        assert not report.ok
        (diag,) = report.diagnostics
        assert diag.check == "malformed_contract"
        assert diag.block == 0
        assert ctx.get_specification("bad") is None

    def test_parallel_pass(self, ctx: EncodingContext) -> None:
        decls = [
            procedure(f"f{i}", requires(e("x > 0", "x")), ensures(e("true")), params=["x"])
            for i in range(64)
        ]
        report = encode_all(ctx, decls, workers=8)
        assert report.ok
        assert len(ctx.specs) == 64
        spec_ids = set()
        for d in decls:
            spec = ctx.get_specification(d.key)
            assert spec is not None
            for a in spec.pres + spec.posts:
                assert isinstance(a, Expr)
                spec_ids.add(a.expr.spec_id)
        assert len(spec_ids) == 128


class TestTable:
    def test_insert_and_replace(self) -> None:
        table = SpecificationTable(shards=2)
        a = ProcedureSpecification(pure=True)
        b = ProcedureSpecification(trusted=True)
        assert table.insert(("crate", "f"), a) is None
        assert table.insert(("crate", "f"), b) is a
        assert table.get(("crate", "f")) is b
        assert ("crate", "f") in table
        assert dict(table.items()) == {("crate", "f"): b}
        table.clear()
        assert len(table) == 0

    def test_needs_a_shard(self) -> None:
        with pytest.raises(ValueError):
            SpecificationTable(shards=0)

    def test_remove(self) -> None:
        table = SpecificationTable(shards=4)
        a = ProcedureSpecification(pure=True)
        table.insert("f", a)
        assert table.remove("f") is a
        assert table.remove("f") is None
        assert "f" not in table

    def test_context_builds_its_table_from_config(self) -> None:
        ctx = EncodingContext(config=EncoderConfig(table_shards=3))
        assert isinstance(ctx.specs, SpecificationTable)
        assert len(ctx.specs) == 0
        with pytest.raises(TypeError):
            EncodingContext(specs=SpecificationTable())  # type: ignore[call-arg]


def test_results_are_ok_values(ctx: EncodingContext) -> None:
    assert isinstance(encode_declaration(ctx, procedure("f")), Ok)
    bad = encode_declaration(ctx, procedure("g", ensures()))
    assert isinstance(bad, Err)
    assert isinstance(bad.error, MalformedContract)
    with pytest.raises(MalformedContract):
        bad.unwrap()
