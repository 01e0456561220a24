"""Clause collection: group a declaration's blocks by category and validate them.

Collection never builds assertions and never allocates ids. It checks that
every block has the shape its category requires and hands the blocks on in
declaration order, which later becomes conjunction order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .clauses import (
    AfterExpiry,
    ClauseItem,
    ClauseKind,
    Declaration,
    DeclKind,
    Ensures,
    Implication,
    Invariant,
    Plain,
    PredicateBody,
    Quantified,
    Requires,
)
from .errors import MalformedContract
from .handles import ExprHandle

logger = logging.getLogger(__name__)

# Name under which a postcondition or pledge refers to the return value.
RESULT_NAME = "result"

_ADMISSIBLE: dict[DeclKind, frozenset[ClauseKind]] = {
    DeclKind.PROCEDURE: frozenset(
        {
            ClauseKind.PRECONDITION,
            ClauseKind.POSTCONDITION,
            ClauseKind.PLEDGE,
            ClauseKind.PREDICATE,
        }
    ),
    DeclKind.LOOP: frozenset({ClauseKind.INVARIANT}),
    DeclKind.STRUCT: frozenset({ClauseKind.INVARIANT}),
}


@dataclass(frozen=True)
class CollectedBlock:
    """The items of one block, with the block's position on the declaration."""

    index: int
    items: tuple[ClauseItem, ...]


@dataclass(frozen=True)
class PledgeTriple:
    index: int
    reference: ExprHandle | None
    before: tuple[ClauseItem, ...] | None
    after: tuple[ClauseItem, ...]


@dataclass(frozen=True)
class CollectedClauses:
    decl: Declaration
    pres: tuple[CollectedBlock, ...] = ()
    posts: tuple[CollectedBlock, ...] = ()
    pledges: tuple[PledgeTriple, ...] = ()
    predicate: CollectedBlock | None = None
    invariants: tuple[CollectedBlock, ...] = ()

    @property
    def has_procedure_contract(self) -> bool:
        return bool(self.pres or self.posts or self.pledges)


# ---------------------------------------------------------------------------
# Item validation
# ---------------------------------------------------------------------------


@dataclass
class _ItemContext:
    decl: Declaration
    block: int
    in_scope: frozenset[str]

    def fail(self, message: str) -> MalformedContract:
        return MalformedContract(message, self.decl.key, self.block)


def _check_item(item: ClauseItem, ctx: _ItemContext, scope: frozenset[str]) -> None:
    match item:
        case Plain():
            return
        case Implication(guard, consequence):
            _check_item(guard, ctx, scope)
            _check_item(consequence, ctx, scope)
        case Quantified(variables, body, triggers, declared_count):
            if declared_count is not None and declared_count != len(variables):
                raise ctx.fail(
                    f"Quantifier declares {declared_count} bound variables "
                    f"but lists {len(variables)}"
                )
            names = frozenset(v.name for v in variables)
            inner = scope | names
            for g, group in enumerate(triggers):
                if not group:
                    raise ctx.fail(f"Trigger group {g} is empty")
                for handle in group:
                    unbound = sorted(handle.free_vars - inner)
                    if unbound:
                        raise ctx.fail(
                            f"Trigger '{handle.source}' references "
                            f"unbound variable(s) {', '.join(unbound)}"
                        )
            _check_item(body, ctx, inner)
        case _:
            raise TypeError(f"Unknown clause item type: {type(item)}")


def _check_items(
    items: tuple[ClauseItem, ...] | None,
    ctx: _ItemContext,
    what: str,
) -> tuple[ClauseItem, ...]:
    if not items:
        raise ctx.fail(f"{what} has no clauses")
    for item in items:
        _check_item(item, ctx, ctx.in_scope)
    return tuple(items)


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


def collect(decl: Declaration) -> CollectedClauses:
    """Group and validate the blocks attached to ``decl``.

    Raises MalformedContract on the first structurally invalid block.
    """
    params = frozenset(decl.params)
    with_result = params | {RESULT_NAME}
    admissible = _ADMISSIBLE[decl.kind]

    pres: list[CollectedBlock] = []
    posts: list[CollectedBlock] = []
    pledges: list[PledgeTriple] = []
    predicate: CollectedBlock | None = None
    invariants: list[CollectedBlock] = []

    for index, block in enumerate(decl.blocks):
        if block.kind not in admissible:
            raise MalformedContract(
                f"'{block.kind.value}' blocks cannot be attached to a "
                f"{decl.kind.value} declaration",
                decl.key,
                index,
            )
        match block:
            case Requires(items):
                ctx = _ItemContext(decl, index, params)
                pres.append(CollectedBlock(index, _check_items(items, ctx, "Precondition")))
            case Ensures(items):
                ctx = _ItemContext(decl, index, with_result)
                posts.append(CollectedBlock(index, _check_items(items, ctx, "Postcondition")))
            case AfterExpiry():
                pledges.append(_collect_pledge(block, _ItemContext(decl, index, with_result)))
            case PredicateBody(items):
                if predicate is not None:
                    raise MalformedContract(
                        "A predicate has exactly one body", decl.key, index
                    )
                ctx = _ItemContext(decl, index, params)
                predicate = CollectedBlock(index, _check_items(items, ctx, "Predicate body"))
            case Invariant(items):
                ctx = _ItemContext(decl, index, params)
                invariants.append(CollectedBlock(index, _check_items(items, ctx, "Invariant")))
            case _:
                raise TypeError(f"Unknown contract block type: {type(block)}")

    collected = CollectedClauses(
        decl=decl,
        pres=tuple(pres),
        posts=tuple(posts),
        pledges=tuple(pledges),
        predicate=predicate,
        invariants=tuple(invariants),
    )
    logger.debug(
        "collected %s: %d pre, %d post, %d pledge, predicate=%s, %d invariant",
        decl.name,
        len(pres),
        len(posts),
        len(pledges),
        predicate is not None,
        len(invariants),
    )
    return collected


def _collect_pledge(block: AfterExpiry, ctx: _ItemContext) -> PledgeTriple:
    if not block.after:
        raise ctx.fail("Pledge has no 'after' component")
    before: tuple[ClauseItem, ...] | None = None
    if block.conditional and not block.before:
        raise ctx.fail("after_expiry_if pledge has an 'after' but no 'before' component")
    if block.before:
        before = _check_items(block.before, ctx, "Pledge 'before' component")
    after = _check_items(block.after, ctx, "Pledge 'after' component")
    return PledgeTriple(ctx.block, block.reference, before, after)
