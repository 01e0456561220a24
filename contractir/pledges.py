"""Pledge resolution for after-expiry blocks."""

from __future__ import annotations

from collections.abc import Sequence

from .assertions import Pledge
from .builder import build
from .clauses import ClauseItem
from .handles import ExprHandle
from .ids import ExprScope


def resolve(
    reference: ExprHandle | None,
    before_items: Sequence[ClauseItem] | None,
    after_items: Sequence[ClauseItem],
    scope: ExprScope,
) -> Pledge:
    """Build a Pledge; both sides share the pledge block's scope.

    Items are numbered in declaration order: the "before" guard first, then
    the "after" obligation. An absent or empty "before" gives ``lhs=None``.
    """
    lhs = build(before_items, scope) if before_items else None
    rhs = build(after_items, scope)
    return Pledge(reference=reference, lhs=lhs, rhs=rhs)
