"""Assertion building: turn collected clause items into assertion trees.

Numbering within one block follows a fixed left-to-right, outside-in walk:

  Plain            one id
  Implication      guard, then consequence
  Quantified       the bound-variable list (the quantifier's headline id),
                   then every trigger term group by group, then the body

The builder keeps whatever shape the items have. It does not simplify,
reorder or deduplicate.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .assertions import (
    And,
    Assertion,
    Expr,
    Expression,
    ForAll,
    ForAllVars,
    Implies,
    Trigger,
    TriggerSet,
)
from .clauses import ClauseItem, Implication, Plain, Quantified
from .handles import ExprHandle
from .ids import ExprScope, next_expr_id

logger = logging.getLogger(__name__)


def build_expression(handle: ExprHandle, scope: ExprScope) -> Expression:
    return Expression(spec_id=scope.spec_id, id=next_expr_id(scope), handle=handle)


def build_item(item: ClauseItem, scope: ExprScope) -> Assertion:
    """Build the assertion for a single item, consuming ids from ``scope``."""
    match item:
        case Plain(handle):
            return Expr(build_expression(handle, scope))
        case Implication(guard, consequence):
            lhs = build_item(guard, scope)
            rhs = build_item(consequence, scope)
            return Implies(guard=lhs, consequence=rhs)
        case Quantified(variables, body, triggers, _):
            fa_vars = ForAllVars(
                spec_id=scope.spec_id,
                id=next_expr_id(scope),
                vars=tuple(variables),
            )
            groups = [
                Trigger(tuple(build_expression(h, scope) for h in group))
                for group in triggers
            ]
            return ForAll(
                vars=fa_vars,
                triggers=TriggerSet(frozenset(groups)),
                body=build_item(body, scope),
            )
        case _:
            raise TypeError(f"Unknown clause item type: {type(item)}")


def build(items: Sequence[ClauseItem], scope: ExprScope) -> Assertion:
    """Build one assertion from the items of a block.

    One item yields its assertion unwrapped; several yield an And in input
    order. Empty input is a caller error: empty categories are omitted
    before building.
    """
    if not items:
        raise ValueError("Cannot build an assertion from zero clause items")
    built = [build_item(item, scope) for item in items]
    logger.debug(
        "built %d item(s) in spec %s using %d id(s)",
        len(built),
        scope.spec_id,
        scope.issued,
    )
    if len(built) == 1:
        return built[0]
    return And(tuple(built))
