"""The assertion IR.

An assertion is a tree built from:
  - Expressions (one host boolean expression, stamped with its ids)
  - Conjunctions (declaration order preserved)
  - Implications (guard ⇒ consequence)
  - Bounded universal quantifiers with trigger sets

Pledges and the per-declaration records in ``contractir.spec`` are built from
these.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from .handles import BoundVar, ExprHandle
from .ids import ExpressionId, SpecificationId

# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Expression:
    """One elementary boolean host expression.

    Example: a > b in block S is Expression(S, 101, ExprHandle(..., "a > b"))
    """

    spec_id: SpecificationId
    id: ExpressionId
    handle: ExprHandle


@dataclass(frozen=True)
class ForAllVars:
    """The bound-variable list of one quantifier.

    Order matters: variables bind positionally.
    """

    spec_id: SpecificationId
    id: ExpressionId
    vars: tuple[BoundVar, ...]

    def __len__(self) -> int:
        return len(self.vars)


@dataclass(frozen=True)
class Trigger:
    """A conjunctive trigger group: all terms must match jointly."""

    terms: tuple[Expression, ...]

    def __iter__(self) -> Iterator[Expression]:
        return iter(self.terms)


@dataclass(frozen=True)
class TriggerSet:
    """Alternative trigger groups; any single group may drive instantiation.

    Unordered: two sets with the same groups compare equal regardless of the
    order they were declared in. Empty is legal.
    """

    groups: frozenset[Trigger] = frozenset()

    def __iter__(self) -> Iterator[Trigger]:
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)


# ---------------------------------------------------------------------------
# Assertion tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Expr:
    """A single boolean expression."""

    expr: Expression


@dataclass(frozen=True)
class And:
    """Conjunction, in declaration order.

    Example: a > 0 ∧ b > 0
    """

    conjuncts: tuple[Assertion, ...]


@dataclass(frozen=True)
class Implies:
    """Implication.

    Example: p ⇒ q
    """

    guard: Assertion
    consequence: Assertion


@dataclass(frozen=True)
class ForAll:
    """Bounded universal quantification.

    Example: ∀ i : usize • {f(i)} i < n ⇒ f(i) > 0
    """

    vars: ForAllVars
    triggers: TriggerSet
    body: Assertion


# Union of all assertion forms
Assertion = Expr | And | Implies | ForAll


@dataclass(frozen=True)
class Pledge:
    """An obligation that holds once ``reference`` expires.

    ``lhs`` is the "before" guard, evaluated when the reference was created;
    ``None`` makes the pledge unconditional.
    """

    reference: ExprHandle | None
    lhs: Assertion | None
    rhs: Assertion

    @property
    def is_conditional(self) -> bool:
        return self.lhs is not None


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def iter_expressions(a: Assertion) -> Iterator[Expression | ForAllVars]:
    """Yield every id-carrying node in numbering order."""
    match a:
        case Expr(expr):
            yield expr
        case And(conjuncts):
            for c in conjuncts:
                yield from iter_expressions(c)
        case Implies(guard, consequence):
            yield from iter_expressions(guard)
            yield from iter_expressions(consequence)
        case ForAll(fa_vars, triggers, body):
            yield fa_vars
            for group in sorted(triggers, key=lambda t: [e.id for e in t]):
                yield from group
            yield from iter_expressions(body)
        case _:
            raise TypeError(f"Unknown assertion type: {type(a)}")


def expression_ids(a: Assertion) -> list[ExpressionId]:
    return [node.id for node in iter_expressions(a)]


def conjoin(assertions: tuple[Assertion, ...]) -> Assertion | None:
    """Record-level conjunction: one assertion as-is, several as And."""
    if not assertions:
        return None
    if len(assertions) == 1:
        return assertions[0]
    return And(tuple(assertions))
