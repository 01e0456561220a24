"""Contract blocks as delivered by the host's contract recognizer.

A declaration carries an ordered list of contract blocks. Each block is
tagged with its category and holds one or more clause items:

  Plain(handle)                       a > b
  Implication(guard, consequence)     p ==> q
  Quantified(vars, body, triggers)    forall(|i: usize| i < n ==> f(i), triggers=[(f(i),)])

Items nest: the guard, consequence and body of an item are items themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .handles import BoundVar, DeclKey, ExprHandle

# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class ClauseKind(Enum):
    PRECONDITION = "requires"
    POSTCONDITION = "ensures"
    PLEDGE = "after_expiry"
    PREDICATE = "predicate"
    INVARIANT = "invariant"

    @classmethod
    def from_attr(cls, name: str) -> ClauseKind:
        """Map a contract attribute name to its category.

        Raises ValueError for names that are not contract attributes.
        """
        match name:
            case "requires":
                return cls.PRECONDITION
            case "ensures":
                return cls.POSTCONDITION
            case "after_expiry" | "after_expiry_if":
                return cls.PLEDGE
            case "predicate":
                return cls.PREDICATE
            case "invariant" | "body_invariant":
                return cls.INVARIANT
            case _:
                raise ValueError(f"Unknown specification type: {name!r}")


class DeclKind(Enum):
    PROCEDURE = "procedure"
    LOOP = "loop"
    STRUCT = "struct"


# ---------------------------------------------------------------------------
# Clause items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Plain:
    """One boolean expression."""

    handle: ExprHandle


@dataclass(frozen=True)
class Implication:
    """An item phrased as guard ==> consequence."""

    guard: ClauseItem
    consequence: ClauseItem


@dataclass(frozen=True)
class Quantified:
    """A bounded universal quantifier.

    ``triggers`` holds the trigger groups exactly as the recognizer grouped
    them; ``declared_count`` is the number of bound variables the recognizer
    counted in the source, when it reports one.
    """

    vars: tuple[BoundVar, ...]
    body: ClauseItem
    triggers: tuple[tuple[ExprHandle, ...], ...] = ()
    declared_count: int | None = None


ClauseItem = Plain | Implication | Quantified

# ---------------------------------------------------------------------------
# Contract blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Requires:
    items: tuple[ClauseItem, ...]

    @property
    def kind(self) -> ClauseKind:
        return ClauseKind.PRECONDITION


@dataclass(frozen=True)
class Ensures:
    items: tuple[ClauseItem, ...]

    @property
    def kind(self) -> ClauseKind:
        return ClauseKind.POSTCONDITION


@dataclass(frozen=True)
class AfterExpiry:
    """A pledge block.

    ``after_expiry(reference => rhs)`` sets only ``after``;
    ``after_expiry_if(reference => lhs, rhs)`` is ``conditional`` and must
    carry both ``before`` and ``after``.
    """

    after: tuple[ClauseItem, ...]
    reference: ExprHandle | None = None
    before: tuple[ClauseItem, ...] | None = None
    conditional: bool = False

    @property
    def kind(self) -> ClauseKind:
        return ClauseKind.PLEDGE


@dataclass(frozen=True)
class PredicateBody:
    items: tuple[ClauseItem, ...]

    @property
    def kind(self) -> ClauseKind:
        return ClauseKind.PREDICATE


@dataclass(frozen=True)
class Invariant:
    items: tuple[ClauseItem, ...]

    @property
    def kind(self) -> ClauseKind:
        return ClauseKind.INVARIANT


ContractBlock = Requires | Ensures | AfterExpiry | PredicateBody | Invariant


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Declaration:
    """A host declaration with its attached contract blocks.

    ``params`` are the names a trigger may mention besides quantifier-bound
    variables: a procedure's parameters or a struct's fields. ``pure`` and
    ``trusted`` are the declaration's own annotations and are copied into
    the record unchanged.
    """

    key: DeclKey
    name: str
    blocks: tuple[ContractBlock, ...] = ()
    params: tuple[str, ...] = ()
    kind: DeclKind = DeclKind.PROCEDURE
    pure: bool = False
    trusted: bool = False
