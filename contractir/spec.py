"""Per-declaration specification records.

A ProcedureSpecification collects everything attached to one function
declaration:
  pres / posts: one assertion per contract block, in declaration order
  pledges:      one Pledge per after-expiry block
  predicate_body: set only when the declaration is itself a predicate

A LoopSpecification collects the invariants attached to one loop, a
StructSpecification those attached to one struct type.
"""

from __future__ import annotations

from dataclasses import dataclass

from .assertions import Assertion, Pledge, conjoin


@dataclass(frozen=True)
class ProcedureSpecification:
    """The encoded contract of one procedure or predicate declaration.

    Example:
        #[requires(a > b)]
        #[ensures(result == max(a, b))]
        fn f(a: i32, b: i32) -> i32

        ProcedureSpecification(
            pres=(Expr(<S1>:101 a > b),),
            posts=(Expr(<S2>:101 result == max(a, b)),),
            pledges=(), predicate_body=None, pure=False, trusted=False,
        )
    """

    pres: tuple[Assertion, ...] = ()
    posts: tuple[Assertion, ...] = ()
    pledges: tuple[Pledge, ...] = ()
    predicate_body: Assertion | None = None
    pure: bool = False
    trusted: bool = False

    @property
    def is_predicate(self) -> bool:
        return self.predicate_body is not None

    def precondition(self) -> Assertion | None:
        return conjoin(self.pres)

    def postcondition(self) -> Assertion | None:
        return conjoin(self.posts)

    def is_empty(self) -> bool:
        return (
            not self.pres
            and not self.posts
            and not self.pledges
            and self.predicate_body is None
        )


@dataclass(frozen=True)
class LoopSpecification:
    """The invariants attached to one loop, in declaration order."""

    invariants: tuple[Assertion, ...]

    def invariant(self) -> Assertion | None:
        return conjoin(self.invariants)

    def is_empty(self) -> bool:
        return not self.invariants


@dataclass(frozen=True)
class StructSpecification:
    """Type invariants of one struct, in declaration order.

    Each invariant may mention the struct's fields by name.
    """

    invariants: tuple[Assertion, ...]

    def invariant(self) -> Assertion | None:
        return conjoin(self.invariants)

    def is_empty(self) -> bool:
        return not self.invariants


Specification = ProcedureSpecification | LoopSpecification | StructSpecification
