"""Structural contract errors.

Both errors describe the *shape* of a contract, never its truth. They are
attributed to the declaration and, where known, the contract block that
caused them.
"""

from __future__ import annotations

from .handles import DeclKey


class ContractError(Exception):
    """Base class for encoding failures of one declaration."""

    check: str = "contract"

    def __init__(
        self,
        message: str,
        decl: DeclKey | None = None,
        block: int | None = None,
    ) -> None:
        self.message = message
        self.decl = decl
        self.block = block
        super().__init__(self.format_short())

    def format_short(self) -> str:
        parts = [f"[{self.check}]"]
        if self.decl is not None:
            parts.append(f"{self.decl}:")
        if self.block is not None:
            parts.append(f"block {self.block}:")
        parts.append(self.message)
        return " ".join(parts)


class MalformedContract(ContractError):
    """A block's structure violates its category's rules.

    Examples: a pledge without its "after" component, a trigger that mentions
    a variable no quantifier binds.
    """

    check = "malformed_contract"


class ConflictingSpecification(ContractError):
    """A predicate body and procedure contracts on the same declaration."""

    check = "conflicting_specification"
