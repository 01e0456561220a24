"""Host-supplied references: expression handles and declaration keys.

Both come from collaborators outside this package (the host's expression
resolver and contract recognizer). The encoder stores them and compares them
but never looks inside an expression.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass

# Declaration identity: any hashable, comparable value chosen by the host
# (a path string, a def-id tuple, ...). Never assumed to be an address.
DeclKey = Hashable


@dataclass(frozen=True)
class ExprHandle:
    """A boolean-typed host expression.

    Example: ExprHandle("e7", "a > b", frozenset({"a", "b"}))

    ``source`` is only used for rendering; ``free_vars`` is the captured
    free-variable environment the resolver reported for the expression.
    """

    key: str
    source: str
    free_vars: frozenset[str] = frozenset()

    def __str__(self) -> str:
        return self.source


@dataclass(frozen=True)
class BoundVar:
    """A quantifier-bound variable with its declared host type.

    Example: x : i32 is BoundVar("x", "i32")
    """

    name: str
    ty: str

    def __str__(self) -> str:
        return f"{self.name}: {self.ty}"
