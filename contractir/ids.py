"""Identifiers for specification blocks and the expressions inside them.

Every contract block gets a SpecificationId minted once per block. Inside a
block, every elementary boolean sub-expression gets an ExpressionId from the
block's ExprScope, starting at 101.

Identity of an expression is the pair (SpecificationId, ExpressionId); two
blocks may reuse the same ExpressionId value.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import NewType

ExpressionId = NewType("ExpressionId", int)

FIRST_EXPRESSION_ID = ExpressionId(101)


@dataclass(frozen=True, order=True)
class SpecificationId:
    """A process-unique token for one contract block."""

    value: uuid.UUID

    def __str__(self) -> str:
        return self.value.hex


@dataclass
class ExprScope:
    """Numbering scope for exactly one block traversal.

    The same scope object is passed down through nested quantifiers so that
    trigger and body expressions share the block's numbering.
    """

    spec_id: SpecificationId
    _next: int = field(default=FIRST_EXPRESSION_ID, repr=False)

    def next_expr_id(self) -> ExpressionId:
        eid = ExpressionId(self._next)
        self._next += 1
        return eid

    @property
    def issued(self) -> int:
        return self._next - FIRST_EXPRESSION_ID


class IdAllocator:
    """Mints SpecificationIds and opens one ExprScope per block.

    uuid4 tokens are unique without coordination; the issued-set is kept only
    so a collision (never expected) is caught instead of silently aliasing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._issued: set[uuid.UUID] = set()

    def new_spec_id(self) -> SpecificationId:
        while True:
            token = uuid.uuid4()
            with self._lock:
                if token not in self._issued:
                    self._issued.add(token)
                    return SpecificationId(token)

    def open_scope(self) -> ExprScope:
        return ExprScope(self.new_spec_id())

    def __len__(self) -> int:
        with self._lock:
            return len(self._issued)


def next_expr_id(scope: ExprScope) -> ExpressionId:
    return scope.next_expr_id()
