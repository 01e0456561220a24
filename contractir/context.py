"""The per-session encoding context: id allocator plus specification table.

One EncodingContext is created per encoding/verification session and passed
to every component. Tearing the session down drops every record at once.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

from .config import EncoderConfig
from .handles import DeclKey
from .ids import IdAllocator
from .spec import (
    LoopSpecification,
    ProcedureSpecification,
    Specification,
    StructSpecification,
)


class SpecificationTable:
    """Records keyed by declaration identity, with one lock per shard.

    Inserts under distinct keys only contend when the keys share a shard.
    Re-inserting a key replaces the previous record.
    """

    def __init__(self, shards: int = 16) -> None:
        if shards < 1:
            raise ValueError("A specification table needs at least one shard")
        self._locks = [threading.Lock() for _ in range(shards)]
        self._shards: list[dict[DeclKey, Specification]] = [{} for _ in range(shards)]

    def _index(self, key: DeclKey) -> int:
        return hash(key) % len(self._shards)

    def insert(self, key: DeclKey, spec: Specification) -> Specification | None:
        """Store ``spec`` under ``key``; return the record it replaced."""
        i = self._index(key)
        with self._locks[i]:
            previous = self._shards[i].get(key)
            self._shards[i][key] = spec
        return previous

    def remove(self, key: DeclKey) -> Specification | None:
        """Drop the record under ``key``; return it if there was one."""
        i = self._index(key)
        with self._locks[i]:
            return self._shards[i].pop(key, None)

    def get(self, key: DeclKey) -> Specification | None:
        i = self._index(key)
        with self._locks[i]:
            return self._shards[i].get(key)

    def __contains__(self, key: DeclKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards, strict=True):
            with lock:
                total += len(shard)
        return total

    def items(self) -> Iterator[tuple[DeclKey, Specification]]:
        """Snapshot of every entry, shard by shard."""
        for lock, shard in zip(self._locks, self._shards, strict=True):
            with lock:
                entries = list(shard.items())
            yield from entries

    def clear(self) -> None:
        for lock, shard in zip(self._locks, self._shards, strict=True):
            with lock:
                shard.clear()


@dataclass
class EncodingContext:
    config: EncoderConfig = field(default_factory=EncoderConfig)
    allocator: IdAllocator = field(default_factory=IdAllocator)
    specs: SpecificationTable = field(init=False)

    def __post_init__(self) -> None:
        self.specs = SpecificationTable(self.config.table_shards)

    def get_specification(self, key: DeclKey) -> ProcedureSpecification | None:
        match self.specs.get(key):
            case ProcedureSpecification() as spec:
                return spec
            case _:
                return None

    def get_loop_specification(self, key: DeclKey) -> LoopSpecification | None:
        match self.specs.get(key):
            case LoopSpecification() as spec:
                return spec
            case _:
                return None

    def get_struct_specification(self, key: DeclKey) -> StructSpecification | None:
        match self.specs.get(key):
            case StructSpecification() as spec:
                return spec
            case _:
                return None
