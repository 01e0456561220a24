"""Read contract-recognizer output stored as JSON.

Expected shape::

    {"declarations": [
        {"key": "demo::max", "name": "max", "kind": "procedure",
         "params": ["a", "b"], "pure": false, "trusted": false,
         "blocks": [
            {"kind": "requires", "items": [ITEM, ...]},
            {"kind": "after_expiry_if", "reference": HANDLE,
             "before": [ITEM, ...], "after": [ITEM, ...]}
         ]}
    ]}

A "key" may also be an array, e.g. a crate path ``["demo", "max"]``; it
becomes a tuple. "kind" is "procedure", "loop" or "struct".

An ITEM has a "type" of "expr", "implies" or "forall"; a HANDLE is
``{"source": ..., "key": ..., "free_vars": [...]}`` where ``key`` defaults
to the source text.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .clauses import (
    AfterExpiry,
    ClauseItem,
    ClauseKind,
    ContractBlock,
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
from .handles import BoundVar, ExprHandle
from .result import Err, Ok, Result


def _hashable(value: Any) -> Any:
    """JSON arrays become tuples, recursively, so they can serve as keys."""
    if isinstance(value, list):
        return tuple(_hashable(v) for v in value)
    if isinstance(value, dict):
        raise ValueError(f"Key must be a string, number or array, not {value!r}")
    return value


def handle_from_json(d: dict[str, Any]) -> ExprHandle:
    return ExprHandle(
        key=_hashable(d.get("key", d["source"])),
        source=d["source"],
        free_vars=frozenset(d.get("free_vars", ())),
    )


def item_from_json(d: dict[str, Any]) -> ClauseItem:
    t = d["type"]
    if t == "expr":
        return Plain(handle_from_json(d))
    elif t == "implies":
        return Implication(
            guard=item_from_json(d["guard"]),
            consequence=item_from_json(d["consequence"]),
        )
    elif t == "forall":
        return Quantified(
            vars=tuple(BoundVar(v["name"], v["ty"]) for v in d["vars"]),
            body=item_from_json(d["body"]),
            triggers=tuple(
                tuple(handle_from_json(h) for h in group)
                for group in d.get("triggers", ())
            ),
            declared_count=d.get("count"),
        )
    raise ValueError(f"Unknown clause item type: {t}")


def _items(raw: list[dict[str, Any]] | None) -> tuple[ClauseItem, ...]:
    return tuple(item_from_json(i) for i in raw or ())


def block_from_json(d: dict[str, Any]) -> ContractBlock:
    attr = d["kind"]
    match ClauseKind.from_attr(attr):
        case ClauseKind.PRECONDITION:
            return Requires(_items(d.get("items")))
        case ClauseKind.POSTCONDITION:
            return Ensures(_items(d.get("items")))
        case ClauseKind.PLEDGE:
            ref = d.get("reference")
            before = d.get("before")
            return AfterExpiry(
                after=_items(d.get("after")),
                reference=None if ref is None else handle_from_json(ref),
                before=None if before is None else _items(before),
                conditional=attr == "after_expiry_if",
            )
        case ClauseKind.PREDICATE:
            return PredicateBody(_items(d.get("items")))
        case ClauseKind.INVARIANT:
            return Invariant(_items(d.get("items")))


def declaration_from_json(d: dict[str, Any]) -> Declaration:
    key = _hashable(d["key"])
    return Declaration(
        key=key,
        name=d.get("name", str(key)),
        blocks=tuple(block_from_json(b) for b in d.get("blocks", ())),
        params=tuple(d.get("params", ())),
        kind=DeclKind(d.get("kind", DeclKind.PROCEDURE.value)),
        pure=bool(d.get("pure", False)),
        trusted=bool(d.get("trusted", False)),
    )


def declarations_from_json(d: dict[str, Any]) -> tuple[Declaration, ...]:
    return tuple(declaration_from_json(x) for x in d["declarations"])


def load_declarations(path: str | Path) -> Result[tuple[Declaration, ...], Exception]:
    """Read a recognizer JSON file; never raises for bad input."""
    try:
        raw = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        return Err(e)
    try:
        return Ok(declarations_from_json(raw))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ValueError(f"{path}: malformed recognizer output: {e!r}"))
