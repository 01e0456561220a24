"""Builder helpers for writing declarations and contract blocks by hand.

Hosts normally produce these values through their recognizer; the helpers
keep fixtures and examples short.
"""

from contractir.clauses import (
    AfterExpiry,
    ClauseItem,
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
from contractir.handles import BoundVar, DeclKey, ExprHandle


def h(source: str, *free_vars: str, key: str | None = None) -> ExprHandle:
    return ExprHandle(
        key=source if key is None else key,
        source=source,
        free_vars=frozenset(free_vars),
    )


def e(source: str, *free_vars: str) -> Plain:
    return Plain(h(source, *free_vars))


def bvar(name: str, ty: str) -> BoundVar:
    return BoundVar(name=name, ty=ty)


def implies(guard: ClauseItem, consequence: ClauseItem) -> Implication:
    return Implication(guard=guard, consequence=consequence)


def forall(
    variables: list[tuple[str, str]],
    body: ClauseItem,
    triggers: list[list[ExprHandle]] | None = None,
) -> Quantified:
    return Quantified(
        vars=tuple(bvar(n, t) for n, t in variables),
        body=body,
        triggers=tuple(tuple(g) for g in triggers or ()),
        declared_count=len(variables),
    )


def requires(*items: ClauseItem) -> Requires:
    return Requires(tuple(items))


def ensures(*items: ClauseItem) -> Ensures:
    return Ensures(tuple(items))


def after_expiry(*after: ClauseItem, reference: ExprHandle | None = None) -> AfterExpiry:
    return AfterExpiry(after=tuple(after), reference=reference)


def after_expiry_if(
    before: list[ClauseItem],
    after: list[ClauseItem],
    reference: ExprHandle | None = None,
) -> AfterExpiry:
    """Conditional pledge: ``before`` holds at creation ⇒ ``after`` holds at expiry."""
    return AfterExpiry(
        after=tuple(after),
        reference=reference,
        before=tuple(before),
        conditional=True,
    )


def predicate(*items: ClauseItem) -> PredicateBody:
    return PredicateBody(tuple(items))


def invariant(*items: ClauseItem) -> Invariant:
    return Invariant(tuple(items))


def procedure(
    key: DeclKey,
    *blocks: Requires | Ensures | AfterExpiry | PredicateBody,
    params: list[str] | None = None,
    pure: bool = False,
    trusted: bool = False,
) -> Declaration:
    return Declaration(
        key=key,
        name=str(key),
        blocks=tuple(blocks),
        params=tuple(params or ()),
        pure=pure,
        trusted=trusted,
    )


def loop(key: DeclKey, *blocks: Invariant, params: list[str] | None = None) -> Declaration:
    return Declaration(
        key=key,
        name=str(key),
        blocks=tuple(blocks),
        params=tuple(params or ()),
        kind=DeclKind.LOOP,
    )


def struct(key: DeclKey, *blocks: Invariant, fields: list[str] | None = None) -> Declaration:
    return Declaration(
        key=key,
        name=str(key),
        blocks=tuple(blocks),
        params=tuple(fields or ()),
        kind=DeclKind.STRUCT,
    )
