"""Record assembly and the per-declaration encoding pass.

assemble() turns collected blocks into a ProcedureSpecification and
registers it; encode_declaration() runs collection plus assembly for one
declaration as a unit; encode_all() runs a whole pass, recording failures
without stopping.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .assertions import Assertion
from .builder import build
from .clauses import Declaration, DeclKind
from .collector import CollectedBlock, PledgeTriple, collect
from .context import EncodingContext
from .errors import ConflictingSpecification, ContractError
from .handles import DeclKey
from .pledges import resolve
from .result import Err, Ok, Result
from .serialization import normalize_ids, serialize
from .spec import (
    LoopSpecification,
    ProcedureSpecification,
    Specification,
    StructSpecification,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def assemble(
    ctx: EncodingContext,
    key: DeclKey,
    pres: Sequence[CollectedBlock],
    posts: Sequence[CollectedBlock],
    pledges: Sequence[PledgeTriple],
    predicate: CollectedBlock | None,
    *,
    pure: bool = False,
    trusted: bool = False,
) -> ProcedureSpecification:
    """Build and register the record for one procedure or predicate.

    Every block gets a fresh specification id and its own numbering scope.
    Raises ConflictingSpecification when a predicate body comes with
    procedure contracts; nothing is registered in that case.
    """
    if predicate is not None and (pres or posts or pledges):
        first = min(b.index for b in (*pres, *posts, *pledges))
        raise ConflictingSpecification(
            "A predicate body cannot be combined with preconditions, "
            "postconditions or pledges",
            key,
            first,
        )

    predicate_body = None
    if predicate is not None:
        predicate_body = build(predicate.items, ctx.allocator.open_scope())

    spec = ProcedureSpecification(
        pres=tuple(build(b.items, ctx.allocator.open_scope()) for b in pres),
        posts=tuple(build(b.items, ctx.allocator.open_scope()) for b in posts),
        pledges=tuple(
            resolve(p.reference, p.before, p.after, ctx.allocator.open_scope())
            for p in pledges
        ),
        predicate_body=predicate_body,
        pure=pure,
        trusted=trusted,
    )
    _register(ctx, key, spec)
    return spec


def _build_invariants(
    ctx: EncodingContext, invariants: Sequence[CollectedBlock]
) -> tuple[Assertion, ...]:
    return tuple(build(b.items, ctx.allocator.open_scope()) for b in invariants)


def assemble_loop(
    ctx: EncodingContext,
    key: DeclKey,
    invariants: Sequence[CollectedBlock],
) -> LoopSpecification:
    spec = LoopSpecification(invariants=_build_invariants(ctx, invariants))
    _register(ctx, key, spec)
    return spec


def assemble_struct(
    ctx: EncodingContext,
    key: DeclKey,
    invariants: Sequence[CollectedBlock],
) -> StructSpecification:
    spec = StructSpecification(invariants=_build_invariants(ctx, invariants))
    _register(ctx, key, spec)
    return spec


def _register(ctx: EncodingContext, key: DeclKey, spec: Specification) -> None:
    previous = ctx.specs.insert(key, spec)
    if previous is not None:
        logger.debug("replaced specification of %s", key)
    if ctx.config.print_desugared_specs:
        text = serialize(spec)
        if ctx.config.hide_uuids:
            text = normalize_ids(text)
        logger.info("desugared specification of %s:\n%s", key, text)


# ---------------------------------------------------------------------------
# Encoding pass
# ---------------------------------------------------------------------------


def encode_declaration(
    ctx: EncodingContext, decl: Declaration
) -> Result[Specification, ContractError]:
    """Collect and assemble one declaration, all or nothing.

    On failure any record an earlier pass published for the declaration is
    withdrawn.
    """
    try:
        clauses = collect(decl)
        match decl.kind:
            case DeclKind.LOOP:
                return Ok(assemble_loop(ctx, decl.key, clauses.invariants))
            case DeclKind.STRUCT:
                return Ok(assemble_struct(ctx, decl.key, clauses.invariants))
            case DeclKind.PROCEDURE:
                return Ok(
                    assemble(
                        ctx,
                        decl.key,
                        clauses.pres,
                        clauses.posts,
                        clauses.pledges,
                        clauses.predicate,
                        pure=decl.pure,
                        trusted=decl.trusted,
                    )
                )
    except ContractError as e:
        logger.warning("could not encode %s: %s", decl.name, e)
        if ctx.specs.remove(decl.key) is not None:
            logger.debug("withdrew previous specification of %s", decl.key)
        return Err(e)
    raise TypeError(f"Unknown declaration kind: {decl.kind}")


@dataclass(frozen=True)
class Diagnostic:
    check: str
    decl: DeclKey
    name: str
    block: int | None
    message: str


@dataclass(frozen=True)
class EncodingReport:
    encoded: tuple[DeclKey, ...]
    diagnostics: tuple[Diagnostic, ...]

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def failed(self) -> tuple[DeclKey, ...]:
        return tuple(d.decl for d in self.diagnostics)


def encode_all(
    ctx: EncodingContext,
    declarations: Iterable[Declaration],
    *,
    workers: int = 1,
) -> EncodingReport:
    """Encode every declaration; one failure never stops the others.

    With ``workers > 1`` declarations are encoded on a thread pool. Callers
    must not pass the same declaration key twice in one parallel pass.
    """
    decls = list(declarations)
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda d: encode_declaration(ctx, d), decls))
    else:
        results = [encode_declaration(ctx, d) for d in decls]

    encoded: list[DeclKey] = []
    diagnostics: list[Diagnostic] = []
    for decl, result in zip(decls, results, strict=True):
        match result:
            case Ok():
                encoded.append(decl.key)
            case Err(e):
                diagnostics.append(
                    Diagnostic(e.check, decl.key, decl.name, e.block, e.message)
                )
    logger.info(
        "encoded %d of %d declaration(s), %d failed",
        len(encoded),
        len(decls),
        len(diagnostics),
    )
    return EncodingReport(tuple(encoded), tuple(diagnostics))
