"""Canonical rendering of assertions and specification records.

Two projections:

- serialize(): a deterministic text form for inspection and comparison.
  Equal structures render byte-identically; different structures never
  render alike. Not meant to be parsed back.
- *_to_json() / dumps(): a dict form with a "type" discriminator, for
  handing records to an out-of-process verifier.

Specification ids are rendered verbatim. normalize_ids() masks them for
snapshot comparison.
"""

from __future__ import annotations

import json
import re
from typing import Any

from .assertions import (
    And,
    Assertion,
    Expr,
    Expression,
    ForAll,
    ForAllVars,
    Implies,
    Pledge,
    Trigger,
    TriggerSet,
)
from .handles import ExprHandle
from .spec import (
    LoopSpecification,
    ProcedureSpecification,
    Specification,
    StructSpecification,
)

UUID_PLACEHOLDER = "$(NUM_UUID)"

# A specification id is rendered as "<hex>:<expr id>" in text and as a
# "spec_id" value in JSON.
_UUID_HEX = re.compile(r'\b[0-9a-f]{32}(?=:\d+\b)|(?<="spec_id": ")[0-9a-f]{32}(?=")')


def _q(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def render_handle(h: ExprHandle) -> str:
    free = ", ".join(_q(v) for v in sorted(h.free_vars))
    return f"{_q(h.key)} {_q(h.source)} [{free}]"


def render_expression(e: Expression) -> str:
    return f"{e.spec_id}:{e.id} {render_handle(e.handle)}"


def render_vars(v: ForAllVars) -> str:
    bound = ", ".join(f"{_q(b.name)}: {_q(b.ty)}" for b in v.vars)
    return f"{v.spec_id}:{v.id} [{bound}]"


def render_trigger(t: Trigger) -> str:
    return "[" + ", ".join(render_expression(e) for e in t.terms) + "]"


def render_triggers(ts: TriggerSet) -> str:
    # A trigger set is unordered; sorting makes equal sets render alike.
    return "{" + ", ".join(sorted(render_trigger(t) for t in ts)) + "}"


def render_assertion(a: Assertion) -> str:
    match a:
        case Expr(expr):
            return f"Expr({render_expression(expr)})"
        case And(conjuncts):
            return "And([" + ", ".join(render_assertion(c) for c in conjuncts) + "])"
        case Implies(guard, consequence):
            return f"Implies({render_assertion(guard)}, {render_assertion(consequence)})"
        case ForAll(fa_vars, triggers, body):
            return (
                f"ForAll({render_vars(fa_vars)}, "
                f"{render_triggers(triggers)}, {render_assertion(body)})"
            )
    raise TypeError(f"Unknown assertion type: {type(a)}")


def render_pledge(p: Pledge) -> str:
    ref = "None" if p.reference is None else render_handle(p.reference)
    lhs = "None" if p.lhs is None else render_assertion(p.lhs)
    return f"Pledge(reference={ref}, lhs={lhs}, rhs={render_assertion(p.rhs)})"


def _render_list(items: list[str]) -> str:
    if not items:
        return "[]"
    return "[\n" + "".join(f"    {s},\n" for s in items) + "  ]"


def render_procedure(sp: ProcedureSpecification) -> str:
    body = "None" if sp.predicate_body is None else render_assertion(sp.predicate_body)
    lines = [
        "ProcedureSpecification {",
        f"  pres: {_render_list([render_assertion(a) for a in sp.pres])}",
        f"  posts: {_render_list([render_assertion(a) for a in sp.posts])}",
        f"  pledges: {_render_list([render_pledge(p) for p in sp.pledges])}",
        f"  predicate_body: {body}",
        f"  pure: {str(sp.pure).lower()}",
        f"  trusted: {str(sp.trusted).lower()}",
        "}",
    ]
    return "\n".join(lines)


def render_loop(sp: LoopSpecification) -> str:
    invariants = _render_list([render_assertion(a) for a in sp.invariants])
    return f"LoopSpecification {{\n  invariants: {invariants}\n}}"


def render_struct(sp: StructSpecification) -> str:
    invariants = _render_list([render_assertion(a) for a in sp.invariants])
    return f"StructSpecification {{\n  invariants: {invariants}\n}}"


def serialize(
    entity: Assertion | Pledge | Specification,
) -> str:
    match entity:
        case ProcedureSpecification():
            return render_procedure(entity)
        case LoopSpecification():
            return render_loop(entity)
        case StructSpecification():
            return render_struct(entity)
        case Pledge():
            return render_pledge(entity)
        case Expr() | And() | Implies() | ForAll():
            return render_assertion(entity)
    raise TypeError(f"Cannot serialize {type(entity).__name__}")


def normalize_ids(text: str) -> str:
    """Mask every specification id in ``text`` with a fixed placeholder."""
    return _UUID_HEX.sub(UUID_PLACEHOLDER, text)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def handle_to_json(h: ExprHandle) -> dict[str, Any]:
    return {"key": h.key, "source": h.source, "free_vars": sorted(h.free_vars)}


def expression_to_json(e: Expression) -> dict[str, Any]:
    return {"spec_id": str(e.spec_id), "id": e.id, "expr": handle_to_json(e.handle)}


def assertion_to_json(a: Assertion) -> dict[str, Any]:
    if isinstance(a, Expr):
        return {"type": "expr", **expression_to_json(a.expr)}
    elif isinstance(a, And):
        return {"type": "and", "conjuncts": [assertion_to_json(c) for c in a.conjuncts]}
    elif isinstance(a, Implies):
        return {
            "type": "implies",
            "guard": assertion_to_json(a.guard),
            "consequence": assertion_to_json(a.consequence),
        }
    elif isinstance(a, ForAll):
        groups = sorted(a.triggers, key=lambda t: [e.id for e in t])
        return {
            "type": "forall",
            "vars": {
                "spec_id": str(a.vars.spec_id),
                "id": a.vars.id,
                "vars": [{"name": v.name, "ty": v.ty} for v in a.vars.vars],
            },
            "triggers": [[expression_to_json(e) for e in t] for t in groups],
            "body": assertion_to_json(a.body),
        }
    raise TypeError(f"Unknown assertion type: {type(a)}")


def pledge_to_json(p: Pledge) -> dict[str, Any]:
    return {
        "type": "pledge",
        "reference": None if p.reference is None else handle_to_json(p.reference),
        "lhs": None if p.lhs is None else assertion_to_json(p.lhs),
        "rhs": assertion_to_json(p.rhs),
    }


def spec_to_json(sp: Specification) -> dict[str, Any]:
    if isinstance(sp, LoopSpecification):
        return {
            "type": "loop_specification",
            "invariants": [assertion_to_json(a) for a in sp.invariants],
        }
    elif isinstance(sp, StructSpecification):
        return {
            "type": "struct_specification",
            "invariants": [assertion_to_json(a) for a in sp.invariants],
        }
    return {
        "type": "procedure_specification",
        "pres": [assertion_to_json(a) for a in sp.pres],
        "posts": [assertion_to_json(a) for a in sp.posts],
        "pledges": [pledge_to_json(p) for p in sp.pledges],
        "predicate_body": (
            None if sp.predicate_body is None else assertion_to_json(sp.predicate_body)
        ),
        "pure": sp.pure,
        "trusted": sp.trusted,
    }


def dumps(sp: Specification) -> str:
    return json.dumps(spec_to_json(sp), indent=2)
