"""contractir: encode function contracts into a typed assertion IR."""

from .handles import BoundVar, DeclKey, ExprHandle
from .ids import (
    FIRST_EXPRESSION_ID,
    ExpressionId,
    ExprScope,
    IdAllocator,
    SpecificationId,
    next_expr_id,
)
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
from .spec import (
    LoopSpecification,
    ProcedureSpecification,
    Specification,
    StructSpecification,
)
from .errors import ConflictingSpecification, ContractError, MalformedContract
from .collector import collect
from .builder import build
from .pledges import resolve
from .context import EncodingContext, SpecificationTable
from .assembler import (
    Diagnostic,
    EncodingReport,
    assemble,
    assemble_loop,
    assemble_struct,
    encode_all,
    encode_declaration,
)
from .serialization import dumps, normalize_ids, serialize, spec_to_json
from .config import EncoderConfig
from .result import Ok, Err, Result

__all__ = [
    # Handles and ids
    "BoundVar", "DeclKey", "ExprHandle",
    "FIRST_EXPRESSION_ID", "ExpressionId", "ExprScope", "IdAllocator",
    "SpecificationId", "next_expr_id",
    # Assertion IR
    "And", "Assertion", "Expr", "Expression", "ForAll", "ForAllVars",
    "Implies", "Pledge", "Trigger", "TriggerSet",
    # Contract blocks
    "AfterExpiry", "ClauseItem", "ClauseKind", "ContractBlock", "Declaration",
    "DeclKind", "Ensures", "Implication", "Invariant", "Plain",
    "PredicateBody", "Quantified", "Requires",
    # Records
    "LoopSpecification", "ProcedureSpecification", "Specification",
    "StructSpecification",
    # Errors
    "ConflictingSpecification", "ContractError", "MalformedContract",
    # Encoding
    "collect", "build", "resolve", "EncodingContext", "SpecificationTable",
    "Diagnostic", "EncodingReport", "assemble", "assemble_loop", "assemble_struct",
    "encode_all", "encode_declaration",
    # Serialization
    "dumps", "normalize_ids", "serialize", "spec_to_json",
    # Config and results
    "EncoderConfig", "Ok", "Err", "Result",
]
