"""Term and transition-system data model."""

from .term import (
    Sort,
    StateTag,
    Term,
    StateVar,
    Symbol,
    Literal,
    Apply,
    Call,
    TRUE,
    FALSE,
    curr,
    nxt,
    sym,
    lit,
    app,
    call,
    ite,
    eq,
    not_,
    implies,
    conjoin,
    substitute,
    state_vars,
    mentions_next,
    prime,
    evaluate,
)
from .typecheck import OPERATORS, SortChecker
from .system import (
    StateVariable,
    StateSignature,
    FunctionDef,
    FunctionDecl,
    SubsystemInstance,
    TransitionSystem,
    PropertyKind,
    Property,
    FlattenedSystem,
)

__all__ = [
    "Sort", "StateTag", "Term", "StateVar", "Symbol", "Literal", "Apply", "Call",
    "TRUE", "FALSE", "curr", "nxt", "sym", "lit", "app", "call", "ite", "eq",
    "not_", "implies", "conjoin", "substitute", "state_vars", "mentions_next",
    "prime", "evaluate", "OPERATORS", "SortChecker",
    "StateVariable", "StateSignature", "FunctionDef", "FunctionDecl",
    "SubsystemInstance", "TransitionSystem", "PropertyKind", "Property",
    "FlattenedSystem",
]
