"""
Compositional transition systems and k-induction verification.

This package elaborates hierarchically composed transition systems into a
single flat init/transition pair and proves invariants of them by
k-induction, using an SMT solver as the decision procedure.
"""

__version__ = "0.1.0"

from .errors import (
    VmtError,
    ElaborationError,
    VmtSyntaxError,
    DeclarationError,
    DuplicateDeclarationError,
    UnknownSystemError,
    UnknownPropertyError,
    RegistryFrozenError,
    ArityError,
    SortMismatchError,
    CompositionCycleError,
    OracleError,
    OracleTimeoutError,
    OracleResourceError,
    ConfigError,
)
from .config import VerifierConfig
from .registry import Registry
from .flatten import Flattener
from .solver import Oracle, SolverResult, Z3Solver, SmtLibSolver, make_oracle
from .verification import (
    CounterexampleTrace,
    Proven,
    Disproven,
    Unknown,
    VerificationResult,
    VerificationTask,
    Verifier,
)
from .program import (
    DefineFun,
    DeclareFun,
    DefineSys,
    DefineProp,
    DefineRel,
    Verify,
    ExitCode,
    Program,
    ProgramResult,
    load_program,
    run_program,
)

__all__ = [
    "VmtError",
    "ElaborationError",
    "VmtSyntaxError",
    "DeclarationError",
    "DuplicateDeclarationError",
    "UnknownSystemError",
    "UnknownPropertyError",
    "RegistryFrozenError",
    "ArityError",
    "SortMismatchError",
    "CompositionCycleError",
    "OracleError",
    "OracleTimeoutError",
    "OracleResourceError",
    "ConfigError",
    "VerifierConfig",
    "Registry",
    "Flattener",
    "Oracle",
    "SolverResult",
    "Z3Solver",
    "SmtLibSolver",
    "make_oracle",
    "CounterexampleTrace",
    "Proven",
    "Disproven",
    "Unknown",
    "VerificationResult",
    "VerificationTask",
    "Verifier",
    "DefineFun",
    "DeclareFun",
    "DefineSys",
    "DefineProp",
    "DefineRel",
    "Verify",
    "ExitCode",
    "Program",
    "ProgramResult",
    "load_program",
    "run_program",
]
