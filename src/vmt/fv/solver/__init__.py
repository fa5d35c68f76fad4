"""Oracle abstraction layer: the decision procedures behind verification.

``z3py`` selects the in-process Z3 bindings; any other name is treated as an
external SMT-LIB solver executable (see ``runner``).
"""
from typing import Optional

from .base import Oracle
from .result import SolverResult
from .z3_solver import Z3Solver
from .smtlib_solver import SmtLibSolver
from .transcript import TranscriptOracle
from .runner import SolverSpec, resolve_solver, is_solver_available, pick_solver

IN_PROCESS = "z3py"


def make_oracle(solver: str = IN_PROCESS,
                timeout_ms: Optional[int] = None,
                smt_log: Optional[str] = None,
                label: Optional[str] = None) -> Oracle:
    """Create a fresh oracle instance.

    Args:
        solver: ``"z3py"`` or an external solver name/path
        timeout_ms: Optional per-check time limit
        smt_log: Optional path of an SMT-LIB transcript to append to
        label: Name of the task, written to the transcript
    """
    if solver == IN_PROCESS:
        oracle = Z3Solver(timeout_ms=timeout_ms)
    else:
        oracle = SmtLibSolver(solver, timeout_ms=timeout_ms)
    if smt_log:
        return TranscriptOracle(oracle, smt_log, label)
    return oracle


__all__ = [
    "Oracle",
    "SolverResult",
    "Z3Solver",
    "SmtLibSolver",
    "TranscriptOracle",
    "SolverSpec",
    "resolve_solver",
    "is_solver_available",
    "pick_solver",
    "IN_PROCESS",
    "make_oracle",
]
