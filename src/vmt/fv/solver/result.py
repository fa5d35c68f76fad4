"""
Solver result types.
"""
from enum import Enum


class SolverResult(Enum):
    """Result from an oracle satisfiability check."""
    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"
