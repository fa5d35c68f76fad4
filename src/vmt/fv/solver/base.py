"""
Abstract interface of the decision-procedure oracle.
"""
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..model.system import FunctionDecl, FunctionDef, StateVariable
from ..model.term import Term
from .result import SolverResult


class Oracle(Protocol):
    """Protocol the verification engines require from a decision procedure.

    Terms are asserted at a step: a term placed at step ``k`` constrains the
    state at ``k`` through its current-state variables and the state at
    ``k+1`` through its next-state variables. This allows pluggable
    implementations (in-process Z3, external SMT-LIB solvers) behind the
    same engines.
    """

    name: str

    def declare_variables(self, variables: Sequence[StateVariable]) -> None:
        """Declare the state variables that unrolled terms may mention."""
        ...

    def declare_symbols(self,
                        symbols: Mapping[str, FunctionDecl],
                        functions: Mapping[str, FunctionDef]) -> None:
        """Declare ``declare-fun`` symbols and ``define-fun`` functions."""
        ...

    def add_constraint(self, term: Term, step: int) -> None:
        """Assert ``term`` placed at ``step`` in the current scope."""
        ...

    def check_sat(self) -> SolverResult:
        """Check satisfiability of the asserted constraints.

        Raises:
            OracleTimeoutError: If the per-call time limit was hit
            OracleResourceError: If the solver ran out of resources or failed
        """
        ...

    def model_value(self, name: str, step: Optional[int]) -> Any:
        """Value of state variable ``name`` at ``step`` in the last SAT model,
        or of a declared symbol when ``step`` is None."""
        ...

    def push(self) -> None:
        """Push a new assertion scope."""
        ...

    def pop(self) -> None:
        """Pop the most recent assertion scope."""
        ...

    def reset(self) -> None:
        """Reset the oracle state, clearing constraints and declarations."""
        ...
