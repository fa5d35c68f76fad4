"""
Z3 SMT solver oracle implementation.
"""
import logging
import time
from typing import Any, Mapping, Optional, Sequence
import z3

from ..errors import OracleResourceError, OracleTimeoutError
from ..model.system import FunctionDecl, FunctionDef, StateVariable
from ..model.term import Term
from ..translator.term_to_z3 import Z3TermTranslator
from .result import SolverResult

logger = logging.getLogger(__name__)


class Z3Solver:
    """In-process Z3 oracle.

    Each instance owns its own Z3 context so that independent verification
    tasks can run in separate threads.

    Args:
        timeout_ms: Optional wall-clock limit per ``check_sat`` call
    """

    name = "z3py"

    def __init__(self, timeout_ms: Optional[int] = None):
        self.timeout_ms = timeout_ms
        self.ctx = z3.Context()
        self.solver = z3.Solver(ctx=self.ctx)
        if timeout_ms:
            self.solver.set("timeout", int(timeout_ms))
        self.translator = Z3TermTranslator(self.ctx)
        self._model: Optional[z3.ModelRef] = None
        self.check_count = 0
        self.solver_time_ms = 0.0

    def declare_variables(self, variables: Sequence[StateVariable]) -> None:
        self.translator.declare_variables(variables)

    def declare_symbols(self,
                        symbols: Mapping[str, FunctionDecl],
                        functions: Mapping[str, FunctionDef]) -> None:
        self.translator.declare_symbols(symbols, functions)

    def add_constraint(self, term: Term, step: int) -> None:
        """Assert ``term`` placed at ``step``."""
        self.solver.add(self.translator.translate(term, step))

    def check_sat(self) -> SolverResult:
        """Check satisfiability, keeping the model of a SAT answer."""
        start_time = time.time()
        try:
            result = self.solver.check()
        except z3.Z3Exception as e:
            raise OracleResourceError(f"z3 failed: {e}") from e
        finally:
            elapsed_ms = (time.time() - start_time) * 1000
            self.check_count += 1
            self.solver_time_ms += elapsed_ms

        self._model = None
        if result == z3.sat:
            self._model = self.solver.model()
            return SolverResult.SAT
        if result == z3.unsat:
            return SolverResult.UNSAT

        reason = self.solver.reason_unknown()
        logger.debug("z3 returned unknown after %.2fms: %s", elapsed_ms, reason)
        if "timeout" in reason or "canceled" in reason:
            raise OracleTimeoutError(f"z3 timed out ({reason})")
        if "memory" in reason or "resource" in reason:
            raise OracleResourceError(f"z3 ran out of resources ({reason})")
        return SolverResult.UNKNOWN

    def model_value(self, name: str, step: Optional[int]) -> Any:
        """Extract a value from the last model as a Python value."""
        if self._model is None:
            raise OracleResourceError("no model available")
        value = self._model.eval(self.translator.variable(name, step), model_completion=True)
        return self.translator.types.to_python(value)

    def push(self) -> None:
        """Push a new assertion scope."""
        self.solver.push()

    def pop(self) -> None:
        """Pop the most recent assertion scope."""
        self.solver.pop()
        self._model = None

    def reset(self) -> None:
        """Reset solver state."""
        self.solver.reset()
        self.translator = Z3TermTranslator(self.ctx)
        self._model = None
