"""
SMT-LIB transcript of oracle traffic.

Wraps another oracle and appends every declaration, assertion, scope change
and check to a log file as SMT-LIBv2 commands, with answers as comments.
Each oracle starts its section with ``(reset)`` and declares step constants
in the scope that first uses them, declaring them again after that scope is
popped, so the whole file replays through a solver.
"""
import threading
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple

from ..model.system import FunctionDecl, FunctionDef, StateVariable
from ..model.term import Sort, Term
from ..translator.naming import step_name
from ..translator.term_to_smt2 import Smt2Printer, declare_const, preamble
from .base import Oracle
from .result import SolverResult

# Tasks running in parallel may share one log file
_LOG_LOCK = threading.Lock()


class TranscriptOracle:
    """Oracle decorator recording an SMT-LIB transcript in ``path``."""

    def __init__(self, inner: Oracle, path: str, label: Optional[str] = None):
        self.inner = inner
        self.name = inner.name
        self.path = Path(path)
        self.label = label
        self._var_sorts = {}
        self._scopes: List[Set[Tuple[str, int]]] = [set()]
        self._write([f"; oracle {self.name}" + (f" for {label}" if label else ""), "(reset)"])

    @property
    def check_count(self) -> int:
        return getattr(self.inner, "check_count", 0)

    @property
    def solver_time_ms(self) -> float:
        return getattr(self.inner, "solver_time_ms", 0.0)

    def _write(self, lines: List[str]) -> None:
        with _LOG_LOCK:
            with self.path.open("a") as fp:
                fp.write("\n".join(lines) + "\n")

    def declare_variables(self, variables: Sequence[StateVariable]) -> None:
        for v in variables:
            self._var_sorts[v.name] = v.sort
        self.inner.declare_variables(variables)

    def declare_symbols(self,
                        symbols: Mapping[str, FunctionDecl],
                        functions: Mapping[str, FunctionDef]) -> None:
        self._write(preamble(symbols, functions))
        self.inner.declare_symbols(symbols, functions)

    def add_constraint(self, term: Term, step: int) -> None:
        printer = Smt2Printer()
        text = printer.term(term, step)
        lines = []
        fresh = printer.used.difference(*self._scopes)
        for name, k in sorted(fresh):
            lines.append(declare_const(step_name(name, k), self._var_sorts.get(name, Sort.BOOL)))
        self._scopes[-1] |= fresh
        lines.append(f"(assert {text})")
        self._write(lines)
        self.inner.add_constraint(term, step)

    def check_sat(self) -> SolverResult:
        self._write(["(check-sat)"])
        result = self.inner.check_sat()
        self._write([f"; {result.value}"])
        return result

    def model_value(self, name: str, step: Optional[int]) -> Any:
        return self.inner.model_value(name, step)

    def push(self) -> None:
        self._write(["(push 1)"])
        self._scopes.append(set())
        self.inner.push()

    def pop(self) -> None:
        self._write(["(pop 1)"])
        if len(self._scopes) > 1:
            self._scopes.pop()
        self.inner.pop()

    def reset(self) -> None:
        self._write(["(reset)"])
        self._scopes = [set()]
        self.inner.reset()
