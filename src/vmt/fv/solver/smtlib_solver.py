"""
Oracle backed by an external SMT-LIB solver process.

Assertions are kept as SMT-LIB text in a stack of scopes. Every
``check_sat`` writes the whole problem to a temporary file, runs the solver
on it and, for SAT answers, reads the model back through ``(get-value ...)``.
"""
import logging
import re
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..errors import DeclarationError, OracleResourceError
from ..model.system import FunctionDecl, FunctionDef, StateVariable
from ..model.term import Sort, Term
from ..translator.naming import step_name
from ..translator.term_to_smt2 import Smt2Printer, declare_const, preamble, quote
from .result import SolverResult
from .runner import resolve_solver, run_solver

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\(|\)|\|[^|]*\||\"[^\"]*\"|[^\s()|\"]+")


def parse_sexprs(text: str) -> List[Any]:
    """Parse SMT-LIB output into nested lists of atoms.

    Quoted symbols are returned without their bars.
    """
    stack: List[List[Any]] = [[]]
    for tok in _TOKEN.findall(text):
        if tok == "(":
            stack.append([])
        elif tok == ")":
            if len(stack) == 1:
                continue
            done = stack.pop()
            stack[-1].append(done)
        elif tok.startswith("|"):
            stack[-1].append(tok[1:-1])
        else:
            stack[-1].append(tok)
    return stack[0]


def sexpr_value(expr: Any) -> Any:
    """Convert an SMT-LIB value expression to a Python value."""
    if isinstance(expr, str):
        if expr == "true":
            return True
        if expr == "false":
            return False
        if re.fullmatch(r"\d+", expr):
            return int(expr)
        if re.fullmatch(r"\d+\.\d+", expr):
            return Fraction(expr)
        return expr
    if len(expr) == 2 and expr[0] == "-":
        return -sexpr_value(expr[1])
    if len(expr) == 3 and expr[0] == "/":
        return Fraction(sexpr_value(expr[1])) / Fraction(sexpr_value(expr[2]))
    return str(expr)


def parse_get_value_output(stdout: str) -> Dict[str, Any]:
    """Collect ``(name value)`` pairs from ``(get-value ...)`` answers."""
    out: Dict[str, Any] = {}
    for item in parse_sexprs(stdout):
        if not isinstance(item, list) or (item and item[0] == "error"):
            continue
        for pair in item:
            if isinstance(pair, list) and len(pair) == 2 and isinstance(pair[0], str):
                out[pair[0]] = sexpr_value(pair[1])
    return out


_DEFAULTS = {Sort.BOOL: False, Sort.INT: 0, Sort.REAL: Fraction(0)}


class SmtLibSolver:
    """Oracle running an external solver (z3, cvc5, yices) per query.

    Args:
        solver: Known solver name or path to an executable
        timeout_ms: Optional wall-clock limit per ``check_sat`` call
    """

    def __init__(self, solver: str = "z3", timeout_ms: Optional[int] = None):
        self.spec = resolve_solver(solver)
        self.name = self.spec.name
        self.timeout_ms = timeout_ms
        self.reset()

    def reset(self) -> None:
        self._var_sorts: Dict[str, Sort] = {}
        self._symbols: Dict[str, FunctionDecl] = {}
        self._functions: Dict[str, FunctionDef] = {}
        self._frames: List[List[str]] = [[]]
        self._used: Set[Tuple[str, int]] = set()
        self._model: Optional[Dict[str, Any]] = None
        self.check_count = 0
        self.solver_time_ms = 0.0

    def declare_variables(self, variables: Sequence[StateVariable]) -> None:
        for v in variables:
            self._var_sorts[v.name] = v.sort

    def declare_symbols(self,
                        symbols: Mapping[str, FunctionDecl],
                        functions: Mapping[str, FunctionDef]) -> None:
        self._symbols.update(symbols)
        self._functions.update(functions)

    def add_constraint(self, term: Term, step: int) -> None:
        printer = Smt2Printer()
        text = printer.term(term, step)
        for name, _ in printer.used:
            if name not in self._var_sorts:
                raise DeclarationError(f"undeclared state variable '{name}'")
        self._used |= printer.used
        self._frames[-1].append(f"(assert {text})")

    def push(self) -> None:
        self._frames.append([])

    def pop(self) -> None:
        if len(self._frames) == 1:
            raise OracleResourceError("pop without matching push")
        self._frames.pop()
        self._model = None

    def script(self) -> str:
        """The SMT-LIB problem for the current assertion stack."""
        used = sorted(self._used)
        lines = ["(set-option :produce-models true)", "(set-logic ALL)"]
        lines.extend(preamble(self._symbols, self._functions))
        lines.extend(declare_const(step_name(n, k), self._var_sorts[n]) for n, k in used)
        for frame in self._frames:
            lines.extend(frame)
        lines.append("(check-sat)")
        terms = [quote(step_name(n, k)) for n, k in used] + [quote(s) for s in self._symbols]
        # Chunk to avoid huge single commands.
        for i in range(0, len(terms), 50):
            lines.append(f"(get-value ({' '.join(terms[i:i + 50])}))")
        return "\n".join(lines) + "\n"

    def check_sat(self) -> SolverResult:
        self._model = None
        timeout_s = self.timeout_ms / 1000.0 if self.timeout_ms else None
        rr = run_solver(self.spec, self.script(), timeout_s=timeout_s)
        self.check_count += 1
        self.solver_time_ms += rr.time_ms

        if rr.result == SolverResult.SAT:
            self._model = parse_get_value_output(rr.stdout)
        elif rr.result == SolverResult.UNKNOWN and rr.returncode != 0:
            raise OracleResourceError(f"{self.name} exited with {rr.returncode}: {rr.stderr.strip()}")
        logger.debug("%s answered %s in %.2fms", self.name, rr.result.value, rr.time_ms)
        return rr.result

    def model_value(self, name: str, step: Optional[int]) -> Any:
        if self._model is None:
            raise OracleResourceError("no model available")
        if step is None:
            key, sort = name, self._symbols[name].sort
        else:
            key, sort = step_name(name, step), self._var_sorts[name]
        # Unconstrained constants may be missing from the answer
        return self._model.get(key, _DEFAULTS[sort])
