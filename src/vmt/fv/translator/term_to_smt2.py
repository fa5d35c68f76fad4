"""
Term to SMT-LIBv2 text translation.

Used for SMT-LIB transcripts and for running external solvers. State
variables are printed as step-indexed constants ``|x@k|``.
"""
from fractions import Fraction
from typing import List, Mapping, Optional, Set, Tuple

from ..errors import VmtSyntaxError
from ..model.system import FunctionDecl, FunctionDef
from ..model.term import Apply, Call, Literal, Sort, StateVar, Symbol, Term
from .naming import step_name, step_of


def quote(name: str) -> str:
    return f"|{name}|"


def smt2_sort(sort: Sort) -> str:
    return sort.value


def smt2_literal(value, sort: Sort) -> str:
    if sort == Sort.BOOL:
        return "true" if value else "false"
    if sort == Sort.INT:
        return str(value) if value >= 0 else f"(- {-value})"
    value = Fraction(value)
    num = f"{abs(value.numerator)}.0"
    body = num if value.denominator == 1 else f"(/ {num} {value.denominator}.0)"
    return body if value >= 0 else f"(- {body})"


class Smt2Printer:
    """Prints terms as SMT-LIB expressions, recording the step constants used."""

    def __init__(self):
        self.used: Set[Tuple[str, int]] = set()

    def term(self, term: Term, step: Optional[int]) -> str:
        """Print ``term`` placed at ``step``.

        ``step`` is None inside function bodies, which never mention state
        variables.
        """
        if isinstance(term, StateVar):
            if step is None:
                raise VmtSyntaxError(f"state variable '{term.name}' outside of a step")
            k = step_of(term, step)
            self.used.add((term.name, k))
            return quote(step_name(term.name, k))
        if isinstance(term, Literal):
            return smt2_literal(term.value, term.sort)
        if isinstance(term, Symbol):
            return quote(term.name)
        if isinstance(term, Call):
            if not term.args:
                return quote(term.name)
            args = " ".join(self.term(a, step) for a in term.args)
            return f"({quote(term.name)} {args})"
        if isinstance(term, Apply):
            args = " ".join(self.term(a, step) for a in term.args)
            return f"({term.op} {args})"
        raise VmtSyntaxError(f"not a term: {term!r}")


def declare_const(name: str, sort: Sort) -> str:
    return f"(declare-fun {quote(name)} () {smt2_sort(sort)})"


def define_fun(fdef: FunctionDef) -> str:
    params = " ".join(f"({quote(p)} {smt2_sort(s)})" for p, s in fdef.params)
    body = Smt2Printer().term(fdef.body, None)
    return f"(define-fun {quote(fdef.name)} ({params}) {smt2_sort(fdef.sort)} {body})"


def preamble(symbols: Mapping[str, FunctionDecl], functions: Mapping[str, FunctionDef]) -> List[str]:
    """Declarations shared by every query: declared symbols, then functions in
    definition order."""
    lines = [declare_const(d.name, d.sort) for d in symbols.values()]
    lines.extend(define_fun(f) for f in functions.values())
    return lines
