"""
Operator table and sort inference for terms.
"""
from typing import Dict, Mapping, Optional, Tuple

from ..errors import ArityError, DeclarationError, SortMismatchError, VmtSyntaxError
from .term import Apply, Call, Literal, Sort, StateVar, Symbol, Term

# op -> (min arity, max arity or None for n-ary)
OPERATORS: Dict[str, Tuple[int, Optional[int]]] = {
    "not": (1, 1),
    "and": (1, None),
    "or": (1, None),
    "xor": (2, None),
    "=>": (2, None),
    "=": (2, None),
    "distinct": (2, None),
    "ite": (3, 3),
    "+": (1, None),
    "-": (1, None),
    "*": (2, None),
    "/": (2, None),
    "div": (2, 2),
    "mod": (2, 2),
    "<=": (2, None),
    ">=": (2, None),
    "<": (2, None),
    ">": (2, None),
}

_BOOL_OPS = ("not", "and", "or", "xor", "=>")
_ARITH_OPS = ("+", "-", "*")
_COMPARE_OPS = ("<=", ">=", "<", ">")


class SortChecker:
    """Infers and checks sorts of terms in a fixed environment.

    Args:
        var_sorts: Sorts of the state variables in scope
        symbol_sorts: Sorts of symbols in scope (declared constants, parameters)
        functions: ``define-fun`` definitions by name
        form_id: Identifier reported in errors
    """

    def __init__(self,
                 var_sorts: Mapping[str, Sort],
                 symbol_sorts: Mapping[str, Sort],
                 functions: Mapping[str, object],
                 form_id: Optional[str] = None):
        self.var_sorts = var_sorts
        self.symbol_sorts = symbol_sorts
        self.functions = functions
        self.form_id = form_id

    def expect(self, term: Term, sort: Sort, what: str) -> None:
        actual = self.infer(term)
        if actual != sort:
            raise SortMismatchError(f"{what} must have sort {sort}, got {actual}", self.form_id)

    def infer(self, term: Term) -> Sort:
        if isinstance(term, Literal):
            return term.sort
        if isinstance(term, StateVar):
            if term.name not in self.var_sorts:
                raise DeclarationError(f"unbound variable '{term.name}'", self.form_id)
            return self.var_sorts[term.name]
        if isinstance(term, Symbol):
            if term.name not in self.symbol_sorts:
                raise DeclarationError(f"unbound symbol '{term.name}'", self.form_id)
            return self.symbol_sorts[term.name]
        if isinstance(term, Call):
            return self._infer_call(term)
        if isinstance(term, Apply):
            return self._infer_apply(term)
        raise VmtSyntaxError(f"not a term: {term!r}", self.form_id)

    def _infer_call(self, term: Call) -> Sort:
        fun = self.functions.get(term.name)
        if fun is None:
            # Nullary declared symbols may be written as calls
            if not term.args and term.name in self.symbol_sorts:
                return self.symbol_sorts[term.name]
            raise DeclarationError(f"unknown function '{term.name}'", self.form_id)
        params = fun.params
        if len(params) != len(term.args):
            raise ArityError(
                f"function '{term.name}' expects {len(params)} argument(s), got {len(term.args)}",
                self.form_id)
        for i, ((pname, psort), arg) in enumerate(zip(params, term.args)):
            self.expect(arg, psort, f"argument {i + 1} ('{pname}') of '{term.name}'")
        return fun.sort

    def _infer_apply(self, term: Apply) -> Sort:
        op = term.op
        if op not in OPERATORS:
            raise VmtSyntaxError(f"unknown operator '{op}'", self.form_id)
        lo, hi = OPERATORS[op]
        n = len(term.args)
        if n < lo or (hi is not None and n > hi):
            expected = str(lo) if lo == hi else (f"at least {lo}" if hi is None else f"{lo}..{hi}")
            raise VmtSyntaxError(f"operator '{op}' expects {expected} argument(s), got {n}", self.form_id)

        sorts = [self.infer(a) for a in term.args]

        if op in _BOOL_OPS:
            self._all(op, sorts, Sort.BOOL)
            return Sort.BOOL
        if op in ("=", "distinct"):
            self._same(op, sorts)
            return Sort.BOOL
        if op == "ite":
            if sorts[0] != Sort.BOOL:
                raise SortMismatchError(f"condition of 'ite' must be Bool, got {sorts[0]}", self.form_id)
            self._same(op, sorts[1:])
            return sorts[1]
        if op in _ARITH_OPS:
            self._numeric(op, sorts)
            return sorts[0]
        if op == "/":
            self._all(op, sorts, Sort.REAL)
            return Sort.REAL
        if op in ("div", "mod"):
            self._all(op, sorts, Sort.INT)
            return Sort.INT
        # comparisons
        self._numeric(op, sorts)
        return Sort.BOOL

    def _all(self, op: str, sorts, sort: Sort) -> None:
        for i, s in enumerate(sorts):
            if s != sort:
                raise SortMismatchError(
                    f"argument {i + 1} of '{op}' must have sort {sort}, got {s}", self.form_id)

    def _same(self, op: str, sorts) -> None:
        for i, s in enumerate(sorts[1:], start=2):
            if s != sorts[0]:
                raise SortMismatchError(
                    f"argument {i} of '{op}' has sort {s}, expected {sorts[0]}", self.form_id)

    def _numeric(self, op: str, sorts) -> None:
        if not sorts[0].is_numeric:
            raise SortMismatchError(f"arguments of '{op}' must be numeric, got {sorts[0]}", self.form_id)
        self._same(op, sorts)
