"""
Term to Z3 translation.

A term placed at step ``k`` maps current-state variables to the copy of the
state at ``k`` and next-state variables to the copy at ``k+1``. Declared
symbols are rigid: the same constant at every step. Calls to ``define-fun``
functions are expanded inline.
"""
from functools import reduce
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
import z3

from ..errors import DeclarationError, VmtSyntaxError
from ..model.system import FunctionDecl, FunctionDef, StateVariable
from ..model.term import Apply, Call, Literal, Sort, StateVar, Symbol, Term
from .naming import step_name, step_of
from .type_translator import TypeTranslator


def _chain(fn, args):
    pairs = [fn(a, b) for a, b in zip(args, args[1:])]
    return pairs[0] if len(pairs) == 1 else z3.And(*pairs)


class Z3TermTranslator:
    """Translates terms to Z3 expressions over step-indexed constants."""

    def __init__(self, ctx: Optional[z3.Context] = None):
        self.types = TypeTranslator(ctx)
        self.ctx = self.types.ctx
        self._var_sorts: Dict[str, Sort] = {}
        self._symbol_sorts: Dict[str, Sort] = {}
        self._functions: Dict[str, FunctionDef] = {}
        self._consts: Dict[Tuple[str, Optional[int]], Any] = {}

    def declare_variables(self, variables: Sequence[StateVariable]) -> None:
        for v in variables:
            self._var_sorts[v.name] = v.sort

    def declare_symbols(self,
                        symbols: Mapping[str, FunctionDecl],
                        functions: Mapping[str, FunctionDef]) -> None:
        for decl in symbols.values():
            self._symbol_sorts[decl.name] = decl.sort
        self._functions.update(functions)

    def variable(self, name: str, step: Optional[int]) -> Any:
        """Z3 constant for state variable ``name`` at ``step``, or for a
        declared symbol when ``step`` is None."""
        key = (name, step)
        const = self._consts.get(key)
        if const is None:
            if step is None:
                if name not in self._symbol_sorts:
                    raise DeclarationError(f"unknown symbol '{name}'")
                const = self.types.make_const(name, self._symbol_sorts[name])
            else:
                if name not in self._var_sorts:
                    raise DeclarationError(f"undeclared state variable '{name}'")
                const = self.types.make_const(step_name(name, step), self._var_sorts[name])
            self._consts[key] = const
        return const

    def translate(self, term: Term, step: int, env: Optional[Mapping[str, Any]] = None) -> Any:
        """Translate ``term`` placed at ``step``.

        Args:
            term: Term to translate
            step: State index of the term's current state
            env: Values of function parameters while expanding a call
        """
        if isinstance(term, StateVar):
            return self.variable(term.name, step_of(term, step))
        if isinstance(term, Literal):
            return self.types.make_literal(term.value, term.sort)
        if isinstance(term, Symbol):
            if env is not None and term.name in env:
                return env[term.name]
            return self.variable(term.name, None)
        if isinstance(term, Call):
            fun = self._functions.get(term.name)
            if fun is None:
                if not term.args:
                    return self.variable(term.name, None)
                raise DeclarationError(f"unknown function '{term.name}'")
            args = [self.translate(a, step, env) for a in term.args]
            return self.translate(fun.body, step, {p: a for (p, _), a in zip(fun.params, args)})
        if isinstance(term, Apply):
            args = [self.translate(a, step, env) for a in term.args]
            return self._apply(term.op, args)
        raise VmtSyntaxError(f"not a term: {term!r}")

    def _apply(self, op: str, args: list) -> Any:
        if op == "not":
            return z3.Not(args[0])
        if op == "and":
            return z3.And(*args)
        if op == "or":
            return z3.Or(*args)
        if op == "xor":
            return reduce(z3.Xor, args)
        if op == "=>":
            hyp = args[0] if len(args) == 2 else z3.And(*args[:-1])
            return z3.Implies(hyp, args[-1])
        if op == "=":
            return _chain(lambda a, b: a == b, args)
        if op == "distinct":
            return z3.Distinct(*args)
        if op == "ite":
            return z3.If(args[0], args[1], args[2])
        if op == "+":
            return reduce(lambda a, b: a + b, args)
        if op == "-":
            if len(args) == 1:
                return -args[0]
            return reduce(lambda a, b: a - b, args)
        if op == "*":
            return reduce(lambda a, b: a * b, args)
        if op in ("/", "div"):
            # Z3 picks real or integer division from the operand sorts
            return reduce(lambda a, b: a / b, args)
        if op == "mod":
            return args[0] % args[1]
        if op == "<=":
            return _chain(lambda a, b: a <= b, args)
        if op == ">=":
            return _chain(lambda a, b: a >= b, args)
        if op == "<":
            return _chain(lambda a, b: a < b, args)
        if op == ">":
            return _chain(lambda a, b: a > b, args)
        raise VmtSyntaxError(f"unknown operator '{op}'")
