"""
Term representation for transition-system predicates.

Terms are immutable trees. Leaves are state variables tagged ``curr`` or
``next``, symbols (function parameters and ``declare-fun`` constants) and
literals. Internal nodes are built-in operator applications or calls to
``define-fun`` functions.
"""
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple, Union

from ..errors import DeclarationError, VmtSyntaxError


class Sort(Enum):
    """SMT sorts supported for state variables and symbols."""
    BOOL = "Bool"
    INT = "Int"
    REAL = "Real"

    @classmethod
    def of(cls, name: Union[str, "Sort"]) -> "Sort":
        """Look up a sort by its SMT-LIB name."""
        if isinstance(name, Sort):
            return name
        for sort in cls:
            if sort.value == name:
                return sort
        raise VmtSyntaxError(f"unknown sort '{name}'")

    @property
    def is_numeric(self) -> bool:
        return self in (Sort.INT, Sort.REAL)

    def __str__(self) -> str:
        return self.value


class StateTag(Enum):
    """Which state of a transition a variable occurrence refers to."""
    CURR = "curr"
    NEXT = "next"


LiteralValue = Union[bool, int, Fraction]


class Term:
    """Base class of all term nodes."""

    def children(self) -> Tuple["Term", ...]:
        return ()


@dataclass(frozen=True)
class StateVar(Term):
    """Occurrence of a state variable in the current or next state."""
    name: str
    tag: StateTag = StateTag.CURR

    def __str__(self) -> str:
        return self.name if self.tag == StateTag.CURR else f"{self.name}'"


@dataclass(frozen=True)
class Symbol(Term):
    """Reference to a function parameter or a declared nullary symbol."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Literal(Term):
    """Boolean, integer or rational constant.

    The sort is stored explicitly so that ``true`` and ``1`` never compare
    equal.
    """
    value: LiteralValue
    sort: Sort

    def __str__(self) -> str:
        if self.sort == Sort.BOOL:
            return "true" if self.value else "false"
        return str(self.value)


@dataclass(frozen=True)
class Apply(Term):
    """Application of a built-in operator."""
    op: str
    args: Tuple[Term, ...]

    def children(self) -> Tuple[Term, ...]:
        return self.args

    def __str__(self) -> str:
        return "(" + " ".join([self.op] + [str(a) for a in self.args]) + ")"


@dataclass(frozen=True)
class Call(Term):
    """Call of a previously defined function."""
    name: str
    args: Tuple[Term, ...] = ()

    def children(self) -> Tuple[Term, ...]:
        return self.args

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return "(" + " ".join([self.name] + [str(a) for a in self.args]) + ")"


TRUE = Literal(True, Sort.BOOL)
FALSE = Literal(False, Sort.BOOL)


# Builders

def curr(name: str) -> StateVar:
    return StateVar(name, StateTag.CURR)


def nxt(name: str) -> StateVar:
    return StateVar(name, StateTag.NEXT)


def sym(name: str) -> Symbol:
    return Symbol(name)


def lit(value: LiteralValue) -> Literal:
    """Build a literal, inferring its sort from the Python type."""
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, int):
        return Literal(value, Sort.INT)
    if isinstance(value, Fraction):
        return Literal(value, Sort.REAL)
    if isinstance(value, float):
        return Literal(Fraction(value), Sort.REAL)
    raise VmtSyntaxError(f"unsupported literal {value!r}")


def _as_term(value: Any) -> Term:
    return value if isinstance(value, Term) else lit(value)


def app(op: str, *args: Any) -> Apply:
    """Apply a built-in operator; plain Python constants become literals."""
    return Apply(op, tuple(_as_term(a) for a in args))


def call(name: str, *args: Any) -> Call:
    return Call(name, tuple(_as_term(a) for a in args))


def ite(cond: Any, then: Any, els: Any) -> Apply:
    return app("ite", cond, then, els)


def eq(lhs: Any, rhs: Any) -> Apply:
    return app("=", lhs, rhs)


def not_(term: Any) -> Apply:
    return app("not", term)


def implies(lhs: Any, rhs: Any) -> Apply:
    return app("=>", lhs, rhs)


def conjoin(terms: Iterable[Term]) -> Term:
    """Conjunction of ``terms``, flattening nested ``and`` and dropping ``true``."""
    flat = []
    for t in terms:
        if isinstance(t, Apply) and t.op == "and":
            flat.extend(a for a in t.args if a != TRUE)
        elif t != TRUE:
            flat.append(t)
    if not flat:
        return TRUE
    if len(flat) == 1:
        return flat[0]
    return Apply("and", tuple(flat))


# Traversal and rewriting

def iter_subterms(term: Term) -> Iterator[Term]:
    """Pre-order iteration over ``term`` and all its subterms."""
    stack = [term]
    while stack:
        t = stack.pop()
        yield t
        stack.extend(reversed(t.children()))


def state_vars(term: Term) -> FrozenSet[StateVar]:
    return frozenset(t for t in iter_subterms(term) if isinstance(t, StateVar))


def symbols(term: Term) -> FrozenSet[str]:
    return frozenset(t.name for t in iter_subterms(term) if isinstance(t, Symbol))


def mentions_next(term: Term) -> bool:
    return any(v.tag == StateTag.NEXT for v in state_vars(term))


def substitute(term: Term, mapping: Mapping[Term, Term]) -> Term:
    """Replace leaves of ``term`` found in ``mapping``.

    Keys are ``StateVar`` (tag included) or ``Symbol`` leaves. Unchanged
    subtrees are shared with the input.
    """
    if not mapping:
        return term
    cache: Dict[int, Term] = {}

    def go(t: Term) -> Term:
        key = id(t)
        if key in cache:
            return cache[key]
        if isinstance(t, (StateVar, Symbol)):
            res = mapping.get(t, t)
        elif isinstance(t, Apply):
            args = tuple(go(a) for a in t.args)
            res = t if all(x is y for x, y in zip(args, t.args)) else Apply(t.op, args)
        elif isinstance(t, Call):
            args = tuple(go(a) for a in t.args)
            res = t if all(x is y for x, y in zip(args, t.args)) else Call(t.name, args)
        else:
            res = t
        cache[key] = res
        return res

    return go(term)


def map_state_vars(term: Term, fn: Callable[[StateVar], Term]) -> Term:
    """Rewrite every state variable occurrence with ``fn``."""
    return substitute(term, {v: fn(v) for v in state_vars(term)})


def prime(term: Term) -> Term:
    """Shift a current-state term to the next state."""
    def shift(v: StateVar) -> Term:
        if v.tag == StateTag.NEXT:
            raise DeclarationError(f"cannot prime '{term}': it already mentions next-state variable '{v.name}'")
        return StateVar(v.name, StateTag.NEXT)
    return map_state_vars(term, shift)


# Concrete evaluation

def _smt_div(a: int, b: int) -> int:
    # SMT-LIB integer division: the remainder is always non-negative
    q = a // b
    if a - q * b < 0:
        q += 1
    return q


def _smt_mod(a: int, b: int) -> int:
    return a - _smt_div(a, b) * b


def _chain(pred: Callable[[Any, Any], bool], vals: Tuple[Any, ...]) -> bool:
    return all(pred(x, y) for x, y in zip(vals, vals[1:]))


def _sub(vals: Tuple[Any, ...]) -> Any:
    if len(vals) == 1:
        return -vals[0]
    res = vals[0]
    for v in vals[1:]:
        res -= v
    return res


def _mul(vals: Tuple[Any, ...]) -> Any:
    res = vals[0]
    for v in vals[1:]:
        res *= v
    return res


def _div(vals: Tuple[Any, ...]) -> Any:
    res = Fraction(vals[0])
    for v in vals[1:]:
        res /= v
    return res


_EVAL_OPS: Dict[str, Callable[[Tuple[Any, ...]], Any]] = {
    "not": lambda v: not v[0],
    "and": all,
    "or": any,
    "xor": lambda v: sum(bool(x) for x in v) % 2 == 1,
    "=>": lambda v: (not all(v[:-1])) or v[-1],
    "=": lambda v: _chain(lambda x, y: x == y, v),
    "distinct": lambda v: len(set(v)) == len(v),
    "+": sum,
    "-": _sub,
    "*": _mul,
    "/": _div,
    "div": lambda v: _smt_div(v[0], v[1]),
    "mod": lambda v: _smt_mod(v[0], v[1]),
    "<=": lambda v: _chain(lambda x, y: x <= y, v),
    ">=": lambda v: _chain(lambda x, y: x >= y, v),
    "<": lambda v: _chain(lambda x, y: x < y, v),
    ">": lambda v: _chain(lambda x, y: x > y, v),
}


def evaluate(term: Term,
             state: Mapping[str, Any],
             next_state: Optional[Mapping[str, Any]] = None,
             constants: Optional[Mapping[str, Any]] = None,
             functions: Optional[Mapping[str, Any]] = None) -> Any:
    """Evaluate ``term`` under a concrete assignment.

    Args:
        term: Term to evaluate
        state: Values of current-state variables
        next_state: Values of next-state variables
        constants: Values of symbols (declared constants, parameters)
        functions: ``define-fun`` definitions (objects with ``params`` and ``body``)

    Returns:
        Python value of the term (bool, int or Fraction)
    """
    constants = constants or {}
    functions = functions or {}

    if isinstance(term, Literal):
        return term.value
    if isinstance(term, StateVar):
        env = state if term.tag == StateTag.CURR else next_state
        if env is None or term.name not in env:
            raise DeclarationError(f"no value for variable '{term}'")
        return env[term.name]
    if isinstance(term, Symbol):
        if term.name not in constants:
            raise DeclarationError(f"no value for symbol '{term.name}'")
        return constants[term.name]
    if isinstance(term, Call):
        fun = functions.get(term.name)
        if fun is None:
            if not term.args and term.name in constants:
                return constants[term.name]
            raise DeclarationError(f"unknown function '{term.name}'")
        args = [evaluate(a, state, next_state, constants, functions) for a in term.args]
        local = dict(constants)
        local.update({name: val for (name, _), val in zip(fun.params, args)})
        return evaluate(fun.body, {}, None, local, functions)
    if isinstance(term, Apply):
        if term.op == "ite":
            cond = evaluate(term.args[0], state, next_state, constants, functions)
            branch = term.args[1] if cond else term.args[2]
            return evaluate(branch, state, next_state, constants, functions)
        op = _EVAL_OPS.get(term.op)
        if op is None:
            raise VmtSyntaxError(f"unknown operator '{term.op}'")
        vals = tuple(evaluate(a, state, next_state, constants, functions) for a in term.args)
        return op(vals)
    raise VmtSyntaxError(f"not a term: {term!r}")
