"""Unrolling of a flattened system into an oracle.

Both engines share one oracle per task. Every query runs in its own pushed
scope holding exactly the transitions it inspects: a query about state
``s_d`` asserts ``T(s0,s1) .. T(s(d-1),sd)`` and nothing past it, so a
violation in a state without successors is still found. Two-state targets
bring their own ``T(sd,s(d+1))`` inside the negated target.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from ..model.system import FlattenedSystem, Property
from ..model.term import Term, app, conjoin, not_
from ..solver.base import Oracle
from ..solver.result import SolverResult
from .trace import CounterexampleTrace, extract_trace

logger = logging.getLogger(__name__)


def combined(props: Sequence[Property]) -> Term:
    """Conjunction of the property terms."""
    return conjoin(p.term for p in props)


def span(props: Sequence[Property]) -> int:
    """1 if any property mentions the next state (needs one more state), else 0."""
    return 1 if any(p.is_two_state for p in props) else 0


def violation(props: Sequence[Property], trans: Term) -> Term:
    """Some of ``props`` fails at the step this term is placed at.

    One-state properties fail in the state itself. Two-state properties
    only fail along an actual transition out of it.
    """
    one = [p.term for p in props if not p.is_two_state]
    two = [p.term for p in props if p.is_two_state]
    parts = []
    if one:
        parts.append(not_(conjoin(one)))
    if two:
        parts.append(conjoin([trans, not_(conjoin(two))]))
    return parts[0] if len(parts) == 1 else app("or", *parts)


class Unroller:
    """Asserts init, transition chain and properties of one flattened system.

    Args:
        oracle: Fresh oracle owned by the task
        flat: Flattened system under verification
        symbols: Declared ``declare-fun`` symbols
        functions: ``define-fun`` definitions
    """

    def __init__(self, oracle: Oracle, flat: FlattenedSystem, symbols, functions):
        self.oracle = oracle
        self.flat = flat
        self.symbol_names = list(symbols)
        oracle.declare_variables(flat.variables)
        oracle.declare_symbols(symbols, functions)

    def check(self, constraints: Sequence[Tuple[Term, int]], transitions: int) -> SolverResult:
        """Check ``T(s_i, s_i+1)`` for ``i < transitions`` plus ``constraints``.

        Everything is asserted in a fresh scope. On SAT the scope is left open
        so the model can be read; callers must call ``close``.
        """
        self.oracle.push()
        try:
            for i in range(transitions):
                self.oracle.add_constraint(self.flat.trans, i)
            for term, step in constraints:
                self.oracle.add_constraint(term, step)
            return self.oracle.check_sat()
        except Exception:
            self.oracle.pop()
            raise

    def close(self) -> None:
        self.oracle.pop()

    def base_constraints(self, props: Sequence[Property], targets: Sequence[Property],
                         depth: int) -> List[Tuple[Term, int]]:
        """Init at 0, ``props`` at ``0..depth-1`` and a violation of ``targets`` at ``depth``."""
        phi = combined(props)
        out = [(self.flat.init, 0)]
        out.extend((phi, i) for i in range(depth))
        out.append((violation(targets, self.flat.trans), depth))
        return out

    def base_check(self, props: Sequence[Property], depth: int) -> SolverResult:
        """Is some initial path of ``depth`` steps violating ``props`` at its end?

        The scope stays open on SAT; call ``close`` after reading the model.
        """
        result = self.check(self.base_constraints(props, props, depth), depth)
        logger.debug("%s base depth=%d: %s", self.flat.system_id, depth, result.value)
        if result != SolverResult.SAT:
            self.close()
        return result

    def falsified(self, props: Sequence[Property], depth: int) -> List[Tuple[Property, CounterexampleTrace]]:
        """Properties violated at ``depth`` on some initial path, with a trace each."""
        out = []
        for p in props:
            result = self.check(self.base_constraints(props, [p], depth), depth)
            if result == SolverResult.SAT:
                last = depth + span([p])
                out.append((p, extract_trace(self.oracle, self.flat.variables, self.symbol_names, last, depth)))
            self.close()
        return out
