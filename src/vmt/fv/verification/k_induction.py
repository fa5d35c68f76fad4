"""k-induction over a flattened system.

For ``k = 1, 2, ..., max_k``:

- base case: no initial path of ``k-1`` steps violates the target at its
  last state (SAT gives a counterexample, the property is disproven);
- inductive step: on any chain ``s0..sk`` where the target holds at
  ``s0..s(k-1)`` (plus the trusted relations), it also holds at ``sk``.
  UNSAT proves the target; SAT only means ``k`` is too small.

Several properties are checked together as one conjunction, which lets them
serve as each other's hypotheses. Falsified properties are dropped and the
search goes on for the rest at the same depth.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import OracleError, OracleTimeoutError
from ..model.system import FlattenedSystem, Property
from ..model.term import Term
from ..solver.base import Oracle
from ..solver.result import SolverResult
from .result import (
    DEPTH_EXHAUSTED,
    NOT_CERTIFIED,
    ORACLE_RESOURCE,
    ORACLE_TIMEOUT,
    ORACLE_UNKNOWN,
    Disproven,
    Proven,
    Unknown,
    Verdict,
)
from .unroll import Unroller, combined, violation

logger = logging.getLogger(__name__)


def oracle_reason(err: OracleError) -> str:
    return ORACLE_TIMEOUT if isinstance(err, OracleTimeoutError) else ORACLE_RESOURCE


class KInduction:
    """k-induction engine for one verification task.

    Args:
        oracle: Fresh oracle owned by this task
        flat: Flattened system
        symbols: Declared symbols of the registry
        functions: Defined functions of the registry
        max_k: Induction depth bound
        hypotheses: Relations assumed on every step of the inductive chain
    """

    def __init__(self,
                 oracle: Oracle,
                 flat: FlattenedSystem,
                 symbols,
                 functions,
                 max_k: int,
                 hypotheses: Sequence[Property] = ()):
        self.unroller = Unroller(oracle, flat, symbols, functions)
        self.flat = flat
        self.max_k = max_k
        self.hypotheses = list(hypotheses)

    def run(self, targets: Sequence[Property]) -> Dict[str, Verdict]:
        """Verify ``targets``; returns one verdict per property id."""
        verdicts: Dict[str, Verdict] = {}
        remaining = list(targets)
        k = 1
        try:
            while remaining and k <= self.max_k:
                base = self.unroller.base_check(remaining, k - 1)
                if base == SolverResult.SAT:
                    self.unroller.close()
                    remaining = self._drop_falsified(remaining, k - 1, verdicts)
                    continue
                if base == SolverResult.UNKNOWN:
                    break

                step = self._step_check(remaining, k)
                if step == SolverResult.UNSAT:
                    logger.info("%s: %s inductive at k=%d", self.flat.system_id,
                                ", ".join(p.id for p in remaining), k)
                    for p in remaining:
                        verdicts[p.id] = self._certify(p, remaining, k)
                    remaining = []
                    break
                if step == SolverResult.UNKNOWN:
                    break
                k += 1
            reason = DEPTH_EXHAUSTED if k > self.max_k else ORACLE_UNKNOWN
        except OracleError as e:
            logger.warning("%s: oracle failure at k=%d: %s", self.flat.system_id, k, e)
            reason = oracle_reason(e)

        for p in remaining:
            verdicts.setdefault(p.id, Unknown(reason))
        return {p.id: verdicts[p.id] for p in targets}

    def _drop_falsified(self, remaining: List[Property], depth: int,
                        verdicts: Dict[str, Verdict]) -> List[Property]:
        falsified = self.unroller.falsified(remaining, depth)
        if not falsified:
            raise OracleError("base case is satisfiable but no single property is violated")
        for p, trace in falsified:
            logger.info("%s: %s falsified at depth %d", self.flat.system_id, p.id, depth)
            verdicts[p.id] = Disproven(trace)
        dropped = {p.id for p, _ in falsified}
        return [p for p in remaining if p.id not in dropped]

    def _step_constraints(self, props: Sequence[Property], targets: Sequence[Property],
                          k: int) -> List[Tuple[Term, int]]:
        phi = combined(props)
        out: List[Tuple[Term, int]] = []
        for rel in self.hypotheses:
            last = k - 1 if rel.is_two_state else k
            out.extend((rel.term, i) for i in range(last + 1))
        out.extend((phi, i) for i in range(k))
        out.append((violation(targets, self.flat.trans), k))
        return out

    def _step_check(self, props: Sequence[Property], k: int) -> SolverResult:
        result = self.unroller.check(self._step_constraints(props, props, k), k)
        self.unroller.close()
        logger.debug("%s step k=%d: %s", self.flat.system_id, k, result.value)
        return result

    def _certify(self, p: Property, props: Sequence[Property], k: int) -> Verdict:
        """Re-check one property alone against the established induction."""
        try:
            result = self.unroller.check(self._step_constraints(props, [p], k), k)
            self.unroller.close()
        except OracleError as e:
            return Unknown(oracle_reason(e))
        if result == SolverResult.UNSAT:
            return Proven(k)
        if result == SolverResult.UNKNOWN:
            return Unknown(ORACLE_UNKNOWN)
        return Unknown(NOT_CERTIFIED)
