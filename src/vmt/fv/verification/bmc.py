"""Bounded model checking.

Searches initial paths of increasing length for a violation, up to a fixed
bound. It never proves a property: survivors are reported as unknown.
"""

from __future__ import annotations

import logging
from typing import Dict, Sequence

from ..errors import OracleError
from ..model.system import FlattenedSystem, Property
from ..solver.base import Oracle
from ..solver.result import SolverResult
from .k_induction import oracle_reason
from .result import BOUND_REACHED, ORACLE_UNKNOWN, Disproven, Unknown, Verdict
from .unroll import Unroller

logger = logging.getLogger(__name__)


class Bmc:
    """BMC engine for one verification task."""

    def __init__(self, oracle: Oracle, flat: FlattenedSystem, symbols, functions, max_k: int):
        self.unroller = Unroller(oracle, flat, symbols, functions)
        self.flat = flat
        self.max_k = max_k

    def run(self, targets: Sequence[Property]) -> Dict[str, Verdict]:
        verdicts: Dict[str, Verdict] = {}
        remaining = list(targets)
        depth = 0
        reason = f"{BOUND_REACHED} ({self.max_k})"
        try:
            while remaining and depth <= self.max_k:
                result = self.unroller.base_check(remaining, depth)
                if result == SolverResult.SAT:
                    self.unroller.close()
                    falsified = self.unroller.falsified(remaining, depth)
                    if not falsified:
                        raise OracleError("bounded check is satisfiable but no single property is violated")
                    for p, trace in falsified:
                        logger.info("%s: %s falsified at depth %d", self.flat.system_id, p.id, depth)
                        verdicts[p.id] = Disproven(trace)
                    dropped = {p.id for p, _ in falsified}
                    remaining = [p for p in remaining if p.id not in dropped]
                    continue
                if result == SolverResult.UNKNOWN:
                    reason = ORACLE_UNKNOWN
                    break
                depth += 1
        except OracleError as e:
            logger.warning("%s: oracle failure at depth %d: %s", self.flat.system_id, depth, e)
            reason = oracle_reason(e)

        for p in remaining:
            verdicts.setdefault(p.id, Unknown(reason))
        return {p.id: verdicts[p.id] for p in targets}
