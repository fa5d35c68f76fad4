"""High-level verification API.

A ``VerificationTask`` names a system and the properties to discharge. Each
task gets its own oracle; the registry and its flattened systems are shared
read-only, so independent tasks may run in parallel threads once every
system they need has been flattened.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import VerifierConfig
from ..errors import DeclarationError
from ..model.system import Property, PropertyKind
from ..registry import Registry
from ..solver import make_oracle
from ..solver.base import Oracle
from .bmc import Bmc
from .k_induction import KInduction
from .result import VerificationResult

logger = logging.getLogger(__name__)

OracleFactory = Callable[[str], Oracle]


@dataclass(frozen=True)
class VerificationTask:
    """One ``verify`` request.

    Attributes:
        system_id: System to verify
        property_ids: Properties/relations to discharge; empty means every
                      safety property attached to the system
        max_k: Depth bound overriding the configuration
    """
    system_id: str
    property_ids: Tuple[str, ...] = ()
    max_k: Optional[int] = None

    @property
    def label(self) -> str:
        return f"verify {self.system_id} ({' '.join(self.property_ids)})"


class Verifier:
    """Runs verification tasks against a loaded registry.

    Args:
        registry: Loaded registry (should be frozen)
        config: Verifier configuration
        oracle_factory: Creates a fresh oracle from a task label; defaults to
                        ``make_oracle`` with the configured solver
    """

    def __init__(self,
                 registry: Registry,
                 config: Optional[VerifierConfig] = None,
                 oracle_factory: Optional[OracleFactory] = None):
        self.registry = registry
        self.config = config or VerifierConfig()
        self.oracle_factory = oracle_factory or self._default_oracle

    def _default_oracle(self, label: str) -> Oracle:
        cfg = self.config
        return make_oracle(cfg.solver, timeout_ms=cfg.timeout_ms, smt_log=cfg.smt_log, label=label)

    def targets(self, task: VerificationTask) -> List[Property]:
        """Resolve the properties named by ``task``."""
        self.registry.lookup(task.system_id)
        if not task.property_ids:
            return self.registry.properties_of(task.system_id, PropertyKind.SAFETY)
        props = []
        for pid in task.property_ids:
            p = self.registry.lookup_property(pid)
            if p.system_id != task.system_id:
                raise DeclarationError(f"property '{pid}' belongs to system '{p.system_id}'", task.system_id)
            props.append(p)
        return props

    def hypotheses(self, task: VerificationTask, targets: Sequence[Property]) -> List[Property]:
        """Relations usable as hypotheses for ``targets``.

        Relations listed as targets are excluded. Unless relations are
        trusted, each one is first proven on its own and dropped if that fails.
        """
        target_ids = {p.id for p in targets}
        rels = [r for r in self.registry.relations_of(task.system_id) if r.id not in target_ids]
        if self.config.trust_relations or not rels:
            return rels
        proven = []
        for rel in rels:
            verdict = self._kind(task, [rel], [], f"relation {rel.id}")[rel.id]
            if verdict.passed:
                proven.append(rel)
            else:
                logger.warning("%s: relation %s not used as hypothesis: %s", task.system_id, rel.id, verdict)
        return proven

    def _max_k(self, task: VerificationTask) -> int:
        return self.config.max_k if task.max_k is None else task.max_k

    def _kind(self, task: VerificationTask, targets, hypotheses, label: str):
        flat = self.registry.flatten(task.system_id)
        oracle = self.oracle_factory(label)
        engine = KInduction(oracle, flat, self.registry.symbols, self.registry.functions,
                            self._max_k(task), hypotheses)
        return engine.run(targets)

    def verify(self, task: VerificationTask) -> VerificationResult:
        """Run one task and report a verdict per requested property."""
        flat = self.registry.flatten(task.system_id)
        targets = self.targets(task)
        max_k = self._max_k(task)
        oracle = self.oracle_factory(task.label)
        logger.debug("%s: %d target(s), engine=%s, max_k=%d",
                     task.system_id, len(targets), self.config.engine, max_k)

        if self.config.engine == "bmc":
            engine = Bmc(oracle, flat, self.registry.symbols, self.registry.functions, max_k)
        else:
            hyps = self.hypotheses(task, targets)
            engine = KInduction(oracle, flat, self.registry.symbols, self.registry.functions, max_k, hyps)
        verdicts = engine.run(targets)

        result = VerificationResult(
            system_id=task.system_id,
            verdicts=verdicts,
            engine=self.config.engine,
            solver_name=oracle.name,
            solver_time_ms=getattr(oracle, "solver_time_ms", 0.0),
            checks=getattr(oracle, "check_count", 0),
        )
        for pid, v in verdicts.items():
            logger.info("%s.%s: %s", task.system_id, pid, v)
        return result

    def verify_all(self, tasks: Sequence[VerificationTask]) -> List[VerificationResult]:
        """Run tasks in order, or in parallel when ``config.jobs > 1``.

        Results are returned in task order.
        """
        for task in tasks:
            self.registry.flatten(task.system_id)
        if self.config.jobs == 1 or len(tasks) <= 1:
            return [self.verify(t) for t in tasks]
        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            return list(pool.map(self.verify, tasks))
