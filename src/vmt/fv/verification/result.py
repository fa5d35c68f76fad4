"""Verdicts and per-request verification results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .trace import CounterexampleTrace

DEPTH_EXHAUSTED = "induction depth bound exhausted"
BOUND_REACHED = "bound reached"
ORACLE_TIMEOUT = "OracleTimeout"
ORACLE_RESOURCE = "OracleResource"
ORACLE_UNKNOWN = "oracle returned unknown"
NOT_CERTIFIED = "not certified by the combined induction"


class Verdict:
    """Outcome for one property."""

    status = "UNKNOWN"

    @property
    def passed(self) -> bool:
        return self.status == "PASS"

    @property
    def failed(self) -> bool:
        return self.status == "FAIL"

    @property
    def unknown(self) -> bool:
        return self.status == "UNKNOWN"


@dataclass(frozen=True)
class Proven(Verdict):
    """The property is k-inductive: it holds in every reachable state."""
    k: int
    status = "PASS"

    def __str__(self) -> str:
        return f"PASS({self.k})"


@dataclass(frozen=True)
class Disproven(Verdict):
    """A reachable state violates the property."""
    trace: CounterexampleTrace
    status = "FAIL"

    def __str__(self) -> str:
        return "FAIL"


@dataclass(frozen=True)
class Unknown(Verdict):
    reason: str
    status = "UNKNOWN"

    def __str__(self) -> str:
        return f"UNKNOWN({self.reason})"


@dataclass
class VerificationResult:
    """Result of one verification request.

    Attributes:
        system_id: Verified system
        verdicts: One verdict per requested property, in request order
        engine: Technique used (``kind`` or ``bmc``)
        solver_name: Name of the oracle backend
        solver_time_ms: Time spent in oracle checks
        checks: Number of oracle checks
    """
    system_id: str
    verdicts: Dict[str, Verdict] = field(default_factory=dict)
    engine: str = "kind"
    solver_name: str = "unknown"
    solver_time_ms: float = 0.0
    checks: int = 0

    @property
    def all_passed(self) -> bool:
        return all(v.passed for v in self.verdicts.values())

    @property
    def any_failed(self) -> bool:
        return any(v.failed for v in self.verdicts.values())

    @property
    def any_unknown(self) -> bool:
        return any(v.unknown for v in self.verdicts.values())

    def verdict(self, prop_id: str) -> Verdict:
        return self.verdicts[prop_id]

    def lines(self) -> List[str]:
        out: List[str] = []
        for pid, v in self.verdicts.items():
            out.append(f"{self.system_id}.{pid}: {v}")
            if isinstance(v, Disproven):
                out.extend("  " + ln for ln in v.trace.format_trace().splitlines())
        return out

    def __str__(self) -> str:
        return "\n".join(self.lines())

