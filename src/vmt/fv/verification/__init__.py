"""Verification engines (k-induction, BMC) and the task-level API."""

from .trace import CounterexampleTrace
from .result import (
    Verdict,
    Proven,
    Disproven,
    Unknown,
    VerificationResult,
    DEPTH_EXHAUSTED,
    BOUND_REACHED,
    ORACLE_TIMEOUT,
    ORACLE_RESOURCE,
    ORACLE_UNKNOWN,
)
from .unroll import Unroller
from .k_induction import KInduction
from .bmc import Bmc
from .verifier import VerificationTask, Verifier

__all__ = [
    "CounterexampleTrace",
    "Verdict",
    "Proven",
    "Disproven",
    "Unknown",
    "VerificationResult",
    "DEPTH_EXHAUSTED",
    "BOUND_REACHED",
    "ORACLE_TIMEOUT",
    "ORACLE_RESOURCE",
    "ORACLE_UNKNOWN",
    "Unroller",
    "KInduction",
    "Bmc",
    "VerificationTask",
    "Verifier",
]
