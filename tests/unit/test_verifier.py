"""
Tests for the task-level verification API.
"""
import pytest

from conftest import RecordingOracle, counter_system
from vmt.fv.config import VerifierConfig
from vmt.fv.errors import DeclarationError, OracleTimeoutError, UnknownPropertyError
from vmt.fv.model import TRUE, StateSignature, TransitionSystem, app, conjoin, curr, eq, nxt
from vmt.fv.registry import Registry
from vmt.fv.solver import SolverResult
from vmt.fv.verification import (
    DEPTH_EXHAUSTED,
    ORACLE_TIMEOUT,
    ORACLE_UNKNOWN,
    Disproven,
    Proven,
    Unknown,
    VerificationTask,
    Verifier,
)


def make_registry():
    reg = Registry()
    reg.declare(counter_system())
    reg.declare(TransitionSystem(
        "acc",
        StateSignature.of(("a", "Int"), ("b", "Int")),
        init=conjoin([eq(curr("a"), 0), eq(curr("b"), 0)]),
        trans=conjoin([eq(nxt("a"), app("+", curr("a"), 1)),
                       eq(nxt("b"), app("+", curr("b"), curr("a")))]),
    ))
    reg.define_prop("nonneg", "counter", app(">=", curr("out"), 0))
    reg.define_prop("bounded", "counter", app("<=", curr("out"), 10))
    reg.define_rel("a_small", "acc", app("<=", curr("a"), 3))
    reg.define_prop("a_bounded", "acc", app("<=", curr("a"), 5))
    reg.freeze()
    return reg


class TimeoutOracle(RecordingOracle):
    def check_sat(self):
        raise OracleTimeoutError("z3 timed out (timeout)")


class GiveUpOracle(RecordingOracle):
    """Answers ``unknown`` from the given check on."""

    def __init__(self, label=None, after=3):
        super().__init__(label)
        self.after = after
        self.checks = 0

    def check_sat(self):
        self.checks += 1
        if self.checks >= self.after:
            return SolverResult.UNKNOWN
        return self.inner.check_sat()


def test_verify_all_safety_properties_by_default():
    verifier = Verifier(make_registry())
    result = verifier.verify(VerificationTask("counter"))
    assert list(result.verdicts) == ["nonneg", "bounded"]
    assert result.verdict("nonneg").passed
    assert result.verdict("bounded").failed
    assert result.any_failed and not result.all_passed
    assert result.solver_name == "z3py"
    assert result.checks > 0
    assert result.lines()[0] == "counter.nonneg: PASS(1)"
    assert result.lines()[1] == "counter.bounded: FAIL"


def test_task_max_k_overrides_config():
    verifier = Verifier(make_registry(), VerifierConfig(max_k=20))
    result = verifier.verify(VerificationTask("counter", ("bounded",), max_k=3))
    assert result.verdict("bounded") == Unknown(DEPTH_EXHAUSTED)
    assert result.any_unknown


def test_zero_depth_bound_is_honoured():
    verifier = Verifier(make_registry(), VerifierConfig(max_k=20))
    result = verifier.verify(VerificationTask("counter", ("nonneg",), max_k=0))
    assert result.verdict("nonneg") == Unknown(DEPTH_EXHAUSTED)


def test_targets_must_belong_to_the_system():
    verifier = Verifier(make_registry())
    with pytest.raises(DeclarationError):
        verifier.targets(VerificationTask("counter", ("a_bounded",)))
    with pytest.raises(UnknownPropertyError):
        verifier.targets(VerificationTask("counter", ("missing",)))


def test_trusted_relations_are_hypotheses():
    """Test that a trusted relation is assumed even though it is false."""
    verifier = Verifier(make_registry())
    result = verifier.verify(VerificationTask("acc", ("a_bounded",)))
    assert result.verdict("a_bounded") == Proven(1)


def test_strict_relations_are_proven_first():
    verifier = Verifier(make_registry(), VerifierConfig(trust_relations=False))
    task = VerificationTask("acc", ("a_bounded",))
    assert verifier.hypotheses(task, verifier.targets(task)) == []
    result = verifier.verify(task)
    verdict = result.verdict("a_bounded")
    assert isinstance(verdict, Disproven)
    assert verdict.trace.violation_time == 6


def test_relation_target_is_not_its_own_hypothesis():
    verifier = Verifier(make_registry())
    result = verifier.verify(VerificationTask("acc", ("a_small",)))
    assert result.verdict("a_small").failed


def test_bmc_engine():
    verifier = Verifier(make_registry(), VerifierConfig(engine="bmc", max_k=12))
    result = verifier.verify(VerificationTask("counter"))
    assert result.engine == "bmc"
    assert result.verdict("bounded").failed
    assert result.verdict("nonneg") == Unknown("bound reached (12)")


def test_oracle_timeout_becomes_unknown():
    verifier = Verifier(make_registry(), oracle_factory=TimeoutOracle)
    result = verifier.verify(VerificationTask("counter", ("nonneg",)))
    assert result.verdict("nonneg") == Unknown(ORACLE_TIMEOUT)
    assert str(result.verdict("nonneg")) == "UNKNOWN(OracleTimeout)"


def test_unknown_answer_while_certifying():
    """Test that an unknown answer on the per-property check is reported as such."""
    verifier = Verifier(make_registry(), oracle_factory=GiveUpOracle)
    result = verifier.verify(VerificationTask("counter", ("nonneg",)))
    assert result.verdict("nonneg") == Unknown(ORACLE_UNKNOWN)


def test_one_oracle_per_task(recorder):
    verifier = Verifier(make_registry(), oracle_factory=recorder)
    verifier.verify_all([VerificationTask("counter", ("nonneg",)), VerificationTask("acc")])
    assert [o.label for o in recorder.oracles] == ["verify counter (nonneg)", "verify acc ()"]
    for oracle in recorder.oracles:
        assert oracle.calls.count("push") == oracle.calls.count("pop")


def test_parallel_tasks_keep_order():
    tasks = [
        VerificationTask("counter", ("bounded",)),
        VerificationTask("acc", ("a_bounded",)),
        VerificationTask("counter", ("nonneg",)),
    ]
    sequential = Verifier(make_registry()).verify_all(tasks)
    parallel = Verifier(make_registry(), VerifierConfig(jobs=3)).verify_all(tasks)
    assert [r.system_id for r in parallel] == ["counter", "acc", "counter"]
    assert [str(r.verdict(t.property_ids[0])) for r, t in zip(parallel, tasks)] == \
        [str(r.verdict(t.property_ids[0])) for r, t in zip(sequential, tasks)]


def test_unconstrained_system():
    reg = Registry()
    reg.declare(TransitionSystem("free", StateSignature.of(("x", "Int")), TRUE, TRUE))
    reg.define_prop("any", "free", app(">=", curr("x"), 0))
    result = Verifier(reg).verify(VerificationTask("free"))
    assert result.verdict("any").trace.depth == 0
