"""
Tests for the k-induction engine.
"""
from conftest import branch_registry, counter_system
from vmt.fv.model import (
    StateSignature,
    SubsystemInstance,
    TransitionSystem,
    app,
    conjoin,
    curr,
    eq,
    implies,
    nxt,
)
from vmt.fv.registry import Registry
from vmt.fv.solver import Z3Solver
from vmt.fv.verification import DEPTH_EXHAUSTED, Disproven, KInduction, Proven, Unknown


def accumulator():
    """``a`` counts steps, ``b`` sums the values of ``a``."""
    return TransitionSystem(
        "acc",
        StateSignature.of(("a", "Int"), ("b", "Int")),
        init=conjoin([eq(curr("a"), 0), eq(curr("b"), 0)]),
        trans=conjoin([eq(nxt("a"), app("+", curr("a"), 1)),
                       eq(nxt("b"), app("+", curr("b"), curr("a")))]),
    )


def run(reg, system_id, prop_ids, max_k=20, hypotheses=()):
    flat = reg.flatten(system_id)
    engine = KInduction(Z3Solver(), flat, reg.symbols, reg.functions, max_k,
                        [reg.lookup_property(h) for h in hypotheses])
    return engine.run([reg.lookup_property(p) for p in prop_ids])


def counter_registry():
    reg = Registry()
    reg.declare(counter_system())
    reg.define_prop("nonneg", "counter", app(">=", curr("out"), 0))
    reg.define_prop("bounded", "counter", app("<=", curr("out"), 10))
    return reg


def test_inductive_property_is_proven():
    verdicts = run(counter_registry(), "counter", ["nonneg"])
    assert verdicts["nonneg"] == Proven(1)
    assert str(verdicts["nonneg"]) == "PASS(1)"


def test_false_property_has_replayable_trace():
    """Test that ``out <= 10`` fails after eleven steps with ``in`` true."""
    reg = counter_registry()
    verdicts = run(reg, "counter", ["bounded"])
    verdict = verdicts["bounded"]
    assert isinstance(verdict, Disproven)
    assert str(verdict) == "FAIL"

    trace = verdict.trace
    assert trace.depth == 10
    assert trace.violation_time == 10
    assert trace.values("in") == [True] * 11
    assert trace.values("out") == list(range(1, 12))
    assert trace.replays(reg.flatten("counter"), reg.lookup_property("bounded").term)
    assert "Property violated at time 10" in trace.format_trace()


def test_failure_beyond_bound_is_unknown():
    verdicts = run(counter_registry(), "counter", ["bounded"], max_k=5)
    assert verdicts["bounded"] == Unknown(DEPTH_EXHAUSTED)
    assert str(verdicts["bounded"]) == "UNKNOWN(induction depth bound exhausted)"


def test_mixed_properties_are_reported_separately():
    verdicts = run(counter_registry(), "counter", ["bounded", "nonneg"])
    assert list(verdicts) == ["bounded", "nonneg"]
    assert verdicts["bounded"].failed
    # Proven once the failing property is dropped
    assert verdicts["nonneg"].passed


def test_properties_strengthen_each_other():
    """Test that ``b >= 0`` is only provable together with ``a >= 0``."""
    reg = Registry()
    reg.declare(accumulator())
    reg.define_prop("p1", "acc", app(">=", curr("a"), 0))
    reg.define_prop("p2", "acc", app(">=", curr("b"), 0))

    both = run(reg, "acc", ["p1", "p2"], max_k=5)
    assert both == {"p1": Proven(1), "p2": Proven(1)}

    alone = run(reg, "acc", ["p2"], max_k=5)
    assert alone == {"p2": Unknown(DEPTH_EXHAUSTED)}

    assert run(reg, "acc", ["p1"], max_k=5) == {"p1": Proven(1)}


def test_relation_hypothesis_helps_induction():
    reg = Registry()
    reg.declare(accumulator())
    reg.define_rel("a_nonneg", "acc", app(">=", curr("a"), 0))
    reg.define_prop("p2", "acc", app(">=", curr("b"), 0))
    assert run(reg, "acc", ["p2"], max_k=5, hypotheses=["a_nonneg"]) == {"p2": Proven(1)}


def test_two_state_relation_as_target():
    reg = Registry()
    reg.declare(accumulator())
    reg.define_rel("grows", "acc", app(">", nxt("a"), curr("a")))
    reg.define_rel("frozen", "acc", eq(nxt("a"), curr("a")))

    assert run(reg, "acc", ["grows"]) == {"grows": Proven(1)}

    verdict = run(reg, "acc", ["frozen"])["frozen"]
    assert isinstance(verdict, Disproven)
    # The violating step needs its successor state
    assert verdict.trace.violation_time == 0
    assert len(verdict.trace.states) == 2
    assert verdict.trace.replays(reg.flatten("acc"), reg.lookup_property("frozen").term)


def test_composed_system():
    """Test the counter observed through a parent system."""
    reg = Registry()
    reg.declare(counter_system())
    reg.declare(TransitionSystem(
        "observer",
        StateSignature.of(("inc", "Bool"), ("out", "Int"), ("out_increment", "Bool")),
        init=curr("out_increment"),
        trans=eq(nxt("out_increment"), implies(nxt("inc"), eq(nxt("out"), app("+", curr("out"), 1)))),
        instances=(SubsystemInstance.of("counter", curr("inc"), curr("out")),),
    ))
    reg.define_prop("out_increment", "observer", curr("out_increment"))
    assert run(reg, "observer", ["out_increment"]) == {"out_increment": Proven(1)}


def test_internal_state_is_verified():
    reg = Registry()
    reg.declare(counter_system())
    reg.declare(TransitionSystem(
        "ticker",
        StateSignature.of(("tick", "Bool"), ("seen", "Bool")),
        init=eq(curr("seen"), curr("tick")),
        trans=eq(nxt("seen"), app("or", curr("seen"), nxt("tick"))),
        instances=(SubsystemInstance.of("counter", curr("tick"), None, name="c"),),
    ))
    reg.define_prop("count_matches", "ticker",
                    app("and", app(">=", curr("c.out"), 0), eq(curr("seen"), app(">", curr("c.out"), 0))))
    assert run(reg, "ticker", ["count_matches"]) == {"count_matches": Proven(1)}


def test_violation_in_state_without_successor():
    """Test that a one-state property failing in a dead end is not masked by a two-state target."""
    reg = branch_registry()
    verdicts = run(reg, "branch", ["no_jump", "never_one"])
    assert verdicts["no_jump"].failed
    verdict = verdicts["never_one"]
    assert isinstance(verdict, Disproven)
    assert verdict.trace.violation_time == 1
    assert verdict.trace.values("x") == [0, 1]
    assert verdict.trace.replays(reg.flatten("branch"), reg.lookup_property("never_one").term)

    alone = run(reg, "branch", ["never_one"])["never_one"]
    assert isinstance(alone, Disproven)
    assert alone.trace.violation_time == 1


def test_two_state_violation_trace_ends_after_the_step():
    reg = branch_registry()
    verdict = run(reg, "branch", ["no_jump"])["no_jump"]
    assert isinstance(verdict, Disproven)
    assert verdict.trace.violation_time == 1
    assert verdict.trace.values("x") == [0, 5, 6]
