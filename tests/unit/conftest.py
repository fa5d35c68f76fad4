"""
Pytest configuration and fixtures for vmt-fv tests.
"""
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from vmt.fv.model import StateSignature, TransitionSystem, app, conjoin, curr, eq, ite, nxt  # noqa: E402
from vmt.fv.registry import Registry  # noqa: E402
from vmt.fv.solver import Z3Solver  # noqa: E402


def counter_system(system_id="counter"):
    """Counts the steps on which ``in`` is true (the first one included)."""
    return TransitionSystem(
        system_id,
        StateSignature.of(("in", "Bool"), ("out", "Int")),
        init=eq(curr("out"), ite(curr("in"), 1, 0)),
        trans=eq(nxt("out"), ite(nxt("in"), app("+", curr("out"), 1), curr("out"))),
    )


def branch_system():
    """``x`` goes 0 -> 1 or 0 -> 5 -> 6; states 1 and 6 have no successor."""
    return TransitionSystem(
        "branch",
        StateSignature.of(("x", "Int")),
        init=eq(curr("x"), 0),
        trans=app("or",
                  conjoin([eq(curr("x"), 0), eq(nxt("x"), 1)]),
                  conjoin([eq(curr("x"), 0), eq(nxt("x"), 5)]),
                  conjoin([eq(curr("x"), 5), eq(nxt("x"), 6)])),
    )


def branch_registry():
    reg = Registry()
    reg.declare(branch_system())
    reg.define_rel("no_jump", "branch",
                   app("or", app("not", eq(curr("x"), 5)), app("not", eq(nxt("x"), 6))))
    reg.define_prop("never_one", "branch", app("not", eq(curr("x"), 1)))
    return reg


class RecordingOracle:
    """Z3 oracle that records every call made through it."""

    def __init__(self, label=None):
        self.label = label
        self.inner = Z3Solver()
        self.name = self.inner.name
        self.calls = []

    def __getattr__(self, attr):
        target = getattr(self.inner, attr)
        if not callable(target):
            return target

        def record(*args, **kwargs):
            self.calls.append(attr)
            return target(*args, **kwargs)
        return record


class OracleRecorder:
    """Oracle factory keeping every oracle it created."""

    def __init__(self):
        self.oracles = []

    def __call__(self, label):
        oracle = RecordingOracle(label)
        self.oracles.append(oracle)
        return oracle

    @property
    def calls(self):
        return [c for o in self.oracles for c in o.calls]


@pytest.fixture
def counter():
    return counter_system()


@pytest.fixture
def recorder():
    return OracleRecorder()
