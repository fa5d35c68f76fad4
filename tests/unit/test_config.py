"""
Tests for verifier configuration.
"""
import pytest

from vmt.fv.config import VerifierConfig, parse_options
from vmt.fv.errors import ConfigError


def test_defaults():
    cfg = VerifierConfig()
    assert cfg.max_k == 20
    assert cfg.engine == "kind"
    assert cfg.solver == "z3py"
    assert cfg.timeout_ms is None
    assert cfg.trust_relations is True
    assert cfg.jobs == 1


@pytest.mark.parametrize("changes", [
    {"max_k": 0},
    {"engine": "pdr"},
    {"jobs": 0},
    {"timeout_ms": -5},
])
def test_invalid_values(changes):
    with pytest.raises(ConfigError):
        VerifierConfig(**changes)


def test_from_env():
    env = {
        "VMT_FV_MAX_K": "7",
        "VMT_FV_ENGINE": "bmc",
        "VMT_FV_TIMEOUT_MS": "1500",
        "VMT_FV_TRUST_RELATIONS": "off",
        "VMT_FV_JOBS": "4",
        "UNRELATED": "x",
    }
    cfg = VerifierConfig.from_env(env)
    assert cfg == VerifierConfig(max_k=7, engine="bmc", timeout_ms=1500, trust_relations=False, jobs=4)


def test_from_env_rejects_bad_numbers():
    with pytest.raises(ConfigError):
        VerifierConfig.from_env({"VMT_FV_MAX_K": "many"})


def test_parse_options():
    assert parse_options("max: 12, kind(solver: z3, max: 30), bmc(max: 5)") == [
        (None, "max", "12"),
        ("kind", "solver", "z3"),
        ("kind", "max", "30"),
        ("bmc", "max", "5"),
    ]
    assert parse_options("") == []


def test_scoped_options_follow_engine():
    """Test that options scoped under an engine only apply to that engine."""
    text = "max: 12, kind(max: 30), bmc(max: 5)"
    assert VerifierConfig().with_options(text).max_k == 30
    assert VerifierConfig(engine="bmc").with_options(text).max_k == 5
    assert VerifierConfig().with_options("engine: bmc, " + text).max_k == 5
    assert VerifierConfig().with_options("max: 12, bmc(max: 5)").max_k == 12


def test_option_values():
    cfg = VerifierConfig().with_options("timeout: 250, trust_relations: false, jobs: 2, smt_log: out.smt2")
    assert cfg.timeout_ms == 250
    assert cfg.trust_relations is False
    assert cfg.jobs == 2
    assert cfg.smt_log == "out.smt2"
    assert cfg.with_options("timeout: none").timeout_ms is None


@pytest.mark.parametrize("text", [
    "depth: 3",
    "max: three",
    "pdr(max: 3)",
    "kind(engine: bmc)",
    "max 3",
    "kind(max: 3",
    "trust_relations: maybe",
    "max: 0",
])
def test_bad_option_strings(text):
    with pytest.raises(ConfigError):
        VerifierConfig().with_options(text)


def test_bad_scoped_value_is_reported_for_inactive_engine():
    with pytest.raises(ConfigError):
        VerifierConfig().with_options("bmc(max: lots)")
