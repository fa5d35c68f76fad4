"""
Verifier configuration.

Values come from defaults, then ``VMT_FV_*`` environment variables, then an
option string. Option strings are comma separated ``key: value`` pairs;
pairs may be grouped under an engine scope, in which case they only apply
when that engine is selected::

    max: 12, kind(solver: z3, max: 30), bmc(max: 5)
"""
import dataclasses
import os
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import ConfigError

ENGINES = ("kind", "bmc")

_OPTION_KEYS = {
    "max": "max_k",
    "engine": "engine",
    "solver": "solver",
    "timeout": "timeout_ms",
    "trust_relations": "trust_relations",
    "jobs": "jobs",
    "smt_log": "smt_log",
}

_ENV_KEYS = {
    "VMT_FV_MAX_K": "max_k",
    "VMT_FV_ENGINE": "engine",
    "VMT_FV_SOLVER": "solver",
    "VMT_FV_TIMEOUT_MS": "timeout_ms",
    "VMT_FV_TRUST_RELATIONS": "trust_relations",
    "VMT_FV_JOBS": "jobs",
    "VMT_FV_SMT_LOG": "smt_log",
}


@dataclass(frozen=True)
class VerifierConfig:
    """Configuration of verification runs.

    Attributes:
        max_k: Induction depth bound (also the BMC unrolling bound)
        engine: ``"kind"`` (k-induction) or ``"bmc"`` (bounded model checking)
        solver: ``"z3py"`` for in-process Z3, else an external solver name/path
        timeout_ms: Wall-clock limit per oracle check, None for no limit
        trust_relations: Use attached relations as hypotheses without proving them
        jobs: Number of verification tasks run in parallel
        smt_log: File receiving an SMT-LIB transcript of oracle queries
    """
    max_k: int = 20
    engine: str = "kind"
    solver: str = "z3py"
    timeout_ms: Optional[int] = None
    trust_relations: bool = True
    jobs: int = 1
    smt_log: Optional[str] = None

    def __post_init__(self):
        if self.max_k < 1:
            raise ConfigError(f"max must be at least 1, got {self.max_k}")
        if self.engine not in ENGINES:
            raise ConfigError(f"unknown engine '{self.engine}', expected one of {', '.join(ENGINES)}")
        if self.jobs < 1:
            raise ConfigError(f"jobs must be at least 1, got {self.jobs}")
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout_ms}")

    def replace(self, **changes) -> "VerifierConfig":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 base: Optional["VerifierConfig"] = None) -> "VerifierConfig":
        """Apply ``VMT_FV_*`` environment variables on top of ``base``."""
        environ = os.environ if environ is None else environ
        changes = {}
        for env_key, attr in _ENV_KEYS.items():
            if env_key in environ:
                changes[attr] = _convert(attr, environ[env_key], env_key)
        return (base or cls()).replace(**changes)

    def with_options(self, text: str) -> "VerifierConfig":
        """Apply an option string (see module docstring)."""
        scoped: Dict[str, List[Tuple[str, str]]] = {}
        changes = {}
        for scope, key, value in parse_options(text):
            if scope is None:
                changes[_attr(key)] = _convert(_attr(key), value, key)
            else:
                if scope not in ENGINES:
                    raise ConfigError(f"unknown technique scope \"{scope}\"")
                if key == "engine":
                    raise ConfigError(f"option \"engine\" cannot be scoped under \"{scope}\"")
                _convert(_attr(key), value, key)
                scoped.setdefault(scope, []).append((key, value))
        engine = changes.get("engine", self.engine)
        for key, value in scoped.get(engine, []):
            changes[_attr(key)] = _convert(_attr(key), value, key)
        return self.replace(**changes)


def _attr(key: str) -> str:
    if key not in _OPTION_KEYS:
        raise ConfigError(f"unknown option \"{key}\"")
    return _OPTION_KEYS[key]


def _convert(attr: str, value: str, key: str):
    value = value.strip()
    if attr in ("max_k", "jobs", "timeout_ms"):
        if attr == "timeout_ms" and value.lower() in ("none", "off"):
            return None
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"unknown option/value pair \"{key}: {value}\"") from None
    if attr == "trust_relations":
        if value.lower() in ("true", "on", "yes", "1"):
            return True
        if value.lower() in ("false", "off", "no", "0"):
            return False
        raise ConfigError(f"unknown option/value pair \"{key}: {value}\"")
    if attr == "smt_log" and value.lower() == "none":
        return None
    if not value:
        raise ConfigError(f"empty value for \"{key}\"")
    return value


_PAIR = re.compile(r"^\s*([A-Za-z_][\w]*)\s*:\s*([^\s,():]+)\s*$")
_SCOPE = re.compile(r"^\s*([A-Za-z_][\w]*)\s*\((.*)\)\s*$", re.S)


def _split_top(text: str) -> List[str]:
    parts, depth, cur = [], 0, []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ConfigError("unbalanced parenthesis in options")
        if ch == "," and depth == 0:
            parts.append("".join(cur))
            cur = []
        else:
            cur.append(ch)
    if depth != 0:
        raise ConfigError("unbalanced parenthesis in options")
    parts.append("".join(cur))
    return [p for p in parts if p.strip()]


def parse_options(text: str) -> List[Tuple[Optional[str], str, str]]:
    """Parse an option string into ``(scope, key, value)`` triples."""
    out: List[Tuple[Optional[str], str, str]] = []
    for part in _split_top(text):
        m = _PAIR.match(part)
        if m:
            out.append((None, m.group(1), m.group(2)))
            continue
        m = _SCOPE.match(part)
        if not m:
            raise ConfigError(f"cannot parse option \"{part.strip()}\"")
        for inner in _split_top(m.group(2)):
            pm = _PAIR.match(inner)
            if not pm:
                raise ConfigError(f"cannot parse option \"{inner.strip()}\" in scope \"{m.group(1)}\"")
            out.append((m.group(1), pm.group(1), pm.group(2)))
    return out
