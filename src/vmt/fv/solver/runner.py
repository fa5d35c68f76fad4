"""Run external SMT solvers on SMT-LIBv2 scripts.

The script is written to a temporary file handed to the solver as its last
argument. The first line of output must be the ``check-sat`` answer
(sat/unsat/unknown); any ``(get-value ...)`` answers follow it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple
import os
import shutil
import subprocess
import tempfile
import time

from ..errors import OracleResourceError, OracleTimeoutError
from .result import SolverResult


@dataclass(frozen=True)
class SolverSpec:
    """How to invoke one external SMT solver.

    Attributes:
        name: Short name reported as the oracle name
        argv: Command line, without the script path
    """

    name: str
    argv: Tuple[str, ...]

    @property
    def executable(self) -> str:
        return self.argv[0]


@dataclass(frozen=True)
class SolverRunResult:
    result: SolverResult
    stdout: str
    stderr: str
    returncode: int
    time_ms: float


# Model production must be on for get-value; z3 and yices honour the
# set-option in the script, cvc needs the flag as well.
_KNOWN_SOLVERS = {
    spec.name: spec for spec in (
        SolverSpec("z3", ("z3", "-smt2")),
        SolverSpec("cvc5", ("cvc5", "--lang", "smt2", "--produce-models")),
        SolverSpec("cvc4", ("cvc4", "--lang", "smt2", "--produce-models")),
        SolverSpec("yices", ("yices-smt2",)),
        SolverSpec("yices-smt2", ("yices-smt2",)),
    )
}

_ANSWERS = {r.value: r for r in SolverResult}


def resolve_solver(name_or_path: str) -> SolverSpec:
    """Known solver by name, else an executable path used as-is."""
    known = _KNOWN_SOLVERS.get(name_or_path)
    if known is not None:
        return known
    p = Path(name_or_path)
    return SolverSpec(p.name or name_or_path, (name_or_path,))


def is_solver_available(name_or_path: str) -> bool:
    exe = resolve_solver(name_or_path).executable
    if os.path.dirname(exe):
        return os.path.isfile(exe) and os.access(exe, os.X_OK)
    return shutil.which(exe) is not None


def pick_solver(preferred: Sequence[str] = ("z3", "cvc5", "yices-smt2")) -> Optional[SolverSpec]:
    """First installed solver, honouring ``$VMT_FV_SMT_SOLVER`` first."""
    candidates = list(preferred)
    override = os.environ.get("VMT_FV_SMT_SOLVER")
    if override:
        candidates.insert(0, override)
    for name in candidates:
        if is_solver_available(name):
            return resolve_solver(name)
    return None


def parse_solver_result(stdout: str) -> SolverResult:
    """The ``check-sat`` answer: first non-comment line of the output."""
    for line in stdout.splitlines():
        s = line.strip()
        if s and not s.startswith(";"):
            return _ANSWERS.get(s, SolverResult.UNKNOWN)
    return SolverResult.UNKNOWN


def run_solver(solver: SolverSpec, script: str, *, timeout_s: Optional[float] = None) -> SolverRunResult:
    """Run ``solver`` on an SMT-LIB ``script``.

    Raises:
        OracleTimeoutError: If the solver did not answer within ``timeout_s``
        OracleResourceError: If the solver could not be started
    """
    with tempfile.TemporaryDirectory(prefix="vmt-fv-") as td:
        path = Path(td) / "query.smt2"
        path.write_text(script)
        t0 = time.time()
        try:
            p = subprocess.run(
                [*solver.argv, str(path)],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise OracleTimeoutError(f"{solver.name} timed out after {timeout_s}s") from e
        except OSError as e:
            raise OracleResourceError(f"could not run {solver.name}: {e}") from e
        elapsed_ms = (time.time() - t0) * 1000.0

    return SolverRunResult(parse_solver_result(p.stdout), p.stdout, p.stderr, p.returncode, elapsed_ms)
