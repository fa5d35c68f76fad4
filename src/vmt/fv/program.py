"""
Loading and running a sequence of top-level forms.

The forms are the in-memory counterpart of an input file: function
declarations and definitions, system definitions, properties, relations and
``verify`` requests. Loading is all-or-nothing: the first elaboration error
aborts the whole input. Verification requests are then run in order, each
independently of the others.
"""
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .config import VerifierConfig
from .errors import ElaborationError, VmtSyntaxError
from .model.system import (
    FunctionDecl,
    FunctionDef,
    StateSignature,
    StateVariable,
    SubsystemInstance,
    TransitionSystem,
)
from .model.term import Sort, Term
from .registry import Registry
from .verification.result import VerificationResult
from .verification.verifier import OracleFactory, VerificationTask, Verifier

logger = logging.getLogger(__name__)

SortLike = Union[str, Sort]


@dataclass(frozen=True)
class DefineFun:
    name: str
    params: Tuple[Tuple[str, SortLike], ...]
    sort: SortLike
    body: Term


@dataclass(frozen=True)
class DeclareFun:
    name: str
    sort: SortLike


@dataclass(frozen=True)
class DefineSys:
    id: str
    signature: Tuple[Tuple[str, SortLike], ...]
    init: Term
    trans: Term
    instances: Tuple[SubsystemInstance, ...] = ()


@dataclass(frozen=True)
class DefineProp:
    id: str
    system_id: str
    term: Term


@dataclass(frozen=True)
class DefineRel:
    id: str
    system_id: str
    term: Term


@dataclass(frozen=True)
class Verify:
    system_id: str
    property_ids: Tuple[str, ...] = ()


Form = Union[DefineFun, DeclareFun, DefineSys, DefineProp, DefineRel, Verify]


class ExitCode(IntEnum):
    """Exit status convention for drivers."""
    PASS = 0
    FAIL = 1
    FATAL = 2
    UNKNOWN = 3


@dataclass
class Program:
    """A loaded input: frozen registry plus its verification requests."""
    registry: Registry
    requests: List[VerificationTask] = field(default_factory=list)


def _signature(decls: Sequence[Tuple[str, SortLike]]) -> StateSignature:
    return StateSignature(tuple(StateVariable(name, Sort.of(sort)) for name, sort in decls))


def load_program(forms: Iterable[Form]) -> Program:
    """Build and freeze a registry from ``forms``.

    Raises:
        ElaborationError: On the first syntax, declaration, arity, sort or
            composition-cycle error
    """
    registry = Registry()
    requests: List[VerificationTask] = []
    for form in forms:
        try:
            _load_form(registry, requests, form)
        except ElaborationError as e:
            if e.form_id is not None:
                raise
            raise type(e)(e.cause, _form_id(form)) from e
    registry.flatten_all()
    registry.freeze()
    logger.debug("loaded %d system(s), %d request(s)", len(registry.systems), len(requests))
    return Program(registry, requests)


def _form_id(form: Form) -> Optional[str]:
    return getattr(form, "id", None) or getattr(form, "name", None) or getattr(form, "system_id", None)


def _load_form(registry: Registry, requests: List[VerificationTask], form: Form) -> None:
    if isinstance(form, DeclareFun):
        registry.declare_symbol(FunctionDecl(form.name, Sort.of(form.sort)))
    elif isinstance(form, DefineFun):
        params = tuple((p, Sort.of(s)) for p, s in form.params)
        registry.declare_function(FunctionDef(form.name, params, Sort.of(form.sort), form.body))
    elif isinstance(form, DefineSys):
        registry.declare(TransitionSystem(form.id, _signature(form.signature), form.init, form.trans,
                                          tuple(form.instances)))
    elif isinstance(form, DefineProp):
        registry.define_prop(form.id, form.system_id, form.term)
    elif isinstance(form, DefineRel):
        registry.define_rel(form.id, form.system_id, form.term)
    elif isinstance(form, Verify):
        task = VerificationTask(form.system_id, tuple(form.property_ids))
        # Unknown ids in a request are load errors, not verification outcomes
        Verifier(registry).targets(task)
        requests.append(task)
    else:
        raise VmtSyntaxError(f"unknown form {form!r}")


@dataclass
class ProgramResult:
    """Outcome of running a whole input."""
    results: List[VerificationResult] = field(default_factory=list)
    fatal: Optional[ElaborationError] = None

    @property
    def exit_code(self) -> ExitCode:
        if self.fatal is not None:
            return ExitCode.FATAL
        if any(r.any_failed for r in self.results):
            return ExitCode.FAIL
        if any(r.any_unknown for r in self.results):
            return ExitCode.UNKNOWN
        return ExitCode.PASS

    def lines(self) -> List[str]:
        if self.fatal is not None:
            return [f"error: {self.fatal}"]
        out: List[str] = []
        for r in self.results:
            out.extend(r.lines())
        return out


def run_program(forms: Iterable[Form],
                config: Optional[VerifierConfig] = None,
                oracle_factory: Optional[OracleFactory] = None) -> ProgramResult:
    """Load ``forms`` and run every ``verify`` request in order.

    Elaboration errors are reported in the result (exit code 2) and prevent
    any verification.
    """
    config = config or VerifierConfig()
    try:
        program = load_program(forms)
    except ElaborationError as e:
        logger.error("%s", e)
        return ProgramResult(fatal=e)
    verifier = Verifier(program.registry, config, oracle_factory)
    return ProgramResult(results=verifier.verify_all(program.requests))
