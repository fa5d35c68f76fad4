"""
Transition-system data model.

Defines the declarations a loaded input consists of: state signatures,
functions, transition systems with their composition lists, and the
properties/relations attached to them. All objects are immutable once built.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union

from ..errors import DuplicateDeclarationError
from .term import Sort, Term, mentions_next, prime


@dataclass(frozen=True)
class StateVariable:
    """A declared state variable."""
    name: str
    sort: Sort


@dataclass(frozen=True)
class StateSignature:
    """Ordered, name-unique set of state variables."""
    variables: Tuple[StateVariable, ...] = ()

    def __post_init__(self):
        seen = set()
        for v in self.variables:
            if v.name in seen:
                raise DuplicateDeclarationError(f"state variable '{v.name}' declared twice")
            seen.add(v.name)

    @classmethod
    def of(cls, *decls: Tuple[str, Union[str, Sort]]) -> "StateSignature":
        """Build a signature from ``(name, sort)`` pairs."""
        return cls(tuple(StateVariable(name, Sort.of(sort)) for name, sort in decls))

    def __iter__(self) -> Iterator[StateVariable]:
        return iter(self.variables)

    def __len__(self) -> int:
        return len(self.variables)

    def __contains__(self, name: str) -> bool:
        return any(v.name == name for v in self.variables)

    def __getitem__(self, index: int) -> StateVariable:
        return self.variables[index]

    def names(self) -> Tuple[str, ...]:
        return tuple(v.name for v in self.variables)

    def sorts(self) -> Dict[str, Sort]:
        return {v.name: v.sort for v in self.variables}


@dataclass(frozen=True)
class FunctionDef:
    """A ``define-fun``: reusable function over terms."""
    name: str
    params: Tuple[Tuple[str, Sort], ...]
    sort: Sort
    body: Term


@dataclass(frozen=True)
class FunctionDecl:
    """A ``declare-fun`` nullary symbol: an unconstrained rigid value."""
    name: str
    sort: Sort


Actual = Union[None, Term, Tuple[Term, Term]]


@dataclass(frozen=True)
class SubsystemInstance:
    """Instantiation of a subsystem inside a parent system.

    Attributes:
        system_id: Id of the instantiated system
        args: One ``(curr_actual, next_actual)`` pair per formal of the
              subsystem's signature, in signature order; None leaves the
              formal unbound, making it an internal variable of the instance
        name: Instance name used to qualify the subsystem's internal
              variables; defaults to ``<system_id>#<position>``
    """
    system_id: str
    args: Tuple[Optional[Tuple[Term, Term]], ...] = ()
    name: Optional[str] = None

    @classmethod
    def of(cls, system_id: str, *actuals: Actual, name: Optional[str] = None) -> "SubsystemInstance":
        """Build an instance from actual arguments.

        A pair gives the current and next actuals explicitly. A single term
        written over current-state variables also determines the next actual,
        obtained by shifting it to the next state. None leaves the formal
        unbound.
        """
        pairs = []
        for a in actuals:
            if a is None:
                pairs.append(None)
            elif isinstance(a, tuple):
                pairs.append((a[0], a[1]))
            else:
                pairs.append((a, prime(a)))
        return cls(system_id, tuple(pairs), name)

    def instance_name(self, position: int) -> str:
        return self.name if self.name is not None else f"{self.system_id}#{position}"


@dataclass(frozen=True)
class TransitionSystem:
    """A named transition system.

    Attributes:
        id: Unique system id
        signature: State signature
        init: Initial-state predicate (current state only)
        trans: Transition predicate (current and next state)
        instances: Composition list
    """
    id: str
    signature: StateSignature
    init: Term
    trans: Term
    instances: Tuple[SubsystemInstance, ...] = ()

    def child_ids(self) -> Tuple[str, ...]:
        return tuple(inst.system_id for inst in self.instances)


class PropertyKind(Enum):
    SAFETY = "safety"
    RELATION = "relation"


@dataclass(frozen=True)
class Property:
    """A named predicate bound to a system."""
    id: str
    system_id: str
    kind: PropertyKind
    term: Term

    @property
    def is_relation(self) -> bool:
        return self.kind == PropertyKind.RELATION

    @property
    def is_two_state(self) -> bool:
        """True if the predicate mentions next-state variables."""
        return mentions_next(self.term)


@dataclass(frozen=True)
class FlattenedSystem:
    """Composition-free form of a system.

    ``init`` and ``trans`` only mention the system's own signature and the
    path-qualified internal variables in ``locals``.
    """
    system_id: str
    signature: StateSignature
    locals: Tuple[StateVariable, ...]
    init: Term
    trans: Term

    @property
    def variables(self) -> Tuple[StateVariable, ...]:
        return self.signature.variables + self.locals

    def sorts(self) -> Dict[str, Sort]:
        return {v.name: v.sort for v in self.variables}
