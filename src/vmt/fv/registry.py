"""
Registry of systems, functions, properties and relations.

The registry is built during a single load phase and frozen afterwards. It
owns the memoized flattened systems, which must all be computed before
concurrent verification starts (see ``flatten_all``).
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import (
    CompositionCycleError,
    DeclarationError,
    DuplicateDeclarationError,
    RegistryFrozenError,
    UnknownPropertyError,
    UnknownSystemError,
)
from .flatten import Flattener
from .model.system import (
    FlattenedSystem,
    FunctionDecl,
    FunctionDef,
    Property,
    PropertyKind,
    TransitionSystem,
)
from .model.term import Sort, StateTag, Term, mentions_next, state_vars, symbols
from .model.typecheck import SortChecker

logger = logging.getLogger(__name__)


class Registry:
    """Process-wide table of the declarations of one loaded input.

    All identifiers (systems, functions, symbols, properties) share a single
    namespace.
    """

    def __init__(self):
        self._systems: Dict[str, TransitionSystem] = {}
        self._functions: Dict[str, FunctionDef] = {}
        self._symbols: Dict[str, FunctionDecl] = {}
        self._properties: Dict[str, Property] = {}
        self._symbol_sorts: Dict[str, Sort] = {}
        self._frozen = False
        self._flattener = Flattener(self.lookup, self._symbol_sorts, self._functions)

    # Load phase

    def _check_new(self, ident: str) -> None:
        if self._frozen:
            raise RegistryFrozenError("registry is read-only after load", ident)
        if (ident in self._systems or ident in self._functions
                or ident in self._symbols or ident in self._properties):
            raise DuplicateDeclarationError("identifier already declared", ident)

    def declare_symbol(self, decl: FunctionDecl) -> None:
        """Register a ``declare-fun`` nullary symbol."""
        self._check_new(decl.name)
        self._symbols[decl.name] = decl
        self._symbol_sorts[decl.name] = decl.sort

    def declare_function(self, fdef: FunctionDef) -> None:
        """Register a ``define-fun``; its body may only use its parameters,
        declared symbols and previously defined functions."""
        self._check_new(fdef.name)
        if state_vars(fdef.body):
            raise DeclarationError("function bodies cannot mention state variables", fdef.name)
        names = [p for p, _ in fdef.params]
        if len(set(names)) != len(names):
            raise DuplicateDeclarationError("duplicate parameter name", fdef.name)
        scope = dict(self._symbol_sorts)
        scope.update(dict(fdef.params))
        SortChecker({}, scope, self._functions, fdef.name).expect(fdef.body, fdef.sort, "function body")
        self._functions[fdef.name] = fdef

    def declare(self, system: TransitionSystem) -> None:
        """Register a transition system.

        Raises:
            DuplicateDeclarationError: If the id is taken
            CompositionCycleError: If the system instantiates itself
            UnknownSystemError: If an instance references an undeclared system
        """
        self._check_new(system.id)
        for child in system.child_ids():
            if child == system.id:
                raise CompositionCycleError([system.id, system.id])
            if child not in self._systems:
                raise UnknownSystemError(f"instantiates unknown system '{child}'", system.id)
        self._check_system(system)
        self._systems[system.id] = system
        logger.debug("declared system %s (%d variable(s), %d instance(s))",
                     system.id, len(system.signature), len(system.instances))

    def declare_many(self, systems: Iterable[TransitionSystem]) -> None:
        """Register a group of systems that may reference each other.

        Composition references are resolved against the whole group; cycles
        inside the group are reported by flattening.
        """
        systems = list(systems)
        group = set()
        for s in systems:
            self._check_new(s.id)
            if s.id in group:
                raise DuplicateDeclarationError("identifier already declared", s.id)
            group.add(s.id)
        for s in systems:
            for child in s.child_ids():
                if child not in self._systems and child not in group:
                    raise UnknownSystemError(f"instantiates unknown system '{child}'", s.id)
            self._check_system(s)
        for s in systems:
            self._systems[s.id] = s

    def _check_system(self, system: TransitionSystem) -> None:
        checker = SortChecker(system.signature.sorts(), self._symbol_sorts, self._functions, system.id)
        checker.expect(system.init, Sort.BOOL, "init predicate")
        checker.expect(system.trans, Sort.BOOL, "transition predicate")
        if mentions_next(system.init):
            raise DeclarationError("init predicate mentions next-state variables", system.id)

    def define_prop(self, prop_id: str, system_id: str, term: Term) -> Property:
        """Attach a safety property (current state only) to a system."""
        return self._define(Property(prop_id, system_id, PropertyKind.SAFETY, term))

    def define_rel(self, rel_id: str, system_id: str, term: Term) -> Property:
        """Attach a relation (current and next state) to a system."""
        return self._define(Property(rel_id, system_id, PropertyKind.RELATION, term))

    def _define(self, prop: Property) -> Property:
        self._check_new(prop.id)
        if prop.system_id not in self._systems:
            raise UnknownSystemError(f"unknown system '{prop.system_id}'", prop.id)
        flat = self.flatten(prop.system_id)
        sorts = flat.sorts()
        for v in state_vars(prop.term):
            if v.name not in sorts:
                raise DeclarationError(f"variable '{v.name}' is not a variable of system '{prop.system_id}'",
                                       prop.id)
            if v.tag == StateTag.NEXT and prop.kind == PropertyKind.SAFETY:
                raise DeclarationError("safety properties cannot mention next-state variables", prop.id)
        for name in symbols(prop.term):
            if name not in self._symbol_sorts:
                raise DeclarationError(f"unbound symbol '{name}'", prop.id)
        SortChecker(sorts, self._symbol_sorts, self._functions, prop.id).expect(prop.term, Sort.BOOL, "property")
        self._properties[prop.id] = prop
        return prop

    def freeze(self) -> None:
        """End the load phase; further declarations raise RegistryFrozenError."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # Read-only access

    def lookup(self, system_id: str) -> TransitionSystem:
        try:
            return self._systems[system_id]
        except KeyError:
            raise UnknownSystemError(f"unknown system '{system_id}'", system_id) from None

    def lookup_property(self, prop_id: str) -> Property:
        try:
            return self._properties[prop_id]
        except KeyError:
            raise UnknownPropertyError(f"unknown property '{prop_id}'", prop_id) from None

    def properties_of(self, system_id: str, kind: Optional[PropertyKind] = None) -> List[Property]:
        """Properties attached to ``system_id`` in declaration order."""
        return [p for p in self._properties.values()
                if p.system_id == system_id and (kind is None or p.kind == kind)]

    def relations_of(self, system_id: str) -> List[Property]:
        return self.properties_of(system_id, PropertyKind.RELATION)

    @property
    def systems(self) -> Mapping[str, TransitionSystem]:
        return dict(self._systems)

    @property
    def functions(self) -> Mapping[str, FunctionDef]:
        return self._functions

    @property
    def symbols(self) -> Mapping[str, FunctionDecl]:
        return self._symbols

    # Elaboration

    def flatten(self, system_id: str) -> FlattenedSystem:
        """Flattened form of a system, memoized for the registry's lifetime."""
        self.lookup(system_id)
        return self._flattener.flatten(system_id)

    def flatten_all(self) -> None:
        """Flatten every declared system, surfacing all elaboration errors."""
        for sid in self._systems:
            self.flatten(sid)
