"""
Elaboration of composed transition systems.

A system's composition list is resolved by recursive substitution: every
subsystem is flattened first (memoized by system id), its formals are
replaced by the instance's actual arguments and its internal variables
(including formals the instance leaves unbound) are qualified with the
instance name. The composition graph is checked to be
acyclic before anything is flattened.
"""
import logging
from typing import Callable, Dict, List, Mapping, Set

from .errors import ArityError, CompositionCycleError, DeclarationError
from .model.system import FlattenedSystem, StateVariable, TransitionSystem
from .model.term import StateTag, StateVar, Term, conjoin, mentions_next, substitute
from .model.typecheck import SortChecker

logger = logging.getLogger(__name__)


class Flattener:
    """Flattens systems, caching one FlattenedSystem per system id.

    Args:
        lookup: Returns the TransitionSystem for an id (raises if unknown)
        symbol_sorts: Sorts of declared nullary symbols
        functions: ``define-fun`` definitions by name
    """

    def __init__(self,
                 lookup: Callable[[str], TransitionSystem],
                 symbol_sorts: Mapping[str, object],
                 functions: Mapping[str, object]):
        self._lookup = lookup
        self._symbol_sorts = symbol_sorts
        self._functions = functions
        self._cache: Dict[str, FlattenedSystem] = {}

    def is_flattened(self, system_id: str) -> bool:
        return system_id in self._cache

    def topological_order(self, root_id: str) -> List[str]:
        """Systems reachable from ``root_id``, subsystems before their parents.

        Raises:
            CompositionCycleError: If a system (transitively) instantiates itself
        """
        order: List[str] = []
        done: Set[str] = set()
        path: List[str] = []

        def visit(sid: str) -> None:
            if sid in done:
                return
            if sid in path:
                raise CompositionCycleError(path[path.index(sid):] + [sid])
            path.append(sid)
            for child in self._lookup(sid).child_ids():
                visit(child)
            path.pop()
            done.add(sid)
            order.append(sid)

        visit(root_id)
        return order

    def flatten(self, system_id: str) -> FlattenedSystem:
        """Return the flattened form of ``system_id``, computing it on first use."""
        cached = self._cache.get(system_id)
        if cached is not None:
            return cached
        for sid in self.topological_order(system_id):
            if sid not in self._cache:
                self._cache[sid] = self._flatten_one(self._lookup(sid))
        return self._cache[system_id]

    def _flatten_one(self, system: TransitionSystem) -> FlattenedSystem:
        init_parts: List[Term] = [system.init]
        trans_parts: List[Term] = [system.trans]
        local_vars: List[StateVariable] = []
        taken = set(system.signature.names())
        instance_names: Set[str] = set()
        checker = SortChecker(system.signature.sorts(), self._symbol_sorts, self._functions, system.id)

        for position, inst in enumerate(system.instances):
            child = self._cache[inst.system_id]
            name = inst.instance_name(position)
            if name in instance_names:
                raise DeclarationError(f"duplicate instance name '{name}'", system.id)
            instance_names.add(name)

            if len(inst.args) != len(child.signature):
                raise ArityError(
                    f"instance '{name}' of '{inst.system_id}' supplies {len(inst.args)} "
                    f"argument(s), signature has {len(child.signature)}", system.id)

            mapping: Dict[Term, Term] = {}
            unbound: List[StateVariable] = []
            for formal, binding in zip(child.signature, inst.args):
                if binding is None:
                    unbound.append(formal)
                    continue
                curr_actual, next_actual = binding
                what = f"actual for '{formal.name}' in instance '{name}'"
                if mentions_next(curr_actual):
                    raise DeclarationError(f"current-state {what} mentions next-state variables", system.id)
                checker.expect(curr_actual, formal.sort, what)
                checker.expect(next_actual, formal.sort, what)
                mapping[StateVar(formal.name, StateTag.CURR)] = curr_actual
                mapping[StateVar(formal.name, StateTag.NEXT)] = next_actual

            for local in unbound + list(child.locals):
                qualified = f"{name}.{local.name}"
                if qualified in taken:
                    raise DeclarationError(f"internal variable '{qualified}' collides with an existing variable",
                                           system.id)
                taken.add(qualified)
                local_vars.append(StateVariable(qualified, local.sort))
                mapping[StateVar(local.name, StateTag.CURR)] = StateVar(qualified, StateTag.CURR)
                mapping[StateVar(local.name, StateTag.NEXT)] = StateVar(qualified, StateTag.NEXT)

            init_parts.append(substitute(child.init, mapping))
            trans_parts.append(substitute(child.trans, mapping))

        logger.debug("flattened %s: %d instance(s), %d internal variable(s)",
                     system.id, len(system.instances), len(local_vars))
        return FlattenedSystem(
            system_id=system.id,
            signature=system.signature,
            locals=tuple(local_vars),
            init=conjoin(init_parts),
            trans=conjoin(trans_parts),
        )
