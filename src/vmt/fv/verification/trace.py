"""Counterexample trace representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..model.system import FlattenedSystem
from ..model.term import Term, evaluate


@dataclass
class CounterexampleTrace:
    """A counterexample trace showing a property violation.

    Attributes:
        depth: Index of the last state
        states: One ``{variable: value}`` assignment per step ``0..depth``
        violation_time: Step at which the property is false
        constants: Values of declared symbols (the same at every step)
    """

    depth: int
    states: List[Dict[str, Any]]
    violation_time: int
    constants: Dict[str, Any] = field(default_factory=dict)

    def value(self, name: str, step: int) -> Any:
        return self.states[step][name]

    def values(self, name: str) -> List[Any]:
        """Values of one variable along the whole trace."""
        return [st[name] for st in self.states]

    def format_trace(self) -> str:
        lines: List[str] = []
        lines.append(f"Counterexample trace (length {self.depth}):")
        lines.append("")
        if self.constants:
            for sym, val in sorted(self.constants.items()):
                lines.append(f"  {sym} = {val}")
            lines.append("")
        for k, st in enumerate(self.states):
            lines.append(f"Time {k}:")
            for sig, val in sorted(st.items()):
                lines.append(f"  {sig} = {val}")
            lines.append("")
        lines.append(f"Property violated at time {self.violation_time}")
        return "\n".join(lines)

    def replays(self,
                flat: FlattenedSystem,
                prop: Term,
                functions: Optional[Mapping[str, Any]] = None) -> bool:
        """Check the trace concretely against a flattened system.

        True if state 0 satisfies init, consecutive states satisfy trans and
        ``prop`` is false at ``violation_time``.
        """
        def ev(term: Term, k: int) -> Any:
            nxt = self.states[k + 1] if k + 1 < len(self.states) else None
            return evaluate(term, self.states[k], nxt, self.constants, functions)

        if not ev(flat.init, 0):
            return False
        for k in range(len(self.states) - 1):
            if not ev(flat.trans, k):
                return False
        return not ev(prop, self.violation_time)


def extract_trace(oracle: Any,
                  variables: Sequence[Any],
                  symbols: Sequence[str],
                  last_state: int,
                  violation_time: int) -> CounterexampleTrace:
    """Read a trace for states ``0..last_state`` from the oracle's model."""
    states = [
        {v.name: oracle.model_value(v.name, k) for v in variables}
        for k in range(last_state + 1)
    ]
    constants = {s: oracle.model_value(s, None) for s in symbols}
    return CounterexampleTrace(depth=last_state, states=states,
                               violation_time=violation_time, constants=constants)
