"""Names of state variables unrolled over time steps."""

from ..model.term import StateTag, StateVar


def step_name(name: str, step: int) -> str:
    """Name of variable ``name`` in the state at ``step``."""
    return f"{name}@{step}"


def step_of(var: StateVar, step: int) -> int:
    """State index an occurrence refers to when its term is placed at ``step``."""
    return step if var.tag == StateTag.CURR else step + 1
