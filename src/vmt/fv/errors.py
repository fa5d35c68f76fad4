"""
Error taxonomy for loading, elaboration and verification.

Elaboration errors are fatal to a whole load: later definitions may depend on
the offending form. Oracle errors are scoped to a single verification task
and are turned into ``Unknown`` verdicts by the engines.
"""
from typing import Optional, Sequence


class VmtError(Exception):
    """Root of all errors raised by this package."""


class ElaborationError(VmtError):
    """Fatal error detected before any verification runs.

    Attributes:
        form_id: Identifier of the offending form (system, property, ...)
        cause: Human-readable cause
    """

    def __init__(self, cause: str, form_id: Optional[str] = None):
        self.cause = cause
        self.form_id = form_id
        if form_id is not None:
            super().__init__(f"{form_id}: {cause}")
        else:
            super().__init__(cause)


class VmtSyntaxError(ElaborationError):
    """Malformed form or term (unknown operator, bad operator arity, ...)."""


class DeclarationError(ElaborationError):
    """Unknown identifier, redeclaration or unbound variable."""


class DuplicateDeclarationError(DeclarationError):
    pass


class UnknownSystemError(DeclarationError):
    pass


class UnknownPropertyError(DeclarationError):
    pass


class RegistryFrozenError(DeclarationError):
    """Declaration attempted after the load phase completed."""


class ArityError(ElaborationError):
    """Wrong number of actual arguments for an instance or a function call."""


class SortMismatchError(ElaborationError, TypeError):
    """A term's sort disagrees with the expected sort."""


class CompositionCycleError(ElaborationError):
    """A system (transitively) instantiates itself.

    Attributes:
        cycle: System ids along the cycle, first id repeated at the end
    """

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(
            "composition cycle: " + " -> ".join(self.cycle),
            form_id=self.cycle[0] if self.cycle else None)


class OracleError(VmtError):
    """Runtime failure of the decision procedure."""


class OracleTimeoutError(OracleError):
    pass


class OracleResourceError(OracleError):
    pass


class ConfigError(VmtError, ValueError):
    """Invalid configuration value or option string."""
