"""Translation of terms to solver inputs (Z3 objects, SMT-LIBv2 text)."""

from .type_translator import TypeTranslator
from .term_to_z3 import Z3TermTranslator
from .term_to_smt2 import Smt2Printer
from .naming import step_name

__all__ = ["TypeTranslator", "Z3TermTranslator", "Smt2Printer", "step_name"]
