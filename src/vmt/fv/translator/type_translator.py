"""
Sort and literal translation to Z3.
"""
from fractions import Fraction
from typing import Any, Optional
import z3

from ..model.term import Sort


class TypeTranslator:
    """Translates sorts and constants to Z3 objects in one Z3 context.

    Mapping:
        Bool -> Bool
        Int  -> Int
        Real -> Real
    """

    def __init__(self, ctx: Optional[z3.Context] = None):
        self.ctx = ctx or z3.main_ctx()

    def translate_sort(self, sort: Sort) -> Any:
        if sort == Sort.BOOL:
            return z3.BoolSort(self.ctx)
        if sort == Sort.INT:
            return z3.IntSort(self.ctx)
        return z3.RealSort(self.ctx)

    def make_const(self, name: str, sort: Sort) -> Any:
        """Create a Z3 constant of the given sort."""
        return z3.Const(name, self.translate_sort(sort))

    def make_literal(self, value: Any, sort: Sort) -> Any:
        if sort == Sort.BOOL:
            return z3.BoolVal(bool(value), self.ctx)
        if sort == Sort.INT:
            return z3.IntVal(int(value), self.ctx)
        value = Fraction(value)
        return z3.RealVal(f"{value.numerator}/{value.denominator}", self.ctx)

    @staticmethod
    def to_python(value: Any) -> Any:
        """Convert a Z3 model value to a Python value.

        Booleans and integers map to ``bool``/``int``, rationals to
        ``Fraction``; anything else is returned as its string form.
        """
        if z3.is_true(value):
            return True
        if z3.is_false(value):
            return False
        if z3.is_int_value(value):
            return value.as_long()
        if z3.is_rational_value(value):
            return Fraction(value.numerator_as_long(), value.denominator_as_long())
        return str(value)
