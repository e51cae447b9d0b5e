"""
Abstract base class for treatment calculators.

Input: already-resolved reference snapshots (fabric, template, option prices)
Output: EstimateResult

All arithmetic runs in Decimal. Floats only appear at the edges: inputs are
converted via str() and results are converted back after final rounding.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, localcontext

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Default decimal context precision; working precision only grows from here
BASE_PRECISION = 28


class BaseCalculator(ABC):
    """All treatment calculators inherit from this."""

    @abstractmethod
    def calculate(self, *args, **kwargs):
        pass

    # --- Helper methods for all calculators ---

    def to_decimal(self, value, default: Decimal = ZERO) -> Decimal:
        """Convert a number or numeric string to Decimal. Anything unparseable → default."""
        if value is None:
            return default
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).strip())
        except (ArithmeticError, ValueError, TypeError):
            return default

    def mm_to_m(self, millimeters) -> Decimal:
        return self.to_decimal(millimeters) / 1000

    def cm_to_m(self, centimeters) -> Decimal:
        return self.to_decimal(centimeters) / 100

    def ceil_div(self, numerator: Decimal, denominator: Decimal) -> int:
        """Whole units needed to cover numerator. Always rounds up."""
        return int((numerator / denominator).to_integral_value(rounding=ROUND_CEILING))

    def round_up_to_multiple(self, value: Decimal, step: Decimal) -> Decimal:
        """Smallest multiple of step that is >= value."""
        if step <= 0:
            return value
        return self.ceil_div(value, step) * step

    def round_up_to_increment(self, value: Decimal, increment: Decimal) -> Decimal:
        """
        Round up to the next sale increment (e.g. 0.1m).
        Never rounds down.
        """
        if increment <= 0:
            return value
        return (value / increment).to_integral_value(rounding=ROUND_CEILING) * increment

    def round_money(self, value: Decimal, places: int = 2) -> Decimal:
        """Half-up rounding to currency places."""
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)

    def as_float(self, value: Decimal) -> float:
        return float(value)

    def digits_in(self, value) -> int:
        """Integer plus fractional digits needed to hold value exactly."""
        d = self.to_decimal(value)
        if not d.is_finite() or d == 0:
            return 0
        return max(d.adjusted() + 1, 1) + max(-d.as_tuple().exponent, 0)

    @contextmanager
    def precise_context(self, *values):
        """
        Decimal context wide enough that products of the given values stay
        exact, so quantize never runs out of digits for large inputs.
        """
        precision = BASE_PRECISION + sum(self.digits_in(value) for value in values)
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, precision)
            yield ctx
