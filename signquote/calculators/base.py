"""
Shared helpers for cost calculators.

Geometry is in feet. Rate lookups that miss return 0.0 and are recorded,
so an incomplete price book undercharges instead of failing.
"""

import math
from abc import ABC, abstractmethod


class BaseCalculator(ABC):

    # One vertical mid-support per this many feet of width
    MID_SUPPORT_SPACING_FT = 3.0

    @abstractmethod
    def calculate(self, spec, prices):
        """Returns the cost breakdown for one specification."""
        pass

    # --- Geometry ---

    def area_sq_ft(self, width_ft: float, height_ft: float) -> float:
        return width_ft * height_ft

    def perimeter_ft(self, width_ft: float, height_ft: float) -> float:
        return 2.0 * (width_ft + height_ft)

    def mid_support_count(self, width_ft: float) -> int:
        """Vertical supports inside the frame, one per full 3 ft of width."""
        return math.floor(width_ft / self.MID_SUPPORT_SPACING_FT)

    # --- Rate lookups ---

    def lookup_rate(self, table: dict, key: str, label: str, missing: list) -> float:
        """
        Rate from a price table, 0.0 when absent.
        Appends `label` to `missing` on a miss so callers can flag it.
        """
        rate = (table or {}).get(key)
        if rate is None:
            missing.append(label)
            return 0.0
        return float(rate)

    def money(self, amount: float) -> float:
        return round(amount, 2)
