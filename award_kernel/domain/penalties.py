"""
Penalty rate domain types (``award_kernel.domain.penalties``).

Day types and the per-award penalty rates applied to ordinary hours worked
on weekends, public holidays and weekday evenings or nights.

Invariants enforced
-------------------
* Day multipliers are at least 1 (a penalty never reduces ordinary pay).
* Evening and night loadings are non-negative percentages.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ONE = Decimal("1")
HUNDRED = Decimal("100")


class DayType(str, Enum):
    """Penalty category of a worked day."""
    WEEKDAY = "weekday"
    EVENING = "evening"
    NIGHT = "night"
    SATURDAY = "saturday"
    SUNDAY = "sunday"
    PUBLIC_HOLIDAY = "public_holiday"


@dataclass(frozen=True)
class PenaltyRates:
    """Ordinary-hours penalty rates for one award.

    ``saturday``, ``sunday`` and ``public_holiday`` are multipliers of the
    base rate (1.5 is 150%).  ``evening_loading`` and ``night_loading`` are
    percentages added to the base rate on weekdays.  The defaults apply no
    penalty at all.
    """

    saturday: Decimal = ONE
    sunday: Decimal = ONE
    public_holiday: Decimal = ONE
    evening_loading: Decimal = Decimal("0")
    night_loading: Decimal = Decimal("0")

    def __post_init__(self):
        for name in ("saturday", "sunday", "public_holiday"):
            if getattr(self, name) < ONE:
                raise ValueError(f"{name} multiplier must be at least 1")
        for name in ("evening_loading", "night_loading"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def multiplier_for(self, day_type: DayType) -> Decimal:
        """Multiplier applied to ordinary hours worked on ``day_type``."""
        if day_type is DayType.SATURDAY:
            return self.saturday
        if day_type is DayType.SUNDAY:
            return self.sunday
        if day_type is DayType.PUBLIC_HOLIDAY:
            return self.public_holiday
        if day_type is DayType.NIGHT:
            return ONE + self.night_loading / HUNDRED
        if day_type is DayType.EVENING:
            return ONE + self.evening_loading / HUNDRED
        return ONE
