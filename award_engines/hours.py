"""
Hours Classification Engine (``award_engines.hours``).

Responsibility
--------------
Split a week of worked minutes into regular, daily-overtime,
weekly-overtime and double-time buckets and price each bucket, including
day-type penalties on ordinary hours and casual loading.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
May only import from ``award_kernel``.

Algorithm
---------
Days are processed in date order, in integer minutes:

1. Minutes beyond the double-time ceiling are double time.
2. Minutes between the daily overtime threshold and the double-time
   ceiling are daily overtime.
3. The remaining minutes accumulate across the week; the portion beyond
   the weekly overtime threshold is weekly overtime, attributed to the
   day on which the threshold is crossed.  Daily overtime never enters
   this accumulation, so no minute is counted twice.
4. What is left is regular time.

Pricing
-------
* The effective rate is the base rate plus the casual loading percentage
  (zero for non-casual employees).  Every bucket is priced from it.
* Overtime and double time use their multipliers and carry no day penalty.
* Regular hours on a penalty day (Saturday, Sunday, public holiday,
  weekday evening or night) earn ``penalty_pay`` on top of ``regular_pay``:
  the regular hours times the effective rate times (multiplier - 1).

Invariants enforced
-------------------
* The four hour buckets sum exactly to ``total_hours`` (regular hours
  absorb minute-to-hour conversion residue).
* ``total_pay`` is the sum of the four cent-rounded pay buckets.
* No hourly rate -> all pay fields are zero; hours are still classified.

Failure modes
-------------
* Negative day minutes are treated as zero (data-quality input, not an
  error).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal

from award_engines.tracer import traced_engine
from award_kernel.domain.compliance import JurisdictionRules
from award_kernel.domain.overtime import (
    ZERO,
    DayClassification,
    OvertimeCalculation,
    OvertimeThresholds,
)
from award_kernel.domain.penalties import DayType
from award_kernel.domain.timesheet import (
    TimeEntry,
    Timesheet,
    minutes_of_day,
    minutes_to_hours,
)
from award_kernel.logging_config import get_logger

logger = get_logger("engines.hours")

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# Weekday loading windows: evening 18:00-22:00, night 22:00-06:00.
EVENING_START = time(18, 0)
NIGHT_START = time(22, 0)
NIGHT_END = time(6, 0)


def _to_minutes(hours: Decimal) -> int:
    return int((hours * 60).to_integral_value(rounding=ROUND_HALF_UP))


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _split_day(
    minutes: int,
    daily_threshold: int,
    double_time_ceiling: int,
) -> tuple[int, int, int]:
    """Return (straight-time candidate, daily overtime, double time) minutes."""
    double_time = max(0, minutes - double_time_ceiling)
    daily_overtime = max(0, min(minutes, double_time_ceiling) - daily_threshold)
    straight = min(minutes, daily_threshold, double_time_ceiling)
    return straight, daily_overtime, double_time


def day_type_for(
    work_date: date,
    entries: Iterable[TimeEntry] = (),
    public_holidays: Iterable[date] = (),
) -> DayType:
    """Penalty category of a day from its date and punches.

    Public holidays outrank weekends.  On weekdays, any completed entry
    reaching into the night window makes it a night shift; otherwise one
    finishing after 18:00 makes it an evening shift.
    """
    if work_date in set(public_holidays):
        return DayType.PUBLIC_HOLIDAY
    weekday = work_date.weekday()
    if weekday == 5:
        return DayType.SATURDAY
    if weekday == 6:
        return DayType.SUNDAY

    evening = False
    for entry in entries:
        if entry.clock_in is None or entry.clock_out is None or entry.has_punch_order_error:
            continue
        clock_out = minutes_of_day(entry.clock_out)
        if (
            entry.ends_next_day
            or entry.clock_in < NIGHT_END
            or clock_out > minutes_of_day(NIGHT_START)
        ):
            return DayType.NIGHT
        if clock_out > minutes_of_day(EVENING_START):
            evening = True
    return DayType.EVENING if evening else DayType.WEEKDAY


@traced_engine(
    "hours_classifier",
    "1.1",
    fingerprint_fields=(
        "daily_net_minutes", "hourly_rate", "thresholds",
        "day_types", "casual_loading_percent",
    ),
)
def classify_hours(
    daily_net_minutes: Mapping[date, int],
    weekly_total_minutes: int | None,
    hourly_rate: Decimal | None,
    thresholds: OvertimeThresholds,
    *,
    day_types: Mapping[date, DayType] | None = None,
    casual_loading_percent: Decimal = ZERO,
) -> OvertimeCalculation:
    """Classify a week of worked minutes and compute pay per bucket.

    Args:
        daily_net_minutes: Net minutes worked per calendar day.
        weekly_total_minutes: Caller's weekly total, used as a cross-check
            only.  The sum of ``daily_net_minutes`` is authoritative.
        hourly_rate: Base hourly rate, or None when pay is not required.
        thresholds: Daily/weekly overtime thresholds, multipliers and
            penalty rates.
        day_types: Penalty category per day; days not listed are plain
            weekdays.
        casual_loading_percent: Loading added to the base rate; zero for
            non-casual employees.

    Returns:
        OvertimeCalculation with hour buckets, pay buckets and a per-day
        breakdown.
    """
    day_types = day_types or {}
    daily_threshold = _to_minutes(thresholds.overtime_threshold_daily)
    weekly_threshold = _to_minutes(thresholds.overtime_threshold_weekly)
    double_time_ceiling = _to_minutes(thresholds.double_time_ceiling)

    days: list[DayClassification] = []
    straight_accumulated = 0
    total_minutes = 0
    daily_ot_total = 0
    weekly_ot_total = 0
    double_time_total = 0

    for work_date in sorted(daily_net_minutes):
        minutes = max(0, daily_net_minutes[work_date])
        straight, daily_ot, double_time = _split_day(
            minutes, daily_threshold, double_time_ceiling,
        )

        before = straight_accumulated
        straight_accumulated += straight
        weekly_ot = (
            max(0, straight_accumulated - weekly_threshold)
            - max(0, before - weekly_threshold)
        )

        total_minutes += minutes
        daily_ot_total += daily_ot
        weekly_ot_total += weekly_ot
        double_time_total += double_time

        day_total = minutes_to_hours(minutes)
        day_daily_ot = minutes_to_hours(daily_ot)
        day_weekly_ot = minutes_to_hours(weekly_ot)
        day_double = minutes_to_hours(double_time)
        days.append(DayClassification(
            work_date=work_date,
            regular_hours=day_total - day_daily_ot - day_weekly_ot - day_double,
            daily_overtime_hours=day_daily_ot,
            weekly_overtime_hours=day_weekly_ot,
            double_time_hours=day_double,
            day_type=day_types.get(work_date, DayType.WEEKDAY),
        ))

    if weekly_total_minutes is not None and weekly_total_minutes != total_minutes:
        logger.warning(
            "weekly_total_mismatch",
            extra={
                "weekly_total_minutes": weekly_total_minutes,
                "daily_sum_minutes": total_minutes,
            },
        )

    total_hours = minutes_to_hours(total_minutes)
    daily_ot_hours = minutes_to_hours(daily_ot_total)
    weekly_ot_hours = minutes_to_hours(weekly_ot_total)
    double_time_hours = minutes_to_hours(double_time_total)
    regular_hours = total_hours - (daily_ot_hours + weekly_ot_hours + double_time_hours)

    if hourly_rate is None:
        effective_rate = None
        regular_pay = penalty_pay = overtime_pay = double_time_pay = ZERO
    else:
        effective_rate = hourly_rate * (1 + casual_loading_percent / HUNDRED)
        regular_pay = _money(regular_hours * effective_rate)
        penalty_pay = _money(sum(
            (
                max(ZERO, day.regular_hours)
                * effective_rate
                * (thresholds.penalty_rates.multiplier_for(day.day_type) - 1)
                for day in days
            ),
            ZERO,
        ))
        overtime_pay = _money(
            (daily_ot_hours + weekly_ot_hours)
            * effective_rate
            * thresholds.overtime_multiplier
        )
        double_time_pay = _money(
            double_time_hours * effective_rate * thresholds.double_time_multiplier
        )

    result = OvertimeCalculation(
        total_hours=total_hours,
        regular_hours=regular_hours,
        daily_overtime_hours=daily_ot_hours,
        weekly_overtime_hours=weekly_ot_hours,
        double_time_hours=double_time_hours,
        regular_pay=regular_pay,
        penalty_pay=penalty_pay,
        overtime_pay=overtime_pay,
        double_time_pay=double_time_pay,
        total_pay=regular_pay + penalty_pay + overtime_pay + double_time_pay,
        days=tuple(days),
        effective_hourly_rate=effective_rate,
    )

    logger.debug(
        "hours_classified",
        extra={
            "day_count": len(days),
            "total_hours": str(total_hours),
            "overtime_hours": str(result.overtime_hours),
            "double_time_hours": str(double_time_hours),
            "penalty_days": [d.day_type.value for d in days if d.day_type is not DayType.WEEKDAY],
            "priced": hourly_rate is not None,
        },
    )
    return result


def classify_timesheet(
    timesheet: Timesheet,
    hourly_rate: Decimal | None,
    jurisdiction: JurisdictionRules,
    public_holidays: Iterable[date] = (),
) -> OvertimeCalculation:
    """Classify a timesheet's entries under a jurisdiction's rules.

    Day types come from each day's date and punches; casual loading applies
    when the timesheet belongs to a casual employee.
    """
    holidays = frozenset(public_holidays)
    daily = timesheet.daily_net_minutes()
    day_types = {
        work_date: day_type_for(
            work_date,
            (e for e in timesheet.entries if e.work_date == work_date),
            holidays,
        )
        for work_date in daily
    }
    return classify_hours(
        daily,
        timesheet.total_net_minutes,
        hourly_rate,
        OvertimeThresholds.from_jurisdiction(jurisdiction),
        day_types=day_types,
        casual_loading_percent=(
            jurisdiction.casual_loading_percent if timesheet.is_casual else ZERO
        ),
    )
