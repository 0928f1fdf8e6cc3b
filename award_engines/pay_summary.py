"""
award_engines.pay_summary -- Combine hours pay and allowance pay.

Pure read-only aggregation of an ``OvertimeCalculation`` and the
per-shift ``AllowanceResolution`` results into one pay summary line set.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from award_kernel.domain.allowances import AllowanceResolution
from award_kernel.domain.overtime import OvertimeCalculation

ZERO = Decimal("0")


@dataclass(frozen=True)
class AllowanceLine:
    """Total paid for one allowance across all resolved shifts."""

    allowance_id: str
    name: str
    shifts_paid: int
    amount: Decimal


@dataclass(frozen=True)
class PaySummary:
    """Gross pay for the week, split by source."""

    regular_pay: Decimal = ZERO
    penalty_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    double_time_pay: Decimal = ZERO
    hours_pay: Decimal = ZERO
    allowance_pay: Decimal = ZERO
    allowance_savings: Decimal = ZERO
    gross_pay: Decimal = ZERO
    allowance_lines: tuple[AllowanceLine, ...] = ()


def summarize_pay(
    overtime: OvertimeCalculation,
    allowance_resolutions: Iterable[AllowanceResolution] = (),
) -> PaySummary:
    """Aggregate classified hours pay with applied allowances.

    Allowance lines are ordered by first appearance across the resolutions.
    """
    lines: dict[str, AllowanceLine] = {}
    allowance_pay = ZERO
    savings = ZERO

    for resolution in allowance_resolutions:
        allowance_pay += resolution.total_pay
        savings += resolution.exclusion_savings
        for step in resolution.applied_steps:
            line = lines.get(step.allowance_id)
            if line is None:
                lines[step.allowance_id] = AllowanceLine(
                    allowance_id=step.allowance_id,
                    name=step.name,
                    shifts_paid=1,
                    amount=step.amount,
                )
            else:
                lines[step.allowance_id] = AllowanceLine(
                    allowance_id=line.allowance_id,
                    name=line.name,
                    shifts_paid=line.shifts_paid + 1,
                    amount=line.amount + step.amount,
                )

    hours_pay = overtime.total_pay
    return PaySummary(
        regular_pay=overtime.regular_pay,
        penalty_pay=overtime.penalty_pay,
        overtime_pay=overtime.overtime_pay,
        double_time_pay=overtime.double_time_pay,
        hours_pay=hours_pay,
        allowance_pay=allowance_pay,
        allowance_savings=savings,
        gross_pay=hours_pay + allowance_pay,
        allowance_lines=tuple(lines.values()),
    )
