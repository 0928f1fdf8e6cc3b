"""
On-Call Allowance Resolution Engine (``award_engines.allowances``).

Responsibility
--------------
Given configured on-call allowance rules and a shift context, decide which
allowances are payable under stacking and mutual-exclusion constraints and
compute the total.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
May only import from ``award_kernel``.

Algorithm
---------
Only active rules take part.  They are ordered by ``priority`` descending,
then ``allowance_id`` ascending; the id is the tie-break for equal
priorities, so incoming list order never matters.

Pass 1 -- exclusion.  Rules are visited in order; a rule already excluded
is skipped and therefore cannot exclude others.  For each triggered rule R
(standby always; callback/recall/emergency only when called back):

* if R is not stackable, every lower-priority rule that is itself not
  stackable, or that lists R in ``excludes_with``, is excluded by R;
* every rule R lists in ``excludes_with`` with strictly lower priority is
  excluded by R.

Only triggered rules can be excluded; a callback that was never worked is
reported as not triggered, not as excluded.  The first (highest-priority)
excluder is the one recorded.

Pass 2 -- amounts.  Every rule gets an amount, excluded or not, so the
caller can show what exclusion saved.

Invariants enforced
-------------------
* A rule is only ever excluded by a rule of strictly higher priority.
* ``pay_without_exclusions == total_pay`` exactly when no step with a
  positive amount is excluded.
* ``pay_without_exclusions >= total_pay``; amounts are never negative.
* Identical inputs give identical output.

Failure modes
-------------
* Empty or all-inactive rule sets resolve to zero with no steps.
* Configuration problems (self-exclusion, unknown references, duplicate
  ids, negative rates) are reported in ``issues``, never raised.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import assert_never

from award_engines.tracer import traced_engine
from award_kernel.domain.allowances import (
    ZERO,
    AllowanceResolution,
    AllowanceRule,
    AppliedAllowance,
    ShiftContext,
    TriggerType,
)
from award_kernel.logging_config import get_logger

logger = get_logger("engines.allowances")

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _fmt_hours(value: Decimal) -> str:
    return f"{value.normalize():f}"


def priority_order(rules: Iterable[AllowanceRule]) -> list[AllowanceRule]:
    """Resolution order: priority descending, then allowance_id ascending."""
    return sorted(rules, key=lambda r: (-r.priority, r.allowance_id))


def rules_for_award(
    rules: Iterable[AllowanceRule],
    award: str | None,
) -> tuple[AllowanceRule, ...]:
    """Rules that apply to an award classification.

    A rule with no ``applicable_awards`` applies to every award; no award
    means every rule applies.
    """
    rules = tuple(rules)
    if award is None:
        return rules
    return tuple(r for r in rules if not r.applicable_awards or award in r.applicable_awards)


def is_triggered(rule: AllowanceRule, context: ShiftContext) -> bool:
    trigger = rule.trigger_type
    if trigger is TriggerType.STANDBY:
        return True
    elif (
        trigger is TriggerType.CALLBACK
        or trigger is TriggerType.RECALL
        or trigger is TriggerType.EMERGENCY
    ):
        return context.was_called_back
    else:
        assert_never(trigger)


def compute_amount(rule: AllowanceRule, context: ShiftContext) -> tuple[Decimal, str]:
    """Amount and human-readable basis for one rule, ignoring exclusion."""
    trigger = rule.trigger_type
    if trigger is TriggerType.STANDBY:
        if context.is_public_holiday and rule.public_holiday_multiplier:
            amount = rule.rate * rule.public_holiday_multiplier
            reason = (
                f"${rule.rate:.2f} x {_fmt_hours(rule.public_holiday_multiplier)}x "
                f"(public holiday)"
            )
        elif context.is_weekend and rule.weekend_rate:
            amount = rule.weekend_rate
            reason = f"Weekend rate: ${rule.weekend_rate:.2f}"
        else:
            amount = rule.rate
            reason = f"Base rate: ${rule.rate:.2f}"
    elif (
        trigger is TriggerType.CALLBACK
        or trigger is TriggerType.RECALL
        or trigger is TriggerType.EMERGENCY
    ):
        if not context.was_called_back:
            return ZERO, "Not called back"
        minimum = rule.minimum_callback_hours
        paid_hours = max(context.callback_hours, minimum)
        amount = paid_hours * rule.rate
        reason = f"{_fmt_hours(paid_hours)}h x ${rule.rate:.2f}/h"
        if context.callback_hours < minimum:
            reason += f" (min {_fmt_hours(minimum)}h applies)"
    else:
        assert_never(trigger)

    return max(ZERO, _money(amount)), reason


def validate_allowance_rules(rules: Iterable[AllowanceRule]) -> tuple[str, ...]:
    """Report configuration problems in a rule set without raising."""
    rules = list(rules)
    known = {r.allowance_id for r in rules}
    issues: list[str] = []
    seen: set[str] = set()

    for rule in rules:
        rid = rule.allowance_id
        if rid in seen:
            issues.append(f"Duplicate allowance id {rid}")
        seen.add(rid)
        if rid in rule.excludes_with:
            issues.append(
                f"Allowance {rid} lists itself in excludes_with; the self-reference is ignored"
            )
        for target in sorted(rule.excludes_with - {rid} - known):
            issues.append(f"Allowance {rid} excludes unknown allowance {target}")
        for name in ("rate", "weekend_rate", "public_holiday_multiplier", "callback_minimum_hours"):
            value = getattr(rule, name)
            if value is not None and value < 0:
                issues.append(f"Allowance {rid} has negative {name}; treated as zero pay")

    return tuple(issues)


def resolve_exclusions(
    ordered: list[AllowanceRule],
    context: ShiftContext,
) -> dict[str, AllowanceRule]:
    """Pass 1: map each excluded allowance id to the rule that excluded it."""
    by_id: dict[str, AllowanceRule] = {}
    for rule in ordered:
        by_id.setdefault(rule.allowance_id, rule)

    excluded: dict[str, AllowanceRule] = {}
    for rule in ordered:
        if rule.allowance_id in excluded:
            continue
        if not is_triggered(rule, context):
            continue

        if not rule.stackable:
            for other in ordered:
                if other.allowance_id == rule.allowance_id or other.priority >= rule.priority:
                    continue
                if not is_triggered(other, context):
                    continue
                if not other.stackable or rule.allowance_id in other.excludes_with:
                    excluded.setdefault(other.allowance_id, rule)

        for target_id in sorted(rule.excludes_with):
            if target_id == rule.allowance_id:
                continue
            other = by_id.get(target_id)
            if (
                other is not None
                and other.priority < rule.priority
                and is_triggered(other, context)
            ):
                excluded.setdefault(target_id, rule)

    return excluded


@traced_engine(
    "allowance_resolver",
    "1.0",
    fingerprint_fields=("rules", "context"),
)
def resolve_allowances(
    rules: Iterable[AllowanceRule],
    context: ShiftContext,
) -> AllowanceResolution:
    """Resolve payable allowances for one shift.

    Args:
        rules: Configured allowance rules; inactive rules are ignored.
        context: Weekend / public holiday / callback facts for the shift.

    Returns:
        AllowanceResolution with one step per active rule in resolution
        order, the payable total and the total had no exclusion applied.
    """
    rules = tuple(rules)
    issues = validate_allowance_rules(rules)
    active = [r for r in rules if r.is_active]

    if not active:
        return AllowanceResolution(issues=issues)

    ordered = priority_order(active)
    excluded = resolve_exclusions(ordered, context)

    steps: list[AppliedAllowance] = []
    total_pay = ZERO
    pay_without_exclusions = ZERO

    for rule in ordered:
        amount, reason = compute_amount(rule, context)
        triggered = is_triggered(rule, context)
        excluder = excluded.get(rule.allowance_id) if triggered else None
        applied = triggered and excluder is None

        if excluder is not None:
            reason = f'Excluded by "{excluder.name}" (mutual exclusion)'
        if triggered:
            pay_without_exclusions += amount
        if applied:
            total_pay += amount

        steps.append(AppliedAllowance(
            allowance_id=rule.allowance_id,
            name=rule.name,
            priority=rule.priority,
            amount=amount,
            applied=applied,
            reason=reason,
            is_excluded=excluder is not None,
            excluded_by=excluder.allowance_id if excluder is not None else None,
            triggered=triggered,
        ))

    if issues:
        logger.warning("allowance_rule_issues", extra={"issues": list(issues)})

    logger.info(
        "allowances_resolved",
        extra={
            "rule_count": len(ordered),
            "applied": [s.allowance_id for s in steps if s.applied],
            "excluded": sorted(excluded),
            "total_pay": str(total_pay),
            "pay_without_exclusions": str(pay_without_exclusions),
        },
    )
    return AllowanceResolution(
        steps=tuple(steps),
        total_pay=total_pay,
        pay_without_exclusions=pay_without_exclusions,
        issues=issues,
    )
