"""
award_engines.approval -- Tiered timesheet approval routing.

Responsibility:
    Derive an approval chain from a compliance validation (auto-approve or
    an ordered sequence of tiered human steps with SLA deadlines) and apply
    approve / reject / escalate transitions to it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import award_kernel types.  Timestamps are always passed in.

Invariants enforced:
    - Steps are sorted by tier rank and contain each tier at most once,
      so the chain ends at the tier empowered to resolve the worst issue.
    - ``current_step_index`` is the first pending step, or ``len(steps)``
      once the chain is complete.
    - Rejection is immediately final: later pending steps become skipped.
    - Transitions are pure: the input chain is never modified.

Failure modes:
    - Misuse (index out of range, step not current, step not pending,
      chain complete, no higher tier to escalate to) returns
      ``TransitionResult(accepted=False)`` carrying the unchanged chain.
      ``TransitionResult.unwrap()`` raises ``InvalidTransitionError``.
    - Elapsed SLA deadlines are reported by ``overdue_steps`` only; no
      transition is triggered automatically.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from award_engines.tracer import traced_engine
from award_kernel.domain.approval import (
    ApprovalChain,
    ApprovalPolicy,
    ApprovalStep,
    ApprovalTier,
    StepStatus,
    TransitionResult,
)
from award_kernel.domain.compliance import ComplianceValidation, FlagType, Severity
from award_kernel.logging_config import get_logger

logger = get_logger("engines.approval")

DEFAULT_APPROVAL_POLICY = ApprovalPolicy()

# Flag types that only the given tier is empowered to sign off.
FLAG_TYPE_TIERS: dict[FlagType, ApprovalTier] = {
    FlagType.MAX_DAILY_HOURS: ApprovalTier.HR,
    FlagType.MAX_WEEKLY_HOURS: ApprovalTier.HR,
}


def _new_step(
    tier: ApprovalTier,
    created_at: datetime,
    policy: ApprovalPolicy,
) -> ApprovalStep:
    sla = policy.sla_for(tier)
    return ApprovalStep(
        tier=tier,
        status=StepStatus.PENDING,
        created_at=created_at,
        sla_deadline=created_at + timedelta(hours=sla) if sla is not None else None,
    )


def required_tiers(
    validation: ComplianceValidation,
    overtime_hours: Decimal = Decimal("0"),
    policy: ApprovalPolicy = DEFAULT_APPROVAL_POLICY,
) -> tuple[ApprovalTier, ...]:
    """Tiers that must sign off, lowest first.  Empty means auto-approve."""
    has_critical = any(f.severity == Severity.CRITICAL for f in validation.flags)
    has_warning = any(f.severity == Severity.WARNING for f in validation.flags)

    tiers: set[ApprovalTier] = set()
    if has_critical or has_warning:
        tiers.add(ApprovalTier.MANAGER)
    if overtime_hours > policy.moderate_overtime_hours:
        tiers.add(ApprovalTier.MANAGER)
    if overtime_hours > policy.high_overtime_hours:
        tiers.add(ApprovalTier.SENIOR_MANAGER)
    if has_critical:
        tiers.add(ApprovalTier.SENIOR_MANAGER)
    for flag in validation.flags:
        tier = FLAG_TYPE_TIERS.get(flag.flag_type)
        if tier is not None:
            tiers.add(tier)

    return tuple(sorted(tiers, key=lambda t: t.rank))


@traced_engine(
    "approval_router",
    "1.0",
    fingerprint_fields=("validation", "overtime_hours", "created_at"),
)
def build_approval_chain(
    validation: ComplianceValidation,
    created_at: datetime,
    policy: ApprovalPolicy = DEFAULT_APPROVAL_POLICY,
    overtime_hours: Decimal = Decimal("0"),
    timesheet_id: UUID | None = None,
) -> ApprovalChain:
    """Route a validated timesheet to auto-approval or a tiered chain.

    Args:
        validation: Output of ``validate_compliance``.
        created_at: Chain creation time; SLA deadlines count from here.
        policy: SLA hours, escalation targets and overtime thresholds.
        overtime_hours: Classified overtime for the week.
        timesheet_id: Carried onto the chain for the caller's persistence.

    Returns:
        A complete auto-approved chain with no steps, or a pending chain
        starting at index 0.
    """
    tiers = required_tiers(validation, overtime_hours, policy)

    if not tiers:
        logger.info(
            "approval_auto_approved",
            extra={"timesheet_id": str(timesheet_id) if timesheet_id else None},
        )
        return ApprovalChain(
            auto_approved=True,
            steps=(),
            current_step_index=0,
            is_complete=True,
            timesheet_id=timesheet_id,
            started_at=created_at,
            completed_at=created_at,
        )

    steps = tuple(_new_step(tier, created_at, policy) for tier in tiers)
    logger.info(
        "approval_chain_built",
        extra={
            "timesheet_id": str(timesheet_id) if timesheet_id else None,
            "tiers": [t.value for t in tiers],
        },
    )
    return ApprovalChain(
        auto_approved=False,
        steps=steps,
        current_step_index=0,
        is_complete=False,
        timesheet_id=timesheet_id,
        started_at=created_at,
    )


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def _refuse(chain: ApprovalChain, action: str, index: int, reason: str) -> TransitionResult:
    logger.warning(
        "approval_transition_rejected",
        extra={"action": action, "step_index": index, "reason": reason},
    )
    return TransitionResult(
        accepted=False, chain=chain, action=action, step_index=index, reason=reason,
    )


def _precondition_failure(chain: ApprovalChain, index: int) -> str | None:
    if chain.is_complete:
        return "approval chain is already complete"
    if index < 0 or index >= len(chain.steps):
        return f"step index out of range (chain has {len(chain.steps)} steps)"
    if index != chain.current_step_index:
        return f"step is not current (current step is {chain.current_step_index})"
    status = chain.steps[index].status
    if status != StepStatus.PENDING:
        return f"step is {status.value}, not pending"
    return None


def _next_pending(steps: tuple[ApprovalStep, ...], after: int) -> int:
    for i in range(after + 1, len(steps)):
        if steps[i].status == StepStatus.PENDING:
            return i
    return len(steps)


def approve_step(
    chain: ApprovalChain,
    index: int,
    approver_name: str,
    at: datetime,
    notes: str | None = None,
) -> TransitionResult:
    """Approve the current step; completes the chain after the last step."""
    failure = _precondition_failure(chain, index)
    if failure:
        return _refuse(chain, "approve", index, failure)

    steps = list(chain.steps)
    steps[index] = replace(
        steps[index],
        status=StepStatus.APPROVED,
        approver_name=approver_name,
        timestamp=at,
        notes=notes,
    )
    steps_t = tuple(steps)
    next_index = _next_pending(steps_t, index)
    complete = next_index >= len(steps_t)

    new_chain = replace(
        chain,
        steps=steps_t,
        current_step_index=next_index,
        is_complete=complete,
        completed_at=at if complete else None,
    )
    logger.info(
        "approval_step_approved",
        extra={
            "step_index": index,
            "tier": steps_t[index].tier.value,
            "approver": approver_name,
            "chain_complete": complete,
        },
    )
    return TransitionResult(accepted=True, chain=new_chain, action="approve", step_index=index)


def reject_step(
    chain: ApprovalChain,
    index: int,
    approver_name: str,
    at: datetime,
    notes: str | None = None,
) -> TransitionResult:
    """Reject the current step.  Final: remaining pending steps are skipped."""
    failure = _precondition_failure(chain, index)
    if failure:
        return _refuse(chain, "reject", index, failure)

    steps: list[ApprovalStep] = []
    for i, step in enumerate(chain.steps):
        if i == index:
            step = replace(
                step,
                status=StepStatus.REJECTED,
                approver_name=approver_name,
                timestamp=at,
                notes=notes,
            )
        elif i > index and step.status == StepStatus.PENDING:
            step = replace(step, status=StepStatus.SKIPPED)
        steps.append(step)

    new_chain = replace(
        chain,
        steps=tuple(steps),
        current_step_index=len(steps),
        is_complete=True,
        completed_at=at,
    )
    logger.info(
        "approval_step_rejected",
        extra={
            "step_index": index,
            "tier": steps[index].tier.value,
            "approver": approver_name,
            "skipped": sum(1 for s in steps[index + 1:] if s.status == StepStatus.SKIPPED),
        },
    )
    return TransitionResult(accepted=True, chain=new_chain, action="reject", step_index=index)


def escalate_step(
    chain: ApprovalChain,
    index: int,
    at: datetime,
    policy: ApprovalPolicy = DEFAULT_APPROVAL_POLICY,
    notes: str | None = None,
) -> TransitionResult:
    """Move the current step up to the policy's next higher tier.

    The step keeps its position, is marked escalated and gets a fresh SLA
    deadline counted from ``at``.  Later steps at or below the target
    tier are absorbed into it so that tiers remain strictly increasing.
    """
    failure = _precondition_failure(chain, index)
    if failure:
        return _refuse(chain, "escalate", index, failure)

    current = chain.steps[index]
    target = policy.next_tier(current.tier)
    if target is None:
        return _refuse(
            chain, "escalate", index,
            f"no tier above {current.tier.value} to escalate to",
        )

    sla = policy.sla_for(target)
    escalated = replace(
        current,
        tier=target,
        is_escalated=True,
        escalated_from=current.escalated_from or current.tier,
        sla_deadline=at + timedelta(hours=sla) if sla is not None else None,
        notes=notes if notes is not None else current.notes,
    )

    steps = list(chain.steps[:index]) + [escalated]
    steps.extend(
        s for s in chain.steps[index + 1:]
        if s.tier.rank > target.rank
    )

    new_chain = replace(chain, steps=tuple(steps))
    logger.info(
        "approval_step_escalated",
        extra={
            "step_index": index,
            "from_tier": current.tier.value,
            "to_tier": target.value,
            "absorbed": len(chain.steps) - len(steps),
        },
    )
    return TransitionResult(accepted=True, chain=new_chain, action="escalate", step_index=index)


# ---------------------------------------------------------------------------
# SLA monitoring
# ---------------------------------------------------------------------------


def is_step_overdue(step: ApprovalStep, as_of: datetime) -> bool:
    """True when a pending step's SLA deadline has passed."""
    return (
        step.status == StepStatus.PENDING
        and step.sla_deadline is not None
        and as_of > step.sla_deadline
    )


def overdue_steps(chain: ApprovalChain, as_of: datetime) -> tuple[int, ...]:
    """Indices of pending steps past their SLA deadline.

    Indicator only; escalation remains an explicit ``escalate_step`` call.
    """
    return tuple(i for i, step in enumerate(chain.steps) if is_step_overdue(step, as_of))
