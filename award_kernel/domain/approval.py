"""
Approval domain types (``award_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for tiered timesheet approval: tiers with an explicit
severity rank, step lifecycle, the chain aggregate, routing policy and the
result of a transition.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Steps are ordered by non-decreasing ``ApprovalTier.rank``.
* ``current_step_index`` points at the first ``PENDING`` step, or equals
  ``len(steps)`` once ``is_complete``.
* ``auto_approved`` implies ``is_complete`` and no steps.
* Transitions never mutate; they return a new chain inside a
  ``TransitionResult``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping
from uuid import UUID

from award_kernel.exceptions import InvalidTransitionError


class ApprovalTier(str, Enum):
    """Approval authority levels, lowest first."""

    AUTO = "auto"
    MANAGER = "manager"
    SENIOR_MANAGER = "senior_manager"
    DIRECTOR = "director"
    HR = "hr"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK: dict[ApprovalTier, int] = {
    ApprovalTier.AUTO: 0,
    ApprovalTier.MANAGER: 1,
    ApprovalTier.SENIOR_MANAGER: 2,
    ApprovalTier.DIRECTOR: 3,
    ApprovalTier.HR: 4,
}


class StepStatus(str, Enum):
    """Approval step lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ApprovalStep:
    """One human approval step in a chain."""

    tier: ApprovalTier
    status: StepStatus = StepStatus.PENDING
    approver_name: str | None = None
    timestamp: datetime | None = None
    notes: str | None = None
    is_escalated: bool = False
    sla_deadline: datetime | None = None
    created_at: datetime | None = None
    escalated_from: ApprovalTier | None = None


@dataclass(frozen=True)
class ApprovalChain:
    """Ordered approval steps for one timesheet."""

    auto_approved: bool
    steps: tuple[ApprovalStep, ...] = ()
    current_step_index: int = 0
    is_complete: bool = False
    timesheet_id: UUID | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def current_step(self) -> ApprovalStep | None:
        if self.is_complete or self.current_step_index >= len(self.steps):
            return None
        return self.steps[self.current_step_index]

    @property
    def is_rejected(self) -> bool:
        return any(s.status == StepStatus.REJECTED for s in self.steps)

    @property
    def is_approved(self) -> bool:
        return self.is_complete and not self.is_rejected

    @property
    def final_tier(self) -> ApprovalTier:
        if not self.steps:
            return ApprovalTier.AUTO
        return self.steps[-1].tier


_DEFAULT_SLA_HOURS = {
    ApprovalTier.MANAGER: 24,
    ApprovalTier.SENIOR_MANAGER: 48,
    ApprovalTier.DIRECTOR: 48,
    ApprovalTier.HR: 72,
}

_DEFAULT_ESCALATION = {
    ApprovalTier.MANAGER: ApprovalTier.SENIOR_MANAGER,
    ApprovalTier.SENIOR_MANAGER: ApprovalTier.DIRECTOR,
    ApprovalTier.DIRECTOR: ApprovalTier.HR,
}


@dataclass(frozen=True)
class ApprovalPolicy:
    """Routing thresholds, per-tier SLA allowances and escalation targets.

    ``escalation`` maps a tier to the tier an escalated step moves to; a
    tier absent from the map cannot be escalated further.  Every target
    must rank strictly higher than its source.
    """

    sla_hours: Mapping[ApprovalTier, int] = field(
        default_factory=lambda: MappingProxyType(dict(_DEFAULT_SLA_HOURS))
    )
    escalation: Mapping[ApprovalTier, ApprovalTier] = field(
        default_factory=lambda: MappingProxyType(dict(_DEFAULT_ESCALATION))
    )
    moderate_overtime_hours: Decimal = Decimal("2")
    high_overtime_hours: Decimal = Decimal("8")

    def __post_init__(self):
        for source, target in self.escalation.items():
            if target.rank <= source.rank:
                raise ValueError(
                    f"escalation target {target.value} must outrank {source.value}"
                )
        for tier, hours in self.sla_hours.items():
            if hours <= 0:
                raise ValueError(f"sla_hours for {tier.value} must be positive")
        if self.high_overtime_hours < self.moderate_overtime_hours:
            raise ValueError("high_overtime_hours must be >= moderate_overtime_hours")

    def sla_for(self, tier: ApprovalTier) -> int | None:
        return self.sla_hours.get(tier)

    def next_tier(self, tier: ApprovalTier) -> ApprovalTier | None:
        return self.escalation.get(tier)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of approve/reject/escalate.

    A rejected transition carries the unchanged chain and a reason.
    """

    accepted: bool
    chain: ApprovalChain
    action: str
    step_index: int
    reason: str = ""

    def unwrap(self) -> ApprovalChain:
        """Return the new chain, raising if the transition was rejected."""
        if not self.accepted:
            raise InvalidTransitionError(self.action, self.step_index, self.reason)
        return self.chain
