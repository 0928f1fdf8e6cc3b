"""
Configuration Loader (``award_config.loader``).

Responsibility
--------------
Loads individual YAML files from ``award_config/sets`` and parses them into
the frozen ``award_kernel.domain`` value objects the engines consume:
``JurisdictionRules`` (with ``BreakRule`` and ``PenaltyRates``), ``AllowanceRule`` and
``ApprovalPolicy``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Consumed by the public
entrypoints in ``award_config``.  Depends on the kernel domain only; the
engines never import from here.

Invariants enforced
-------------------
* Numeric values are converted through ``Decimal(str(value))`` so YAML
  floats such as ``52.50`` never carry binary rounding error.
* Every parse failure is raised as ``InvalidConfigurationError`` naming the
  source file; no silent defaults for required fields.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys, bad enum values, impossible thresholds, or a
  scalar where a list of names is expected
  -> ``InvalidConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from award_kernel.domain.allowances import AllowanceRule, RateType, TriggerType
from award_kernel.domain.approval import ApprovalPolicy, ApprovalTier
from award_kernel.domain.compliance import BreakRule, JurisdictionRules
from award_kernel.domain.penalties import PenaltyRates
from award_kernel.exceptions import InvalidConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any) -> Decimal:
    """Parse a Decimal from a YAML scalar (int, float or string)."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse decimal from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Cannot parse decimal from {value!r}") from None


def _optional_decimal(data: dict[str, Any], key: str) -> Decimal | None:
    value = data.get(key)
    return parse_decimal(value) if value is not None else None


def parse_time(value: Any) -> time:
    """Parse a wall-clock time from ``HH:MM`` text or YAML's sexagesimal int."""
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        # YAML 1.1 reads an unquoted 05:00 as 300 (minutes).
        return time(value // 60, value % 60)
    if isinstance(value, str):
        return time.fromisoformat(value)
    raise ValueError(f"Cannot parse time from {value!r}")


def parse_string_set(data: dict[str, Any], key: str) -> frozenset[str]:
    """Read an optional list of names; a bare scalar is rejected."""
    value = data.get(key)
    if value is None:
        return frozenset()
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{key} must be a list, got {value!r}")
    return frozenset(str(v) for v in value)


def parse_penalty_rates(data: dict[str, Any]) -> PenaltyRates:
    """Parse PenaltyRates; omitted rates apply no penalty."""
    if not isinstance(data, dict):
        raise ValueError(f"penalty_rates must be a mapping, got {data!r}")
    kwargs = {}
    for key in ("saturday", "sunday", "public_holiday", "evening_loading", "night_loading"):
        value = _optional_decimal(data, key)
        if value is not None:
            kwargs[key] = value
    return PenaltyRates(**kwargs)


def parse_break_rule(data: dict[str, Any]) -> BreakRule:
    """Parse a BreakRule from a dict."""
    return BreakRule(
        rule_id=data["id"],
        name=data["name"],
        min_work_hours=parse_decimal(data["min_work_hours"]),
        break_minutes=int(data["break_minutes"]),
        paid=bool(data.get("paid", False)),
        mandatory=bool(data.get("mandatory", True)),
    )


def parse_jurisdiction(data: dict[str, Any]) -> JurisdictionRules:
    """
    Parse ``JurisdictionRules`` from a dict.

    Optional keys fall back to the dataclass defaults.
    """
    optional: dict[str, Any] = {}
    for key in (
        "overtime_multiplier",
        "double_time_multiplier",
        "double_time_threshold",
        "casual_loading_percent",
    ):
        value = _optional_decimal(data, key)
        if value is not None:
            optional[key] = value
    for key in ("max_break_minutes", "schedule_tolerance_minutes", "pattern_drift_minutes"):
        if data.get(key) is not None:
            optional[key] = int(data[key])
    for key in ("earliest_unscheduled_start", "latest_unscheduled_end"):
        if data.get(key) is not None:
            optional[key] = parse_time(data[key])
    if data.get("penalty_rates") is not None:
        optional["penalty_rates"] = parse_penalty_rates(data["penalty_rates"])

    return JurisdictionRules(
        code=data["code"],
        name=data["name"],
        max_daily_hours=parse_decimal(data["max_daily_hours"]),
        max_weekly_hours=parse_decimal(data["max_weekly_hours"]),
        overtime_threshold_daily=parse_decimal(data["overtime_threshold_daily"]),
        overtime_threshold_weekly=parse_decimal(data["overtime_threshold_weekly"]),
        break_rules=tuple(parse_break_rule(b) for b in data.get("break_rules", [])),
        **optional,
    )


def parse_allowance_rule(data: dict[str, Any]) -> AllowanceRule:
    """Parse an AllowanceRule from a dict."""
    return AllowanceRule(
        allowance_id=data["id"],
        name=data["name"],
        trigger_type=TriggerType(data["trigger_type"]),
        rate=parse_decimal(data["rate"]),
        priority=int(data.get("priority", 0)),
        stackable=bool(data.get("stackable", True)),
        excludes_with=parse_string_set(data, "excludes_with"),
        weekend_rate=_optional_decimal(data, "weekend_rate"),
        public_holiday_multiplier=_optional_decimal(data, "public_holiday_multiplier"),
        callback_minimum_hours=_optional_decimal(data, "callback_minimum_hours"),
        callback_rate_multiplier=_optional_decimal(data, "callback_rate_multiplier"),
        is_active=bool(data.get("is_active", True)),
        code=data.get("code", ""),
        rate_type=RateType(data.get("rate_type", RateType.PER_PERIOD.value)),
        applicable_awards=parse_string_set(data, "applicable_awards"),
    )


def parse_allowance_set(data: dict[str, Any]) -> tuple[AllowanceRule, ...]:
    """Parse the ``allowances`` list of a named rule set, in file order."""
    return tuple(parse_allowance_rule(a) for a in data.get("allowances") or [])


def parse_approval_policy(data: dict[str, Any]) -> ApprovalPolicy:
    """
    Parse an ApprovalPolicy from a dict.

    Missing sections keep the policy defaults.
    """
    kwargs: dict[str, Any] = {}
    if "sla_hours" in data:
        kwargs["sla_hours"] = MappingProxyType({
            ApprovalTier(tier): int(hours) for tier, hours in data["sla_hours"].items()
        })
    if "escalation" in data:
        kwargs["escalation"] = MappingProxyType({
            ApprovalTier(source): ApprovalTier(target)
            for source, target in data["escalation"].items()
        })
    for key in ("moderate_overtime_hours", "high_overtime_hours"):
        value = _optional_decimal(data, key)
        if value is not None:
            kwargs[key] = value
    return ApprovalPolicy(**kwargs)


def parse_checked(source: str, parser, data: Any):
    """Apply ``parser`` to ``data``, re-raising failures against ``source``."""
    if not isinstance(data, dict):
        raise InvalidConfigurationError(source, "expected a mapping")
    try:
        return parser(data)
    except (KeyError, ValueError, TypeError) as exc:
        detail = f"missing key {exc}" if isinstance(exc, KeyError) else str(exc)
        raise InvalidConfigurationError(source, detail) from exc


def compute_checksum(data: dict[str, Any]) -> str:
    """Compute a deterministic SHA-256 checksum of loaded configuration data."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
