"""
award_config -- public entrypoints for award rule configuration.

Responsibility:
    Provides the ONLY way to obtain jurisdiction rules, allowance rule sets
    and the approval policy at runtime.  Each entrypoint reads the shipped
    YAML under ``award_config/sets/`` (or a caller-supplied directory),
    parses it into frozen kernel value objects and returns them.

Architecture position:
    Configuration -- YAML-driven, read at the edge.  This package sits
    above ``award_kernel``; the engines never import it and receive the
    parsed objects as arguments instead.

Invariants enforced:
    - Jurisdictions are looked up by code or alias; lookups never fall back
      to a default jurisdiction silently.
    - Every successful call emits an ``AWARD_CONFIG_TRACE`` log entry with
      the artifact identity and the SHA-256 checksum of its source data.

Failure modes:
    - ``UnknownJurisdictionError`` -- no jurisdiction file declares the
      requested code or alias.
    - ``UnknownRuleSetError`` -- no allowance rule set with that name.
    - ``InvalidConfigurationError`` -- a YAML file is structurally invalid.
    - ``FileNotFoundError`` -- the configuration directory does not exist.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from award_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_allowance_set,
    parse_approval_policy,
    parse_checked,
    parse_jurisdiction,
    parse_string_set,
)
from award_kernel.domain.allowances import AllowanceRule
from award_kernel.domain.approval import ApprovalPolicy
from award_kernel.domain.compliance import JurisdictionRules
from award_kernel.exceptions import UnknownJurisdictionError, UnknownRuleSetError
from award_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DEFAULT_JURISDICTION = "AU-NES"
DEFAULT_ALLOWANCE_SET = "on_call_default"


def _sets_dir(config_dir: Path | None) -> Path:
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Configuration sets directory not found: {sets_dir}")
    return sets_dir


def _yaml_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix in (".yaml", ".yml"))


def _jurisdiction_sources(sets_dir: Path) -> list[tuple[Path, dict[str, Any]]]:
    return [(path, load_yaml_file(path)) for path in _yaml_files(sets_dir / "jurisdictions")]


def _aliases(data: dict[str, Any]) -> frozenset[str]:
    return parse_string_set(data, "aliases")


def _trace(artifact: str, name: str, data: dict[str, Any], **fields: Any) -> None:
    _logger.info(
        "AWARD_CONFIG_TRACE",
        extra={
            "trace_type": "AWARD_CONFIG_TRACE",
            "artifact": artifact,
            "artifact_name": name,
            "checksum": compute_checksum(data),
            **fields,
        },
    )


def list_jurisdictions(config_dir: Path | None = None) -> tuple[str, ...]:
    """Codes of every configured jurisdiction, sorted."""
    sets_dir = _sets_dir(config_dir)
    return tuple(sorted(
        str(data["code"]) for _, data in _jurisdiction_sources(sets_dir) if "code" in data
    ))


def get_jurisdiction(
    code: str = DEFAULT_JURISDICTION,
    config_dir: Path | None = None,
) -> JurisdictionRules:
    """Return the jurisdiction rules declared under ``code`` or one of its aliases.

    Matching is case-insensitive.

    Raises:
        UnknownJurisdictionError: If no jurisdiction file matches.
        InvalidConfigurationError: If the matching file cannot be parsed.
    """
    sets_dir = _sets_dir(config_dir)
    sources = _jurisdiction_sources(sets_dir)
    wanted = code.casefold()

    for path, data in sources:
        names = [data.get("code", ""), *parse_checked(path.name, _aliases, data)]
        if wanted not in (str(n).casefold() for n in names):
            continue
        rules = parse_checked(path.name, parse_jurisdiction, data)
        _trace(
            "jurisdiction", rules.code, data,
            source=path.name,
            break_rule_count=len(rules.break_rules),
        )
        return rules

    raise UnknownJurisdictionError(
        code,
        available=tuple(sorted(str(d["code"]) for _, d in sources if "code" in d)),
    )


def get_allowance_rules(
    name: str = DEFAULT_ALLOWANCE_SET,
    config_dir: Path | None = None,
) -> tuple[AllowanceRule, ...]:
    """Return the allowance rules of the named rule set, in file order.

    Raises:
        UnknownRuleSetError: If no rule set file carries that name.
        InvalidConfigurationError: If the file cannot be parsed.
    """
    sets_dir = _sets_dir(config_dir)
    for path in _yaml_files(sets_dir / "allowances"):
        data = load_yaml_file(path)
        if data.get("name", path.stem) != name:
            continue
        rules = parse_checked(path.name, parse_allowance_set, data)
        _trace(
            "allowance_set", name, data,
            source=path.name,
            rule_count=len(rules),
        )
        return rules

    raise UnknownRuleSetError(name)


def get_approval_policy(config_dir: Path | None = None) -> ApprovalPolicy:
    """Return the configured approval policy.

    A missing ``approval_policy.yaml`` yields the built-in defaults.
    """
    sets_dir = _sets_dir(config_dir)
    path = sets_dir / "approval_policy.yaml"
    data = load_yaml_file(path) if path.exists() else {}
    policy = parse_checked(path.name, parse_approval_policy, data)
    _trace(
        "approval_policy", path.stem, data,
        source=path.name if path.exists() else None,
    )
    return policy


__all__ = [
    "DEFAULT_ALLOWANCE_SET",
    "DEFAULT_JURISDICTION",
    "get_allowance_rules",
    "get_approval_policy",
    "get_jurisdiction",
    "list_jurisdictions",
]
