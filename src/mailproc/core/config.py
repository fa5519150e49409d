"""Core configuration dataclasses and schema checks.

File reading lives in ``mailproc.settings``; this module only turns an
already-decoded mapping into the immutable shape the core expects. The checks
here are structural (types and nesting). Whether patterns compile or programs
exist is the validator's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Mapping, Optional

from mailproc.core.errors import ConfigError

LOGGER = logging.getLogger(__name__)

RULE_FIELDS = ("headers", "body", "raw", "action", "filter")


@dataclass(frozen=True)
class Rule:
    """One rule. Every field is optional and an unset field never blocks a match."""

    headers: Optional[List[Dict[str, str]]] = None
    body: Optional[List[List[str]]] = None
    raw: Optional[List[List[str]]] = None
    action: Optional[List[List[str]]] = None
    filter: Optional[List[str]] = None


@dataclass(frozen=True)
class LoggingConfig:
    """Log destination settings consumed by the CLI."""

    level: str = "INFO"
    console: bool = False
    file_enabled: bool = True
    file_path: Optional[str] = None
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5


@dataclass(frozen=True)
class Config:
    """Loaded configuration. Rule order is match priority."""

    version: int
    rules: List[Rule]
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _check_groups(index: int, name: str, value: Any) -> List[List[str]]:
    if not isinstance(value, list) or not all(_is_str_list(group) for group in value):
        raise ConfigError(f"rules[{index}].{name} must be a list of lists of strings")
    return [list(group) for group in value]


def _check_headers(index: int, value: Any) -> List[Dict[str, str]]:
    if not isinstance(value, list):
        raise ConfigError(f"rules[{index}].headers must be a list of tables")
    groups: List[Dict[str, str]] = []
    for group in value:
        if not isinstance(group, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in group.items()
        ):
            raise ConfigError(f"rules[{index}].headers entries must map header names to patterns")
        groups.append(dict(group))
    return groups


def build_rule(index: int, raw_rule: Any) -> Rule:
    """Check one rule table and convert it to a :class:`Rule`."""

    if not isinstance(raw_rule, Mapping):
        raise ConfigError(f"rules[{index}] must be a table")

    unknown = sorted(set(raw_rule) - set(RULE_FIELDS))
    if unknown:
        LOGGER.warning("Ignoring unknown keys in rules[%s]: %s", index, ", ".join(unknown))

    headers = raw_rule.get("headers")
    body = raw_rule.get("body")
    raw = raw_rule.get("raw")
    action = raw_rule.get("action")
    filter_cmd = raw_rule.get("filter")

    if filter_cmd is not None and not _is_str_list(filter_cmd):
        raise ConfigError(f"rules[{index}].filter must be a list of strings")

    return Rule(
        headers=_check_headers(index, headers) if headers is not None else None,
        body=_check_groups(index, "body", body) if body is not None else None,
        raw=_check_groups(index, "raw", raw) if raw is not None else None,
        action=_check_groups(index, "action", action) if action is not None else None,
        filter=list(filter_cmd) if filter_cmd is not None else None,
    )


def build_logging_config(raw_logging: Any) -> LoggingConfig:
    if raw_logging is None:
        return LoggingConfig()
    if not isinstance(raw_logging, Mapping):
        raise ConfigError("logging must be a table")
    file_cfg = raw_logging.get("file", {}) or {}
    if not isinstance(file_cfg, Mapping):
        raise ConfigError("logging.file must be a table")
    try:
        return LoggingConfig(
            level=str(raw_logging.get("level", "INFO")).upper(),
            console=bool(raw_logging.get("console", False)),
            file_enabled=bool(file_cfg.get("enabled", True)),
            file_path=file_cfg.get("path"),
            max_bytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backup_count=int(file_cfg.get("backup_count", 5)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid logging settings: {exc}") from exc


def build_config(raw_config: Mapping[str, Any]) -> Config:
    """Normalize a decoded config mapping into a :class:`Config`.

    ``version`` is required. ``rules`` defaults to an empty list, which simply
    means nothing ever matches.
    """

    version = raw_config.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigError("version must be an integer")

    raw_rules = raw_config.get("rules", [])
    if not isinstance(raw_rules, list):
        raise ConfigError("rules must be a list")

    rules = [build_rule(index, raw_rule) for index, raw_rule in enumerate(raw_rules)]
    return Config(
        version=version,
        rules=rules,
        logging=build_logging_config(raw_config.get("logging")),
    )
