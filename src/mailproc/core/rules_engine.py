"""First-match rule evaluation (core domain)."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from mailproc.core.config import Config, Rule
from mailproc.core.filters import apply_filter
from mailproc.core.matcher import match_rule
from mailproc.core.ports import MailParser, MessageView, ProcessRunner

LOGGER = logging.getLogger(__name__)


def _join_groups(groups: Iterable[str]) -> str:
    return " OR ".join(f"({group})" for group in groups)


def describe_rule(rule: Rule) -> str:
    """Render a rule's predicates as a readable boolean expression."""

    headers = _join_groups(
        " AND ".join(f"({name}: {pattern})" for name, pattern in group.items())
        for group in rule.headers or []
    )
    body = _join_groups(" AND ".join(group) for group in rule.body or [])
    raw = _join_groups(" AND ".join(group) for group in rule.raw or [])
    return f"headers: {headers}; body: {body}; raw: {raw}"


def evaluate(
    view: MessageView,
    raw: bytes,
    config: Config,
    parser: MailParser,
    runner: ProcessRunner,
) -> Optional[Tuple[Rule, bytes]]:
    """Return the first rule matching the message and the bytes its actions get.

    Rules are tried in declaration order. Each rule sees the output of its own
    filter (or the original message when it has none or the filter failed).
    Once a rule matches, no later rule is looked at, so later filters never
    run. Actions are left to the caller.
    """

    LOGGER.info(
        "Handling mail: From: %s, Subject: %s",
        view.first_header("From") or "",
        view.first_header("Subject") or "",
    )

    for index, rule in enumerate(config.rules):
        rule_view, rule_raw = apply_filter(rule, view, raw, parser, runner)
        match = match_rule(rule, rule_view, rule_raw)
        LOGGER.debug("Rule %s: %s", index, match)
        if match.matched:
            LOGGER.info("Matched rule %s: %s", index, describe_rule(rule))
            return rule, rule_raw

    LOGGER.info("No rule matched")
    return None
