"""Predicate matching for a single rule (core domain)."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional

from mailproc.core.config import Rule
from mailproc.core.errors import BodyDecodeError
from mailproc.core.models import Match
from mailproc.core.ports import MessageView

LOGGER = logging.getLogger(__name__)


def compile_text(pattern: str) -> Optional[re.Pattern]:
    """Compile a text pattern, logging and returning None when it is invalid."""

    try:
        return re.compile(pattern)
    except re.error as exc:
        LOGGER.error("Could not compile regex %s: %s", pattern, exc)
        return None


def compile_bytes(pattern: str) -> Optional[re.Pattern]:
    """Compile a pattern for searching raw bytes."""

    try:
        return re.compile(pattern.encode("utf-8"))
    except re.error as exc:
        LOGGER.error("Could not compile regex %s: %s", pattern, exc)
        return None


def _header_pair_matches(view: MessageView, name: str, pattern: str) -> bool:
    regex = compile_text(pattern)
    if regex is None:
        return False
    value = view.first_header(name)
    if value is None:
        return False
    return regex.search(value) is not None


def headers_match(groups: Iterable[Dict[str, str]], view: MessageView) -> bool:
    """OR over groups, AND over the (header, pattern) pairs inside each group."""

    return any(
        all(_header_pair_matches(view, name, pattern) for name, pattern in group.items())
        for group in groups
    )


def _text_group_matches(group: List[str], text: str) -> bool:
    for pattern in group:
        regex = compile_text(pattern)
        if regex is None or regex.search(text) is None:
            return False
    return True


def body_match(groups: List[List[str]], view: MessageView) -> bool:
    if not groups:
        return False
    try:
        text = view.body_text()
    except BodyDecodeError as exc:
        LOGGER.warning("Could not decode message body, body patterns cannot match: %s", exc)
        return False
    return any(_text_group_matches(group, text) for group in groups)


def _raw_group_matches(group: List[str], raw: bytes) -> bool:
    for pattern in group:
        regex = compile_bytes(pattern)
        if regex is None or regex.search(raw) is None:
            return False
    return True


def raw_match(groups: List[List[str]], raw: bytes) -> bool:
    return any(_raw_group_matches(group, raw) for group in groups)


def match_rule(rule: Rule, view: MessageView, raw: bytes) -> Match:
    """Evaluate the header, body and raw predicates of ``rule``.

    Matching logic:
    - A part whose field is unset is satisfied.
    - Otherwise the part is satisfied when at least one of its groups is, and
      a group is satisfied only when every pattern in it matches.
    - A pattern that does not compile, or a header the message lacks, fails
      its own test only; other groups and parts are still evaluated.
    """

    return Match(
        headers=rule.headers is None or headers_match(rule.headers, view),
        body=rule.body is None or body_match(rule.body, view),
        raw=rule.raw is None or raw_match(rule.raw, raw),
    )
