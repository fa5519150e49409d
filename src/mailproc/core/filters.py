"""Per-rule pre-filter stage (core domain)."""

from __future__ import annotations

import logging
from typing import Tuple

from mailproc.core.config import Rule
from mailproc.core.errors import MailParseError
from mailproc.core.ports import MailParser, MessageView, ProcessRunner

LOGGER = logging.getLogger(__name__)


def apply_filter(
    rule: Rule,
    view: MessageView,
    raw: bytes,
    parser: MailParser,
    runner: ProcessRunner,
) -> Tuple[MessageView, bytes]:
    """Return the message a rule should be matched against.

    The filter receives the original bytes on stdin. Its output replaces the
    message only when it exits 0 and the output parses; any other outcome
    falls back to the original pair. A filter that cannot be spawned raises
    ``ProcessSpawnError``.
    """

    if rule.filter is None:
        return view, raw

    job = runner(rule.filter, raw)
    if not job.success:
        LOGGER.error(
            "Rule filter failed: %s => %s: %r",
            " ".join(rule.filter),
            job.outcome,
            job.stderr,
        )
        return view, raw

    if not job.stdout:
        LOGGER.warning("Rule filter %s produced no output, using original message", " ".join(rule.filter))
        return view, raw

    try:
        filtered_view = parser(job.stdout)
    except MailParseError as exc:
        LOGGER.error("Could not parse output from filter %s: %s", " ".join(rule.filter), exc)
        return view, raw

    return filtered_view, job.stdout
