"""Core message processing pipeline.

This module is integration-agnostic. It only relies on ports for parsing and
running programs, so the CLI and the tests can plug in their own.
"""

from __future__ import annotations

import logging
from typing import Optional

from mailproc.core.config import Config, Rule
from mailproc.core.ports import MailParser, ProcessRunner
from mailproc.core.rules_engine import evaluate

LOGGER = logging.getLogger(__name__)


class MailProcessor:
    """Orchestrates parsing, rule evaluation and action execution."""

    def __init__(self, config: Config, parser: MailParser, runner: ProcessRunner) -> None:
        self._config = config
        self._parser = parser
        self._runner = runner

    def handle(self, raw: bytes) -> Optional[Rule]:
        """Process one raw message and return the rule that took it, if any.

        Raises ``MailParseError`` when ``raw`` is not a message and
        ``ProcessSpawnError`` when a filter or action cannot be started.
        """

        view = self._parser(raw)
        result = evaluate(view, raw, self._config, self._parser, self._runner)
        if result is None:
            return None

        rule, buffer = result
        if rule.action is None:
            LOGGER.info("No action, message dropped")
            return rule

        # Every action gets the same buffer; a failing action does not stop
        # the ones after it.
        for action in rule.action:
            LOGGER.info("Doing action: %s", " ".join(action))
            job = self._runner(action, buffer)
            LOGGER.info("Result: %s", job.outcome)
            if not job.success and job.stderr:
                LOGGER.warning("Action stderr: %r", job.stderr)
        return rule
