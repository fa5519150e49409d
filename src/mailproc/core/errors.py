"""Exceptions raised by the core and its adapters."""

from __future__ import annotations

from typing import Sequence


class ConfigError(ValueError):
    """The configuration file does not have the expected shape."""


class MailParseError(ValueError):
    """A byte buffer could not be parsed into a message."""


class BodyDecodeError(ValueError):
    """The message body could not be decoded to text."""


class ProcessSpawnError(RuntimeError):
    """An external program could not be started."""

    def __init__(self, command: Sequence[str], reason: str) -> None:
        self.command = list(command)
        self.reason = reason
        super().__init__(f"Could not spawn {' '.join(self.command) or '<empty command>'}: {reason}")
