"""Ports (interfaces) used by the core.

Ports define the minimal contracts for process execution and mail parsing so
that the core can be exercised with fakes and reused with other backends.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from mailproc.core.models import Job


class MessageView(Protocol):
    """Read-only view of a parsed message."""

    def first_header(self, name: str) -> Optional[str]:
        ...

    def body_text(self) -> str:
        """Return the decoded body, raising ``BodyDecodeError`` on failure."""
        ...


class MailParser(Protocol):
    def __call__(self, raw: bytes) -> MessageView:
        """Parse ``raw``, raising ``MailParseError`` on failure."""
        ...


class ProcessRunner(Protocol):
    def __call__(self, command: Sequence[str], input: Optional[bytes] = None) -> Job:
        """Run ``command`` to completion, raising ``ProcessSpawnError`` if it cannot start."""
        ...
