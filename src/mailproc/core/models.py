"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to subprocess or email-library types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class ExitKind(Enum):
    EXITED = "Exited"
    SIGNALED = "Signaled"
    # Popen only reports exit codes and signals; OTHER is never produced by
    # the subprocess adapter.
    OTHER = "Other"
    UNDETERMINED = "Undetermined"


@dataclass(frozen=True)
class ExitOutcome:
    """How a child process ended."""

    kind: ExitKind
    code: Optional[int] = None

    @classmethod
    def from_returncode(cls, returncode: Optional[int]) -> "ExitOutcome":
        # Popen reports death-by-signal as a negative return code.
        if returncode is None:
            return cls(ExitKind.UNDETERMINED)
        if returncode < 0:
            return cls(ExitKind.SIGNALED, -returncode)
        return cls(ExitKind.EXITED, returncode)

    @property
    def success(self) -> bool:
        return self.kind is ExitKind.EXITED and self.code == 0

    def __str__(self) -> str:
        if self.code is None:
            return self.kind.value
        return f"{self.kind.value}: {self.code}"


@dataclass(frozen=True)
class Job:
    """One finished external process invocation and what it wrote."""

    command: List[str]
    outcome: ExitOutcome
    stdout: Optional[bytes]
    stderr: Optional[bytes]

    @property
    def success(self) -> bool:
        return self.outcome.success


@dataclass(frozen=True)
class Match:
    """Per-part verdicts for one rule against one message."""

    headers: bool
    body: bool
    raw: bool

    @property
    def matched(self) -> bool:
        return self.headers and self.body and self.raw
