"""Offline configuration checks (core domain)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from mailproc.core.config import Config, Rule
from mailproc.core.errors import ProcessSpawnError
from mailproc.core.matcher import compile_bytes, compile_text

ProgramLookup = Callable[[str], bool]


@dataclass
class ValidationReport:
    """Every problem found in a config; ``ok`` only when there are none."""

    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def add(self, problem: str) -> None:
        self.problems.append(problem)


def _check_program(report: ValidationReport, program: str, lookup: ProgramLookup) -> None:
    try:
        found = lookup(program)
    except ProcessSpawnError as exc:
        report.add(f"Could not look up {program}: {exc.reason}")
        return
    if not found:
        report.add(f"{program} not found")


def _check_command(
    report: ValidationReport,
    index: int,
    kind: str,
    command: List[str],
    lookup: ProgramLookup,
) -> None:
    if not command:
        report.add(f"Empty {kind} in rule {index}")
        return
    _check_program(report, command[0], lookup)


def _check_patterns(
    report: ValidationReport,
    index: int,
    part: str,
    groups: Optional[list],
    compile_pattern: Callable[[str], object],
) -> None:
    if groups is None:
        return
    if not groups:
        report.add(f"Empty {part} list in rule {index}")
    for group in groups:
        if not group:
            report.add(f"Empty {part} set in rule {index}")
        patterns = group.values() if isinstance(group, dict) else group
        for pattern in patterns:
            if compile_pattern(pattern) is None:
                report.add(f"Invalid {part} regex in rule {index}: {pattern}")


def _validate_rule(report: ValidationReport, index: int, rule: Rule, lookup: ProgramLookup) -> None:
    if rule.action is not None:
        if not rule.action:
            report.add(f"Empty action list in rule {index}")
        for command in rule.action:
            _check_command(report, index, "action", command, lookup)

    if rule.filter is not None:
        _check_command(report, index, "filter", rule.filter, lookup)

    _check_patterns(report, index, "headers", rule.headers, compile_text)
    _check_patterns(report, index, "body", rule.body, compile_text)
    _check_patterns(report, index, "raw", rule.raw, compile_bytes)


def validate(config: Config, lookup: ProgramLookup) -> ValidationReport:
    """Check every rule without a message and collect all problems.

    Checks never short-circuit, so one run surfaces every problem:
    - action and filter commands are non-empty and their programs resolve
      through ``lookup``
    - predicate lists and groups are non-empty
    - every pattern compiles (bytes patterns for ``raw``)
    """

    report = ValidationReport()
    for index, rule in enumerate(config.rules):
        _validate_rule(report, index, rule, lookup)
    return report
