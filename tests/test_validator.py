from __future__ import annotations

from mailproc.adapters.subprocess_runner import program_found
from mailproc.core.config import Config, Rule
from mailproc.core.errors import ProcessSpawnError
from mailproc.core.validator import validate


def _lookup(known: set[str]):
    def lookup(program: str) -> bool:
        return program in known

    return lookup


def test_reports_every_problem() -> None:
    config = Config(
        version=1,
        rules=[
            Rule(action=[]),
            Rule(action=[["not-installed-anywhere"]]),
            Rule(body=[["(unclosed"]]),
        ],
    )

    report = validate(config, _lookup({"deliver"}))

    assert not report.ok
    assert len(report.problems) == 3
    assert len(set(report.problems)) == 3
    assert "not-installed-anywhere not found" in report.problems


def test_valid_config_passes() -> None:
    config = Config(
        version=1,
        rules=[
            Rule(
                headers=[{"From": "alice"}],
                body=[["a", "b"], ["c"]],
                raw=[[r"\x00"]],
                filter=["decode"],
                action=[["deliver", "inbox"], ["notify"]],
            ),
            Rule(),
        ],
    )

    report = validate(config, _lookup({"deliver", "decode", "notify"}))

    assert report.ok
    assert report.problems == []


def test_empty_commands_and_groups_are_reported() -> None:
    config = Config(
        version=1,
        rules=[
            Rule(action=[[]], filter=[]),
            Rule(headers=[], body=[[]], raw=[]),
            Rule(headers=[{}]),
        ],
    )

    report = validate(config, _lookup(set()))

    assert report.problems == [
        "Empty action in rule 0",
        "Empty filter in rule 0",
        "Empty headers list in rule 1",
        "Empty body set in rule 1",
        "Empty raw list in rule 1",
        "Empty headers set in rule 2",
    ]


def test_invalid_patterns_in_every_part_are_reported() -> None:
    config = Config(
        version=1,
        rules=[Rule(headers=[{"From": "[a-"}], body=[["ok", "*bad"]], raw=[["(?P<x"]])],
    )

    report = validate(config, _lookup(set()))

    assert len(report.problems) == 3
    assert report.problems[0].startswith("Invalid headers regex in rule 0")
    assert report.problems[1].startswith("Invalid body regex in rule 0")
    assert report.problems[2].startswith("Invalid raw regex in rule 0")


def test_lookup_that_cannot_spawn_is_a_problem() -> None:
    def broken_lookup(program: str) -> bool:
        raise ProcessSpawnError(["which", program], "No such file or directory")

    config = Config(version=1, rules=[Rule(action=[["deliver"]])])

    report = validate(config, broken_lookup)

    assert report.problems == ["Could not look up deliver: No such file or directory"]


def test_real_path_lookup() -> None:
    config = Config(
        version=1,
        rules=[Rule(action=[["sh", "-c", "true"]], filter=["mailproc-no-such-program-4242"])],
    )

    report = validate(config, program_found)

    assert report.problems == ["mailproc-no-such-program-4242 not found"]
