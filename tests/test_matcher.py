from __future__ import annotations

from typing import Optional

from mailproc.adapters.mail_parser import parse_mail
from mailproc.core.config import Rule
from mailproc.core.errors import BodyDecodeError
from mailproc.core.matcher import match_rule


class FakeView:
    def __init__(self, headers: Optional[dict[str, str]] = None, body: "str | None" = "") -> None:
        self._headers = headers or {}
        self._body = body

    def first_header(self, name: str) -> Optional[str]:
        return self._headers.get(name)

    def body_text(self) -> str:
        if self._body is None:
            raise BodyDecodeError("unknown charset")
        return self._body


MULTIPART = (
    b"From: alice@example.org\r\n"
    b"Subject: report\r\n"
    b"MIME-Version: 1.0\r\n"
    b'Content-Type: multipart/mixed; boundary="SEP-1234"\r\n'
    b"\r\n"
    b"--SEP-1234\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"\r\n"
    b"see attached\r\n"
    b"--SEP-1234\r\n"
    b"Content-Type: application/octet-stream\r\n"
    b"Content-Disposition: attachment; filename=blob.bin\r\n"
    b"Content-Transfer-Encoding: base64\r\n"
    b"\r\n"
    b"AAECAwQ=\r\n"
    b"--SEP-1234--\r\n"
)


def test_rule_without_predicates_matches_anything() -> None:
    match = match_rule(Rule(action=[["true"]]), FakeView(), b"")
    assert match.headers and match.body and match.raw
    assert match.matched


def test_header_group_requires_every_pair() -> None:
    view = FakeView(headers={"From": "alice@example.org", "Subject": "hello"})
    both = Rule(headers=[{"From": "alice", "Subject": "^hel"}])
    one_wrong = Rule(headers=[{"From": "alice", "Subject": "bye"}])
    assert match_rule(both, view, b"").matched
    assert not match_rule(one_wrong, view, b"").matched


def test_missing_header_fails_its_group() -> None:
    view = FakeView(headers={"From": "alice@example.org"})
    rule = Rule(headers=[{"From": "alice", "List-Id": ".*"}])
    assert not match_rule(rule, view, b"").headers


def test_invalid_header_regex_never_contributes_a_match() -> None:
    view = FakeView(headers={"From": "alice@example.org"})
    only_bad = Rule(headers=[{"From": "(alice"}])
    bad_then_good = Rule(headers=[{"From": "(alice"}, {"From": "alice"}])
    assert not match_rule(only_bad, view, b"").headers
    assert match_rule(bad_then_good, view, b"").headers


def test_body_groups_are_or_of_and() -> None:
    rule = Rule(body=[["A"], ["B"]])
    assert match_rule(rule, FakeView(body="only B here"), b"").matched
    assert match_rule(rule, FakeView(body="A and B"), b"").matched
    assert not match_rule(rule, FakeView(body="neither"), b"").matched

    conjunction = Rule(body=[["A", "B"]])
    assert not match_rule(conjunction, FakeView(body="only B here"), b"").matched


def test_body_decode_failure_fails_body_part_only() -> None:
    view = FakeView(headers={"From": "alice"}, body=None)
    rule = Rule(headers=[{"From": "alice"}], body=[[".*"]])
    match = match_rule(rule, view, b"")
    assert match.headers
    assert not match.body
    assert not match.matched


def test_raw_patterns_are_searched_in_bytes() -> None:
    rule = Rule(raw=[[r"\x00\xff"]])
    assert match_rule(rule, FakeView(), b"prefix\x00\xffsuffix").matched
    assert not match_rule(rule, FakeView(), b"prefix").matched


def test_raw_sees_mime_structure_hidden_from_body() -> None:
    view = parse_mail(MULTIPART)
    raw_rule = Rule(raw=[["SEP-1234"]])
    body_rule = Rule(body=[["SEP-1234"]])
    assert match_rule(raw_rule, view, MULTIPART).matched
    assert not match_rule(body_rule, view, MULTIPART).matched


def test_non_ascii_header_pattern_matches_raw_utf8_header() -> None:
    raw = "Subject: Café menu\r\n\r\nhola\r\n".encode("utf-8")
    view = parse_mail(raw)
    rule = Rule(headers=[{"Subject": "Café"}])
    assert match_rule(rule, view, raw).matched


def test_all_configured_parts_must_match() -> None:
    view = parse_mail(MULTIPART)
    rule = Rule(
        headers=[{"subject": "report"}],
        body=[["see attached"]],
        raw=[["filename=blob\\.bin"]],
    )
    assert match_rule(rule, view, MULTIPART).matched

    wrong_raw = Rule(headers=[{"subject": "report"}], raw=[["nope"]])
    match = match_rule(wrong_raw, view, MULTIPART)
    assert match.headers and match.body
    assert not match.matched


def test_empty_group_list_never_matches() -> None:
    assert not match_rule(Rule(body=[]), FakeView(body="x"), b"").matched
    assert not match_rule(Rule(headers=[]), FakeView(), b"").matched
