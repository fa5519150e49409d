"""MIME parsing adapter.

Wraps the standard library ``email`` package behind the core MessageView
port. Parsing is done with the compat32 policy so malformed headers stay
readable instead of raising deep inside the policy machinery.
"""

from __future__ import annotations

from email import policy
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.message import Message
from email.parser import BytesParser
import re
from typing import List, Optional

from mailproc.core.errors import BodyDecodeError, MailParseError

DEFAULT_CHARSET = "utf-8"

_FOLD_RE = re.compile(r"\r?\n(?=[ \t])")


def _recover_8bit(value: str) -> str:
    """Turn surrogate-escaped header bytes (raw UTF-8 headers) back into text."""

    try:
        raw = value.encode("ascii", "surrogateescape")
    except UnicodeEncodeError:
        return value
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _decode_header_value(value: str) -> str:
    unfolded = _recover_8bit(_FOLD_RE.sub("", value))
    if "=?" not in unfolded:
        return unfolded
    try:
        return str(make_header(decode_header(unfolded)))
    except (HeaderParseError, LookupError, UnicodeDecodeError, ValueError):
        # Undecodable encoded-words are matched as written.
        return unfolded


def _decode_part(part: Message) -> str:
    payload = part.get_payload(decode=True)
    if payload is None:
        return ""
    charset = part.get_content_charset() or DEFAULT_CHARSET
    try:
        return payload.decode(charset, errors="replace")
    except LookupError as exc:
        raise BodyDecodeError(f"Unknown charset {charset!r}") from exc


def _is_inline_text(part: Message) -> bool:
    return (
        not part.is_multipart()
        and part.get_content_maintype() == "text"
        and part.get_content_disposition() != "attachment"
    )


class EmailMessageView:
    """MessageView backed by an ``email.message.Message``."""

    def __init__(self, message: Message) -> None:
        self._message = message

    @property
    def message(self) -> Message:
        return self._message

    def first_header(self, name: str) -> Optional[str]:
        # raw_items skips the compat32 fetch step, which would replace
        # 8-bit bytes with U+FFFD.
        wanted = name.lower()
        for key, value in self._message.raw_items():
            if key.lower() == wanted:
                return _decode_header_value(value)
        return None

    def body_text(self) -> str:
        """Return the decoded body.

        Single-part messages decode their payload whatever the content type.
        Multipart messages yield their inline ``text/*`` leaves joined by
        newlines; boundaries, sub-part headers and attachments are left out.
        """

        if not self._message.is_multipart():
            return _decode_part(self._message)
        texts: List[str] = [
            _decode_part(part) for part in self._message.walk() if _is_inline_text(part)
        ]
        return "\n".join(texts)


def parse_mail(raw: bytes) -> EmailMessageView:
    """Parse raw message bytes, raising ``MailParseError`` when there is no message."""

    if not raw.strip():
        raise MailParseError("empty message")
    message = BytesParser(policy=policy.compat32).parsebytes(raw)
    if not message.keys():
        raise MailParseError("no header fields found")
    return EmailMessageView(message)
