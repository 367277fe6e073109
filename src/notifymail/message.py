"""Build the raw RFC 5322 message sent in the DATA phase.

The message is a single ``text/html`` part with a Base64-encoded UTF-8
subject and CRLF line endings.
"""

from __future__ import annotations

import base64
import secrets
import string
import time
from email.utils import formataddr, formatdate
from typing import List, Optional

from .config import MailerConfig


_ID_ALPHABET = string.ascii_letters + string.digits
_ID_RANDOM_LEN = 12


def parse_recipients(receiver: str) -> List[str]:
    """Split a ``;``-separated recipient string into trimmed addresses.

    Empty entries (e.g. from a trailing ``;``) are dropped.
    """
    return [addr.strip() for addr in receiver.split(";") if addr.strip()]


def encode_subject(subject: str) -> str:
    """Return *subject* as a single Base64 MIME encoded-word."""
    payload = base64.b64encode(subject.encode("utf-8")).decode("ascii")
    return f"=?UTF-8?B?{payload}?="


def random_string(length: int = _ID_RANDOM_LEN) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def generate_message_id(account: str) -> str:
    """Return a fresh ``<nanos.random@domain>`` Message-ID for *account*."""
    domain = account.split("@", 1)[1]
    return f"<{time.time_ns()}.{random_string()}@{domain}>"


def build_message(
    config: MailerConfig,
    subject: str,
    recipients: List[str],
    content: str,
    *,
    message_id: Optional[str] = None,
    date: Optional[str] = None,
) -> bytes:
    """Assemble headers and HTML body into the bytes written after DATA.

    *content* is inserted verbatim; escaping is the caller's job.
    """
    headers = [
        ("To", ", ".join(recipients)),
        ("From", formataddr((config.system_name, config.sender), charset="utf-8")),
        ("Subject", encode_subject(subject)),
        ("Date", date or formatdate(localtime=True)),
        ("Message-ID", message_id or generate_message_id(config.account)),
        ("MIME-Version", "1.0"),
        ("Content-Type", "text/html; charset=UTF-8"),
    ]
    head = "".join(f"{name}: {value}\r\n" for name, value in headers)
    return f"{head}\r\n{content}\r\n".encode("utf-8")
