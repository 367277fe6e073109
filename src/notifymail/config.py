"""Mailer configuration.

``MailerConfig`` is an immutable value built once by the caller and passed
into every send.  ``MailerConfig.from_env`` gathers it from environment
variables, optionally seeded from a ``.env`` file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


IMPLICIT_TLS_PORT = 465
DEFAULT_PORT = 587
DEFAULT_TIMEOUT = 30.0
AUTH_CHOICES = ("auto", "plain", "login")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _as_bool(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class MailerConfig:
    server: str = ""
    port: int = DEFAULT_PORT
    account: str = ""
    token: str = ""
    from_address: str = ""
    system_name: str = ""
    ssl_enabled: bool = False
    timeout: float = DEFAULT_TIMEOUT
    insecure_skip_verify: bool = False
    auth_mechanism: str = "auto"

    @property
    def sender(self) -> str:
        """Envelope sender; falls back to the account when no from-address is set."""
        return self.from_address or self.account

    @property
    def implicit_tls(self) -> bool:
        return self.port == IMPLICIT_TLS_PORT or self.ssl_enabled

    @property
    def domain(self) -> str:
        """Domain half of the account, as used in generated Message-IDs."""
        return self.account.split("@", 1)[1] if "@" in self.account else ""

    def validate(self) -> None:
        """Raise ConfigurationError if the settings cannot be used for a send."""
        if not self.server or not self.account:
            raise ConfigurationError("SMTP server or account not configured")
        if self.account.count("@") != 1 or not self.domain:
            raise ConfigurationError(f"SMTP account must be an email address: {self.account!r}")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"invalid SMTP port: {self.port}")
        if self.auth_mechanism not in AUTH_CHOICES:
            raise ConfigurationError(
                f"unknown auth mechanism {self.auth_mechanism!r} (expected one of {', '.join(AUTH_CHOICES)})"
            )

    def with_overrides(self, **changes) -> "MailerConfig":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> "MailerConfig":
        """Build a config from ``SMTP_*`` environment variables.

        When *environ* is omitted, ``.env`` (or *env_file*) is loaded into
        ``os.environ`` first; variables already set in the process win.
        """
        if environ is None:
            load_dotenv(dotenv_path=env_file)
            environ = os.environ

        try:
            port = int(environ.get("SMTP_PORT") or DEFAULT_PORT)
            timeout = float(environ.get("SMTP_TIMEOUT") or DEFAULT_TIMEOUT)
        except ValueError as e:
            raise ConfigurationError(f"invalid numeric SMTP setting: {e}") from e

        return cls(
            server=environ.get("SMTP_SERVER", "").strip(),
            port=port,
            account=environ.get("SMTP_ACCOUNT", "").strip(),
            token=environ.get("SMTP_TOKEN", ""),
            from_address=environ.get("SMTP_FROM", "").strip(),
            system_name=environ.get("SYSTEM_NAME", ""),
            ssl_enabled=_as_bool(environ.get("SMTP_SSL_ENABLED")),
            timeout=timeout,
            insecure_skip_verify=_as_bool(environ.get("SMTP_INSECURE_SKIP_VERIFY")),
            auth_mechanism=(environ.get("SMTP_AUTH_MECHANISM") or "auto").strip().lower(),
        )
