"""SMTP authentication mechanisms and the provider classifier that picks one.

Most servers accept ``AUTH PLAIN``.  Outlook / Microsoft 365 submission
servers expect the challenge-response ``AUTH LOGIN`` exchange instead.
"""

from __future__ import annotations

import logging
import smtplib
from enum import Enum
from typing import Optional

from .config import MailerConfig

log = logging.getLogger(__name__)

OUTLOOK_MARKERS = ("outlook", "onmicrosoft")
LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class AuthMechanism(str, Enum):
    PLAIN = "PLAIN"
    LOGIN = "LOGIN"


def is_outlook_account(account: str) -> bool:
    """True for Outlook.com / Microsoft 365 accounts (regional domains included)."""
    account = account.lower()
    return any(marker in account for marker in OUTLOOK_MARKERS)


def select_mechanism(config: MailerConfig) -> AuthMechanism:
    """Honor an explicit ``auth_mechanism`` setting, otherwise classify the account."""
    if config.auth_mechanism == "plain":
        return AuthMechanism.PLAIN
    if config.auth_mechanism == "login":
        return AuthMechanism.LOGIN
    return AuthMechanism.LOGIN if is_outlook_account(config.account) else AuthMechanism.PLAIN


class PlainAuth:
    """``AUTH PLAIN`` sent as an initial response: ``\\0user\\0password``."""

    initial_response_ok = True

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def __call__(self, challenge: Optional[bytes] = None) -> str:
        return f"\0{self.username}\0{self.password}"


class LoginAuth:
    """``AUTH LOGIN``: answer the server's ``Username:`` and ``Password:`` prompts."""

    initial_response_ok = False

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def __call__(self, challenge: Optional[bytes] = None) -> str:
        prompt = (challenge or b"").decode("ascii", "replace").strip().rstrip(":").lower()
        if prompt == "username":
            return self.username
        if prompt == "password":
            return self.password
        raise smtplib.SMTPAuthenticationError(334, b"unexpected LOGIN challenge: " + (challenge or b""))


def make_authenticator(mechanism: AuthMechanism, config: MailerConfig):
    if mechanism is AuthMechanism.LOGIN:
        return LoginAuth(config.account, config.token)
    return PlainAuth(config.account, config.token)


def authenticate(client: smtplib.SMTP, mechanism: AuthMechanism, config: MailerConfig, *, encrypted: bool) -> None:
    """Run the AUTH exchange on *client*.

    PLAIN credentials are only sent over TLS or to a local server.  Errors
    propagate as ``smtplib.SMTPException`` subclasses.
    """
    if mechanism is AuthMechanism.PLAIN and not encrypted and config.server.lower() not in LOCAL_HOSTS:
        raise smtplib.SMTPAuthenticationError(530, b"refusing PLAIN auth over an unencrypted connection")

    authobject = make_authenticator(mechanism, config)
    log.debug("Authenticating %s with AUTH %s", config.account, mechanism.value)
    client.auth(mechanism.value, authobject, initial_response_ok=authobject.initial_response_ok)
