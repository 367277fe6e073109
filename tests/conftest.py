"""Shared pytest fixtures for the notifymail test suite.

Provides a ``MailerConfig`` factory and an in-memory SMTP test double that
is patched over ``smtplib.SMTP`` / ``smtplib.SMTP_SSL`` so no test ever
opens a socket.
"""

from __future__ import annotations

import smtplib
from unittest.mock import patch

import pytest

from notifymail.config import MailerConfig


class FakeSMTPClient:
    """Records every call the mailer makes and replies as *server* dictates."""

    def __init__(self, server: "FakeSMTPServer", host, port, timeout=None, context=None, implicit_tls=False):
        self.server = server
        self.host = host
        self.port = port
        self.timeout = timeout
        self.context = context
        self.implicit_tls = implicit_tls
        self.tls_active = implicit_tls
        self.commands: list[str] = []
        self.auth_responses: list[str] = []
        self.data_payloads: list[bytes] = []
        self.close_calls = 0

    def ehlo_or_helo_if_needed(self):
        self.commands.append("EHLO")
        if self.server.ehlo_error:
            raise self.server.ehlo_error

    def has_extn(self, name):
        return name.lower() in self.server.extensions

    def starttls(self, context=None):
        self.commands.append("STARTTLS")
        if self.server.starttls_error:
            raise self.server.starttls_error
        self.tls_active = True
        self.context = context

    def auth(self, mechanism, authobject, *, initial_response_ok=True):
        self.commands.append(f"AUTH {mechanism}")
        if initial_response_ok:
            self.auth_responses.append(authobject())
        else:
            for prompt in self.server.login_prompts:
                self.auth_responses.append(authobject(prompt))
        if self.server.auth_error:
            raise self.server.auth_error
        return (235, b"2.7.0 Authentication successful")

    def _putcmd(self, line):
        # smtplib sends commands as ASCII and raises UnicodeEncodeError otherwise
        line.encode("ascii")
        self.commands.append(line)

    def mail(self, sender):
        self._putcmd(f"MAIL FROM:{sender}")
        return (self.server.mail_code, b"sender reply")

    def rcpt(self, addr):
        self._putcmd(f"RCPT TO:{addr}")
        if addr in self.server.rejected:
            return (550, b"5.1.1 mailbox unavailable")
        return (250, b"2.1.5 OK")

    def data(self, payload):
        """Like smtplib: a refused DATA command raises, the end-of-data reply is returned."""
        self.commands.append("DATA")
        self.server.data_calls += 1
        if self.server.data_error:
            raise self.server.data_error
        self.data_payloads.append(payload)
        return (self.server.data_code, b"end of data reply")

    def quit(self):
        self.commands.append("QUIT")
        if self.server.quit_error:
            raise self.server.quit_error
        return (self.server.quit_code, b"quit reply")

    def close(self):
        self.close_calls += 1


class FakeSMTPServer:
    """Behaviour knobs plus the clients created against this fake server."""

    def __init__(self):
        self.extensions = {"starttls", "auth"}
        self.login_prompts = [b"Username:", b"Password:"]
        self.connect_error = None
        self.ehlo_error = None
        self.starttls_error = None
        self.auth_error = None
        self.mail_code = 250
        self.rejected: set[str] = set()
        self.data_error = None
        self.data_code = 250
        self.quit_error = None
        self.quit_code = 221
        self.data_calls = 0
        self.clients: list[FakeSMTPClient] = []

    def factory(self, implicit_tls: bool):
        def _connect(host, port, timeout=None, context=None, **kwargs):
            if self.connect_error:
                raise self.connect_error
            client = FakeSMTPClient(self, host, port, timeout, context, implicit_tls)
            self.clients.append(client)
            return client

        return _connect

    @property
    def client(self) -> FakeSMTPClient:
        return self.clients[-1]


@pytest.fixture
def smtp_server():
    """Patch smtplib's client classes with the fake and yield the fake server.

    ``smtp_server.smtp_cls`` / ``smtp_server.smtp_ssl_cls`` are the mocks
    standing in for ``smtplib.SMTP`` and ``smtplib.SMTP_SSL``.
    """
    server = FakeSMTPServer()
    with (
        patch.object(smtplib, "SMTP", side_effect=server.factory(False)) as smtp_cls,
        patch.object(smtplib, "SMTP_SSL", side_effect=server.factory(True)) as smtp_ssl_cls,
    ):
        server.smtp_cls = smtp_cls
        server.smtp_ssl_cls = smtp_ssl_cls
        yield server


@pytest.fixture
def make_config():
    """Factory fixture that builds ``MailerConfig`` objects with working defaults.

    Example::

        config = make_config(port=465, account="me@outlook.com")
    """

    def _make(**overrides) -> MailerConfig:
        defaults = dict(
            server="smtp.example.com",
            port=587,
            account="alerts@example.com",
            token="s3cret",
            from_address="",
            system_name="Status Bot",
            ssl_enabled=False,
            timeout=5.0,
            insecure_skip_verify=False,
            auth_mechanism="auto",
        )
        defaults.update(overrides)
        return MailerConfig(**defaults)

    return _make
