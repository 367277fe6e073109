"""Deliver one HTML email over SMTP.

``send_email`` runs a strictly linear session and stops at the first
failing step:

    connect -> (STARTTLS) -> AUTH -> MAIL FROM -> RCPT TO... -> DATA -> QUIT

Port 465, or ``ssl_enabled``, selects implicit TLS.  Any other port starts
in plaintext and upgrades with STARTTLS when the server offers it.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from typing import Optional, Tuple

from .auth import authenticate, select_mechanism
from .config import MailerConfig
from .errors import (
    AuthenticationError,
    ConfigurationError,
    DataTransferError,
    QuitError,
    RecipientRejectedError,
    SenderRejectedError,
    StartTLSError,
    TransportError,
)
from .message import build_message, generate_message_id, parse_recipients

log = logging.getLogger(__name__)

# smtplib.SMTPException is itself an OSError subclass.
_SMTP_ERRORS = (smtplib.SMTPException, OSError)


def tls_context(config: MailerConfig) -> ssl.SSLContext:
    """Default verifying context, or an unverified one when explicitly requested."""
    context = ssl.create_default_context()
    if config.insecure_skip_verify:
        log.warning("TLS certificate verification is disabled for %s; do not use this in production", config.server)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def connect(config: MailerConfig, timeout: float) -> Tuple[smtplib.SMTP, bool]:
    """Open a session and return ``(client, encrypted)``.

    On failure after the client exists, the client is closed before the
    error is raised.
    """
    context = tls_context(config)
    addr = f"{config.server}:{config.port}"

    if config.implicit_tls:
        log.debug("Connecting to %s with implicit TLS", addr)
        try:
            client = smtplib.SMTP_SSL(config.server, config.port, timeout=timeout, context=context)
        except _SMTP_ERRORS as e:
            raise TransportError(f"failed to connect via TLS to {addr}: {e}") from e
        return client, True

    log.debug("Connecting to %s", addr)
    try:
        client = smtplib.SMTP(config.server, config.port, timeout=timeout)
    except _SMTP_ERRORS as e:
        raise TransportError(f"failed to connect to SMTP server {addr}: {e}") from e

    try:
        client.ehlo_or_helo_if_needed()
    except _SMTP_ERRORS as e:
        client.close()
        raise TransportError(f"failed to create SMTP client for {addr}: {e}") from e

    if not client.has_extn("starttls"):
        log.warning("%s does not offer STARTTLS; continuing unencrypted", addr)
        return client, False

    try:
        client.starttls(context=context)
    except _SMTP_ERRORS as e:
        client.close()
        raise StartTLSError(f"failed to start TLS: {e}") from e
    return client, True


def send_email(
    config: MailerConfig,
    subject: str,
    receiver: str,
    content: str,
    *,
    timeout: Optional[float] = None,
) -> str:
    """Send *content* (HTML) to every ``;``-separated address in *receiver*.

    Returns the Message-ID of the delivered message.  Raises a
    :class:`~notifymail.errors.MailError` subclass naming the failed step;
    nothing is retried and a single rejected recipient aborts the send.
    """
    config.validate()
    recipients = parse_recipients(receiver)
    if not recipients:
        raise ConfigurationError(f"no recipients in {receiver!r}")
    for value in [config.system_name, config.sender, *recipients]:
        if "\r" in value or "\n" in value:
            raise ConfigurationError(f"line break in header value {value!r}")

    message_id = generate_message_id(config.account)
    data = build_message(config, subject, recipients, content, message_id=message_id)

    client, encrypted = connect(config, config.timeout if timeout is None else timeout)
    try:
        mechanism = select_mechanism(config)
        try:
            authenticate(client, mechanism, config, encrypted=encrypted)
        except (*_SMTP_ERRORS, UnicodeError) as e:
            raise AuthenticationError(f"authentication failed ({mechanism.value}): {e}") from e

        # smtplib encodes commands as ASCII unless SMTPUTF8 is negotiated
        try:
            code, resp = client.mail(config.sender)
        except (*_SMTP_ERRORS, UnicodeError) as e:
            raise SenderRejectedError(f"failed to set sender {config.sender}: {e}") from e
        if code != 250:
            raise SenderRejectedError(f"failed to set sender {config.sender}: {code} {resp!r}")

        for addr in recipients:
            try:
                code, resp = client.rcpt(addr)
            except (*_SMTP_ERRORS, UnicodeError) as e:
                raise RecipientRejectedError(addr, f"failed to add recipient {addr}: {e}") from e
            if code not in (250, 251):
                raise RecipientRejectedError(addr, f"failed to add recipient {addr}: {code} {resp!r}")

        # data() raises only when DATA itself is refused; the reply to the
        # final "." comes back as a return value.
        try:
            code, resp = client.data(data)
        except _SMTP_ERRORS as e:
            raise DataTransferError(f"failed to write email content: {e}") from e
        if code != 250:
            raise DataTransferError(f"failed to close data writer: {code} {resp!r}")

        try:
            code, resp = client.quit()
        except _SMTP_ERRORS as e:
            raise QuitError(f"failed to quit SMTP session: {e}") from e
        if code != 221:
            raise QuitError(f"failed to quit SMTP session: {code} {resp!r}")
    finally:
        client.close()

    log.info("Sent email %s to %s", message_id, ", ".join(recipients))
    return message_id
