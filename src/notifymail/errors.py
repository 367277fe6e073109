"""Exception types raised by the mailer.

Every failure of a send is reported as a subclass of :class:`MailError`.
The underlying ``smtplib`` / socket / ssl exception, when there is one,
is chained as ``__cause__``.
"""

from __future__ import annotations


class MailError(Exception):
    """Base class for every error raised while sending an email."""


class ConfigurationError(MailError):
    """Server, account, or recipients are missing or malformed."""


class TransportError(MailError):
    """TCP connect, TLS handshake, or client construction failed."""


class StartTLSError(MailError):
    """The server offered STARTTLS but the upgrade failed."""


class AuthenticationError(MailError):
    pass


class SenderRejectedError(MailError):
    pass


class RecipientRejectedError(MailError):
    """A single recipient was refused by the server.

    The whole send is aborted; no other recipient receives the message.
    """

    def __init__(self, recipient: str, message: str) -> None:
        super().__init__(message)
        self.recipient = recipient


class DataTransferError(MailError):
    """Opening, writing, or finalising the DATA stream failed."""


class QuitError(MailError):
    pass
