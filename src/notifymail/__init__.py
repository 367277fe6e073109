"""Send HTML notification emails over SMTP."""

from .config import MailerConfig
from .errors import (
    AuthenticationError,
    ConfigurationError,
    DataTransferError,
    MailError,
    QuitError,
    RecipientRejectedError,
    SenderRejectedError,
    StartTLSError,
    TransportError,
)
from .mailer import send_email

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DataTransferError",
    "MailError",
    "MailerConfig",
    "QuitError",
    "RecipientRejectedError",
    "SenderRejectedError",
    "StartTLSError",
    "TransportError",
    "send_email",
]
