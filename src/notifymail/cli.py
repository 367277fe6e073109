"""CLI entry point for notifymail.

Loads SMTP settings from the environment (and ``.env``), lets flags
override them, and sends one HTML email.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import AUTH_CHOICES, MailerConfig
from .errors import MailError
from .logging_config import setup_logging
from .mailer import send_email

log = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Build the argument parser and return parsed arguments."""
    parser = argparse.ArgumentParser(
        prog="notifymail",
        description="Send an HTML notification email over SMTP.",
    )

    parser.add_argument("--to", required=True, help='Recipients separated by ";"')
    parser.add_argument("--subject", required=True, help="Subject line (any Unicode)")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--body", help="HTML body")
    body.add_argument("--body-file", help="Read the HTML body from a file")

    smtp = parser.add_argument_group("SMTP settings (default: SMTP_* environment variables)")
    smtp.add_argument("--env-file", help="Load environment variables from this .env file")
    smtp.add_argument("--server", help="SMTP host [SMTP_SERVER]")
    smtp.add_argument("--port", type=int, help="SMTP port; 465 implies implicit TLS [SMTP_PORT]")
    smtp.add_argument("--account", help="Login account, an email address [SMTP_ACCOUNT]")
    smtp.add_argument("--token", help="Password or app token [SMTP_TOKEN]")
    smtp.add_argument("--from", dest="from_address", help="Envelope sender if not the account [SMTP_FROM]")
    smtp.add_argument("--system-name", help="Display name in the From header [SYSTEM_NAME]")
    smtp.add_argument("--ssl", dest="ssl_enabled", action="store_const", const=True, help="Force implicit TLS [SMTP_SSL_ENABLED]")
    smtp.add_argument("--timeout", type=float, help="Socket timeout in seconds [SMTP_TIMEOUT]")
    smtp.add_argument("--auth", dest="auth_mechanism", choices=AUTH_CHOICES, help="Auth mechanism [SMTP_AUTH_MECHANISM]")
    smtp.add_argument(
        "--insecure-skip-verify",
        action="store_const",
        const=True,
        help="Disable TLS certificate verification (testing only) [SMTP_INSECURE_SKIP_VERIFY]",
    )

    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    return parser.parse_args(argv)


def read_body(args: argparse.Namespace) -> str:
    if args.body is not None:
        return args.body
    if args.body_file:
        return Path(args.body_file).read_text(encoding="utf-8")
    return sys.stdin.read()


def main(argv=None) -> None:
    """Entry point: resolve settings, read the body, send, print the Message-ID."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = MailerConfig.from_env(Path(args.env_file) if args.env_file else None).with_overrides(
            server=args.server,
            port=args.port,
            account=args.account,
            token=args.token,
            from_address=args.from_address,
            system_name=args.system_name,
            ssl_enabled=args.ssl_enabled,
            timeout=args.timeout,
            auth_mechanism=args.auth_mechanism,
            insecure_skip_verify=args.insecure_skip_verify,
        )
        content = read_body(args)
    except (MailError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        message_id = send_email(config, args.subject, args.to, content)
    except MailError as e:
        log.debug("Send failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(message_id)


if __name__ == "__main__":
    main()
