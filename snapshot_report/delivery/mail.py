"""
Send the rendered report as an HTML email through an SMTP relay.
"""

import logging
import smtplib
from email.message import EmailMessage

from snapshot_report.exceptions import DeliveryError
from snapshot_report.models import report_title

logger = logging.getLogger(__name__)

DEFAULT_SMTP_PORT = 25


def build_message(html: str, server: str, mail_config: dict) -> EmailMessage:
    """Build the report email with the HTML as its body."""
    msg = EmailMessage()
    msg["To"] = mail_config["to"]
    msg["From"] = mail_config["from"]
    msg["Subject"] = report_title(server)
    msg.set_content(html, subtype="html", charset="utf-8")
    return msg


def send_report(html: str, server: str, mail_config: dict, report_path: str | None = None) -> None:
    """
    Mail the report.

    Args:
        html: Rendered report
        server: Management server name, used in the subject
        mail_config: ``mail`` section of the workspace configuration
        report_path: Written report file, mentioned in the error if sending fails

    Raises:
        DeliveryError: If the message cannot be handed to the relay
    """
    missing = [key for key in ("to", "from", "relay") if not mail_config.get(key)]
    if missing:
        raise DeliveryError(
            mail_config.get("relay") or "<unset>",
            f"mail settings missing: {', '.join(missing)}",
            report_path,
        )

    relay = mail_config["relay"]
    port = mail_config.get("port", DEFAULT_SMTP_PORT)
    msg = build_message(html, server, mail_config)

    try:
        with smtplib.SMTP(relay, port) as smtp:
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise DeliveryError(f"{relay}:{port}", str(e), report_path) from e

    logger.info(f"Mailed report to {mail_config['to']} via {relay}:{port}")
