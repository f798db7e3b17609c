# app/services/notify_email.py

import html
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """No provider could deliver the message."""


# ===================================================================
# BASE TEMPLATE - compact CityCare card
# ===================================================================

TPL_BASE = """
<table width="100%%" cellpadding="0" cellspacing="0" style="background:#eef2f7;padding:24px;">
  <tr><td align="center">
    <table width="600" cellpadding="0" cellspacing="0"
           style="background:#ffffff;border-radius:12px;
                  padding:24px;font-family:Arial,Helvetica,sans-serif;
                  color:#111827;border:1px solid #e5e7eb;">
      <tr>
        <td align="center" style="padding-bottom:16px;font-size:20px;font-weight:700;">
          CityCare
        </td>
      </tr>
      <tr>
        <td style="font-size:14px;line-height:1.6;">
          %s
        </td>
      </tr>
      <tr>
        <td style="padding-top:16px;font-size:11px;color:#6b7280;border-top:1px solid #e5e7eb;">
          This is an automated message from <strong>CityCare</strong>.
        </td>
      </tr>
    </table>
  </td></tr>
</table>
"""


def _from_header() -> Optional[str]:
    addr = settings.email_from_address or settings.smtp_username
    if not addr:
        return None
    name = settings.email_from_name
    return f"{name} <{addr}>" if name else addr


def smtp_configured() -> bool:
    return bool(settings.smtp_host and settings.smtp_port and settings.smtp_username and settings.smtp_password)


def resend_configured() -> bool:
    return bool(settings.resend_api_key and settings.email_from_address)


# ===================================================================
# Providers
# ===================================================================

def _send_email_via_smtp(to_email: str, subject: str, text: str, html_content: Optional[str] = None):
    """Send one message over SMTP (implicit SSL or STARTTLS). Raises on failure."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = _from_header()
    msg["To"] = to_email
    msg.attach(MIMEText(text, "plain"))
    if html_content:
        msg.attach(MIMEText(html_content, "html"))

    if settings.smtp_use_ssl:
        server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=15)
    else:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15)
        server.starttls()
    try:
        server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)
    finally:
        server.quit()


def _send_email_via_resend(to_email: str, subject: str, text: str, html_content: Optional[str] = None):
    """Send one message through the Resend API. Raises on failure."""
    resend.api_key = settings.resend_api_key
    params = {
        "from": _from_header(),
        "to": [to_email],
        "subject": subject,
        "text": text,
    }
    if html_content:
        params["html"] = html_content
    resend.Emails.send(params)


def _send_email(to_email: str, subject: str, text: str, html_content: Optional[str] = None) -> str:
    """
    Deliver with SMTP when configured, falling back to Resend.
    Returns the provider used; raises EmailDeliveryError when none worked.
    """
    if smtp_configured():
        try:
            _send_email_via_smtp(to_email, subject, text, html_content)
            return "smtp"
        except Exception as e:
            logger.error(f"SMTP send failed, falling back to Resend if available: {e}", exc_info=True)

    if resend_configured():
        try:
            _send_email_via_resend(to_email, subject, text, html_content)
            return "resend"
        except Exception as e:
            logger.error(f"Failed to send email via Resend: {e}", exc_info=True)
            raise EmailDeliveryError(f"Failed to send message: {e}") from e

    raise EmailDeliveryError("No email provider configured. Set SMTP_* env vars or RESEND_API_KEY.")


# ===================================================================
# Contact form
# ===================================================================

def send_contact_message(name: str, email: str, message: str) -> str:
    """Forward a contact-form message to the city inbox and confirm to the sender."""
    safe_name = html.escape(name)
    safe_email = html.escape(email)
    body = html.escape(message).replace("\n", "<br/>")
    html_content = TPL_BASE % f"""
    <p><strong>From:</strong> {safe_name} &lt;{safe_email}&gt;</p>
    <p><strong>Message:</strong></p>
    <div>{body}</div>
    """
    provider = _send_email(
        settings.contact_recipient,
        f"New contact form message from {name}",
        f"{message}\n\nFrom: {name} <{email}>",
        html_content,
    )

    try:
        _send_email(
            email,
            "We've received your message",
            f"Hi {name},\n\nThanks for contacting us. We'll review your message "
            "and get back to you shortly.\n\n- CityCare Team",
        )
    except EmailDeliveryError as e:
        logger.error(f"Failed to send confirmation email: {e}", exc_info=True)

    return provider
