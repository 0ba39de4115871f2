"""Transactional email: registration confirmation, reminders and event updates.

Every ``send_*`` method returns True on success and False on failure. Transport
errors are logged here and never raised, so callers can treat email as
best-effort.
"""
import html
import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Optional

import pytz

from eventhub.config import settings
from eventhub.services.status_service import as_utc

logger = logging.getLogger(__name__)

_STYLE = """
  body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
  .container { max-width: 600px; margin: 0 auto; padding: 20px; }
  .header { background: %(accent)s; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }
  .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }
  .event-details { background: white; padding: 20px; border-radius: 8px; margin: 20px 0; }
  .label { font-weight: bold; }
  .footer { text-align: center; margin-top: 20px; color: #666; font-size: 12px; }
"""


def format_event_time(value: datetime, tz_name: str = "UTC") -> str:
    """Render an event start in the recipient's timezone, e.g. 'Friday, March 6, 2026 at 06:30 PM CET'."""
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    local = as_utc(value).astimezone(tz)
    return local.strftime("%A, %B %d, %Y at %I:%M %p %Z")


def _render(heading: str, accent: str, greeting_name: str, intro: str,
            event_summary: dict[str, Any], tz_name: str, extra: str = "") -> str:
    rows = [
        ("Event", event_summary.get("title", "")),
        ("Date &amp; Time", format_event_time(event_summary["date_time"], tz_name)),
        ("Location", event_summary.get("location", "")),
    ]
    if event_summary.get("description"):
        rows.append(("Description", event_summary["description"]))
    details = "".join(
        f'<div><span class="label">{label}:</span> {html.escape(str(value))}</div>'
        for label, value in rows
    )
    return f"""<!DOCTYPE html>
<html>
<head><style>{_STYLE % {"accent": accent}}</style></head>
<body>
  <div class="container">
    <div class="header"><h1>{heading}</h1></div>
    <div class="content">
      <p>Hi <strong>{html.escape(greeting_name)}</strong>,</p>
      <p>{intro}</p>
      {extra}
      <div class="event-details">{details}</div>
    </div>
    <div class="footer"><p>{html.escape(settings.EMAIL_FROM_NAME)}</p></div>
  </div>
</body>
</html>"""


class EmailNotifier:
    """SMTP-backed notifier. One connection per message; no pooling."""

    def __init__(
        self,
        host: str = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        username: str = settings.SMTP_USER,
        password: str = settings.SMTP_PASSWORD,
        from_name: str = settings.EMAIL_FROM_NAME,
        enabled: bool = settings.EMAIL_ENABLED,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_name = from_name
        self.enabled = enabled

    def send_email(self, to: str, subject: str, body_html: str, to_name: Optional[str] = None) -> bool:
        if not self.enabled:
            logger.info("Email disabled; skipping '%s' to %s", subject, to)
            return True
        if not self.username or not to:
            logger.warning("Email not sent to %r: SMTP credentials or recipient missing", to)
            return False

        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.from_name, self.username))
        msg["To"] = formataddr((to_name, to)) if to_name else to
        msg["Subject"] = subject
        msg.attach(MIMEText(body_html, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email sending to %s failed: %s", to, exc)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True

    def send_registration_confirmation(self, recipient: str, name: str, event_summary: dict[str, Any],
                                       tz_name: str = "UTC") -> bool:
        subject = f"Registration Confirmed: {event_summary['title']}"
        body = _render(
            "Registration Confirmed!", "#667eea", name,
            "Great news! You've successfully registered for the event:",
            event_summary, tz_name,
        )
        return self.send_email(recipient, subject, body, to_name=name)

    def send_event_reminder(self, recipient: str, name: str, event_summary: dict[str, Any],
                            lead_time_label: str, tz_name: str = "UTC") -> bool:
        subject = f"Reminder: {event_summary['title']} - {lead_time_label}"
        body = _render(
            "Event Reminder", "#f5576c", name,
            f"This is a friendly reminder that your event starts <strong>{html.escape(lead_time_label)}</strong>.",
            event_summary, tz_name,
        )
        return self.send_email(recipient, subject, body, to_name=name)

    def send_event_update(self, recipient: str, name: str, event_summary: dict[str, Any],
                          message: str, tz_name: str = "UTC") -> bool:
        subject = f"Event Update: {event_summary['title']}"
        body = _render(
            "Event Update", "#4facfe", name,
            "There's an update for an event you're registered for:",
            event_summary, tz_name,
            extra=f"<p><strong>{html.escape(message)}</strong></p>",
        )
        return self.send_email(recipient, subject, body, to_name=name)


def notify_safely(send, *args, **kwargs) -> bool:
    """Call a notifier method, logging and swallowing any failure."""
    try:
        ok = send(*args, **kwargs)
    except Exception:
        logger.exception("Notification %s failed", getattr(send, "__name__", send))
        return False
    if not ok:
        logger.warning("Notification %s reported failure", getattr(send, "__name__", send))
    return bool(ok)
