import logging
import smtplib
from datetime import date, time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from sifixa.core.config import settings

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send")
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except (smtplib.SMTPException, OSError) as e:
        # Confirmation mail is best effort; the booking is already committed
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _format_window(slot_name: str | None, start: time | None, end: time | None) -> str:
    times = ""
    if start and end:
        times = f"{start.strftime('%I:%M %p')} – {end.strftime('%I:%M %p')}"
    if slot_name and times:
        return f"{slot_name} ({times})"
    return slot_name or times or "Any time"


def _detail_row(label: str, value: str) -> str:
    return f"""
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;letter-spacing:0.5px;color:#6b7280;">{label}</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{value}</p>"""


def build_booking_confirmation_html(
    recipient_name: str,
    tracking_number: str,
    scheduled_date: date,
    window: str,
    device_name: str | None,
    issue: str | None,
) -> str:
    """Build HTML body for a repair booking confirmation. Arguments must already be escaped."""
    logo_html = ""
    if settings.email_logo_url:
        logo_html = f'<img src="{settings.email_logo_url}" alt="{settings.site_name}" width="120" style="display:block;margin-bottom:24px;" />'
    rows = _detail_row("Tracking number", tracking_number)
    rows += _detail_row("Date", scheduled_date.strftime("%A, %B %d, %Y"))
    rows += _detail_row("Drop-off window", window)
    if device_name:
        rows += _detail_row("Device", device_name)
    issue_section = ""
    if issue:
        issue_section = f"""
        <p style="margin:0 0 16px 0;color:#374151;"><strong>Reported issue:</strong></p>
        <p style="margin:0 0 24px 0;color:#6b7280;font-size:14px;">{issue}</p>
        """
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Repair Booking Confirmation</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Oxygen,Ubuntu,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;box-shadow:0 4px 6px rgba(0,0,0,0.05);overflow:hidden;">
          <tr>
            <td style="padding:32px 32px 24px 32px;">
              {logo_html}
              <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#111827;">Repair Booking Received</h1>
              <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">Hi {recipient_name or 'there'}, your repair appointment is booked.</p>
              <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background:#f9fafb;border-radius:8px;margin-bottom:24px;">
                <tr>
                  <td style="padding:8px 24px 20px 24px;">{rows}
                  </td>
                </tr>
              </table>
              {issue_section}
              <p style="margin:0 0 8px 0;font-size:14px;color:#374151;">Use your tracking number to check the status of your booking. To reschedule or cancel, please contact us.</p>
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px 32px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
              <p style="margin:0 0 4px 0;font-size:13px;font-weight:600;color:#111827;">{settings.site_name}</p>
              <p style="margin:0;font-size:13px;color:#6b7280;">
                {settings.contact_email} &nbsp;·&nbsp; {settings.contact_phone}<br>
                {settings.contact_address}
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def send_booking_confirmation_email(
    to_email: str,
    recipient_name: str | None,
    tracking_number: str,
    scheduled_date: date,
    slot_name: str | None = None,
    start_time: time | None = None,
    end_time: time | None = None,
    device_name: str | None = None,
    issue: str | None = None,
) -> None:
    """Compose and send a booking confirmation (call from background task)."""
    subject = f"{settings.site_name} – Booking {tracking_number} Confirmed"
    html = build_booking_confirmation_html(
        recipient_name=escape(recipient_name or ""),
        tracking_number=escape(tracking_number),
        scheduled_date=scheduled_date,
        window=escape(_format_window(slot_name, start_time, end_time)),
        device_name=escape(device_name) if device_name else None,
        issue=escape(issue) if issue else None,
    )
    _send_email_sync(to_email, subject, html)
