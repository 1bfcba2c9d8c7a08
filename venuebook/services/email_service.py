import logging
import re
import smtplib
import uuid
from datetime import datetime, timezone
from email.message import EmailMessage

import requests
from sqlalchemy.orm import Session

from venuebook.core.config import settings
from venuebook.models.email_log import EmailLog

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def queue_email(db: Session, to_email: str, subject: str, html: str, related_booking_ref: str = "") -> EmailLog:
    """Record and attempt immediate send. The HTML is stored so the worker can retry on failure."""
    log = EmailLog(
        id=str(uuid.uuid4()),
        to_email=to_email,
        subject=subject,
        html=html,
        status="queued",
        related_booking_ref=related_booking_ref,
    )
    db.add(log)
    db.commit()
    _attempt(log)
    db.commit()
    return log


def _attempt(log: EmailLog) -> bool:
    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.html or "")
    except Exception as e:
        log.status = "failed"
        log.last_error = str(e)[:500]
        logger.warning("email %s to %s failed (attempt %s): %s", log.id, log.to_email, log.attempts, e)
        return False
    log.status = "sent"
    log.sent_at = datetime.now(timezone.utc)
    log.last_error = ""
    return True


def send_email(to_email: str, subject: str, html: str):
    """Send via the Resend API if configured, otherwise SMTP (MailHog recommended for local)."""
    if settings.RESEND_API_KEY:
        _send_via_resend(to_email, subject, html)
        return

    msg = EmailMessage()
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(_TAG_RE.sub("", html))
    msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_resend(to_email: str, subject: str, html: str):
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }

    r = requests.post(
        settings.RESEND_API_URL,
        json=payload,
        headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"Resend error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Retry up to `limit` queued or failed emails and update their status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_(["queued", "failed"]), EmailLog.html.isnot(None), EmailLog.html != "")
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        if _attempt(log):
            sent += 1
        else:
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
