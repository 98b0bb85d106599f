from __future__ import annotations

import smtplib

from dealership.core.celery_app import celery_app
from dealership.services.email_delivery import deliver_email


@celery_app.task(
    name="email.send_plain",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
)
def send_email_task(self, to_email: str, subject: str, body: str) -> None:
    """Send a plain-text email message asynchronously."""
    deliver_email(to_email, subject, body)
