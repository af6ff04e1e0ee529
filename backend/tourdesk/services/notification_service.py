"""Templated email delivery for account notifications."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Mapping
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Protocol

from fastapi.concurrency import run_in_threadpool
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from tourdesk.core import errors
from tourdesk.core.config import Settings

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_ENV = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)

SUBJECTS = {
    "welcome": "Welcome to the family!",
    "password_reset": "Your password reset link",
}


class Notifier(Protocol):
    """Delivers a named message template to one address; raises on failure."""

    async def send(
        self, *, recipient: str, template: str, context: Mapping[str, Any]
    ) -> None: ...


def render_message(
    template: str, context: Mapping[str, Any], *, app_name: str
) -> tuple[str, str]:
    """Return the subject and plain-text body for a named template."""
    try:
        body = _ENV.get_template(f"{template}.txt").render(app_name=app_name, **context)
    except TemplateNotFound as exc:
        raise ValueError(f"Unknown email template: {template}") from exc
    return SUBJECTS.get(template, app_name), body


class EmailNotifier:
    """SMTP-backed notifier; the blocking transport runs in the thread pool."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _deliver(self, recipient: str, subject: str, body: str) -> None:
        settings = self._settings
        message = EmailMessage()
        message["Subject"] = subject
        message["To"] = recipient
        message["From"] = (
            settings.smtp_from or settings.smtp_username or "no-reply@tourdesk.local"
        )
        message.set_content(body)

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            if settings.smtp_username and settings.smtp_password:
                smtp.starttls()
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(message)

    async def send(
        self, *, recipient: str, template: str, context: Mapping[str, Any]
    ) -> None:
        subject, body = render_message(
            template, context, app_name=self._settings.app_name
        )
        if not self._settings.smtp_host or not self._settings.smtp_port:
            logger.warning("SMTP settings missing; cannot deliver %s email", template)
            raise errors.NotificationError()
        try:
            await run_in_threadpool(self._deliver, recipient, subject, body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("Failed to send %s email", template)
            raise errors.NotificationError() from exc
        logger.info("Sent %s email", template)


__all__ = ["EmailNotifier", "Notifier", "SUBJECTS", "render_message"]
