"""
Outbound email notifier (fastapi-mail over SMTP).

Without SMTP credentials the notifier runs in *simulated* mode: nothing is
sent and callers are told so through ``Delivery.simulated``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from gera.core.config import Settings, settings
from gera.core.exceptions import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    simulated: bool


class Notifier:
    def __init__(self, mailer: FastMail | None = None) -> None:
        self.mailer = mailer

    @property
    def configured(self) -> bool:
        return self.mailer is not None

    async def send(self, email: str, subject: str, body: str) -> Delivery:
        if self.mailer is None:
            logger.warning("Mail transport not configured; simulated delivery to %s", email)
            return Delivery(simulated=True)

        message = MessageSchema(
            subject=subject,
            recipients=[email],
            body=body,
            subtype=MessageType.plain,
        )
        try:
            await self.mailer.send_message(message)
        except Exception as exc:
            logger.error("Failed to send email to %s: %s", email, exc)
            raise DeliveryError() from exc
        logger.info("Email '%s' sent to %s", subject, email)
        return Delivery(simulated=False)


def build_notifier(config: Settings = settings) -> Notifier:
    """Create a notifier from settings; simulated when credentials are missing."""
    if not config.mail_configured:
        return Notifier()

    conf = ConnectionConfig(
        MAIL_USERNAME=config.MAIL_USERNAME,
        MAIL_PASSWORD=config.MAIL_PASSWORD,
        MAIL_FROM=config.MAIL_FROM or config.MAIL_USERNAME,
        MAIL_FROM_NAME=config.MAIL_FROM_NAME,
        MAIL_PORT=config.MAIL_PORT,
        MAIL_SERVER=config.MAIL_SERVER,
        MAIL_STARTTLS=config.MAIL_STARTTLS,
        MAIL_SSL_TLS=config.MAIL_SSL_TLS,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )
    return Notifier(FastMail(conf))
