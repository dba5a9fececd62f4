"""Transactional email providers."""

import logging
from dataclasses import dataclass
from html import escape

import httpx

from feed_mirror.config import EmailConfig, FetchConfig
from feed_mirror.errors import ExternalAPIError
from feed_mirror.models import MirroredItem
from feed_mirror.publish.render import format_timestamp
from feed_mirror.utils.retry import retry_async
from feed_mirror.utils.urls import is_valid_email

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    sender: str
    sender_name: str
    recipients: list[str]
    subject: str
    html: str
    text: str
    reply_to: str | None = None


class EmailProvider:
    name = ""
    url = ""

    def headers(self) -> dict:
        return {"Content-Type": "application/json"}

    def payload(self, message: EmailMessage) -> dict:
        raise NotImplementedError


class MailChannelsProvider(EmailProvider):
    name = "mailchannels"
    url = "https://api.mailchannels.net/tx/v1/send"

    def payload(self, message: EmailMessage) -> dict:
        body = {
            "personalizations": [{"to": [{"email": r} for r in message.recipients]}],
            "from": {"email": message.sender, "name": message.sender_name},
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.text},
                {"type": "text/html", "value": message.html},
            ],
        }
        if message.reply_to:
            body["reply_to"] = {"email": message.reply_to}
        return body


class ResendProvider(EmailProvider):
    name = "resend"
    url = "https://api.resend.com/emails"

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("RESEND_API_KEY is required for the resend provider")
        self._api_key = api_key

    def headers(self) -> dict:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {self._api_key}"}

    def payload(self, message: EmailMessage) -> dict:
        body = {
            "from": f"{message.sender_name} <{message.sender}>",
            "to": message.recipients,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.reply_to:
            body["reply_to"] = message.reply_to
        return body


def build_provider(config: EmailConfig) -> EmailProvider:
    if config.provider == "resend":
        return ResendProvider(config.resend_api_key or "")
    if config.provider == "mailchannels":
        return MailChannelsProvider()
    raise ValueError(f"Unknown email provider: {config.provider}")


def valid_recipients(recipients: list[str]) -> list[str]:
    valid = []
    for email in recipients:
        if is_valid_email(email):
            valid.append(email.strip())
        else:
            logger.warning(f"Ignoring invalid recipient email: {email!r}")
    return valid


def build_message(item: MirroredItem, public_url: str, config: EmailConfig) -> EmailMessage | None:
    """Notification email for a newly published item, or None when email is not usable."""
    if not config.enabled:
        logger.info("Email disabled, skipping notification")
        return None
    if not config.sender or not config.recipients:
        logger.warning("Email not configured, skipping notification")
        return None
    if not is_valid_email(config.sender):
        logger.warning(f"Invalid sender email: {config.sender!r}")
        return None

    recipients = valid_recipients(config.recipients)
    if not recipients:
        logger.warning("No valid email recipients configured")
        return None

    reply_to = config.reply_to if is_valid_email(config.reply_to) else None
    when = format_timestamp(item.published_at)
    html = f"""
<h2>Novo item detectado</h2>
<p><strong>Título:</strong> {escape(item.title)}</p>
<p><strong>URL original:</strong> <a href="{escape(item.source_url)}">{escape(item.source_url)}</a></p>
<p><strong>Data:</strong> {escape(when)}</p>
<p><strong>Revisão:</strong> {escape(item.revision or "N/A")}</p>
<p><strong>URL pública:</strong> <a href="{escape(public_url)}">{escape(public_url)}</a></p>
"""
    if item.store_url and item.store_url != public_url:
        html += f'<p><strong>GitHub:</strong> <a href="{escape(item.store_url)}">{escape(item.store_url)}</a></p>\n'
    html += "<hr>\n<p><small>Mensagem automática do monitoramento de feeds.</small></p>\n"

    text = (
        f"Novo item detectado\n\n"
        f"Título: {item.title}\n"
        f"URL original: {item.source_url}\n"
        f"Data: {when}\n"
        f"Revisão: {item.revision or 'N/A'}\n"
        f"URL pública: {public_url}\n"
    )

    return EmailMessage(
        sender=config.sender,
        sender_name=config.sender_name,
        recipients=recipients,
        subject=f"Novo item detectado: {item.title}",
        html=html,
        text=text,
        reply_to=reply_to,
    )


async def send_email(
    client: httpx.AsyncClient,
    provider: EmailProvider,
    message: EmailMessage,
    config: EmailConfig,
    fetch_config: FetchConfig,
) -> None:
    """Send through the provider, retrying transient failures."""

    async def _send() -> None:
        response = await client.post(
            provider.url,
            headers=provider.headers(),
            json=provider.payload(message),
            timeout=config.request_timeout,
        )
        if not response.is_success:
            raise ExternalAPIError(
                f"{provider.name} error: {response.status_code} - {response.text}",
                status=response.status_code,
                body=response.text,
            )

    await retry_async(
        _send,
        attempts=fetch_config.attempts,
        base_delay=fetch_config.retry_base_delay,
        description=f"{provider.name} email",
    )
    logger.info(f"Sent notification email via {provider.name} to {len(message.recipients)} recipients")
