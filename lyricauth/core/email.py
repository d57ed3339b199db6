"""Email delivery via the Resend API.

Delivery is best-effort: send() never raises. It returns Delivered or
DeliveryFailed(reason) and callers decide what a failure means. Registration
treats both as success.
"""

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote, urlencode

import httpx

from lyricauth.core.config import Settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"

VERIFICATION_SUBJECT = "Verify your email"


@dataclass(frozen=True)
class Delivered:
    """The mail provider accepted the message."""

    ok: bool = True


@dataclass(frozen=True)
class DeliveryFailed:
    """The message could not be handed to the mail provider.

    Attributes:
        reason: Short operator-facing description (never shown to users).
    """

    reason: str
    ok: bool = False


DeliveryResult = Delivered | DeliveryFailed


class Mailer(Protocol):
    """Outbound mail collaborator."""

    async def send(self, *, to: str, subject: str, body: str) -> DeliveryResult: ...


class ResendMailer:
    """Sends plain-text email through the Resend HTTP API.

    Args:
        api_key: Resend API key.
        sender: From address.
        timeout: Upper bound in seconds for the whole request.
        client: Optional shared httpx client (tests inject a mock transport).
    """

    def __init__(
        self,
        *,
        api_key: str,
        sender: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._timeout = timeout
        self._client = client

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> None:
        resp = await client.post(
            _RESEND_API_URL,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json=payload,
            timeout=self._timeout,
        )
        resp.raise_for_status()

    async def send(self, *, to: str, subject: str, body: str) -> DeliveryResult:
        payload = {
            "from": self._sender,
            "to": to,
            "subject": subject,
            "text": body,
        }
        try:
            if self._client is not None:
                await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    await self._post(client, payload)
        except httpx.TimeoutException:
            return DeliveryFailed("timed out")
        except httpx.HTTPStatusError as exc:
            return DeliveryFailed(f"provider returned {exc.response.status_code}")
        except httpx.HTTPError as exc:
            return DeliveryFailed(f"transport error: {type(exc).__name__}")
        return Delivered()


class NullMailer:
    """Mailer used when no provider is configured; every send fails."""

    async def send(self, *, to: str, subject: str, body: str) -> DeliveryResult:  # noqa: ARG002
        return DeliveryFailed("email delivery not configured")


def build_mailer(settings: Settings) -> Mailer:
    """Pick the mailer for the given settings.

    Returns:
        ResendMailer when RESEND_API_KEY is set, NullMailer otherwise.
    """
    api_key = settings.resend_api_key.get_secret_value()
    if not api_key:
        logger.info("RESEND_API_KEY not set; verification emails will not be sent")
        return NullMailer()
    return ResendMailer(
        api_key=api_key,
        sender=settings.email_from,
        timeout=settings.email_timeout_seconds,
    )


def build_verification_link(*, app_origin: str, token: str, email: str) -> str:
    """Build the frontend verification URL.

    Args:
        app_origin: Frontend origin without trailing slash.
        token: Raw (unhashed) verification token.
        email: Normalized account email.

    Returns:
        "{app_origin}/verify?token=...&email=..." with both values URL-encoded.
    """
    params = urlencode({"token": token, "email": email}, quote_via=quote)
    return f"{app_origin}/verify?{params}"


def verification_email_body(link: str, *, ttl_hours: int) -> str:
    """Plain-text body of the verification email."""
    return (
        f"Click to verify: {link}\n\n"
        f"This link expires in {ttl_hours} hours. "
        "If you didn't create an account, you can safely ignore this email."
    )
