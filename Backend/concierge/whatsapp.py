"""
WhatsApp Cloud API (Meta) send client.

Each salon can have its own business number; its Cloud API credentials live
on the tenant row. Deployments serving a single salon can put them in the
environment instead.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .core.config import Settings
from .errors import WhatsAppNotConfigured, WhatsAppSendError
from .phone import mask_phone
from .presenter import render
from .prompts import TextPrompt
from .tenancy.context import TenantContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WhatsAppCredentials:
    phone_number_id: str
    access_token: str


def get_credentials(tenant: Optional[TenantContext], settings: Settings) -> WhatsAppCredentials:
    """
    Tenant credentials first, then WHATSAPP_PHONE_NUMBER_ID / WHATSAPP_ACCESS_TOKEN.

    Raises:
        WhatsAppNotConfigured: neither is set
    """
    if tenant and tenant.whatsapp_phone_number_id and tenant.whatsapp_access_token:
        return WhatsAppCredentials(tenant.whatsapp_phone_number_id, tenant.whatsapp_access_token)

    if settings.whatsapp_phone_number_id and settings.whatsapp_access_token:
        return WhatsAppCredentials(settings.whatsapp_phone_number_id, settings.whatsapp_access_token)

    raise WhatsAppNotConfigured(
        "WhatsApp integration not configured. Set credentials on the tenant or in the environment."
    )


async def send_payload(
    payload: dict,
    tenant: Optional[TenantContext],
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """
    POST a rendered message to /{phone_number_id}/messages.

    Args:
        payload: Body built by presenter.render
        tenant: Tenant whose business number sends the message
        settings: Application settings
        client: Optional shared httpx client (tests inject a mock transport)

    Returns:
        The Cloud API JSON response

    Raises:
        WhatsAppNotConfigured: No credentials
        WhatsAppSendError: Non-2xx response or transport failure
    """
    credentials = get_credentials(tenant, settings)
    url = f"{settings.whatsapp_api_url.rstrip('/')}/{credentials.phone_number_id}/messages"
    headers = {"Authorization": f"Bearer {credentials.access_token}"}

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.whatsapp_timeout_seconds) as own_client:
                response = await own_client.post(url, json=payload, headers=headers)
        else:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        raise WhatsAppSendError(f"WhatsApp API unreachable: {e}") from e

    if response.is_error:
        try:
            detail = response.json().get("error", {}).get("message", "Unknown error")
        except ValueError:
            detail = response.text or "Unknown error"
        raise WhatsAppSendError(f"WhatsApp API error: {detail}", status_code=response.status_code)

    logger.info(f"✅ WhatsApp {payload.get('type', 'message')} sent to {mask_phone(payload.get('to'))}")
    return response.json()


async def send_text_message(
    to: str,
    body: str,
    tenant: Optional[TenantContext],
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """Send a plain text message."""
    return await send_payload(render(TextPrompt(body), to), tenant, settings, client=client)
