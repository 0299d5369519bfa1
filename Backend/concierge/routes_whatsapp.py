"""
WhatsApp Cloud API webhook routes.

    GET  /webhook/whatsapp  -> Meta subscription handshake
    POST /webhook/whatsapp  -> Inbound messages

Meta retries any delivery that doesn't get a quick 2xx, so the POST handler
acknowledges immediately and does the real work in a background task with
its own database session. Failures there are logged and, where possible,
reported to the customer as a chat message; they never reach Meta.
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .core.config import Settings, get_settings
from .core.db import AsyncSessionLocal
from .core.responses import WEBHOOK_ACK, ErrorCodes, error_response
from .errors import ConciergeError
from .events import InboundDelivery, parse_inbound_event
from .messages import format_new_request_notification
from .phone import mask_phone
from .presenter import render
from .router import ConversationRouter, RouterDecision
from .tenancy.context import TenantContext, resolve_inbound_tenant
from .whatsapp import send_payload, send_text_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["whatsapp"])


@router.get(
    "/whatsapp",
    summary="WhatsApp webhook verification",
    description="Echo hub.challenge when hub.verify_token matches WHATSAPP_VERIFY_TOKEN.",
)
async def verify_whatsapp_webhook(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
):
    settings = get_settings()
    if (
        hub_mode == "subscribe"
        and settings.whatsapp_verify_token
        and hub_verify_token == settings.whatsapp_verify_token
    ):
        logger.info("WhatsApp webhook verified successfully")
        return PlainTextResponse(hub_challenge or "", status_code=status.HTTP_200_OK)

    logger.warning(f"WhatsApp webhook verification failed (mode={hub_mode!r})")
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=error_response(ErrorCodes.VERIFICATION_FAILED, "Verification failed"),
    )


@router.post(
    "/whatsapp",
    summary="WhatsApp inbound messages",
    description="Acknowledges every delivery with 200 and processes it in the background.",
)
async def receive_whatsapp_webhook(request: Request, background_tasks: BackgroundTasks):
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info("Ignoring WhatsApp webhook with a non-JSON body")
        return WEBHOOK_ACK

    background_tasks.add_task(process_webhook_payload, payload)
    return WEBHOOK_ACK


async def process_webhook_payload(payload: Any, settings: Optional[Settings] = None) -> None:
    """
    Route one webhook body and send the reply.

    Status callbacks and unsupported shapes are dropped before a database
    session is opened.
    """
    delivery = parse_inbound_event(payload)
    if delivery is None:
        return

    settings = settings or get_settings()
    try:
        async with AsyncSessionLocal() as session:
            tenant = await resolve_inbound_tenant(session, delivery.display_phone_number, settings)
            if tenant is None:
                logger.warning(
                    f"No tenant for WhatsApp number {delivery.display_phone_number!r}; dropping message"
                )
                return

            logger.info(
                f"📱 WhatsApp {type(delivery.event).__name__} from {mask_phone(delivery.event.sender)} "
                f"for tenant {tenant.name!r}"
            )
            decision = await ConversationRouter(session, tenant, settings).handle(delivery.event)
    except Exception:
        logger.exception("Failed to process WhatsApp webhook")
        return

    if decision is None:
        return

    await deliver_decision(delivery, decision, tenant, settings)


async def deliver_decision(
    delivery: InboundDelivery,
    decision: RouterDecision,
    tenant: TenantContext,
    settings: Settings,
) -> None:
    """Send the reply, then alert the salon if a request was created."""
    try:
        payload = render(decision.prompt, delivery.event.sender, strict=not settings.is_production)
        await send_payload(payload, tenant, settings)
    except ConciergeError as e:
        logger.exception(f"❌ Could not reply to {mask_phone(delivery.event.sender)}: {e}")

    if decision.booking_request is not None:
        await notify_new_request(decision, delivery.event.sender, tenant, settings)


async def notify_new_request(
    decision: RouterDecision,
    sender: str,
    tenant: TenantContext,
    settings: Settings,
) -> None:
    """Best-effort alert to the salon's own WhatsApp number."""
    if not tenant.whatsapp_number:
        return

    request = decision.booking_request
    message = format_new_request_notification(
        client_name=decision.customer_name or "New Customer",
        client_phone=sender,
        service_name=request.parsed_service,
        preferred_date=request.parsed_date,
        preferred_time=request.parsed_time,
    )
    try:
        await send_text_message(tenant.whatsapp_number, message, tenant, settings)
    except ConciergeError as e:
        logger.error(f"Failed to notify {tenant.name!r} about request {request.reference}: {e}")
