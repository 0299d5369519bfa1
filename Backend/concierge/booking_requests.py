"""
Pending booking requests created from WhatsApp.

A request is only an intent. Staff accept, decline or convert it from the
dashboard; nothing here updates a request after inserting it. Duplicate
taps produce duplicate rows and reviewers triage them.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingRequest, BookingRequestSource, BookingRequestStatus
from .phone import mask_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedBooking:
    service: Optional[str] = None
    date: Optional[date] = None
    time: Optional[time] = None


async def create_pending_request(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    phone_number: str,
    message: str,
    client_id: Optional[uuid.UUID] = None,
    parsed: Optional[ParsedBooking] = None,
) -> BookingRequest:
    """
    Insert one PENDING booking request and commit.

    Args:
        session: Database session
        tenant_id: Owning salon
        phone_number: Sender as delivered by WhatsApp
        message: Raw customer text, or a summary of the picked slot
        client_id: Matched client, None for walk-ins
        parsed: Service/date/time picked in the guided flow

    Raises:
        Whatever the insert raises; the session is rolled back first.
    """
    parsed = parsed or ParsedBooking()
    request = BookingRequest(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        client_id=client_id,
        phone_number=phone_number,
        message=message,
        parsed_service=parsed.service,
        parsed_date=parsed.date,
        parsed_time=parsed.time,
        status=BookingRequestStatus.PENDING,
        source=BookingRequestSource.WHATSAPP,
        requested_at=BookingRequest.now_utc(),
    )
    session.add(request)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        f"📥 Booking request {request.reference} created for tenant {tenant_id} "
        f"from {mask_phone(phone_number)} (service={parsed.service!r})"
    )
    return request
