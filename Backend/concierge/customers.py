"""
Look up the salon client behind a WhatsApp sender.

Clients are never created here: a sender without a client record is a
walk-in and their booking request carries no client_id.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .models import Customer
from .phone import DEFAULT_COUNTRY_CODE, is_lookup_possible, mask_phone, normalize_phone_variants
from .tenancy.queries import find_customer_by_phones

logger = logging.getLogger(__name__)


async def resolve_customer(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    raw_phone: str,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> Optional[Customer]:
    """
    Find the tenant's client whose stored phone matches any form of ``raw_phone``.

    Returns:
        The matching Customer, or None for a walk-in (or a phone with no digits)
    """
    variants = normalize_phone_variants(raw_phone, country_code)
    if not is_lookup_possible(variants):
        return None

    customer = await find_customer_by_phones(session, tenant_id, sorted(variants))
    if customer:
        logger.debug(f"Matched {mask_phone(raw_phone)} to client {customer.id}")
    else:
        logger.debug(f"No client for {mask_phone(raw_phone)}; treating as walk-in")
    return customer
