"""
Tenant context for inbound WhatsApp traffic.

Every webhook delivery has to be pinned to one salon before the router runs.
The receiving business number (``metadata.display_phone_number``) is the
real routing key; the default-tenant and first-row fallbacks exist for
single-salon deployments and local development.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..models import Tenant
from .queries import get_first_tenant, get_tenant_by_id, get_tenant_by_whatsapp_number


logger = logging.getLogger(__name__)


class TenantResolutionSource(str, Enum):
    """How the tenant context was determined."""

    WHATSAPP_NUMBER = "whatsapp_number"  # metadata.display_phone_number
    DEFAULT_TENANT = "default_tenant"    # DEFAULT_TENANT_ID setting
    FIRST_ROW = "first_row"              # oldest tenant, dev fallback


@dataclass(frozen=True)
class TenantContext:
    """
    Immutable snapshot of the salon an inbound message belongs to.

    Attributes:
        tenant_id: tenants.id
        name: Display name used in greetings
        timezone: IANA timezone for "tomorrow" and the date list
        phone, address: Shown by the "Contact Us" reply
        whatsapp_number: Where staff notifications are sent
        whatsapp_phone_number_id, whatsapp_access_token: Per-tenant Cloud API credentials
        source: How this context was determined (for logging)
    """

    tenant_id: uuid.UUID
    name: str
    timezone: str = "Asia/Kolkata"
    phone: Optional[str] = None
    address: Optional[str] = None
    whatsapp_number: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    whatsapp_access_token: Optional[str] = None
    source: TenantResolutionSource = TenantResolutionSource.WHATSAPP_NUMBER

    @classmethod
    def from_tenant(cls, tenant: Tenant, source: TenantResolutionSource) -> "TenantContext":
        return cls(
            tenant_id=tenant.id,
            name=tenant.name,
            timezone=tenant.timezone or "Asia/Kolkata",
            phone=tenant.phone,
            address=tenant.address,
            whatsapp_number=tenant.whatsapp_number,
            whatsapp_phone_number_id=tenant.whatsapp_phone_number_id,
            whatsapp_access_token=tenant.whatsapp_access_token,
            source=source,
        )


async def resolve_inbound_tenant(
    session: AsyncSession,
    display_phone_number: Optional[str],
    settings: Settings,
) -> Optional[TenantContext]:
    """
    Resolve which tenant owns an inbound message.

    Order:
        1. Tenant whose whatsapp_number matches the receiving number
        2. DEFAULT_TENANT_ID from settings
        3. The oldest tenant, only when TENANT_FIRST_ROW_FALLBACK is enabled

    Returns:
        TenantContext, or None when nothing matched (message is dropped)
    """
    if display_phone_number:
        tenant = await get_tenant_by_whatsapp_number(session, display_phone_number)
        if tenant:
            return TenantContext.from_tenant(tenant, TenantResolutionSource.WHATSAPP_NUMBER)

    if settings.default_tenant_id:
        tenant = await get_tenant_by_id(session, settings.default_tenant_id)
        if tenant:
            return TenantContext.from_tenant(tenant, TenantResolutionSource.DEFAULT_TENANT)
        logger.warning(f"DEFAULT_TENANT_ID={settings.default_tenant_id} does not match any tenant")

    if settings.tenant_first_row_fallback:
        tenant = await get_first_tenant(session)
        if tenant:
            logger.warning(
                f"No tenant for WhatsApp number {display_phone_number!r}; "
                f"falling back to first tenant {tenant.name!r}"
            )
            return TenantContext.from_tenant(tenant, TenantResolutionSource.FIRST_ROW)

    return None
