"""
Tenant-scoped query helpers.

ALL reads of tenant data go through these helpers so every query carries an
explicit tenant_id filter. This is the catalog gateway the WhatsApp router
reads services and staff through.

Usage:
    from concierge.tenancy.queries import list_active_services, get_service_by_id

    services = await list_active_services(session, tenant.tenant_id, limit=10)
    service = await get_service_by_id(session, tenant.tenant_id, "3f2c...")
"""

import uuid
from typing import Iterable, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, selectinload

from ..models import Customer, Service, Staff, Tenant
from ..phone import digits_only

T = TypeVar("T", bound=DeclarativeBase)


def scoped_select(model: Type[T], tenant_id: uuid.UUID) -> Select:
    """
    Create a SELECT statement pre-filtered by tenant_id.

    Usage:
        stmt = scoped_select(Service, tenant_id).where(Service.is_active.is_(True))
    """
    return select(model).where(model.tenant_id == tenant_id)


def parse_uuid(value: str | uuid.UUID | None) -> Optional[uuid.UUID]:
    """Parse an id coming from a navigation token; None when it isn't a UUID."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


# ────────────────────────────────────────────────────────────────
# Tenant Queries
# ────────────────────────────────────────────────────────────────

async def get_tenant_by_id(session: AsyncSession, tenant_id: str | uuid.UUID) -> Optional[Tenant]:
    """Get a tenant by ID (string ids that aren't UUIDs simply don't match)."""
    parsed = parse_uuid(tenant_id)
    if parsed is None:
        return None
    result = await session.execute(select(Tenant).where(Tenant.id == parsed))
    return result.scalar_one_or_none()


async def get_tenant_by_whatsapp_number(session: AsyncSession, whatsapp_number: str) -> Optional[Tenant]:
    """
    Find the tenant that owns a receiving WhatsApp number.

    Stored numbers may be raw, digits-only or "+digits"; all three are tried.
    """
    digits = digits_only(whatsapp_number)
    if not digits:
        return None
    candidates = {whatsapp_number, digits, f"+{digits}"}
    result = await session.execute(
        select(Tenant)
        .where(Tenant.whatsapp_number.in_(candidates))
        .order_by(Tenant.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_first_tenant(session: AsyncSession) -> Optional[Tenant]:
    """Oldest tenant row. Development convenience only."""
    result = await session.execute(select(Tenant).order_by(Tenant.created_at).limit(1))
    return result.scalar_one_or_none()


# ────────────────────────────────────────────────────────────────
# Catalog Queries (Tenant-Scoped)
# ────────────────────────────────────────────────────────────────

async def list_active_services(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    limit: Optional[int] = None,
) -> Sequence[Service]:
    """List active services ordered by name, with their category loaded."""
    stmt = (
        scoped_select(Service, tenant_id)
        .where(Service.is_active.is_(True))
        .options(selectinload(Service.category))
        .order_by(Service.name)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_service_by_id(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    service_id: str | uuid.UUID,
    active_only: bool = True,
) -> Optional[Service]:
    """Get a service by ID, scoped to tenant. Unknown or malformed ids return None."""
    parsed = parse_uuid(service_id)
    if parsed is None:
        return None
    stmt = scoped_select(Service, tenant_id).where(Service.id == parsed)
    if active_only:
        stmt = stmt.where(Service.is_active.is_(True))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_active_staff(session: AsyncSession, tenant_id: uuid.UUID) -> Sequence[Staff]:
    """List active staff members, scoped to tenant."""
    result = await session.execute(
        scoped_select(Staff, tenant_id)
        .where(Staff.is_active.is_(True))
        .order_by(Staff.full_name)
    )
    return result.scalars().all()


# ────────────────────────────────────────────────────────────────
# Customer Queries (Tenant-Scoped)
# ────────────────────────────────────────────────────────────────

async def find_customer_by_phones(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    phones: Iterable[str],
) -> Optional[Customer]:
    """
    First customer whose stored phone equals any of ``phones``.

    Several rows may match; the lowest id wins so the answer is stable.
    """
    phones = [p for p in phones if p]
    if not phones:
        return None
    result = await session.execute(
        scoped_select(Customer, tenant_id)
        .where(Customer.phone.in_(phones))
        .order_by(Customer.id)
        .limit(1)
    )
    return result.scalars().first()
