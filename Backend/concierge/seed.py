from decimal import Decimal

from sqlalchemy import select

from .core.config import get_settings
from .models import Service, ServiceCategory, Staff, Tenant


settings = get_settings()

DEMO_TENANT_NAME = "Ely Salon"

DEMO_SERVICES = [
    # (category, name, price, minutes)
    ("Hair", "Haircut", Decimal("500"), 45),
    ("Hair", "Hair Spa", Decimal("1200"), 60),
    ("Hair", "Global Colour", Decimal("3500"), 120),
    ("Skin", "Classic Facial", Decimal("1500"), 60),
    ("Nails", "Manicure", Decimal("700"), 40),
    ("Nails", "Pedicure", Decimal("900"), 50),
]

DEMO_STAFF = ["Asha", "Ravi", "Meera"]


async def seed_initial_data(session):
    """Create a demo tenant with a small catalogue if the database is empty."""
    result = await session.execute(select(Tenant).where(Tenant.name == DEMO_TENANT_NAME))
    tenant = result.scalar_one_or_none()

    if not tenant:
        tenant = Tenant(
            name=DEMO_TENANT_NAME,
            phone="+91 98765 43210",
            address="12 MG Road, Bengaluru",
            timezone=settings.chat_timezone,
            whatsapp_number=None,
        )
        session.add(tenant)
        await session.flush()

    result = await session.execute(select(Service).where(Service.tenant_id == tenant.id))
    if not result.scalars().all():
        categories: dict[str, ServiceCategory] = {}
        for category_name, name, price, minutes in DEMO_SERVICES:
            category = categories.get(category_name)
            if category is None:
                category = ServiceCategory(tenant_id=tenant.id, name=category_name)
                session.add(category)
                await session.flush()
                categories[category_name] = category
            session.add(
                Service(
                    tenant_id=tenant.id,
                    category_id=category.id,
                    name=name,
                    base_price=price,
                    duration_minutes=minutes,
                    is_active=True,
                )
            )

    result = await session.execute(select(Staff).where(Staff.tenant_id == tenant.id))
    if not result.scalars().all():
        session.add_all([Staff(tenant_id=tenant.id, full_name=name, is_active=True) for name in DEMO_STAFF])

    await session.commit()
    return tenant
