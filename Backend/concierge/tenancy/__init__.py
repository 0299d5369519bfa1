"""
Multi-tenancy package for the concierge.

Modules:
    context: TenantContext and inbound tenant resolution
    queries: Tenant-scoped query helpers (catalog, customers, tenants)
"""

from .context import (
    TenantContext,
    TenantResolutionSource,
    resolve_inbound_tenant,
)

from .queries import (
    scoped_select,
    parse_uuid,
    get_tenant_by_id,
    get_tenant_by_whatsapp_number,
    get_first_tenant,
    list_active_services,
    get_service_by_id,
    list_active_staff,
    find_customer_by_phones,
)

__all__ = [
    # Context
    "TenantContext",
    "TenantResolutionSource",
    "resolve_inbound_tenant",
    # Queries
    "scoped_select",
    "parse_uuid",
    "get_tenant_by_id",
    "get_tenant_by_whatsapp_number",
    "get_first_tenant",
    "list_active_services",
    "get_service_by_id",
    "list_active_staff",
    "find_customer_by_phones",
]
