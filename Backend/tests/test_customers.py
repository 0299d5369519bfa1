"""
Tests for client lookup by WhatsApp sender and the tenant-scoped query helpers.

Run with: pytest Backend/tests/test_customers.py -v
"""
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from concierge.customers import resolve_customer
from concierge.tenancy.queries import find_customer_by_phones, get_service_by_id, parse_uuid

from conftest import TENANT_ID, make_customer


class TestResolveCustomer:

    @pytest.mark.asyncio
    async def test_looks_up_every_variant(self, mock_db_session):
        customer = make_customer()
        with patch("concierge.customers.find_customer_by_phones", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = customer
            result = await resolve_customer(mock_db_session, TENANT_ID, "919876543210")

        assert result is customer
        session, tenant_id, phones = mock_find.call_args.args
        assert tenant_id == TENANT_ID
        assert set(phones) == {"919876543210", "+919876543210", "9876543210"}

    @pytest.mark.asyncio
    async def test_walk_in_returns_none(self, mock_db_session):
        with patch("concierge.customers.find_customer_by_phones", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = None
            assert await resolve_customer(mock_db_session, TENANT_ID, "9876543210") is None

    @pytest.mark.asyncio
    async def test_no_digits_skips_query(self, mock_db_session):
        with patch("concierge.customers.find_customer_by_phones", new_callable=AsyncMock) as mock_find:
            assert await resolve_customer(mock_db_session, TENANT_ID, "unknown") is None
        mock_find.assert_not_called()


class TestQueryHelpers:

    def test_parse_uuid(self):
        value = uuid.uuid4()
        assert parse_uuid(value) is value
        assert parse_uuid(str(value)) == value
        assert parse_uuid("S1") is None
        assert parse_uuid(None) is None

    @pytest.mark.asyncio
    async def test_malformed_service_id_never_queries(self, mock_db_session):
        assert await get_service_by_id(mock_db_session, TENANT_ID, "not-a-uuid") is None
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_customer_takes_first_row(self, mock_db_session):
        customer = make_customer()
        result = MagicMock()
        result.scalars.return_value.first.return_value = customer
        mock_db_session.execute.return_value = result

        assert await find_customer_by_phones(mock_db_session, TENANT_ID, ["9876543210", ""]) is customer

        statement = mock_db_session.execute.call_args.args[0]
        compiled = str(statement)
        assert "clients.tenant_id" in compiled
        assert "clients.phone IN" in compiled

    @pytest.mark.asyncio
    async def test_find_customer_with_no_phones(self, mock_db_session):
        assert await find_customer_by_phones(mock_db_session, TENANT_ID, [""]) is None
        mock_db_session.execute.assert_not_called()
