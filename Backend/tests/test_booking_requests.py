"""
Tests for pending booking request creation.

Run with: pytest Backend/tests/test_booking_requests.py -v
"""
import uuid
from datetime import date, time

import pytest

from concierge.booking_requests import ParsedBooking, create_pending_request
from concierge.models import BookingRequest, BookingRequestSource, BookingRequestStatus

from conftest import TENANT_ID


class TestCreatePendingRequest:

    @pytest.mark.asyncio
    async def test_free_text_request(self, mock_db_session):
        request = await create_pending_request(
            mock_db_session,
            tenant_id=TENANT_ID,
            phone_number="919876543210",
            message="I want to book a haircut tomorrow",
        )

        mock_db_session.add.assert_called_once_with(request)
        mock_db_session.commit.assert_awaited_once()
        assert isinstance(request, BookingRequest)
        assert request.status == BookingRequestStatus.PENDING
        assert request.source == BookingRequestSource.WHATSAPP
        assert request.client_id is None
        assert request.message == "I want to book a haircut tomorrow"
        assert request.parsed_service is None
        assert request.parsed_date is None
        assert request.parsed_time is None
        assert request.requested_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_guided_request_carries_selection(self, mock_db_session):
        client_id = uuid.uuid4()
        request = await create_pending_request(
            mock_db_session,
            tenant_id=TENANT_ID,
            phone_number="919876543210",
            message="Booking request via WhatsApp: Haircut on 2025-06-10 at 10:30",
            client_id=client_id,
            parsed=ParsedBooking(service="Haircut", date=date(2025, 6, 10), time=time(10, 30)),
        )

        assert request.client_id == client_id
        assert request.parsed_service == "Haircut"
        assert request.parsed_date == date(2025, 6, 10)
        assert request.parsed_time == time(10, 30)

    @pytest.mark.asyncio
    async def test_reference_is_id_prefix(self, mock_db_session):
        request = await create_pending_request(mock_db_session, TENANT_ID, "1", "book")
        assert request.reference == str(request.id)[:8]

    @pytest.mark.asyncio
    async def test_each_call_inserts_new_row(self, mock_db_session):
        first = await create_pending_request(mock_db_session, TENANT_ID, "1", "book")
        second = await create_pending_request(mock_db_session, TENANT_ID, "1", "book")
        assert first.id != second.id
        assert mock_db_session.add.call_count == 2

    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back(self, mock_db_session):
        mock_db_session.commit.side_effect = RuntimeError("connection reset")

        with pytest.raises(RuntimeError):
            await create_pending_request(mock_db_session, TENANT_ID, "1", "book")

        mock_db_session.rollback.assert_awaited_once()
