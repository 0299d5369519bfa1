"""
Tests for the conversational booking router.

The catalog helpers are patched at concierge.router; booking requests go
through the real create_pending_request against the mock session so each
test can inspect what would have been inserted.

Run with: pytest Backend/tests/test_router.py -v
"""
from datetime import date, time
from unittest.mock import AsyncMock, patch

import pytest

from concierge.events import ButtonReply, ListReply, TextMessage
from concierge.messages import NO_SERVICES_MESSAGE, SERVICE_UNAVAILABLE_MESSAGE, TRY_AGAIN_MESSAGE
from concierge.models import BookingRequest, Staff
from concierge.navigation import PeriodToken, DayPart, parse_token
from concierge.presenter import render
from concierge.prompts import ButtonPrompt, ListPrompt, TextPrompt
from concierge.router import (
    BOOK_APPOINTMENT,
    CONTACT_US,
    VIEW_SERVICES,
    ConversationRouter,
    is_greeting,
    mentions_booking,
)

from conftest import TENANT_ID, TODAY, make_customer, make_service


SENDER = "919876543210"


@pytest.fixture
def catalog():
    """Patch the catalog gateway with a one-service salon ("S1")."""
    services = {"S1": make_service("S1", "Haircut", "500", 45, category="Hair")}

    async def get_service(session, tenant_id, service_id, active_only=True):
        return services.get(str(service_id))

    with patch("concierge.router.list_active_services", new_callable=AsyncMock) as list_services, \
         patch("concierge.router.list_active_staff", new_callable=AsyncMock) as list_staff, \
         patch("concierge.router.get_service_by_id", new_callable=AsyncMock) as get_by_id, \
         patch("concierge.router.resolve_customer", new_callable=AsyncMock) as resolve:
        list_services.return_value = list(services.values())
        list_staff.return_value = [Staff(full_name="Anita"), Staff(full_name="Ravi")]
        get_by_id.side_effect = get_service
        resolve.return_value = None
        yield {
            "services": services,
            "list_services": list_services,
            "list_staff": list_staff,
            "get_by_id": get_by_id,
            "resolve": resolve,
        }


@pytest.fixture
def router(mock_db_session, tenant, settings):
    return ConversationRouter(mock_db_session, tenant, settings, today=TODAY)


def button(reply_id, sender=SENDER, name="Priya"):
    return ButtonReply(sender=sender, button_id=reply_id, profile_name=name)


def pick(reply_id, sender=SENDER, name="Priya"):
    return ListReply(sender=sender, list_id=reply_id, profile_name=name)


def added_request(session) -> BookingRequest:
    return session.add.call_args.args[0]


# ────────────────────────────────────────────────────────────────
# Keyword classification
# ────────────────────────────────────────────────────────────────

class TestKeywords:

    @pytest.mark.parametrize("text", ["hi", "Hi there", "  HELLO ", "menu", "help me", "start"])
    def test_greetings(self, text):
        assert is_greeting(text)

    @pytest.mark.parametrize("text", ["hiking", "history", "thanks", "", "helpful"])
    def test_not_greetings(self, text):
        assert not is_greeting(text)

    @pytest.mark.parametrize("text", ["I want to BOOK", "appointment please", "rebooking"])
    def test_booking_substring(self, text):
        assert mentions_booking(text)


# ────────────────────────────────────────────────────────────────
# Free text
# ────────────────────────────────────────────────────────────────

class TestTextMessages:

    @pytest.mark.asyncio
    async def test_greeting_gets_welcome_menu(self, router, mock_db_session):
        decision = await router.handle(TextMessage(sender=SENDER, body="Hi"))

        assert isinstance(decision.prompt, ButtonPrompt)
        assert "Welcome to Ely Salon" in decision.prompt.body
        assert [b.id for b in decision.prompt.buttons] == [BOOK_APPOINTMENT, VIEW_SERVICES, CONTACT_US]
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_anything_else_falls_back_to_welcome(self, router, mock_db_session):
        decision = await router.handle(TextMessage(sender=SENDER, body="what are your prices?"))

        assert isinstance(decision.prompt, ButtonPrompt)
        assert decision.booking_request is None
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_greeting_beats_booking_keyword(self, router, catalog, mock_db_session):
        decision = await router.handle(TextMessage(sender=SENDER, body="hi I want to book"))

        assert isinstance(decision.prompt, ButtonPrompt)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_booking_text_creates_request(self, router, catalog, mock_db_session):
        text = "Can I book a haircut tomorrow at 5?"
        decision = await router.handle(TextMessage(sender=SENDER, body=text, profile_name="Priya"))

        assert mock_db_session.add.call_count == 1
        request = added_request(mock_db_session)
        assert request.message == text
        assert request.client_id is None
        assert request.parsed_service is None and request.parsed_date is None and request.parsed_time is None
        assert decision.booking_request is request
        assert decision.customer_name == "Priya"
        assert isinstance(decision.prompt, TextPrompt)
        assert f"Booking Reference: {request.reference}" in decision.prompt.body

    @pytest.mark.asyncio
    async def test_booking_text_links_known_client(self, router, catalog, mock_db_session):
        customer = make_customer(full_name="Priya Sharma")
        catalog["resolve"].return_value = customer

        decision = await router.handle(TextMessage(sender=SENDER, body="appointment?", profile_name="P"))

        assert added_request(mock_db_session).client_id == customer.id
        assert decision.customer_name == "Priya Sharma"
        catalog["resolve"].assert_awaited_once_with(mock_db_session, TENANT_ID, SENDER, "91")


# ────────────────────────────────────────────────────────────────
# Menu buttons
# ────────────────────────────────────────────────────────────────

class TestMenuButtons:

    @pytest.mark.asyncio
    async def test_book_appointment_lists_services(self, router, catalog):
        decision = await router.handle(button(BOOK_APPOINTMENT))

        prompt = decision.prompt
        assert isinstance(prompt, ListPrompt)
        rows = prompt.sections[0].rows
        assert [(row.id, row.title, row.description) for row in rows] == [("service_S1", "Haircut", "₹500 · 45 min")]
        catalog["list_services"].assert_awaited_once_with(router.session, TENANT_ID, limit=10)

    @pytest.mark.asyncio
    async def test_empty_catalog(self, router, catalog, mock_db_session):
        catalog["list_services"].return_value = []

        decision = await router.handle(button(BOOK_APPOINTMENT))

        assert decision.prompt == TextPrompt(NO_SERVICES_MESSAGE)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_view_services_menu(self, router, catalog):
        decision = await router.handle(button(VIEW_SERVICES))

        body = decision.prompt.body
        assert "*Hair*" in body
        assert "• Haircut - ₹500 (45min)" in body
        assert "Our team: Anita, Ravi" in body

    @pytest.mark.asyncio
    async def test_contact_us(self, router):
        decision = await router.handle(button(CONTACT_US))

        assert "📱 Phone: +91 98765 43210" in decision.prompt.body
        assert "📍 Address: 12 MG Road, Bengaluru" in decision.prompt.body


# ────────────────────────────────────────────────────────────────
# Guided flow
# ────────────────────────────────────────────────────────────────

class TestGuidedFlow:

    @pytest.mark.asyncio
    async def test_full_booking_scenario(self, router, catalog, mock_db_session):
        welcome = await router.handle(TextMessage(sender=SENDER, body="hi", profile_name="Priya"))
        assert welcome.prompt.buttons[0].id == BOOK_APPOINTMENT

        services = await router.handle(button(welcome.prompt.buttons[0].id))
        service_id = services.prompt.sections[0].rows[0].id
        assert service_id == "service_S1"

        dates = await router.handle(pick(service_id))
        date_rows = dates.prompt.sections[0].rows
        assert len(date_rows) == 7
        assert date_rows[0].title == "Tomorrow, 10 Jun"

        periods = await router.handle(pick(date_rows[0].id))
        assert isinstance(periods.prompt, ButtonPrompt)
        assert [b.id for b in periods.prompt.buttons] == [
            "period_morning_2025-06-10_S1",
            "period_afternoon_2025-06-10_S1",
            "period_evening_2025-06-10_S1",
        ]

        slots = await router.handle(button(periods.prompt.buttons[0].id))
        slot_rows = slots.prompt.sections[0].rows
        assert slots.prompt.sections[0].title == "Morning Slots"
        assert [row.title for row in slot_rows] == ["10:00 AM", "10:30 AM", "11:00 AM", "11:30 AM"]
        mock_db_session.add.assert_not_called()

        confirmed = await router.handle(pick(slot_rows[1].id))

        assert mock_db_session.add.call_count == 1
        request = added_request(mock_db_session)
        assert request.parsed_service == "Haircut"
        assert request.parsed_date == date(2025, 6, 10)
        assert request.parsed_time == time(10, 30)
        assert request.message == "Booking request via WhatsApp: Haircut on 2025-06-10 at 10:30"
        assert confirmed.booking_request is request
        body = confirmed.prompt.body
        assert "Haircut" in body
        assert "Tuesday, June 10, 2025" in body
        assert "10:30 AM" in body
        assert request.reference in body

    @pytest.mark.asyncio
    async def test_replaying_service_choice_is_idempotent(self, router, catalog, mock_db_session):
        first = await router.handle(pick("service_S1"))
        second = await router.handle(pick("service_S1"))

        assert first == second
        assert [row.id for row in first.prompt.sections[0].rows][:2] == ["date_2025-06-10_S1", "date_2025-06-11_S1"]
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_replaying_date_choice_is_idempotent(self, router, catalog, mock_db_session):
        first = await router.handle(pick("date_2025-06-12_S1"))
        second = await router.handle(pick("date_2025-06-12_S1"))

        assert first == second
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_period_reply_accepted_from_list(self, router, catalog):
        token = PeriodToken(DayPart.EVENING, date(2025, 6, 10), "S1").encode()
        decision = await router.handle(pick(token))

        rows = decision.prompt.sections[0].rows
        assert rows[0].title == "5:00 PM"
        assert rows[-1].title == "8:30 PM"

    @pytest.mark.asyncio
    async def test_inclusive_end_setting(self, router, catalog, settings):
        settings.slot_window_inclusive_end = True
        decision = await router.handle(button("period_evening_2025-06-10_S1"))

        assert decision.prompt.sections[0].rows[-1].title == "9:00 PM"

    @pytest.mark.asyncio
    async def test_slot_ids_round_trip(self, router, catalog):
        decision = await router.handle(button("period_afternoon_2025-06-10_S1"))

        rows = decision.prompt.sections[0].rows
        assert len(rows) == 10
        assert all(parse_token(row.id).service_id == "S1" for row in rows)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply_id", [
        "service_S9",
        "date_2025-06-10_S9",
        "period_morning_2025-06-10_S9",
        "time_10:30_2025-06-10_S9",
    ])
    async def test_unknown_service_at_any_step(self, router, catalog, mock_db_session, reply_id):
        decision = await router.handle(pick(reply_id))

        assert decision.prompt == TextPrompt(SERVICE_UNAVAILABLE_MESSAGE)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply_id", ["", "foo_bar", "date_nope_S1", "time_10:30_S1", "period_night_2025-06-10_S1"])
    async def test_invalid_reply_ids_get_no_reply(self, router, catalog, mock_db_session, reply_id):
        assert await router.handle(pick(reply_id)) is None
        mock_db_session.add.assert_not_called()


# ────────────────────────────────────────────────────────────────
# Platform text limits
# ────────────────────────────────────────────────────────────────

class TestRenderedLimits:

    @pytest.mark.asyncio
    async def test_long_service_name_header_fits(self, router, catalog):
        long_name = "Keratin Smoothing Treatment with Deep Conditioning and Scalp Massage (Long)"
        catalog["services"]["S1"] = make_service("S1", long_name, "4500", 150)

        decision = await router.handle(pick("service_S1"))

        header = render(decision.prompt, SENDER)["interactive"]["header"]["text"]
        assert len(long_name) > 60
        assert header == long_name[:60]

    @pytest.mark.asyncio
    async def test_large_catalogue_menu_fits(self, router, catalog):
        catalog["list_services"].return_value = [
            make_service(
                f"S{i}",
                f"Signature Service Number {i:02d}",
                "1500",
                60,
                category=f"Category {i % 5}",
                description="Includes consultation, wash, treatment, styling and a complimentary beverage.",
            )
            for i in range(40)
        ]

        decision = await router.handle(button(VIEW_SERVICES))

        body = render(decision.prompt, SENDER)["text"]["body"]
        assert len(decision.prompt.body) <= 4096
        assert body == decision.prompt.body
        assert "more. Tap 📅 Book Appointment" in body
        assert body.endswith("Book an appointment to experience our services! ✨")


# ────────────────────────────────────────────────────────────────
# Failures
# ────────────────────────────────────────────────────────────────

class TestFailures:

    @pytest.mark.asyncio
    async def test_lookup_failure_asks_to_retry(self, router, catalog, mock_db_session):
        catalog["list_services"].side_effect = ConnectionError("db down")

        decision = await router.handle(button(BOOK_APPOINTMENT))

        assert decision.prompt == TextPrompt(TRY_AGAIN_MESSAGE)
        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_insert_failure_asks_to_retry(self, router, catalog, mock_db_session):
        mock_db_session.commit.side_effect = RuntimeError("deadlock")

        decision = await router.handle(pick("time_10:30_2025-06-10_S1"))

        assert decision.prompt == TextPrompt(TRY_AGAIN_MESSAGE)
        assert decision.booking_request is None

    @pytest.mark.asyncio
    async def test_today_defaults_to_tenant_timezone(self, mock_db_session, tenant, settings):
        with patch("concierge.router.local_today", return_value=TODAY) as mock_today:
            router = ConversationRouter(mock_db_session, tenant, settings)
            assert router.today == TODAY
        mock_today.assert_called_once_with("Asia/Kolkata")
