"""
Conversational booking router for WhatsApp.

One inbound event in, at most one prompt out. The flow is

    greeting -> menu -> service -> date -> day-part -> time -> request

but nothing is remembered between messages: the position in the flow and
every choice made so far ride along in the reply ids (see navigation.py).
Replaying any tap simply replays that step.

Free text never enters the guided flow. Text mentioning "book" or
"appointment" becomes a pending request as-is; everything else gets the
welcome menu.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .booking_requests import ParsedBooking, create_pending_request
from .core.config import Settings
from .customers import resolve_customer
from .errors import ErrorKind
from .events import ButtonReply, InboundEvent, ListReply, TextMessage
from .messages import (
    NO_SERVICES_MESSAGE,
    SERVICE_UNAVAILABLE_MESSAGE,
    TRY_AGAIN_MESSAGE,
    format_contact_details,
    format_request_received,
    format_service_detail,
    format_service_menu,
    format_slot_request_message,
    format_slot_request_summary,
    format_welcome,
)
from .models import BookingRequest
from .navigation import (
    DateToken,
    DayPart,
    InvalidToken,
    PeriodToken,
    ServiceToken,
    TimeToken,
    parse_token,
)
from .phone import mask_phone
from .prompts import Button, ButtonPrompt, ListPrompt, ListRow, ListSection, Prompt, TextPrompt
from .slots import DAY_PART_WINDOWS, MAX_LIST_ROWS, date_candidates, format_time_12h, generate_slots, local_today
from .tenancy.context import TenantContext
from .tenancy.queries import get_service_by_id, list_active_services, list_active_staff

logger = logging.getLogger(__name__)

# Welcome menu button ids
BOOK_APPOINTMENT = "book_appointment"
VIEW_SERVICES = "view_services"
CONTACT_US = "contact_us"

GREETING_KEYWORDS = ("hi", "hello", "hey", "start", "menu", "help")
BOOKING_KEYWORDS = ("book", "appointment")

DAY_PART_ICONS = {
    DayPart.MORNING: "🌅",
    DayPart.AFTERNOON: "☀️",
    DayPart.EVENING: "🌙",
}


def is_greeting(text: str) -> bool:
    """Whole word or leading word: "hi", "Hi there" match; "hiking" doesn't."""
    normalized = text.strip().lower()
    return any(
        normalized == keyword or normalized.startswith(f"{keyword} ")
        for keyword in GREETING_KEYWORDS
    )


def mentions_booking(text: str) -> bool:
    """Plain substring match, so "rebooking" counts too."""
    normalized = text.lower()
    return any(keyword in normalized for keyword in BOOKING_KEYWORDS)


@dataclass(frozen=True)
class RouterDecision:
    """
    What to send back, plus the request created on the way (if any).

    ``customer_name`` is the matched client's name, falling back to the
    sender's WhatsApp profile name; it is only used for staff notifications.
    """

    prompt: Prompt
    booking_request: Optional[BookingRequest] = None
    customer_name: Optional[str] = None


class ConversationRouter:
    """Turns one inbound event into a RouterDecision for a single tenant."""

    def __init__(
        self,
        session: AsyncSession,
        tenant: TenantContext,
        settings: Settings,
        today: Optional[date] = None,
    ):
        self.session = session
        self.tenant = tenant
        self.settings = settings
        self._today = today

    @property
    def today(self) -> date:
        if self._today is None:
            self._today = local_today(self.tenant.timezone or self.settings.chat_timezone)
        return self._today

    async def handle(self, event: InboundEvent) -> Optional[RouterDecision]:
        """
        Route one event.

        Returns:
            RouterDecision, or None when the event should get no reply
            (stale/tampered ids, unknown event types). Never raises: store
            failures become a "please try again" prompt.
        """
        try:
            return await self._dispatch(event)
        except Exception:
            logger.exception(
                f"{ErrorKind.UPSTREAM_LOOKUP_FAILURE.value} while handling {type(event).__name__} "
                f"from {mask_phone(getattr(event, 'sender', None))} for tenant {self.tenant.tenant_id}"
            )
            await self._rollback()
            return RouterDecision(prompt=TextPrompt(TRY_AGAIN_MESSAGE))

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception:
            logger.exception("Rollback after failed routing also failed")

    async def _dispatch(self, event: InboundEvent) -> Optional[RouterDecision]:
        if isinstance(event, TextMessage):
            return await self._handle_text(event)
        if isinstance(event, (ButtonReply, ListReply)):
            return await self._handle_reply(event.sender, event.reply_id, event.profile_name)

        logger.info(f"{ErrorKind.UNRECOGNIZED_INPUT.value}: unsupported event {type(event).__name__}")
        return None

    # ────────────────────────────────────────────────────────────
    # Free text
    # ────────────────────────────────────────────────────────────

    async def _handle_text(self, event: TextMessage) -> RouterDecision:
        body = event.body or ""
        if is_greeting(body):
            return RouterDecision(prompt=self.welcome_prompt())
        if mentions_booking(body):
            return await self._create_free_text_request(event)
        return RouterDecision(prompt=self.welcome_prompt())

    def welcome_prompt(self) -> ButtonPrompt:
        return ButtonPrompt(
            body=format_welcome(self.tenant.name),
            buttons=[
                Button(id=BOOK_APPOINTMENT, title="📅 Book Appointment"),
                Button(id=VIEW_SERVICES, title="💇 View Services"),
                Button(id=CONTACT_US, title="📞 Contact Us"),
            ],
        )

    async def _create_free_text_request(self, event: TextMessage) -> RouterDecision:
        customer = await resolve_customer(
            self.session, self.tenant.tenant_id, event.sender, self.settings.default_country_code
        )
        request = await create_pending_request(
            self.session,
            tenant_id=self.tenant.tenant_id,
            phone_number=event.sender,
            message=event.body,
            client_id=customer.id if customer else None,
        )
        return RouterDecision(
            prompt=TextPrompt(format_request_received(request.reference)),
            booking_request=request,
            customer_name=customer.full_name if customer else event.profile_name or None,
        )

    # ────────────────────────────────────────────────────────────
    # Button / list replies
    # ────────────────────────────────────────────────────────────

    async def _handle_reply(self, sender: str, reply_id: str, profile_name: str) -> Optional[RouterDecision]:
        if reply_id == BOOK_APPOINTMENT:
            return await self._service_picker()
        if reply_id == VIEW_SERVICES:
            return await self._service_menu()
        if reply_id == CONTACT_US:
            return self._contact_details()

        token = parse_token(reply_id)
        if isinstance(token, InvalidToken):
            logger.info(f"{ErrorKind.UNRECOGNIZED_INPUT.value}: ignoring reply id {token.raw!r} ({token.reason})")
            return None
        if isinstance(token, ServiceToken):
            return await self._date_picker(token)
        if isinstance(token, DateToken):
            return await self._period_picker(token)
        if isinstance(token, PeriodToken):
            return await self._slot_picker(token)
        return await self._create_slot_request(sender, token, profile_name)

    async def _service_picker(self) -> RouterDecision:
        services = await list_active_services(self.session, self.tenant.tenant_id, limit=MAX_LIST_ROWS)
        if not services:
            logger.info(f"{ErrorKind.EMPTY_CATALOG.value}: tenant {self.tenant.tenant_id} has no active services")
            return RouterDecision(prompt=TextPrompt(NO_SERVICES_MESSAGE))

        rows = [
            ListRow(
                id=ServiceToken(service_id=str(service.id)).encode(),
                title=service.name,
                description=format_service_detail(service),
            )
            for service in services
        ]
        return RouterDecision(
            prompt=ListPrompt(
                header="📅 Book Appointment",
                body="Which service would you like to book?",
                button_label="Choose Service",
                sections=[ListSection(title="Services", rows=rows)],
            )
        )

    async def _service_menu(self) -> RouterDecision:
        services = await list_active_services(self.session, self.tenant.tenant_id)
        staff = await list_active_staff(self.session, self.tenant.tenant_id) if services else []
        return RouterDecision(prompt=TextPrompt(format_service_menu(self.tenant.name, services, staff)))

    def _contact_details(self) -> RouterDecision:
        return RouterDecision(
            prompt=TextPrompt(format_contact_details(self.tenant.name, self.tenant.phone, self.tenant.address))
        )

    async def _date_picker(self, token: ServiceToken) -> RouterDecision:
        service = await get_service_by_id(self.session, self.tenant.tenant_id, token.service_id)
        if service is None:
            return RouterDecision(prompt=TextPrompt(SERVICE_UNAVAILABLE_MESSAGE))

        rows = [
            ListRow(id=candidate.id, title=candidate.title, description=candidate.description)
            for candidate in date_candidates(self.today, token.service_id, self.settings.booking_window_days)
        ]
        return RouterDecision(
            prompt=ListPrompt(
                header=service.name,
                body="Which day works for you?",
                button_label="Choose Date",
                sections=[ListSection(title="Available Dates", rows=rows)],
            )
        )

    async def _period_picker(self, token: DateToken) -> RouterDecision:
        service = await get_service_by_id(self.session, self.tenant.tenant_id, token.service_id)
        if service is None:
            return RouterDecision(prompt=TextPrompt(SERVICE_UNAVAILABLE_MESSAGE))

        buttons = [
            Button(
                id=PeriodToken(period=period, date=token.date, service_id=token.service_id).encode(),
                title=f"{DAY_PART_ICONS[period]} {period.label}",
            )
            for period in DayPart
        ]
        windows = "\n".join(
            f"{DAY_PART_ICONS[period]} {period.label}: "
            f"{format_time_12h(start)} - {format_time_12h(end)}"
            for period, (start, end) in DAY_PART_WINDOWS.items()
        )
        return RouterDecision(
            prompt=ButtonPrompt(
                header=service.name,
                body=f"📅 {token.date.strftime('%A, %B %d')}\n\nWhat time of day suits you?\n\n{windows}",
                buttons=buttons,
            )
        )

    async def _slot_picker(self, token: PeriodToken) -> RouterDecision:
        service = await get_service_by_id(self.session, self.tenant.tenant_id, token.service_id)
        if service is None:
            return RouterDecision(prompt=TextPrompt(SERVICE_UNAVAILABLE_MESSAGE))

        slots = generate_slots(
            token.period,
            token.date,
            token.service_id,
            interval_minutes=self.settings.slot_interval_minutes,
            inclusive_end=self.settings.slot_window_inclusive_end,
        )
        rows = [ListRow(id=slot.id, title=slot.title, description=slot.description) for slot in slots]
        return RouterDecision(
            prompt=ListPrompt(
                header=service.name,
                body=f"📅 {token.date.strftime('%A, %B %d')}\n\nPick a time:",
                button_label="Choose Time",
                sections=[ListSection(title=f"{token.period.label} Slots", rows=rows)],
            )
        )

    async def _create_slot_request(self, sender: str, token: TimeToken, profile_name: str) -> RouterDecision:
        customer = await resolve_customer(
            self.session, self.tenant.tenant_id, sender, self.settings.default_country_code
        )
        service = await get_service_by_id(self.session, self.tenant.tenant_id, token.service_id)
        if service is None:
            logger.info(f"Service {token.service_id} gone before confirmation; no request created")
            return RouterDecision(prompt=TextPrompt(SERVICE_UNAVAILABLE_MESSAGE))

        request = await create_pending_request(
            self.session,
            tenant_id=self.tenant.tenant_id,
            phone_number=sender,
            message=format_slot_request_message(service.name, token.date, token.time),
            client_id=customer.id if customer else None,
            parsed=ParsedBooking(service=service.name, date=token.date, time=token.time),
        )
        return RouterDecision(
            prompt=TextPrompt(format_slot_request_summary(request.reference, service.name, token.date, token.time)),
            booking_request=request,
            customer_name=customer.full_name if customer else profile_name or None,
        )
