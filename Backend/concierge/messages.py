"""
Customer- and staff-facing message copy for the WhatsApp concierge.
"""

from collections import OrderedDict
from datetime import date, time
from decimal import Decimal
from typing import Optional, Sequence

from .models import Service, Staff
from .prompts import MAX_TEXT_BODY
from .slots import format_time_12h

OTHER_CATEGORY = "Other Services"
TO_BE_CONFIRMED = "To be confirmed"
MORE_SERVICES_NOTE = "…and {count} more. Tap 📅 Book Appointment to see the full list."


def format_price(amount: Optional[Decimal]) -> str:
    """₹500, ₹499.50"""
    if amount is None:
        return ""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return f"₹{int(amount)}"
    return f"₹{amount:.2f}"


def format_service_detail(service: Service) -> str:
    """List row description, e.g. "₹500 · 45 min"."""
    parts = []
    if service.base_price is not None:
        parts.append(format_price(service.base_price))
    if service.duration_minutes:
        parts.append(f"{service.duration_minutes} min")
    return " · ".join(parts)


def format_welcome(salon_name: str) -> str:
    return f"Hello! 👋 Welcome to {salon_name}!\n\nHow can we help you today?"


def format_service_menu(
    salon_name: str,
    services: Sequence[Service],
    staff: Sequence[Staff] = (),
    max_length: int = MAX_TEXT_BODY,
) -> str:
    """
    Service menu grouped by category, with price and duration.

    Returns a "contact us" note instead when the catalogue is empty. Large
    catalogues stop at the last service that fits in ``max_length`` and end
    with a count of what was left out.
    """
    if not services:
        return f"💇 Services at {salon_name}:\n\nPlease contact us for our service menu! ✨"

    grouped: "OrderedDict[str, list[Service]]" = OrderedDict()
    for service in services:
        category = service.category.name if service.category else OTHER_CATEGORY
        grouped.setdefault(category, []).append(service)

    tail = [""]
    if staff:
        tail += [f"👩‍🎨 Our team: {', '.join(member.full_name for member in staff)}", ""]
    tail.append("Book an appointment to experience our services! ✨")

    # room for the tail plus a "more services" line
    budget = max_length - len("\n".join(tail)) - len(MORE_SERVICES_NOTE.format(count=len(services))) - 3

    lines = [f"💇 Services at {salon_name}:"]
    used = len(lines[0])
    shown = 0
    full = False
    for category, items in grouped.items():
        if full:
            break
        block = ["", f"*{category}*"]
        for service in items:
            entry = [_menu_line(service)]
            if service.description:
                entry.append(f"  {service.description}")
            cost = sum(len(line) + 1 for line in block + entry)
            if used + cost > budget:
                full = True
                break
            lines += block + entry
            used += cost
            block = []
            shown += 1

    if shown < len(services):
        lines += ["", MORE_SERVICES_NOTE.format(count=len(services) - shown)]
    return "\n".join(lines + tail)


def _menu_line(service: Service) -> str:
    line = f"• {service.name}"
    if service.base_price is not None:
        line += f" - {format_price(service.base_price)}"
    if service.duration_minutes:
        line += f" ({service.duration_minutes}min)"
    return line


def format_contact_details(salon_name: str, phone: Optional[str], address: Optional[str]) -> str:
    lines = ["📞 Contact Us:", "", salon_name, ""]
    if phone:
        lines.append(f"📱 Phone: {phone}")
    if address:
        lines.append(f"📍 Address: {address}")
    lines.append("")
    lines.append("Feel free to reach out to us for any queries!\n\nWe're here to help! 💙")
    return "\n".join(lines)


def format_request_received(reference: str) -> str:
    """Acknowledgement for a free-text booking request."""
    return (
        "✅ Your booking request has been received!\n\n"
        "Our team will review it and get back to you shortly. "
        "You'll receive a confirmation once your appointment is approved.\n\n"
        f"Booking Reference: {reference}"
    )


def format_slot_request_summary(
    reference: str,
    service_name: str,
    day: date,
    slot_time: time,
) -> str:
    """Confirmation for a request made through the guided slot picker."""
    return (
        "✅ *Booking Request Sent!*\n\n"
        f"💇 Service: {service_name}\n"
        f"📅 Date: {day.strftime('%A, %B %d, %Y')}\n"
        f"🕐 Time: {format_time_12h(slot_time)}\n\n"
        "This is a request, not a confirmed appointment. "
        "Our team will confirm availability and message you shortly.\n\n"
        f"Booking Reference: {reference}"
    )


def format_slot_request_message(service_name: str, day: date, slot_time: time) -> str:
    """Text stored on the booking request row for guided-flow requests."""
    return f"Booking request via WhatsApp: {service_name} on {day.isoformat()} at {slot_time.strftime('%H:%M')}"


def format_new_request_notification(
    client_name: str,
    client_phone: str,
    service_name: Optional[str],
    preferred_date: Optional[date],
    preferred_time: Optional[time],
) -> str:
    """Alert sent to the salon's own WhatsApp number."""
    date_display = preferred_date.strftime("%d %b %Y") if preferred_date else TO_BE_CONFIRMED
    time_display = format_time_12h(preferred_time) if preferred_time else TO_BE_CONFIRMED
    return (
        "🔔 NEW BOOKING REQUEST\n\n"
        f"Client: {client_name}\n"
        f"Phone: {client_phone}\n"
        f"Service: {service_name or TO_BE_CONFIRMED}\n"
        f"Preferred Date: {date_display}\n"
        f"Preferred Time: {time_display}\n\n"
        "Please check your dashboard to accept or decline this booking."
    )


NO_SERVICES_MESSAGE = (
    "😔 Sorry, online booking isn't available right now because we have no services listed.\n\n"
    "Reply *menu* and tap Contact Us and we'll help you book."
)

SERVICE_UNAVAILABLE_MESSAGE = (
    "😔 Sorry, that service is no longer available.\n\n"
    "Reply *menu* to pick another service."
)

TRY_AGAIN_MESSAGE = (
    "😔 Sorry, something went wrong on our side. Please try again in a moment."
)
