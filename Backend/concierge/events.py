"""
Inbound WhatsApp Cloud API webhook payloads.

Meta posts:
    {"entry": [{"changes": [{"value": {
        "metadata": {"display_phone_number": "...", "phone_number_id": "..."},
        "contacts": [{"profile": {"name": "..."}, "wa_id": "..."}],
        "messages": [{"from": "...", "type": "text", "text": {"body": "..."}}],
        "statuses": [...]
    }}]}]}

Only messages[0] matters. Status callbacks, media messages and anything
that doesn't validate are dropped here so the router never sees them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────
# Wire models
# ────────────────────────────────────────────────────────────────

class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ReplyRef(_Lenient):
    id: str
    title: Optional[str] = None


class InteractivePart(_Lenient):
    type: Optional[str] = None
    button_reply: Optional[ReplyRef] = None
    list_reply: Optional[ReplyRef] = None


class TextPart(_Lenient):
    body: str = ""


class WireMessage(_Lenient):
    sender: str = Field(alias="from")
    type: str
    text: Optional[TextPart] = None
    interactive: Optional[InteractivePart] = None


class Profile(_Lenient):
    name: Optional[str] = None


class Contact(_Lenient):
    profile: Optional[Profile] = None
    wa_id: Optional[str] = None


class Metadata(_Lenient):
    display_phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None


class ChangeValue(_Lenient):
    metadata: Optional[Metadata] = None
    contacts: list[Contact] = Field(default_factory=list)
    messages: list[WireMessage] = Field(default_factory=list)
    statuses: list[dict[str, Any]] = Field(default_factory=list)


class Change(_Lenient):
    value: Optional[ChangeValue] = None


class Entry(_Lenient):
    changes: list[Change] = Field(default_factory=list)


class WebhookPayload(_Lenient):
    entry: list[Entry] = Field(default_factory=list)


# ────────────────────────────────────────────────────────────────
# Inbound events
# ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextMessage:
    sender: str
    body: str
    profile_name: str = ""


@dataclass(frozen=True)
class ButtonReply:
    sender: str
    button_id: str
    profile_name: str = ""

    @property
    def reply_id(self) -> str:
        return self.button_id


@dataclass(frozen=True)
class ListReply:
    sender: str
    list_id: str
    profile_name: str = ""

    @property
    def reply_id(self) -> str:
        return self.list_id


InboundEvent = Union[TextMessage, ButtonReply, ListReply]


@dataclass(frozen=True)
class InboundDelivery:
    """One inbound event plus the business number it was sent to."""

    event: InboundEvent
    display_phone_number: Optional[str] = None


def _first_value(payload: WebhookPayload) -> Optional[ChangeValue]:
    if not payload.entry or not payload.entry[0].changes:
        return None
    return payload.entry[0].changes[0].value


def to_event(message: WireMessage, profile_name: str) -> Optional[InboundEvent]:
    if message.type == "text" and message.text is not None:
        return TextMessage(sender=message.sender, body=message.text.body, profile_name=profile_name)

    if message.type == "interactive" and message.interactive is not None:
        if message.interactive.button_reply is not None:
            return ButtonReply(
                sender=message.sender,
                button_id=message.interactive.button_reply.id,
                profile_name=profile_name,
            )
        if message.interactive.list_reply is not None:
            return ListReply(
                sender=message.sender,
                list_id=message.interactive.list_reply.id,
                profile_name=profile_name,
            )

    return None


def parse_inbound_event(raw: Any) -> Optional[InboundDelivery]:
    """
    Extract the single inbound event from a webhook body.

    Returns:
        InboundDelivery, or None for status callbacks and unrecognised shapes
    """
    try:
        payload = WebhookPayload.model_validate(raw)
    except ValidationError as e:
        logger.info(f"Ignoring malformed webhook payload: {e.error_count()} validation errors")
        return None

    value = _first_value(payload)
    if value is None or not value.messages:
        return None

    profile_name = ""
    if value.contacts and value.contacts[0].profile and value.contacts[0].profile.name:
        profile_name = value.contacts[0].profile.name

    message = value.messages[0]
    event = to_event(message, profile_name)
    if event is None:
        logger.info(f"Ignoring unsupported WhatsApp message type {message.type!r}")
        return None

    display_number = value.metadata.display_phone_number if value.metadata else None
    return InboundDelivery(event=event, display_phone_number=display_number)
