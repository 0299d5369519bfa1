"""
Render prompts as WhatsApp Cloud API message bodies.

Every text field (message body, header, footer, titles, descriptions,
list button label) is clipped silently to its platform limit; the API
would reject the whole message otherwise. Too many buttons or rows is a
bug in whoever built the prompt: in strict mode we raise
InvalidPromptShape, otherwise we log it and clip to the limit so the
customer still gets an answer.
"""

import logging
from dataclasses import replace

from .errors import InvalidPromptShape
from .phone import format_phone_for_whatsapp
from .prompts import (
    MAX_BUTTON_TITLE,
    MAX_BUTTONS,
    MAX_FOOTER_TEXT,
    MAX_HEADER_TEXT,
    MAX_INTERACTIVE_BODY,
    MAX_LIST_BUTTON_LABEL,
    MAX_ROW_DESCRIPTION,
    MAX_ROW_TITLE,
    MAX_SECTION_ROWS,
    MAX_TEXT_BODY,
    MAX_TOTAL_ROWS,
    ButtonPrompt,
    ListPrompt,
    ListSection,
    Prompt,
    TextPrompt,
)

logger = logging.getLogger(__name__)


def _violation(message: str, strict: bool) -> None:
    if strict:
        raise InvalidPromptShape(message)
    logger.error(f"{InvalidPromptShape.kind.value}: {message}; truncating")


def enforce_button_limit(prompt: ButtonPrompt, strict: bool) -> ButtonPrompt:
    if len(prompt.buttons) > MAX_BUTTONS:
        _violation(f"{len(prompt.buttons)} buttons (max {MAX_BUTTONS})", strict)
        return replace(prompt, buttons=prompt.buttons[:MAX_BUTTONS])
    return prompt


def enforce_row_limits(prompt: ListPrompt, strict: bool) -> ListPrompt:
    sections = []
    for section in prompt.sections:
        if len(section.rows) > MAX_SECTION_ROWS:
            _violation(
                f"section {section.title!r} has {len(section.rows)} rows (max {MAX_SECTION_ROWS})",
                strict,
            )
            section = replace(section, rows=section.rows[:MAX_SECTION_ROWS])
        sections.append(section)

    prompt = replace(prompt, sections=sections)
    total = prompt.row_count
    if total > MAX_TOTAL_ROWS:
        _violation(f"list has {total} rows (max {MAX_TOTAL_ROWS})", strict)
        remaining = MAX_TOTAL_ROWS
        clipped: list[ListSection] = []
        for section in sections:
            if remaining <= 0:
                break
            clipped.append(replace(section, rows=section.rows[:remaining]))
            remaining -= len(clipped[-1].rows)
        sections = clipped

    return replace(prompt, sections=sections)


def _envelope(to: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": format_phone_for_whatsapp(to),
    }


def _decorate(interactive: dict, header: str | None, footer: str | None) -> dict:
    if header:
        interactive["header"] = {"type": "text", "text": header[:MAX_HEADER_TEXT]}
    if footer:
        interactive["footer"] = {"text": footer[:MAX_FOOTER_TEXT]}
    return interactive


def render(prompt: Prompt, to: str, *, strict: bool = True) -> dict:
    """
    Build the JSON body for POST /{phone_number_id}/messages.

    Args:
        prompt: What to send
        to: Recipient phone in any format
        strict: Raise on cardinality violations instead of truncating

    Raises:
        InvalidPromptShape: strict mode and too many buttons/rows
    """
    payload = _envelope(to)

    if isinstance(prompt, TextPrompt):
        payload["type"] = "text"
        payload["text"] = {"body": prompt.body[:MAX_TEXT_BODY]}
        return payload

    if isinstance(prompt, ButtonPrompt):
        prompt = enforce_button_limit(prompt, strict)
        interactive = {
            "type": "button",
            "body": {"text": prompt.body[:MAX_INTERACTIVE_BODY]},
            "action": {
                "buttons": [
                    {"type": "reply", "reply": {"id": button.id, "title": button.title[:MAX_BUTTON_TITLE]}}
                    for button in prompt.buttons
                ]
            },
        }
        payload["type"] = "interactive"
        payload["interactive"] = _decorate(interactive, prompt.header, prompt.footer)
        return payload

    if isinstance(prompt, ListPrompt):
        prompt = enforce_row_limits(prompt, strict)
        sections = []
        for section in prompt.sections:
            rows = []
            for row in section.rows:
                entry = {"id": row.id, "title": row.title[:MAX_ROW_TITLE]}
                if row.description:
                    entry["description"] = row.description[:MAX_ROW_DESCRIPTION]
                rows.append(entry)
            sections.append({"title": section.title[:MAX_ROW_TITLE], "rows": rows})
        interactive = {
            "type": "list",
            "body": {"text": prompt.body[:MAX_INTERACTIVE_BODY]},
            "action": {
                "button": prompt.button_label[:MAX_LIST_BUTTON_LABEL],
                "sections": sections,
            },
        }
        payload["type"] = "interactive"
        payload["interactive"] = _decorate(interactive, prompt.header, prompt.footer)
        return payload

    raise TypeError(f"Unsupported prompt type: {type(prompt).__name__}")
