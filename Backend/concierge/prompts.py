"""
Outbound prompt shapes.

The router decides *what* to say as one of these; the presenter turns them
into Cloud API payloads.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

# Platform limits
MAX_BUTTONS = 3
MAX_SECTION_ROWS = 10
MAX_TOTAL_ROWS = 10
MAX_BUTTON_TITLE = 20
MAX_ROW_TITLE = 24
MAX_ROW_DESCRIPTION = 72
MAX_LIST_BUTTON_LABEL = 20
MAX_HEADER_TEXT = 60
MAX_FOOTER_TEXT = 60
MAX_INTERACTIVE_BODY = 1024
MAX_TEXT_BODY = 4096


@dataclass(frozen=True)
class Button:
    id: str
    title: str


@dataclass(frozen=True)
class ListRow:
    id: str
    title: str
    description: str = ""


@dataclass(frozen=True)
class ListSection:
    title: str
    rows: list[ListRow] = field(default_factory=list)


@dataclass(frozen=True)
class TextPrompt:
    body: str


@dataclass(frozen=True)
class ButtonPrompt:
    body: str
    buttons: list[Button]
    header: Optional[str] = None
    footer: Optional[str] = None


@dataclass(frozen=True)
class ListPrompt:
    body: str
    button_label: str
    sections: list[ListSection]
    header: Optional[str] = None
    footer: Optional[str] = None

    @property
    def row_count(self) -> int:
        return sum(len(section.rows) for section in self.sections)


Prompt = Union[TextPrompt, ButtonPrompt, ListPrompt]
