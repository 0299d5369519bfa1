"""
Navigation tokens carried in WhatsApp reply ids.

The booking flow keeps no server-side session. Each option we send carries
an id that encodes every selection made so far, and the id the customer taps
comes back to us in the next webhook:

    service_<serviceId>
    date_<yyyy-mm-dd>_<serviceId>
    period_<morning|afternoon|evening>_<yyyy-mm-dd>_<serviceId>
    time_<hh:mm>_<yyyy-mm-dd>_<serviceId>

Parsing never raises. Anything that doesn't split into the right number of
fields, or whose fields don't parse, comes back as InvalidToken.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Union

DELIMITER = "_"


class DayPart(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class ServiceToken:
    service_id: str

    STAGE = "service"

    def encode(self) -> str:
        return DELIMITER.join([self.STAGE, self.service_id])


@dataclass(frozen=True)
class DateToken:
    date: date
    service_id: str

    STAGE = "date"

    def encode(self) -> str:
        return DELIMITER.join([self.STAGE, self.date.isoformat(), self.service_id])


@dataclass(frozen=True)
class PeriodToken:
    period: DayPart
    date: date
    service_id: str

    STAGE = "period"

    def encode(self) -> str:
        return DELIMITER.join([self.STAGE, self.period.value, self.date.isoformat(), self.service_id])


@dataclass(frozen=True)
class TimeToken:
    time: time
    date: date
    service_id: str

    STAGE = "time"

    def encode(self) -> str:
        return DELIMITER.join([self.STAGE, self.time.strftime("%H:%M"), self.date.isoformat(), self.service_id])


@dataclass(frozen=True)
class InvalidToken:
    raw: str
    reason: str


NavigationToken = Union[ServiceToken, DateToken, PeriodToken, TimeToken]

# stage tag -> number of "_"-separated fields, tag included
ARITY = {
    ServiceToken.STAGE: 2,
    DateToken.STAGE: 3,
    PeriodToken.STAGE: 4,
    TimeToken.STAGE: 4,
}


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_time(value: str) -> time | None:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None


def parse_token(raw: str | None) -> NavigationToken | InvalidToken:
    """Decode a reply id into its typed token."""
    if not raw:
        return InvalidToken(raw or "", "empty")

    parts = raw.split(DELIMITER)
    stage = parts[0]
    expected = ARITY.get(stage)
    if expected is None:
        return InvalidToken(raw, f"unknown stage {stage!r}")
    if len(parts) != expected:
        return InvalidToken(raw, f"{stage} expects {expected} fields, got {len(parts)}")

    service_id = parts[-1]
    if not service_id:
        return InvalidToken(raw, "missing service id")

    if stage == ServiceToken.STAGE:
        return ServiceToken(service_id=service_id)

    if stage == DateToken.STAGE:
        day = _parse_date(parts[1])
        if day is None:
            return InvalidToken(raw, f"bad date {parts[1]!r}")
        return DateToken(date=day, service_id=service_id)

    day = _parse_date(parts[2])
    if day is None:
        return InvalidToken(raw, f"bad date {parts[2]!r}")

    if stage == PeriodToken.STAGE:
        try:
            period = DayPart(parts[1])
        except ValueError:
            return InvalidToken(raw, f"bad period {parts[1]!r}")
        return PeriodToken(period=period, date=day, service_id=service_id)

    slot_time = _parse_time(parts[1])
    if slot_time is None:
        return InvalidToken(raw, f"bad time {parts[1]!r}")
    return TimeToken(time=slot_time, date=day, service_id=service_id)
