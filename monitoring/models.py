"""Monitoring records and their chat destinations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import datetime, time, tzinfo
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from infrastructure.constants import DEFAULT_LANGUAGE_ID, DEFAULT_OFFSET_HOURS

_TIME_FORMAT = "%H:%M"
_DATETIME_FIELDS = ("date_from", "date_to", "created")


def localize(moment: Optional[datetime], zone: tzinfo) -> Optional[datetime]:
    """Attach ``zone`` to a naive datetime; aware values pass through."""

    if moment is None or moment.tzinfo is not None:
        return moment
    if hasattr(zone, "localize"):
        return zone.localize(moment)
    return moment.replace(tzinfo=zone)


class MessageSourceSystem(Enum):
    """Chat systems a monitoring can report to."""

    TELEGRAM = 1
    FACEBOOK = 2


@dataclass(frozen=True)
class MessageSource:
    """Chat destination: system plus the chat id inside that system."""

    system: MessageSourceSystem
    chat_id: str


@dataclass
class Monitoring:
    """A saved recurring term search with an optional auto-booking directive.

    ``record_id`` stays ``None`` until the record is first persisted.
    ``date_to`` doubles as the expiry instant of the monitoring.
    """

    account_id: int
    user_id: int
    source_system_id: int
    chat_id: str
    city_id: int
    service_id: int
    date_from: datetime
    date_to: datetime
    time_from: time
    time_to: time
    city_name: str = ""
    service_name: str = ""
    clinic_id: Optional[int] = None
    clinic_name: Optional[str] = None
    doctor_id: Optional[int] = None
    doctor_name: Optional[str] = None
    payer_id: Optional[int] = None
    offset: int = DEFAULT_OFFSET_HOURS
    language_id: int = DEFAULT_LANGUAGE_ID
    autobook: bool = False
    rebook_if_exists: bool = False
    active: bool = True
    record_id: Optional[int] = None
    created: Optional[datetime] = None

    @property
    def source(self) -> MessageSource:
        return MessageSource(
            MessageSourceSystem(self.source_system_id), str(self.chat_id)
        )

    def is_expired(self, now: datetime) -> bool:
        return self.date_to < now

    def copy(self, **changes: Any) -> "Monitoring":
        return replace(self, **changes)

    def in_timezone(self, zone: tzinfo) -> "Monitoring":
        """Copy with naive ``date_from``, ``date_to`` and ``created`` read as ``zone`` wall clock."""

        return replace(
            self, **{key: localize(getattr(self, key), zone) for key in _DATETIME_FIELDS}
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-safe representation of the record."""

        payload = asdict(self)
        payload["date_from"] = self.date_from.isoformat()
        payload["date_to"] = self.date_to.isoformat()
        payload["time_from"] = self.time_from.strftime(_TIME_FORMAT)
        payload["time_to"] = self.time_to.strftime(_TIME_FORMAT)
        payload["created"] = self.created.isoformat() if self.created else None
        return payload

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], zone: Optional[tzinfo] = None
    ) -> "Monitoring":
        """Build a record from JSON; naive timestamps are read in ``zone`` when given."""

        data = dict(payload)
        for key in _DATETIME_FIELDS:
            value = data.get(key)
            if isinstance(value, str):
                value = datetime.fromisoformat(value)
            if zone is not None:
                value = localize(value, zone)
            data[key] = value
        for key in ("time_from", "time_to"):
            value = data.get(key)
            if isinstance(value, str):
                data[key] = datetime.strptime(value, _TIME_FORMAT).time()
        known = cls.__dataclass_fields__.keys()
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class JobTiming:
    """Randomized timing captured once when a monitoring job is scheduled."""

    delay: float
    period: float


__all__ = ["JobTiming", "MessageSource", "MessageSourceSystem", "Monitoring", "localize"]
