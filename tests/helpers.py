"""Shared fakes and utilities for unit tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytz

from infrastructure.settings import AppSettings, load_settings
from monitoring.models import MessageSource, Monitoring
from reservations.gateway import SearchCriteria, Term

WARSAW = pytz.timezone("Europe/Warsaw")


def local(*args: int) -> datetime:
    """Aware Europe/Warsaw datetime from ``datetime`` positional fields."""

    return WARSAW.localize(datetime(*args))


NOW = local(2024, 5, 10, 8, 0)


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    def exception(self, *args: Any, **kwargs: Any) -> None:
        self._record("exception", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""

        formatted: List[Tuple[str, Any]] = []
        for level, args, _kwargs in self.records:
            template = args[0] if args else None
            if isinstance(template, str) and len(args) > 1:
                try:
                    template = template % args[1:]
                except (TypeError, ValueError):
                    pass
            formatted.append((level, template))
        return formatted

    def levels(self) -> List[str]:
        return [level for level, _args, _kwargs in self.records]


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


class MaxRandom:
    """``random.Random`` stand-in that always draws the largest value."""

    def randrange(self, stop: int) -> int:
        return stop - 1


class ZeroRandom:
    def randrange(self, stop: int) -> int:
        return 0


class FakeGateway:
    """In-memory reservation gateway that records every call."""

    def __init__(
        self,
        terms: Optional[List[Term]] = None,
        *,
        search_error: Optional[Exception] = None,
        reserve_error: Optional[Exception] = None,
        update_error: Optional[Exception] = None,
    ) -> None:
        self.terms = list(terms or [])
        self.search_error = search_error
        self.reserve_error = reserve_error
        self.update_error = update_error
        self.searches: List[Tuple[int, SearchCriteria]] = []
        self.reservations: List[Tuple[int, Term]] = []
        self.updates: List[Tuple[int, Term]] = []
        self.cancellations: List[Tuple[int, int]] = []

    async def search(self, account_id: int, criteria: SearchCriteria) -> List[Term]:
        self.searches.append((account_id, criteria))
        if self.search_error is not None:
            raise self.search_error
        return list(self.terms)

    async def reserve(self, account_id: int, term: Term) -> None:
        self.reservations.append((account_id, term))
        if self.reserve_error is not None:
            raise self.reserve_error

    async def update_reservation(self, account_id: int, term: Term) -> None:
        self.updates.append((account_id, term))
        if self.update_error is not None:
            raise self.update_error

    async def cancel_reservation(self, account_id: int, reservation_id: int) -> None:
        self.cancellations.append((account_id, reservation_id))

    async def reserved_visits(self, account_id: int) -> List[Dict[str, Any]]:
        return []

    async def visits_history(self, account_id: int) -> List[Dict[str, Any]]:
        return []


class RecordingNotifier:
    """Notifier that keeps sent messages, optionally failing every send.

    A ``delay`` suspends each send before it is recorded, like a slow chat API.
    """

    def __init__(self, error: Optional[Exception] = None, *, delay: float = 0) -> None:
        self.error = error
        self.delay = delay
        self.sent: List[Tuple[MessageSource, str]] = []

    async def send(self, source: MessageSource, message: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.sent.append((source, message))

    @property
    def messages(self) -> List[str]:
        return [message for _source, message in self.sent]


class StubUserManager:
    """Only the language lookup the message templates need."""

    def __init__(self, languages: Optional[Mapping[int, str]] = None) -> None:
        self.languages = dict(languages or {})

    def get_user_language(self, user_id: int) -> str:
        return self.languages.get(user_id, "en")


def make_settings(**overrides: str) -> AppSettings:
    """Settings built from a plain mapping; jobs wait an hour by default."""

    env = {
        "BOT_TIMEZONE": "Europe/Warsaw",
        "MONITORING_MAX_INITIAL_DELAY": "3600",
        "MONITORING_PERIOD_BASE": "3600",
        "MONITORING_PERIOD_MAX_DELTA": "60",
        "MONITORING_DISCOVERY_INTERVAL": "3600",
    }
    env.update(overrides)
    return load_settings(env)


def make_monitoring(**overrides: Any) -> Monitoring:
    fields: Dict[str, Any] = dict(
        account_id=1,
        user_id=100,
        source_system_id=1,
        chat_id="555",
        city_id=5,
        service_id=4,
        date_from=local(2024, 5, 1, 0, 0),
        date_to=local(2024, 6, 30, 23, 59),
        time_from=time(9, 0),
        time_to=time(12, 0),
        city_name="Warszawa",
        service_name="Dermatology",
    )
    fields.update(overrides)
    return Monitoring(**fields)


def make_term(schedule_id: int = 1, start: Optional[datetime] = None, **overrides: Any) -> Term:
    start = start or local(2024, 5, 12, 10, 0)
    fields: Dict[str, Any] = dict(
        schedule_id=schedule_id,
        start=start,
        end=start + timedelta(minutes=15),
        doctor_name="Anna Nowak",
        clinic_name="Centrum",
    )
    fields.update(overrides)
    return Term(**fields)
