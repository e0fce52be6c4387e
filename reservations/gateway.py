"""Contracts for the external reservation service.

The scheduler never talks HTTP itself. It consumes a
:class:`ReservationGateway` implementation that owns sessions, retries and
timeouts, and reports failures by raising the exceptions defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from monitoring.models import Monitoring


class ReservationGatewayError(Exception):
    """Base failure reported by the reservation service."""


class InvalidCredentialsError(ReservationGatewayError):
    """The account credentials were rejected by the reservation service."""


class ServiceAlreadyBookedError(ReservationGatewayError):
    """The account already holds a reservation for the requested service."""


@dataclass(frozen=True)
class Term:
    """One bookable slot returned by a search."""

    schedule_id: int
    start: datetime
    end: Optional[datetime] = None
    doctor_name: str = ""
    clinic_name: str = ""
    room_name: str = ""
    service_id: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SearchCriteria:
    """Parameters for a single term search."""

    payer_id: Optional[int]
    city_id: int
    clinic_id: Optional[int]
    service_id: int
    doctor_id: Optional[int]
    date_from: datetime
    date_to: datetime
    time_from: time
    time_to: time
    language_id: int

    @classmethod
    def from_monitoring(
        cls, monitoring: "Monitoring", date_from: Optional[datetime] = None
    ) -> "SearchCriteria":
        return cls(
            payer_id=monitoring.payer_id,
            city_id=monitoring.city_id,
            clinic_id=monitoring.clinic_id,
            service_id=monitoring.service_id,
            doctor_id=monitoring.doctor_id,
            date_from=date_from or monitoring.date_from,
            date_to=monitoring.date_to,
            time_from=monitoring.time_from,
            time_to=monitoring.time_to,
            language_id=monitoring.language_id,
        )


class ReservationGateway(Protocol):
    """Operations the monitoring core consumes from the reservation service.

    Every coroutine raises :class:`InvalidCredentialsError` when the session
    for ``account_id`` cannot be established and
    :class:`ReservationGatewayError` for any other failure.
    """

    async def search(self, account_id: int, criteria: SearchCriteria) -> List[Term]:
        """Return available terms ordered by start time."""

    async def reserve(self, account_id: int, term: Term) -> None:
        """Hold the term temporarily and finalize the reservation.

        Raises :class:`ServiceAlreadyBookedError` when the account already has
        a reservation for the same service.
        """

    async def update_reservation(self, account_id: int, term: Term) -> None:
        """Move the account's existing reservation for the service to ``term``."""

    async def cancel_reservation(self, account_id: int, reservation_id: int) -> None:
        """Cancel an existing reservation."""

    async def reserved_visits(self, account_id: int) -> List[Dict[str, Any]]:
        """Return upcoming reserved visits."""

    async def visits_history(self, account_id: int) -> List[Dict[str, Any]]:
        """Return past visits."""


__all__ = [
    "InvalidCredentialsError",
    "ReservationGateway",
    "ReservationGatewayError",
    "SearchCriteria",
    "ServiceAlreadyBookedError",
    "Term",
]
