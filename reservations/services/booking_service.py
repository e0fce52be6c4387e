"""Book-or-rebook protocol for terms matched by a monitoring."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from botapp.notifications import MessageLocalization
from botapp.notifier import Notifier
from monitoring.metrics import MonitoringStats
from monitoring.models import Monitoring
from reservations.gateway import (
    ReservationGateway,
    ReservationGatewayError,
    ServiceAlreadyBookedError,
    Term,
)

BookedCallback = Callable[[int, int], object]


class BookingCoordinator:
    """Reserve a matched term and report the outcome.

    ``on_booked(account_id, monitoring_id)`` is called after a successful
    booking; the scheduler passes its ``deactivate`` here so the coordinator
    never touches the job registry itself.
    """

    def __init__(
        self,
        gateway: ReservationGateway,
        notifier: Notifier,
        localization: MessageLocalization,
        on_booked: BookedCallback,
        *,
        stats: Optional[MonitoringStats] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.gateway = gateway
        self.notifier = notifier
        self.localization = localization
        self.on_booked = on_booked
        self.stats = stats or MonitoringStats()
        self.logger = logger or logging.getLogger("BookingCoordinator")

    async def book(self, term: Term, monitoring: Monitoring, rebook_if_exists: bool) -> bool:
        """Book ``term`` for ``monitoring``; returns whether a reservation was made.

        A failed booking leaves the monitoring active so it keeps polling.
        """

        try:
            await self._reserve_or_update(term, monitoring, rebook_if_exists)
        except ReservationGatewayError as exc:
            self.stats.record_booking(False)
            self.logger.error(
                "Unable to book appointment by monitoring [#%s]: %s",
                monitoring.record_id,
                exc,
            )
            return False

        self.stats.record_booking(True)
        self.logger.info(
            "Booked term %s at %s by monitoring [#%s]",
            term.schedule_id,
            term.start,
            monitoring.record_id,
        )
        message = self.localization.messages_for(monitoring.user_id).appointment_is_booked(
            term, monitoring
        )
        try:
            await self.notifier.send(monitoring.source, message)
        except Exception as exc:
            self.logger.error(
                "Failed to send booking confirmation for monitoring [#%s]: %s",
                monitoring.record_id,
                exc,
            )
        self.on_booked(monitoring.account_id, monitoring.record_id)
        return True

    async def _reserve_or_update(
        self, term: Term, monitoring: Monitoring, rebook_if_exists: bool
    ) -> None:
        try:
            await self.gateway.reserve(monitoring.account_id, term)
        except ServiceAlreadyBookedError:
            if not rebook_if_exists:
                raise
            self.logger.info(
                "Service [%s] is already booked. Trying to update term",
                monitoring.service_name,
            )
            await self.gateway.update_reservation(monitoring.account_id, term)
