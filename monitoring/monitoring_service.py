"""
Monitoring Scheduler
Keeps one jittered recurring job per active monitoring, discovers new
monitorings, retires expired ones and acts on terms found by each tick.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from botapp.notifications import MessageLocalization, compose_terms_message
from botapp.notifier import Notifier
from infrastructure.settings import AppSettings
from monitoring.errors import MonitoringLimitExceeded
from monitoring.metrics import MonitoringStats
from monitoring.models import Monitoring
from monitoring.registry import JobRegistry, ScheduledJob
from monitoring.repository import MonitoringStore
from monitoring.term_filter import filter_by_time_window, find_term
from monitoring.timing import draw_timing, offset_date_from
from reservations.gateway import (
    InvalidCredentialsError,
    ReservationGateway,
    ReservationGatewayError,
    SearchCriteria,
    Term,
)
from reservations.services.booking_service import BookingCoordinator


class MonitoringService:
    """
    Scheduler for monitoring jobs

    The job registry is the only shared mutable state. Jobs and the booking
    coordinator reach it exclusively through :meth:`deactivate`.
    """

    def __init__(
        self,
        settings: AppSettings,
        store: MonitoringStore,
        gateway: ReservationGateway,
        notifier: Notifier,
        localization: MessageLocalization,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self.localization = localization
        self.logger = logger or logging.getLogger("MonitoringService")
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: datetime.now(settings.tzinfo))

        self.registry = JobRegistry()
        # Serializes activation against deactivation across threads.
        self._lifecycle_lock = threading.RLock()
        self.stats = MonitoringStats()
        self.booking = BookingCoordinator(
            gateway,
            notifier,
            localization,
            on_booked=self.deactivate,
            stats=self.stats,
        )

        self.running = False
        self.checked_on: Optional[datetime] = None
        self._slots: Optional[asyncio.Semaphore] = None
        self._discovery_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Re-arm every active monitoring, retire expired ones, then start discovery."""

        self.logger.info("Starting monitoring scheduler")
        self.running = True
        self.checked_on = self._clock()
        monitorings = self.store.get_active_monitorings()
        self.logger.info("Active monitorings found: %s", len(monitorings))
        self.activate_all(monitorings)
        await self.sweep_expired()
        self._discovery_task = asyncio.create_task(
            self._discovery_loop(), name="monitoring-discovery"
        )

    async def stop(self) -> None:
        """Stop discovery and cancel every scheduled job (records stay active)."""

        self.logger.info("Stopping monitoring scheduler")
        self.running = False
        tasks = []
        if self._discovery_task:
            self._discovery_task.cancel()
            tasks.append(self._discovery_task)
            self._discovery_task = None

        for job in self.registry.snapshot():
            removed = self.registry.remove(job.record_id)
            if removed is None:
                continue
            if removed.in_tick:
                self.logger.info("Waiting for monitoring [#%s] to finish its tick", removed.record_id)
            removed.cancel()
            if removed.task is not None and removed.task is not asyncio.current_task():
                tasks.append(removed.task)

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.logger.info("Monitoring scheduler stopped")

    async def _discovery_loop(self) -> None:
        interval = self.settings.discovery_interval
        while self.running:
            await asyncio.sleep(interval)
            try:
                await self.update_monitorings()
            except Exception as exc:
                self.logger.error("Monitoring discovery failed: %s", exc, exc_info=True)

    async def update_monitorings(self) -> None:
        """One discovery/cleanup cycle; the two steps never overlap."""

        self.discover_new()
        await self.sweep_expired()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def activate_all(self, monitorings: Iterable[Monitoring]) -> List[ScheduledJob]:
        """Schedule each active, unregistered monitoring; returns the new jobs."""

        scheduled: List[ScheduledJob] = []
        for monitoring in monitorings:
            if not monitoring.active or monitoring.record_id in self.registry:
                continue
            timing = draw_timing(
                self.settings.max_initial_delay,
                self.settings.period_base,
                self.settings.period_max_delta,
                rng=self._rng,
            )
            with self._lifecycle_lock:
                # The record may have been deactivated since it was read.
                current = self.store.find_monitoring(monitoring.account_id, monitoring.record_id)
                if current is None or not current.active:
                    continue
                job = self.registry.register(
                    current.record_id,
                    lambda m=current, jt=timing: ScheduledJob(
                        m, jt, self.run_monitoring, self._worker_slots(), logger=self.logger
                    ).start(),
                )
            if job is None:
                continue
            self.logger.debug(
                "Scheduled monitoring: [#%s] with delay: %ss and period: %ss",
                monitoring.record_id,
                timing.delay,
                timing.period,
            )
            scheduled.append(job)
        return scheduled

    def discover_new(self) -> List[ScheduledJob]:
        """Schedule monitorings created since the last checkpoint."""

        self.logger.debug("Looking for new monitorings created since %s", self.checked_on)
        current_time = self._clock()
        since = self.checked_on or current_time
        monitorings = self.store.get_active_monitorings_since(since)
        self.checked_on = current_time
        self.logger.debug("New active monitorings found: %s", len(monitorings))
        return self.activate_all(monitorings)

    async def sweep_expired(self) -> List[int]:
        """Notify and deactivate registered monitorings whose ``date_to`` passed.

        Each record is deactivated before its message is sent, and only the call
        that unscheduled it sends, so a tick racing the sweep cannot also notify.
        A failing record is logged and skipped.
        """

        now = self._clock()
        retired: List[int] = []
        for job in self.registry.snapshot():
            monitoring = job.monitoring
            try:
                if not monitoring.is_expired(now):
                    continue
                self.logger.debug("Monitoring [#%s] is going to be disabled as outdated", monitoring.record_id)
                if not self.deactivate(monitoring.account_id, monitoring.record_id):
                    # Retired by its own tick in the meantime.
                    continue
            except Exception as exc:
                self.logger.error(
                    "Unable to retire monitoring [#%s]: %s", monitoring.record_id, exc, exc_info=True
                )
                continue
            self.stats.record_expired()
            retired.append(monitoring.record_id)
            await self._send(
                monitoring,
                self.localization.messages_for(monitoring.user_id).nothing_was_found(monitoring),
            )
        return retired

    def deactivate(self, account_id: int, monitoring_id: int) -> bool:
        """Unschedule and persist ``active=False``; a no-op for unknown records.

        Returns whether this call removed the job from the registry.
        """

        with self._lifecycle_lock:
            job = self.registry.remove(monitoring_id)
            if job is not None:
                self.logger.debug("Deactivating scheduled monitoring [#%s]", monitoring_id)
                job.cancel()
                monitoring = self.store.find_monitoring(account_id, monitoring_id) or job.monitoring.copy()
            else:
                self.logger.debug("Deactivating unscheduled monitoring [#%s]", monitoring_id)
                monitoring = self.store.find_monitoring(account_id, monitoring_id)
                if monitoring is None:
                    self.logger.debug("Monitoring [#%s] not found in store", monitoring_id)
                    return False

            monitoring.active = False
            self.store.save_monitoring(monitoring)
        self.stats.record_deactivation()
        return job is not None

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    async def run_monitoring(self, monitoring: Monitoring) -> None:
        """Search once for ``monitoring`` and act on the outcome."""

        self.logger.debug("Looking for available terms. Monitoring [#%s]", monitoring.record_id)
        date_from = offset_date_from(monitoring.date_from, monitoring.offset, self._clock())
        try:
            terms = await self._search(monitoring, date_from)
        except InvalidCredentialsError as exc:
            self.stats.record_tick()
            self.stats.record_auth_failure()
            self.logger.error(
                "User entered invalid name or password. Monitorings of account %s will be disabled: %s",
                monitoring.account_id,
                exc,
            )
            await self._send(
                monitoring,
                self.localization.messages_for(monitoring.user_id).invalid_login_or_password,
            )
            for active in self.store.get_active_monitorings(monitoring.account_id):
                self.deactivate(active.account_id, active.record_id)
            return
        except ReservationGatewayError as exc:
            self.stats.record_tick()
            self.stats.record_transient_failure()
            self.logger.error(
                "Unable to receive terms by monitoring [#%s]: %s", monitoring.record_id, exc
            )
            return

        self.stats.record_tick(len(terms))
        if not terms:
            self.logger.debug("No new terms found for monitoring [#%s]", monitoring.record_id)
            return

        self.logger.debug("Found %s terms by monitoring [#%s]", len(terms), monitoring.record_id)
        if monitoring.autobook:
            await self.booking.book(terms[0], monitoring, monitoring.rebook_if_exists)
        else:
            await self.notify_user_about_terms(terms, monitoring)

    async def notify_user_about_terms(self, terms: List[Term], monitoring: Monitoring) -> None:
        """One-shot notification: deactivate first, then send the closest terms.

        Nothing is sent when another path already unscheduled the monitoring.
        """

        if not self.deactivate(monitoring.account_id, monitoring.record_id):
            self.logger.debug(
                "Monitoring [#%s] was retired meanwhile; dropping %s terms",
                monitoring.record_id,
                len(terms),
            )
            return
        message = compose_terms_message(
            terms,
            monitoring,
            self.localization.messages_for(monitoring.user_id),
            limit=self.settings.max_terms_in_message,
        )
        if await self._send(monitoring, message):
            self.stats.record_notification()

    # ------------------------------------------------------------------
    # Public surface for chat layers
    # ------------------------------------------------------------------
    def create(self, monitoring: Monitoring) -> Monitoring:
        """Persist a new monitoring unless the account is at its active limit."""

        limit = self.settings.max_active_monitorings
        active_count = self.store.get_active_monitorings_count(monitoring.account_id)
        if active_count + 1 > limit:
            self.logger.info(
                "Account %s reached the limit of %s active monitorings", monitoring.account_id, limit
            )
            raise MonitoringLimitExceeded(
                self.localization.messages_for(monitoring.user_id).monitorings_limit_exceeded(limit),
                account_id=monitoring.account_id,
                limit=limit,
            )
        # Naive dates are read as wall clock in the service timezone.
        record = monitoring.in_timezone(self.settings.tzinfo)
        record.active = True
        return self.store.save_monitoring(record)

    def list_active(self, account_id: int) -> List[Monitoring]:
        return self.store.get_active_monitorings(account_id)

    def list_page(self, account_id: int, start: int, count: int) -> List[Monitoring]:
        return self.store.get_monitorings_page(account_id, start, count)

    def count_all(self, account_id: int) -> int:
        return self.store.get_all_monitorings_count(account_id)

    async def book_by_schedule_id(
        self, account_id: int, monitoring_id: int, schedule_id: int, time: int
    ) -> bool:
        """Book a previously shown term; ``time`` is minutes since 2018-01-01.

        Returns whether a reservation was made.
        """

        monitoring = self.store.find_monitoring(account_id, monitoring_id)
        if monitoring is None:
            self.logger.debug("Monitoring [#%s] not found in store", monitoring_id)
            return False

        messages = self.localization.messages_for(monitoring.user_id)
        try:
            terms = await self._search(monitoring, monitoring.date_from)
        except InvalidCredentialsError as exc:
            self.logger.error("User entered invalid name or password: %s", exc)
            await self._send(monitoring, messages.login_has_changed)
            return False
        except ReservationGatewayError as exc:
            self.logger.error(
                "Error occurred during receiving terms for monitoring [#%s]: %s",
                monitoring.record_id,
                exc,
            )
            return False

        term = find_term(terms, schedule_id, time)
        if term is None:
            await self._send(monitoring, messages.term_is_outdated)
            return False
        return await self.booking.book(term, monitoring, rebook_if_exists=True)

    def get_performance_report(self) -> str:
        return self.stats.format_report(active_jobs=len(self.registry))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _search(self, monitoring: Monitoring, date_from: datetime) -> List[Term]:
        criteria = SearchCriteria.from_monitoring(monitoring, date_from)
        terms = await self.gateway.search(monitoring.account_id, criteria)
        return filter_by_time_window(terms, monitoring.time_from, monitoring.time_to)

    async def _send(self, monitoring: Monitoring, message: str) -> bool:
        try:
            await self.notifier.send(monitoring.source, message)
        except Exception as exc:
            self.logger.error(
                "Failed to send message for monitoring [#%s]: %s", monitoring.record_id, exc
            )
            return False
        return True

    def _worker_slots(self) -> asyncio.Semaphore:
        if self._slots is None:
            self._slots = asyncio.Semaphore(self.settings.worker_pool_size)
        return self._slots
