"""Statistics helpers for the monitoring scheduler."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass
class MonitoringStats:
    """Mutable counters tracking monitoring execution outcomes."""

    ticks: int = 0
    terms_found: int = 0
    notifications_sent: int = 0
    successful_bookings: int = 0
    failed_bookings: int = 0
    auth_failures: int = 0
    transient_failures: int = 0
    expired: int = 0
    deactivations: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_tick(self, terms_found: int = 0) -> None:
        with self._lock:
            self.ticks += 1
            self.terms_found += max(terms_found, 0)

    def record_notification(self) -> None:
        with self._lock:
            self.notifications_sent += 1

    def record_booking(self, success: bool) -> None:
        with self._lock:
            if success:
                self.successful_bookings += 1
            else:
                self.failed_bookings += 1

    def record_auth_failure(self) -> None:
        with self._lock:
            self.auth_failures += 1

    def record_transient_failure(self) -> None:
        with self._lock:
            self.transient_failures += 1

    def record_expired(self) -> None:
        with self._lock:
            self.expired += 1

    def record_deactivation(self) -> None:
        with self._lock:
            self.deactivations += 1

    @property
    def booking_success_rate(self) -> float:
        attempts = self.successful_bookings + self.failed_bookings
        if attempts == 0:
            return 0.0
        return (self.successful_bookings / attempts) * 100

    def format_report(self, active_jobs: int = 0) -> str:
        lines = [
            "📊 Monitoring Scheduler Report",
            f"🗂️ Scheduled jobs: {active_jobs}",
            f"🔁 Ticks: {self.ticks}",
            f"🔎 Terms found: {self.terms_found}",
            f"📨 Notifications: {self.notifications_sent}",
            f"✅ Bookings: {self.successful_bookings}",
            f"❌ Failed bookings: {self.failed_bookings}",
            f"🏆 Booking success rate: {self.booking_success_rate:.2f}%",
        ]
        if self.auth_failures:
            lines.append(f"🔐 Authentication failures: {self.auth_failures}")
        if self.transient_failures:
            lines.append(f"⚠️ Transient failures: {self.transient_failures}")
        if self.expired:
            lines.append(f"⌛ Expired: {self.expired}")
        lines.append(f"🛑 Deactivations: {self.deactivations}")
        return "\n".join(lines)
