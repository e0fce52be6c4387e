"""Persistence for monitoring records."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

import pytz

from infrastructure.constants import DEFAULT_TIMEZONE
from monitoring.models import Monitoring


def _newest_first_key(monitoring: Monitoring) -> Tuple[float, int]:
    created = monitoring.created.timestamp() if monitoring.created else 0.0
    return created, monitoring.record_id or 0


class MonitoringStore(Protocol):
    """Queries the scheduler runs against the monitoring backing store."""

    def get_active_monitorings(self, account_id: Optional[int] = None) -> List[Monitoring]:
        ...

    def get_active_monitorings_since(self, since: datetime) -> List[Monitoring]:
        ...

    def get_monitorings_page(self, account_id: int, start: int, count: int) -> List[Monitoring]:
        ...

    def get_all_monitorings_count(self, account_id: int) -> int:
        ...

    def get_active_monitorings_count(self, account_id: int) -> int:
        ...

    def find_monitoring(self, account_id: int, monitoring_id: int) -> Optional[Monitoring]:
        ...

    def save_monitoring(self, monitoring: Monitoring) -> Monitoring:
        ...


class JsonMonitoringRepository:
    """Monitoring store backed by a single JSON file.

    Records are kept in memory and the whole file is rewritten on every save.
    All access goes through one lock so the discovery loop and monitoring
    ticks can share an instance. Returned records are copies; mutate them and
    call :meth:`save_monitoring` to persist a change.

    Timestamps are always stored timezone-aware. Naive values, whether saved
    or found in the file, are read as wall-clock time in ``zone``.
    """

    def __init__(
        self,
        file_path: str,
        *,
        zone: Optional[tzinfo] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._path = Path(file_path)
        self._zone = zone or pytz.timezone(DEFAULT_TIMEZONE)
        self._logger = logger or logging.getLogger("MonitoringRepository")
        self._lock = threading.RLock()
        self._records: Dict[int, Monitoring] = {}
        self._next_id = 1
        self._load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_active_monitorings(self, account_id: Optional[int] = None) -> List[Monitoring]:
        with self._lock:
            return self._select(
                m for m in self._records.values()
                if m.active and (account_id is None or m.account_id == account_id)
            )

    def get_active_monitorings_since(self, since: datetime) -> List[Monitoring]:
        with self._lock:
            return self._select(
                m for m in self._records.values()
                if m.active and m.created is not None and m.created > since
            )

    def get_monitorings_page(self, account_id: int, start: int, count: int) -> List[Monitoring]:
        """Return a page of the account's monitorings, newest first."""

        with self._lock:
            owned = [m for m in self._records.values() if m.account_id == account_id]
        owned.sort(key=_newest_first_key, reverse=True)
        return [m.copy() for m in owned[start:start + count]]

    def get_all_monitorings_count(self, account_id: int) -> int:
        with self._lock:
            return sum(1 for m in self._records.values() if m.account_id == account_id)

    def get_active_monitorings_count(self, account_id: int) -> int:
        with self._lock:
            return sum(
                1 for m in self._records.values()
                if m.active and m.account_id == account_id
            )

    def find_monitoring(self, account_id: int, monitoring_id: int) -> Optional[Monitoring]:
        with self._lock:
            record = self._records.get(monitoring_id)
            if record is None or record.account_id != account_id:
                return None
            return record.copy()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def save_monitoring(self, monitoring: Monitoring) -> Monitoring:
        """Insert or update a record; assigns ``record_id``/``created`` on insert.

        Memory is only updated once the file write succeeded, so a failed save
        raises and leaves both the store and ``monitoring`` untouched.
        """

        with self._lock:
            record = monitoring.in_timezone(self._zone)
            if record.record_id is None:
                record.record_id = self._next_id
            if record.created is None:
                record.created = datetime.now(pytz.utc)
            records = dict(self._records)
            records[record.record_id] = record
            self._persist(records)
            self._records = records
            self._next_id = max(self._next_id, record.record_id + 1)

        monitoring.record_id = record.record_id
        monitoring.created = record.created
        monitoring.date_from = record.date_from
        monitoring.date_to = record.date_to
        self._logger.debug(
            "Saved monitoring [#%s] (active=%s)", monitoring.record_id, monitoring.active
        )
        return monitoring

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _select(records: Iterable[Monitoring]) -> List[Monitoring]:
        return sorted((m.copy() for m in records), key=lambda m: m.record_id or 0)

    def _load(self) -> None:
        if not self._path.exists():
            self._logger.debug("Monitorings file %s does not exist; starting empty", self._path)
            return

        with self._path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, list):
            raise ValueError(
                f"Invalid monitorings file {self._path}: expected list, got {type(payload).__name__}"
            )

        for item in payload:
            record = Monitoring.from_payload(item, self._zone)
            if record.record_id is None:
                self._logger.warning("Skipping stored monitoring without record id: %s", item)
                continue
            self._records[record.record_id] = record
            self._next_id = max(self._next_id, record.record_id + 1)
        self._logger.info("Loaded %s monitorings from %s", len(self._records), self._path)

    def _persist(self, records: Dict[int, Monitoring]) -> None:
        """Write ``records`` to disk. Caller must hold ``_lock``."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        payload = [records[key].to_payload() for key in sorted(records)]
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        tmp_path.replace(self._path)
