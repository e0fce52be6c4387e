"""Unit tests for the book-or-rebook protocol."""

import pytest

from botapp.notifications import MessageLocalization
from monitoring.metrics import MonitoringStats
from reservations.gateway import ReservationGatewayError, ServiceAlreadyBookedError
from reservations.services import BookingCoordinator
from tests.helpers import (
    DummyLogger,
    FakeGateway,
    RecordingNotifier,
    StubUserManager,
    make_monitoring,
    make_term,
)


def _coordinator(gateway, notifier=None, languages=None):
    booked = []
    coordinator = BookingCoordinator(
        gateway,
        notifier or RecordingNotifier(),
        MessageLocalization(StubUserManager(languages)),
        on_booked=lambda account_id, monitoring_id: booked.append((account_id, monitoring_id)),
        stats=MonitoringStats(),
        logger=DummyLogger(),
    )
    return coordinator, booked


@pytest.mark.asyncio
async def test_successful_booking_notifies_then_reports_back():
    gateway = FakeGateway()
    coordinator, booked = _coordinator(gateway)
    monitoring = make_monitoring(record_id=8)
    term = make_term(5)

    result = await coordinator.book(term, monitoring, rebook_if_exists=False)

    assert result is True
    assert gateway.reservations == [(1, term)]
    assert gateway.updates == []
    assert booked == [(1, 8)]
    message = coordinator.notifier.messages[0]
    assert "monitoring #8" in message
    assert "Anna Nowak" in message
    assert "Dermatology" in message
    assert coordinator.stats.successful_bookings == 1


@pytest.mark.asyncio
async def test_already_booked_service_is_rebooked_once():
    gateway = FakeGateway(reserve_error=ServiceAlreadyBookedError("exists"))
    coordinator, booked = _coordinator(gateway)
    term = make_term(5)

    result = await coordinator.book(term, make_monitoring(record_id=3), rebook_if_exists=True)

    assert result is True
    assert gateway.updates == [(1, term)]
    assert booked == [(1, 3)]


@pytest.mark.asyncio
async def test_already_booked_without_rebook_fails():
    gateway = FakeGateway(reserve_error=ServiceAlreadyBookedError("exists"))
    coordinator, booked = _coordinator(gateway)

    result = await coordinator.book(make_term(), make_monitoring(record_id=3), rebook_if_exists=False)

    assert result is False
    assert gateway.updates == []
    assert booked == []
    assert coordinator.notifier.sent == []
    assert coordinator.stats.failed_bookings == 1


@pytest.mark.asyncio
async def test_failed_rebook_is_not_retried():
    gateway = FakeGateway(
        reserve_error=ServiceAlreadyBookedError("exists"),
        update_error=ReservationGatewayError("update rejected"),
    )
    coordinator, booked = _coordinator(gateway)

    result = await coordinator.book(make_term(), make_monitoring(record_id=3), rebook_if_exists=True)

    assert result is False
    assert len(gateway.reservations) == 1
    assert len(gateway.updates) == 1
    assert booked == []
    assert "error" in coordinator.logger.levels()


@pytest.mark.asyncio
async def test_notifier_failure_does_not_skip_callback():
    coordinator, booked = _coordinator(
        FakeGateway(), notifier=RecordingNotifier(error=RuntimeError("offline"))
    )

    result = await coordinator.book(make_term(), make_monitoring(record_id=4), rebook_if_exists=False)

    assert result is True
    assert booked == [(1, 4)]


@pytest.mark.asyncio
async def test_booked_message_uses_user_language():
    coordinator, _booked = _coordinator(FakeGateway(), languages={100: "pl"})

    await coordinator.book(make_term(), make_monitoring(record_id=4), rebook_if_exists=False)

    assert "zarezerwował wizytę" in coordinator.notifier.messages[0]
