from datetime import timedelta

import pytest

from botapp.i18n import create_translator
from botapp.notifications import (
    MessageLocalization,
    MonitoringMessages,
    book_command,
    compose_terms_message,
)
from botapp.notifier import ChatNotifier
from monitoring.models import MessageSource, MessageSourceSystem
from tests.helpers import StubUserManager, local, make_monitoring, make_term


def test_book_command_encodes_minutes_since_2018():
    monitoring = make_monitoring(record_id=7)
    term = make_term(333, local(2018, 1, 1, 1, 30))

    assert book_command(monitoring, term) == "/book_7_333_90"


def test_compose_terms_message_lists_five_closest_terms():
    monitoring = make_monitoring(record_id=2)
    start = local(2024, 5, 12, 9, 0)
    terms = [make_term(i, start + timedelta(days=i)) for i in range(7)]

    message = compose_terms_message(terms, monitoring, MonitoringMessages())

    header, body = message.split("\n\n", 1)
    assert "7 term(s)" in header
    assert body.count("/book_2_") == 5
    assert body.startswith("1. ⏱ 12-05-2024 09:00")
    assert "\n5. ⏱" in body
    assert "6. ⏱" not in body
    assert "/book_2_6_" not in body


def test_term_entry_falls_back_to_any_doctor_and_clinic():
    monitoring = make_monitoring(record_id=2)
    term = make_term(1, doctor_name="", clinic_name="")

    entry = MonitoringMessages().available_term_entry(term, monitoring, 0)

    assert "Any doctor" in entry
    assert "Any clinic" in entry


def test_messages_follow_user_language():
    localization = MessageLocalization(StubUserManager({100: "pl", 200: "en"}))

    assert localization.messages_for(100).language == "pl"
    assert localization.messages_for(200).language == "en"
    assert localization.messages_for(300).term_is_outdated.startswith("❗ This term")
    assert "maksymalnie 10" in localization.messages_for(100).monitorings_limit_exceeded(10)


def test_nothing_was_found_mentions_monitoring_and_deadline():
    monitoring = make_monitoring(record_id=9, date_to=local(2024, 6, 30, 23, 59))

    message = MonitoringMessages(create_translator("en")).nothing_was_found(monitoring)

    assert "#9" in message
    assert "Dermatology" in message
    assert "30-06-2024 23:59" in message


class _Sender:
    def __init__(self):
        self.sent = []

    async def send_message(self, chat_id, text):
        self.sent.append((chat_id, text))


@pytest.mark.asyncio
async def test_chat_notifier_routes_by_source_system():
    telegram = _Sender()
    notifier = ChatNotifier({MessageSourceSystem.TELEGRAM: telegram})

    await notifier.send(MessageSource(MessageSourceSystem.TELEGRAM, "42"), "hello")

    assert telegram.sent == [("42", "hello")]
    with pytest.raises(LookupError):
        await notifier.send(MessageSource(MessageSourceSystem.FACEBOOK, "42"), "hello")
