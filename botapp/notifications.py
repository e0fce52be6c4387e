"""Localized message templates for monitoring notifications."""

from __future__ import annotations

from typing import Optional, Sequence

from botapp.i18n.translator import Translator, create_translator
from infrastructure.constants import BOOK_COMMAND_PREFIX, MAX_TERMS_IN_MESSAGE
from monitoring.models import Monitoring
from monitoring.timing import minutes_since_epoch
from reservations.gateway import Term
from users.manager import UserManager

_DATE_FORMAT = "%d-%m-%Y %H:%M"


def book_command(monitoring: Monitoring, term: Term) -> str:
    """Chat command that books ``term`` manually, e.g. ``/book_12_3456_1234567``."""

    return (
        f"{BOOK_COMMAND_PREFIX}_{monitoring.record_id}_{term.schedule_id}"
        f"_{minutes_since_epoch(term.start)}"
    )


class MonitoringMessages:
    """Templates for one user's language."""

    def __init__(self, translator: Optional[Translator] = None) -> None:
        self.translator = translator or create_translator()

    @property
    def language(self) -> str:
        return self.translator.get_language()

    def available_terms_header(self, count: int) -> str:
        return self.translator.t("monitoring.terms_header", count=count)

    def available_term_entry(self, term: Term, monitoring: Monitoring, index: int) -> str:
        """Render one term; ``index`` is zero-based and displayed one-based."""

        return self.translator.t(
            "monitoring.term_entry",
            index=index + 1,
            command=book_command(monitoring, term),
            **self._term_fields(term, monitoring),
        )

    def appointment_is_booked(self, term: Term, monitoring: Monitoring) -> str:
        return self.translator.t(
            "monitoring.booked",
            monitoring_id=monitoring.record_id,
            **self._term_fields(term, monitoring),
        )

    @property
    def invalid_login_or_password(self) -> str:
        return self.translator.t("monitoring.invalid_login")

    @property
    def login_has_changed(self) -> str:
        return self.translator.t("monitoring.login_changed")

    @property
    def term_is_outdated(self) -> str:
        return self.translator.t("monitoring.term_outdated")

    def monitorings_limit_exceeded(self, limit: int) -> str:
        return self.translator.t("monitoring.limit_exceeded", limit=limit)

    def nothing_was_found(self, monitoring: Monitoring) -> str:
        return self.translator.t(
            "monitoring.nothing_found",
            monitoring_id=monitoring.record_id,
            service=monitoring.service_name,
            date_to=monitoring.date_to.strftime(_DATE_FORMAT),
        )

    def _term_fields(self, term: Term, monitoring: Monitoring) -> dict:
        return {
            "date": term.start.strftime(_DATE_FORMAT),
            "doctor": term.doctor_name or monitoring.doctor_name or self.translator.t("label.any_doctor"),
            "service": monitoring.service_name,
            "clinic": term.clinic_name or monitoring.clinic_name or self.translator.t("label.any_clinic"),
        }


class MessageLocalization:
    """Resolves :class:`MonitoringMessages` for a user id."""

    def __init__(self, user_manager: UserManager) -> None:
        self._user_manager = user_manager

    def messages_for(self, user_id: int) -> MonitoringMessages:
        return MonitoringMessages(Translator.for_user(self._user_manager, user_id))


def compose_terms_message(
    terms: Sequence[Term],
    monitoring: Monitoring,
    messages: MonitoringMessages,
    *,
    limit: int = MAX_TERMS_IN_MESSAGE,
) -> str:
    """Header with the total count followed by the ``limit`` closest terms.

    Pure formatting: the caller owns any state change for ``monitoring``.
    """

    entries = "".join(
        messages.available_term_entry(term, monitoring, index)
        for index, term in enumerate(terms[:limit])
    )
    return f"{messages.available_terms_header(len(terms))}\n\n{entries}"


__all__ = [
    "MessageLocalization",
    "MonitoringMessages",
    "book_command",
    "compose_terms_message",
]
