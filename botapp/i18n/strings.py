"""Translation strings for all user-facing messages.

Keys use dot notation for organization (e.g., 'monitoring.term_outdated').
"""

from typing import Dict

# Translation dictionary: language code -> key -> translated string
STRINGS: Dict[str, Dict[str, str]] = {
    "en": {
        # Available terms notification
        "monitoring.terms_header": "✅ {count} term(s) found by your monitoring. The closest ones:",
        "monitoring.term_entry": (
            "{index}. ⏱ {date}\n"
            "   👨‍⚕️ {doctor}\n"
            "   💉 {service}\n"
            "   🏥 {clinic}\n"
            "   ➡️ Book it: {command}\n"
        ),

        # Booking results
        "monitoring.booked": (
            "👍 Your appointment was booked by monitoring #{monitoring_id}!\n\n"
            "⏱ {date}\n"
            "👨‍⚕️ {doctor}\n"
            "💉 {service}\n"
            "🏥 {clinic}"
        ),
        "monitoring.term_outdated": "❗ This term is no longer available. Please choose another one.",

        # Account problems
        "monitoring.invalid_login": (
            "❗ The reservation service rejected your username or password. "
            "All your monitorings were disabled. Please log in again and recreate them."
        ),
        "monitoring.login_changed": (
            "❗ Your login or password seems to have changed. Please log in again."
        ),

        # Lifecycle
        "monitoring.limit_exceeded": (
            "❗ You can have at most {limit} active monitorings. "
            "Please disable one before creating another."
        ),
        "monitoring.nothing_found": (
            "❗ Nothing was found by monitoring #{monitoring_id} ({service}) "
            "until {date_to}. The monitoring has been disabled."
        ),

        # Fallback labels
        "label.any_doctor": "Any doctor",
        "label.any_clinic": "Any clinic",
    },
    "pl": {
        "monitoring.terms_header": "✅ Monitoring znalazł {count} termin(ów). Najbliższe z nich:",
        "monitoring.term_entry": (
            "{index}. ⏱ {date}\n"
            "   👨‍⚕️ {doctor}\n"
            "   💉 {service}\n"
            "   🏥 {clinic}\n"
            "   ➡️ Zarezerwuj: {command}\n"
        ),

        "monitoring.booked": (
            "👍 Monitoring #{monitoring_id} zarezerwował wizytę!\n\n"
            "⏱ {date}\n"
            "👨‍⚕️ {doctor}\n"
            "💉 {service}\n"
            "🏥 {clinic}"
        ),
        "monitoring.term_outdated": "❗ Ten termin nie jest już dostępny. Wybierz inny.",

        "monitoring.invalid_login": (
            "❗ Serwis rezerwacji odrzucił login lub hasło. "
            "Wszystkie monitoringi zostały wyłączone. Zaloguj się ponownie i utwórz je od nowa."
        ),
        "monitoring.login_changed": (
            "❗ Wygląda na to, że login lub hasło zostały zmienione. Zaloguj się ponownie."
        ),

        "monitoring.limit_exceeded": (
            "❗ Możesz mieć maksymalnie {limit} aktywnych monitoringów. "
            "Wyłącz jeden z nich, zanim utworzysz kolejny."
        ),
        "monitoring.nothing_found": (
            "❗ Monitoring #{monitoring_id} ({service}) nie znalazł nic "
            "do {date_to}. Monitoring został wyłączony."
        ),

        "label.any_doctor": "Dowolny lekarz",
        "label.any_clinic": "Dowolna placówka",
    },
}
