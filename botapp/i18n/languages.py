"""Languages the monitoring messages are available in."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Language(str, Enum):
    ENGLISH = "en"
    POLISH = "pl"

    @classmethod
    def from_code(cls, code: Optional[str]) -> Optional["Language"]:
        """Match a chat client code such as ``pl-PL`` to a supported language.

        Returns ``None`` for codes no supported language matches.
        """

        if not code:
            return None
        code = code.strip().lower()
        for language in cls:
            if code == language.value or code.startswith(f"{language.value}-"):
                return language
        return None


DEFAULT_LANGUAGE = Language.ENGLISH
