"""String table lookups for one language."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Union

from .languages import DEFAULT_LANGUAGE, Language
from .strings import STRINGS

if TYPE_CHECKING:
    from users.manager import UserManager


class Translator:
    """Resolve message keys for a single language.

    Unsupported language codes resolve to the default language. A key missing
    from the chosen table is looked up in the default table, and a key missing
    everywhere renders as ``[key]`` so gaps are visible in chat.
    """

    def __init__(self, language: Union[str, Language, None] = None) -> None:
        if isinstance(language, Language):
            self.language = language
        else:
            self.language = Language.from_code(language) or DEFAULT_LANGUAGE

    @classmethod
    def for_user(cls, user_manager: "UserManager", user_id: int) -> "Translator":
        return cls(user_manager.get_user_language(user_id))

    def t(self, key: str, **params: Any) -> str:
        template = STRINGS[self.language.value].get(key)
        if template is None:
            template = STRINGS[DEFAULT_LANGUAGE.value].get(key, f"[{key}]")
        if not params:
            return template
        try:
            return template.format(**params)
        except KeyError:
            return template

    def get_language(self) -> str:
        return self.language.value


def create_translator(language: Union[str, Language, None] = None) -> Translator:
    return Translator(language)


def translate(key: str, language: Optional[str] = None, **params: Any) -> str:
    """One-off lookup, e.g. ``translate('label.any_doctor', 'pl')``."""

    return Translator(language).t(key, **params)
