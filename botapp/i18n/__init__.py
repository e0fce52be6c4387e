"""English and Polish message tables for monitoring notifications."""

from .languages import DEFAULT_LANGUAGE, Language
from .translator import Translator, create_translator, translate

__all__ = [
    'DEFAULT_LANGUAGE',
    'Language',
    'Translator',
    'create_translator',
    'translate',
]
