"""Simple i18n helper utilities."""

from __future__ import annotations

from typing import Final

import config

LocalizedText = tuple[str, str]


STEP_COUNTER_LABEL: Final[LocalizedText] = (
    "Paso {current} de {total}",
    "Step {current} of {total}",
)
NAV_PREVIOUS_LABEL: Final[LocalizedText] = ("◀ Anterior", "◀ Back")
NAV_NEXT_LABEL: Final[LocalizedText] = ("Siguiente ▶", "Next ▶")
NAV_SUBMIT_LABEL: Final[LocalizedText] = ("Completar", "Complete")
NAV_SUBMITTING_LABEL: Final[LocalizedText] = ("Completando...", "Completing...")
NAV_BLOCKED_HINT: Final[LocalizedText] = (
    "Corrige los campos marcados antes de continuar.",
    "Please fix the marked fields before continuing.",
)
SUBMISSION_FAILED_MESSAGE: Final[LocalizedText] = (
    "No pudimos completar tu perfil. Tus datos siguen aquí, inténtalo de nuevo.",
    "We could not complete your profile. Your data is still here, please try again.",
)
MAIN_PHOTO_LABEL: Final[LocalizedText] = ("Foto principal", "Main photo")
PHOTO_SLOT_LABEL: Final[LocalizedText] = ("Foto {position}", "Photo {position}")
MAKE_MAIN_LABEL: Final[LocalizedText] = ("Hacer principal", "Make main")
REMOVE_PHOTO_LABEL: Final[LocalizedText] = ("Eliminar", "Remove")


def tr(es: str, en: str, lang: str | None = None) -> str:
    """Return the string matching the current language.

    Args:
        es: Spanish text.
        en: English text.
        lang: Optional language override (``"es"`` or ``"en"``).

    Returns:
        The localized string for the requested language.
    """
    code = lang or config.get_active_language()
    return es if code == "es" else en


def resolve_message(message: str | LocalizedText, *, lang: str | None = None) -> str:
    """Return the localized string for ``message``."""

    if isinstance(message, tuple):
        es, en = message
        return tr(es, en, lang=lang)
    return message
