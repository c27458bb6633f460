"""Central configuration for the profile completion wizard.

Every limit is resolved once at import time from environment variables (a
``.env`` file is loaded first when present). Image constraints default to
5 MB per photo, JPEG/PNG/WEBP only, and pixel dimensions between 400x400 and
6500x6500. ``PROFILE_WIZARD_MAX_IMAGES`` controls how many photo slots the
wizard renders.
"""

import logging
import os
import warnings

import streamlit as st
from dotenv import load_dotenv

load_dotenv()


logger = logging.getLogger(__name__)


_TRUTHY_ENV_VALUES: tuple[str, ...] = ("1", "true", "yes", "on")
SUPPORTED_LANGUAGES: tuple[str, ...] = ("es", "en")


def _is_truthy_flag(value: str | None) -> bool:
    """Return ``True`` when ``value`` matches a truthy environment token."""

    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_ENV_VALUES


def _parse_positive_int_env(value: object | None, *, env_var: str, default: int) -> int:
    """Return a positive integer parsed from ``value`` or ``default``."""

    if value is None:
        return default
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return default
        try:
            parsed = int(float(candidate))
        except ValueError:
            warnings.warn(
                "%s is not a number; ignoring %s" % (candidate, env_var),
                RuntimeWarning,
            )
            return default
    elif isinstance(value, (int, float)):
        parsed = int(value)
    else:
        warnings.warn(
            "Unsupported %s value '%s'; using %d." % (env_var, value, default),
            RuntimeWarning,
        )
        return default
    if parsed <= 0:
        warnings.warn(
            "%s must be positive; using %d." % (env_var, default),
            RuntimeWarning,
        )
        return default
    return parsed


def _parse_positive_float_env(value: object | None, *, env_var: str, default: float) -> float:
    """Return a positive float parsed from ``value`` or ``default``."""

    if value is None:
        return default
    candidate = value
    if isinstance(candidate, str):
        stripped = candidate.strip()
        if not stripped:
            return default
        try:
            candidate = float(stripped)
        except ValueError:
            warnings.warn(
                "Unsupported %s '%s'; falling back to %.1f." % (env_var, candidate, default),
                RuntimeWarning,
            )
            return default
    if isinstance(candidate, (int, float)) and candidate > 0:
        return float(candidate)
    warnings.warn(
        "%s must be a positive number; falling back to %.1f." % (env_var, default),
        RuntimeWarning,
    )
    return default


def normalise_language(value: object | None, *, default: str = "es") -> str:
    """Return a supported language code or ``default`` when invalid."""

    if not isinstance(value, str):
        return default
    candidate = value.strip().lower()[:2]
    if candidate in SUPPORTED_LANGUAGES:
        return candidate
    return default


STREAMLIT_ENV = os.getenv("STREAMLIT_ENV", "development")
DEFAULT_LANGUAGE = normalise_language(os.getenv("LANGUAGE", "es"))
DEBUG = _is_truthy_flag(os.getenv("PROFILE_WIZARD_DEBUG"))

MAX_IMAGES = _parse_positive_int_env(
    os.getenv("PROFILE_WIZARD_MAX_IMAGES"),
    env_var="PROFILE_WIZARD_MAX_IMAGES",
    default=5,
)
IMAGE_MAX_SIZE_MB = _parse_positive_float_env(
    os.getenv("PROFILE_WIZARD_IMAGE_MAX_MB"),
    env_var="PROFILE_WIZARD_IMAGE_MAX_MB",
    default=5.0,
)
IMAGE_MIN_PIXELS = _parse_positive_int_env(
    os.getenv("PROFILE_WIZARD_IMAGE_MIN_PX"),
    env_var="PROFILE_WIZARD_IMAGE_MIN_PX",
    default=400,
)
IMAGE_MAX_PIXELS = _parse_positive_int_env(
    os.getenv("PROFILE_WIZARD_IMAGE_MAX_PX"),
    env_var="PROFILE_WIZARD_IMAGE_MAX_PX",
    default=6500,
)
if IMAGE_MIN_PIXELS > IMAGE_MAX_PIXELS:
    logger.warning(
        "Image minimum %dpx exceeds maximum %dpx; restoring defaults.",
        IMAGE_MIN_PIXELS,
        IMAGE_MAX_PIXELS,
    )
    IMAGE_MIN_PIXELS, IMAGE_MAX_PIXELS = 400, 6500

ALLOWED_IMAGE_TYPES: tuple[str, ...] = ("image/jpeg", "image/jpg", "image/png", "image/webp")

API_BASE_URL = (os.getenv("PROFILE_WIZARD_API_URL") or "http://localhost:8080/api").strip().rstrip("/")
API_TOKEN = (os.getenv("PROFILE_WIZARD_API_TOKEN") or "").strip() or None
API_TIMEOUT_SECONDS = _parse_positive_float_env(
    os.getenv("PROFILE_WIZARD_API_TIMEOUT"),
    env_var="PROFILE_WIZARD_API_TIMEOUT",
    default=15.0,
)


def get_active_language() -> str:
    """Return the UI language with session overrides."""

    try:
        value = st.session_state.get("lang")
    except Exception:  # pragma: no cover - Streamlit session not initialised
        value = None
    return normalise_language(value, default=DEFAULT_LANGUAGE)
