"""Utility helpers for rendering error messages in Streamlit."""

from __future__ import annotations

from typing import Final

import streamlit as st

import config
from utils.i18n import LocalizedText, resolve_message

LocalizedMessage = str | LocalizedText
_DETAILS_LABEL: Final[LocalizedText] = (
    "Detalles",
    "Details",
)


def display_error(
    msg: LocalizedMessage,
    detail: str | None = None,
    *,
    lang: str | None = None,
) -> None:
    """Render a user-facing error with optional debug details.

    Args:
        msg: Short error message for the user.
        detail: Optional technical detail shown when debug mode is enabled.
        lang: Optional language override for the main message.
    """

    text = resolve_message(msg, lang=lang)
    st.error(text)
    if detail and config.DEBUG:
        with st.expander(resolve_message(_DETAILS_LABEL, lang=lang)):
            st.code(detail)


__all__ = ["LocalizedMessage", "display_error"]
