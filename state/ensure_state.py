"""Helpers for initializing Streamlit session state."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, MutableMapping

import streamlit as st

import config as app_config
from constants.keys import StateKeys, UIKeys
from utils.logging_context import set_session_id


logger = logging.getLogger(__name__)


_DEFAULT_STATE_FACTORIES: Mapping[str, Callable[[], Any]] = MappingProxyType(
    {
        StateKeys.SESSION_ID: lambda: uuid.uuid4().hex,
        UIKeys.LANG_SELECT: lambda: app_config.DEFAULT_LANGUAGE,
        StateKeys.SCROLL_TO_TOP: lambda: False,
    }
)


def ensure_state(session_state: MutableMapping[str, Any] | None = None) -> None:
    """Initialize session keys the wizard relies on before any widget is created."""

    state = session_state if session_state is not None else st.session_state
    for key, factory in _DEFAULT_STATE_FACTORIES.items():
        if key not in state:
            state[key] = factory()
    state[UIKeys.LANG_SELECT] = app_config.normalise_language(
        state.get(UIKeys.LANG_SELECT), default=app_config.DEFAULT_LANGUAGE
    )
    set_session_id(str(state[StateKeys.SESSION_ID]))


def reset_state(session_state: MutableMapping[str, Any] | None = None) -> None:
    """Drop every wizard key while keeping the session id and language."""

    state = session_state if session_state is not None else st.session_state
    preserved = {key: state[key] for key in (StateKeys.SESSION_ID, UIKeys.LANG_SELECT) if key in state}
    removed = [key for key in list(state.keys()) if isinstance(key, str) and key.startswith("wiz:")]
    for key in removed:
        store = state.get(key)
        close = getattr(store, "close", None)
        if callable(close):
            close()
        del state[key]
    state.update(preserved)
    logger.info("Reset wizard state (%d keys)", len(removed))
    ensure_state(state)


__all__ = ["ensure_state", "reset_state"]
