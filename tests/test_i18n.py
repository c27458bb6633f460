import streamlit as st

from utils.i18n import NAV_NEXT_LABEL, resolve_message, tr


def test_tr_uses_session_language() -> None:
    st.session_state["lang"] = "en"
    assert tr("Hola", "Hello") == "Hello"
    st.session_state["lang"] = "es"
    assert tr("Hola", "Hello") == "Hola"


def test_explicit_language_wins() -> None:
    st.session_state["lang"] = "es"
    assert tr("Hola", "Hello", lang="en") == "Hello"


def test_resolve_message_accepts_pairs_and_plain_text() -> None:
    assert resolve_message(NAV_NEXT_LABEL, lang="en") == "Next ▶"
    assert resolve_message("Error 400", lang="en") == "Error 400"
