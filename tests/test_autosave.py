from __future__ import annotations

from datetime import date

import streamlit as st

from constants.keys import ProfileFields as F
from constants.keys import StateKeys
from state.autosave import build_snapshot, parse_snapshot, persist_session_snapshot

_PHOTO = "data:image/png;base64,AAAA"


def test_snapshot_keeps_json_friendly_values() -> None:
    snapshot = build_snapshot(
        {
            F.NAME: "Ana",
            F.BIRTH_DATE: date(1990, 5, 17),
            F.TAGS: ["música", None],
            F.IMAGES: object(),
            "store": object(),
        },
        current_step=3,
        image_slots=[_PHOTO, None, "not-a-photo"],
        lang="en",
    )

    assert snapshot["record"] == {F.NAME: "Ana", F.BIRTH_DATE: "1990-05-17", F.TAGS: ["música"]}
    assert snapshot["images"] == [_PHOTO, None, None]
    assert snapshot["wizard"] == {"current_step": 3}
    assert snapshot["meta"]["lang"] == "en"
    assert "captured_at" in snapshot["meta"]


def test_parse_snapshot_tolerates_garbage() -> None:
    parsed = parse_snapshot({"record": "nope", "wizard": {"current_step": "-1"}, "images": "x"})

    assert parsed["record"] == {}
    assert parsed["wizard"] == {}
    assert parsed["images"] == []


def test_parse_snapshot_round_trips_step() -> None:
    original = build_snapshot({F.NAME: "Ana"}, current_step=2, image_slots=[_PHOTO])

    parsed = parse_snapshot(original)

    assert parsed["wizard"] == {"current_step": 2}
    assert parsed["record"] == {F.NAME: "Ana"}


def test_persist_defaults_to_streamlit_session() -> None:
    st.session_state["lang"] = "es"

    snapshot = persist_session_snapshot({F.NAME: "Ana"}, current_step=1)

    assert st.session_state[StateKeys.SNAPSHOT] is snapshot
    assert snapshot["meta"]["lang"] == "es"


def test_persist_writes_to_custom_key() -> None:
    session: dict[str, object] = {}

    persist_session_snapshot({}, session_state=session, key="wiz:x:wizard_snapshot")

    assert list(session) == ["wiz:x:wizard_snapshot"]
