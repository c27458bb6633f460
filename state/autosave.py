"""Session snapshot helpers for the profile wizard."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Mapping, MutableMapping, Sequence

import streamlit as st

from constants.keys import ProfileFields, StateKeys
from images.codec import mime_type_of


AutosavePayload = dict[str, Any]


def _coerce_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _coerce_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            return int(cleaned)
        except ValueError:
            return None
    return None


def _sanitize_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        items = [_sanitize_value(item) for item in value]
        return [item for item in items if item is not None]
    return None


def _sanitize_record(record: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep JSON-friendly record values; photos travel separately."""

    if not isinstance(record, Mapping):
        return {}
    sanitized: dict[str, Any] = {}
    for name, value in record.items():
        if not isinstance(name, str) or name == ProfileFields.IMAGES:
            continue
        cleaned = _sanitize_value(value)
        if cleaned is None and value is not None:
            continue
        sanitized[name] = cleaned
    return sanitized


def _sanitize_image_slots(slots: Sequence[Any] | None) -> list[str | None]:
    if not isinstance(slots, (list, tuple)):
        return []
    return [slot if mime_type_of(slot) is not None else None for slot in slots]


def build_snapshot(
    record: Mapping[str, Any] | None,
    *,
    current_step: int | None = None,
    image_slots: Sequence[str | None] | None = None,
    lang: str | None = None,
) -> AutosavePayload:
    """Return a snapshot that survives a rerun and can be restored later."""

    meta: dict[str, Any] = {"captured_at": datetime.now(timezone.utc).isoformat()}
    if lang := _coerce_str(lang):
        meta["lang"] = lang
    wizard: dict[str, Any] = {}
    if (step := _coerce_int(current_step)) is not None and step > 0:
        wizard["current_step"] = step
    return {
        "record": _sanitize_record(record),
        "images": _sanitize_image_slots(image_slots),
        "wizard": wizard,
        "meta": meta,
    }


def parse_snapshot(payload: Mapping[str, Any]) -> AutosavePayload:
    """Normalise a stored snapshot payload."""

    record = payload.get("record")
    wizard = payload.get("wizard")
    meta = payload.get("meta")
    wizard_data = wizard if isinstance(wizard, Mapping) else {}
    meta_data = meta if isinstance(meta, Mapping) else {}
    return build_snapshot(
        record if isinstance(record, Mapping) else None,
        current_step=_coerce_int(wizard_data.get("current_step")),
        image_slots=payload.get("images"),
        lang=_coerce_str(meta_data.get("lang")),
    )


def persist_session_snapshot(
    record: Mapping[str, Any] | None,
    *,
    current_step: int | None = None,
    image_slots: Sequence[str | None] | None = None,
    session_state: MutableMapping[str, Any] | None = None,
    key: str = StateKeys.SNAPSHOT,
) -> AutosavePayload:
    """Capture the wizard into ``session_state[key]`` (``st.session_state`` by default)."""

    target = session_state if session_state is not None else st.session_state
    snapshot = build_snapshot(
        record,
        current_step=current_step,
        image_slots=image_slots,
        lang=target.get("lang"),
    )
    target[key] = snapshot
    return snapshot


__all__ = [
    "AutosavePayload",
    "build_snapshot",
    "parse_snapshot",
    "persist_session_snapshot",
]
