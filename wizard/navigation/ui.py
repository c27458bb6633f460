from __future__ import annotations

import asyncio
import html
import logging
from typing import Any, Coroutine, Mapping, TypeVar

import streamlit as st

import config
from constants.keys import StateKeys, UIKeys
from core.errors import FieldValidationError
from utils.errors import display_error
from utils.i18n import (
    MAIN_PHOTO_LABEL,
    MAKE_MAIN_LABEL,
    NAV_BLOCKED_HINT,
    NAV_NEXT_LABEL,
    NAV_PREVIOUS_LABEL,
    NAV_SUBMIT_LABEL,
    NAV_SUBMITTING_LABEL,
    PHOTO_SLOT_LABEL,
    REMOVE_PHOTO_LABEL,
    STEP_COUNTER_LABEL,
    resolve_message,
)
from wizard.navigation.router import WizardController, WizardSnapshot
from wizard.step_registry import get_step

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NAVIGATION_STYLE = """
<style>
.wizard-nav-marker + div[data-testid="stHorizontalBlock"] {
    display: flex;
    justify-content: center;
    gap: var(--space-sm, 0.6rem);
    margin: 1.2rem auto 0.65rem;
    max-width: 520px;
}

.wizard-nav-marker + div[data-testid="stHorizontalBlock"] button {
    width: 100%;
    border-radius: 14px;
    min-height: 3rem;
}

.wizard-nav-warning {
    margin: 0.45rem auto 0;
    max-width: 520px;
    padding: 0.6rem 0.85rem;
    border-radius: 12px;
    border: 1px solid rgba(245, 158, 11, 0.35);
    background: rgba(251, 191, 36, 0.18);
    font-size: 0.92rem;
    line-height: 1.35;
}

.wizard-photo-slot img {
    width: 100%;
    aspect-ratio: 3 / 4;
    object-fit: cover;
    border-radius: 12px;
}

.wizard-photo-slot--main img {
    outline: 3px solid rgba(59, 130, 246, 0.65);
}

@media (max-width: 768px) {
    .wizard-nav-marker + div[data-testid="stHorizontalBlock"] {
        flex-direction: column;
    }
}
</style>
"""


def run_async(coroutine: Coroutine[Any, Any, T]) -> T:
    """Drive a controller coroutine from the synchronous Streamlit script."""

    return asyncio.run(coroutine)


def inject_navigation_style() -> None:
    st.markdown(_NAVIGATION_STYLE, unsafe_allow_html=True)


def render_step_header(snapshot: WizardSnapshot) -> None:
    """Render the step title, counter, and progress bar."""

    step = get_step(snapshot.current_step)
    counter_es, counter_en = STEP_COUNTER_LABEL
    counter = resolve_message(
        (
            counter_es.format(current=snapshot.current_step, total=snapshot.total_steps),
            counter_en.format(current=snapshot.current_step, total=snapshot.total_steps),
        )
    )
    st.caption(f"{counter} · {snapshot.progress}%")
    st.progress(snapshot.progress)
    if step is not None:
        st.subheader(resolve_message(step.panel_header))
        st.caption(resolve_message(step.panel_subheader))


def render_validation_warnings(errors: Mapping[str, FieldValidationError]) -> None:
    messages = list(dict.fromkeys(error.message for error in errors.values()))
    if not messages:
        return
    combined = "\n".join(resolve_message(message) for message in messages)
    sanitized = html.escape(combined).replace("\n", "<br />")
    st.markdown(f'<div class="wizard-nav-warning">{sanitized}</div>', unsafe_allow_html=True)


def _slot_label(position: int) -> str:
    if position == 0:
        return resolve_message(MAIN_PHOTO_LABEL)
    label_es, label_en = PHOTO_SLOT_LABEL
    return resolve_message((label_es.format(position=position + 1), label_en.format(position=position + 1)))


def _render_filled_slot(controller: WizardController, position: int) -> None:
    css_class = "wizard-photo-slot wizard-photo-slot--main" if position == 0 else "wizard-photo-slot"
    with controller.image_store.renderable(position) as uri:
        if uri:
            st.markdown(
                f'<div class="{css_class}"><img src="{html.escape(uri, quote=True)}" alt="" /></div>',
                unsafe_allow_html=True,
            )
    if position > 0 and st.button(resolve_message(MAKE_MAIN_LABEL), key=f"{UIKeys.IMAGE_UPLOADER}.main.{position}"):
        controller.promote_image(position)
        st.rerun()
    if st.button(resolve_message(REMOVE_PHOTO_LABEL), key=f"{UIKeys.IMAGE_UPLOADER}.remove.{position}"):
        controller.remove_image(position)
        st.rerun()


def _render_empty_slot(controller: WizardController, position: int) -> None:
    key = f"{UIKeys.IMAGE_UPLOADER}.{position}"
    upload = st.file_uploader(
        _slot_label(position),
        type=[mime.split("/")[-1] for mime in config.ALLOWED_IMAGE_TYPES],
        key=key,
        label_visibility="collapsed",
    )
    if upload is None:
        return
    upload_id = getattr(upload, "file_id", None) or upload.name
    handled_key = f"{key}.handled"
    if st.session_state.get(handled_key) == upload_id:
        return
    st.session_state[handled_key] = upload_id
    error = run_async(controller.add_image(position, upload))
    if error is None:
        st.rerun()


def render_image_slots(controller: WizardController, snapshot: WizardSnapshot) -> None:
    """Render one column per photo slot with upload, promote, and remove actions."""

    slot_errors = snapshot.slot_errors
    columns = st.columns(controller.image_store.max_images)
    for position, column in enumerate(columns):
        with column:
            st.caption(_slot_label(position))
            if snapshot.images[position] is not None:
                _render_filled_slot(controller, position)
            else:
                _render_empty_slot(controller, position)
            error = slot_errors.get(position)
            if error is not None:
                st.caption(f":red[{resolve_message(error.message)}]")


def render_navigation(controller: WizardController, snapshot: WizardSnapshot) -> None:
    """Render back/next or submit buttons and apply the requested transition."""

    st.markdown('<div class="wizard-nav-marker"></div>', unsafe_allow_html=True)
    col_prev, col_next = st.columns(2)
    with col_prev:
        if st.button(
            resolve_message(NAV_PREVIOUS_LABEL),
            key=UIKeys.NAV_PREVIOUS,
            disabled=snapshot.is_first or snapshot.submitting,
        ):
            controller.retreat()
            st.rerun()
    with col_next:
        if snapshot.is_last:
            label = NAV_SUBMITTING_LABEL if snapshot.submitting else NAV_SUBMIT_LABEL
            if st.button(
                resolve_message(label),
                key=UIKeys.NAV_SUBMIT,
                type="primary",
                disabled=snapshot.submitting or snapshot.submitted,
            ):
                result = run_async(controller.submit())
                if result.success:
                    st.rerun()
        elif st.button(
            resolve_message(NAV_NEXT_LABEL),
            key=UIKeys.NAV_NEXT,
            type="primary",
            disabled=snapshot.submitting,
        ):
            result = run_async(controller.advance())
            if result.moved:
                st.rerun()
    if snapshot.field_errors and not snapshot.can_advance and not snapshot.is_last:
        st.caption(resolve_message(NAV_BLOCKED_HINT))
    if snapshot.submission_error:
        display_error(snapshot.submission_error)


def maybe_scroll_to_top() -> None:
    if not st.session_state.pop(StateKeys.SCROLL_TO_TOP, False):
        return
    st.markdown(
        """
        <script>
        (function() {
            const target = window.document.querySelector('section.main');
            if (target) {
                target.scrollIntoView({ behavior: 'smooth', block: 'start' });
            } else {
                window.scrollTo({ top: 0, behavior: 'smooth' });
            }
        })();
        </script>
        """,
        unsafe_allow_html=True,
    )


__all__ = [
    "inject_navigation_style",
    "maybe_scroll_to_top",
    "render_image_slots",
    "render_navigation",
    "render_step_header",
    "render_validation_warnings",
    "run_async",
]
