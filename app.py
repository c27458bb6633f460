# app.py: Profile completion wizard (Streamlit entrypoint)
from __future__ import annotations

from datetime import date
from pathlib import Path
import sys
from typing import Any, Callable, Final, Mapping

import streamlit as st

APP_ROOT = Path(__file__).resolve().parent
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

import config  # noqa: E402
from constants.keys import ProfileFields as F  # noqa: E402
from constants.keys import UIKeys  # noqa: E402
from integrations.profile_api import ProfileApiClient  # noqa: E402
from state import ensure_state, reset_state  # noqa: E402
from utils.i18n import LocalizedText, resolve_message, tr  # noqa: E402
from utils.logging_context import configure_logging, log_context  # noqa: E402
from wizard.navigation import (  # noqa: E402
    WizardController,
    WizardSnapshot,
    inject_navigation_style,
    maybe_scroll_to_top,
    render_image_slots,
    render_navigation,
    render_step_header,
    render_validation_warnings,
)
from wizard.step_registry import Category, branch_for  # noqa: E402

APP_VERSION = "1.0.0"

configure_logging()

st.set_page_config(
    page_title="Completa tu perfil / Complete your profile",
    page_icon="💞",
    layout="centered",
)

ensure_state()
st.session_state.setdefault("app_version", APP_VERSION)

FIELD_LABELS: Final[Mapping[str, LocalizedText]] = {
    F.NAME: ("Nombre", "First name"),
    F.LAST_NAME: ("Apellido", "Last name"),
    F.DOCUMENT: ("Documento", "Document number"),
    F.PHONE_CODE: ("Código", "Code"),
    F.PHONE: ("Teléfono", "Phone"),
    F.BIRTH_DATE: ("Fecha de nacimiento", "Birth date"),
    F.COUNTRY: ("País", "Country"),
    F.DEPARTMENT: ("Departamento", "State"),
    F.CITY: ("Ciudad", "City"),
    F.LOCALITY: ("Localidad", "District"),
    F.DESCRIPTION: ("Descripción", "Description"),
    F.GENDER_ID: ("Género", "Gender"),
    F.HEIGHT: ("Estatura (cm)", "Height (cm)"),
    F.TAGS: ("Intereses", "Interests"),
    F.BODY_TYPE_ID: ("Contextura", "Body type"),
    F.EYE_COLOR_ID: ("Color de ojos", "Eye color"),
    F.HAIR_COLOR_ID: ("Color de cabello", "Hair color"),
    F.MARITAL_STATUS_ID: ("Estado civil", "Marital status"),
    F.EDUCATION_LEVEL_ID: ("Nivel educativo", "Education level"),
    F.PROFESSION: ("Profesión", "Profession"),
    F.CATEGORY_INTEREST: ("¿Qué buscas?", "What are you looking for?"),
    F.AGE_PREFERENCE_MIN: ("Edad mínima", "Minimum age"),
    F.AGE_PREFERENCE_MAX: ("Edad máxima", "Maximum age"),
    F.LOCATION_PREFERENCE_RADIUS: ("Distancia (km)", "Distance (km)"),
    F.RELIGION_ID: ("Religión", "Religion"),
    F.CHURCH: ("Iglesia", "Church"),
    F.SPIRITUAL_MOMENTS: ("Momentos espirituales", "Spiritual moments"),
    F.SPIRITUAL_PRACTICES: ("Prácticas espirituales", "Spiritual practices"),
    F.SEXUAL_ROLE_ID: ("Rol", "Role"),
    F.RELATIONSHIP_TYPE_ID: ("Tipo de relación", "Relationship type"),
    F.SHOW_AGE: ("Mostrar mi edad", "Show my age"),
    F.SHOW_LOCATION: ("Mostrar mi ubicación", "Show my location"),
    F.ALLOW_NOTIFICATIONS: ("Recibir notificaciones", "Receive notifications"),
    F.SHOW_ME_IN_SEARCH: ("Aparecer en búsquedas", "Show me in search"),
}

# Attribute catalog kinds served by the reference-data provider.
ATTRIBUTE_KINDS: Final[Mapping[str, str]] = {
    F.GENDER_ID: "GENDER",
    F.BODY_TYPE_ID: "BODY_TYPE",
    F.EYE_COLOR_ID: "EYE_COLOR",
    F.HAIR_COLOR_ID: "HAIR_COLOR",
    F.MARITAL_STATUS_ID: "MARITAL_STATUS",
    F.EDUCATION_LEVEL_ID: "EDUCATION_LEVEL",
    F.RELIGION_ID: "RELIGION",
    F.SEXUAL_ROLE_ID: "SEXUAL_ROLE",
    F.RELATIONSHIP_TYPE_ID: "RELATIONSHIP_TYPE",
}

CATEGORY_LABELS: Final[Mapping[Category, LocalizedText]] = {
    Category.ESSENCE: ("Essence: amistad y conexión", "Essence: friendship and connection"),
    Category.ROUSE: ("Rouse: encuentros", "Rouse: dating"),
    Category.SPIRIT: ("Spirit: fe compartida", "Spirit: shared faith"),
}


def _label(controller: WizardController, field: str, snapshot: WizardSnapshot) -> str:
    text = resolve_message(FIELD_LABELS.get(field, (field, field)))
    return f"{text} *" if field in _required_now(controller, snapshot) else text


def _required_now(controller: WizardController, snapshot: WizardSnapshot) -> set[str]:
    return set(controller.validator.required_fields_for_step(snapshot.current_step, controller.record))


def _field_error(field: str, snapshot: WizardSnapshot) -> None:
    error = snapshot.field_errors.get(field)
    if error is not None:
        st.caption(f":red[{resolve_message(error.message)}]")


def _commit(controller: WizardController, field: str, value: Any) -> None:
    if controller.record.get(field) != value:
        controller.set_field(field, value)


def _text(controller: WizardController, snapshot: WizardSnapshot, field: str, *, area: bool = False) -> None:
    widget: Callable[..., str] = st.text_area if area else st.text_input
    current = controller.record.get(field) or ""
    value = widget(_label(controller, field, snapshot), value=str(current), key=f"field.{field}")
    _commit(controller, field, value)
    _field_error(field, snapshot)


def _select(controller: WizardController, snapshot: WizardSnapshot, field: str, kind: str, parent: Any = None) -> None:
    options = list(controller.options(kind, parent=parent))
    if not options:
        _text(controller, snapshot, field)
        return
    labels = {option.id: option.label for option in options}
    ids: list[Any] = ["", *labels]
    current = controller.record.get(field)
    index = ids.index(current) if current in ids else 0
    value = st.selectbox(
        _label(controller, field, snapshot),
        ids,
        index=index,
        format_func=lambda option_id: labels.get(option_id, "-"),
        key=f"field.{field}",
    )
    _commit(controller, field, value)
    _field_error(field, snapshot)


def _number(controller: WizardController, snapshot: WizardSnapshot, field: str, low: int, high: int) -> None:
    current = controller.record.get(field)
    value = st.slider(
        _label(controller, field, snapshot),
        min_value=low,
        max_value=high,
        value=int(current) if isinstance(current, (int, float)) and low <= current <= high else low,
        key=f"field.{field}",
    )
    _commit(controller, field, value)
    _field_error(field, snapshot)


def _render_basic(controller: WizardController, snapshot: WizardSnapshot) -> None:
    render_image_slots(controller, snapshot)
    _field_error(F.IMAGES, snapshot)
    col_name, col_last = st.columns(2)
    with col_name:
        _text(controller, snapshot, F.NAME)
    with col_last:
        _text(controller, snapshot, F.LAST_NAME)
    _text(controller, snapshot, F.DOCUMENT)
    col_code, col_phone = st.columns([1, 3])
    with col_code:
        _text(controller, snapshot, F.PHONE_CODE)
    with col_phone:
        _text(controller, snapshot, F.PHONE)
    current = controller.record.get(F.BIRTH_DATE)
    birth_date = st.date_input(
        _label(controller, F.BIRTH_DATE, snapshot),
        value=date.fromisoformat(current) if isinstance(current, str) and current else current or None,
        min_value=date(1920, 1, 1),
        max_value=date.today(),
        key=f"field.{F.BIRTH_DATE}",
    )
    _commit(controller, F.BIRTH_DATE, birth_date or "")
    _field_error(F.BIRTH_DATE, snapshot)
    _select(controller, snapshot, F.COUNTRY, "country")
    _text(controller, snapshot, F.DEPARTMENT)
    _select(controller, snapshot, F.CITY, "city", parent=controller.record.get(F.COUNTRY))
    _select(controller, snapshot, F.LOCALITY, "locality", parent=controller.record.get(F.CITY))


def _render_characteristics(controller: WizardController, snapshot: WizardSnapshot) -> None:
    _text(controller, snapshot, F.DESCRIPTION, area=True)
    _select(controller, snapshot, F.GENDER_ID, ATTRIBUTE_KINDS[F.GENDER_ID])
    _number(controller, snapshot, F.HEIGHT, 140, 220)
    suggestions = [option.label for option in controller.options("tags")]
    current_tags = list(controller.record.get(F.TAGS) or [])
    tags = st.multiselect(
        _label(controller, F.TAGS, snapshot),
        list(dict.fromkeys([*current_tags, *suggestions])),
        default=current_tags,
        max_selections=10,
        accept_new_options=True,
        key=f"field.{F.TAGS}",
    )
    _commit(controller, F.TAGS, tags)
    _field_error(F.TAGS, snapshot)
    for field in (F.BODY_TYPE_ID, F.EYE_COLOR_ID, F.HAIR_COLOR_ID, F.MARITAL_STATUS_ID, F.EDUCATION_LEVEL_ID):
        _select(controller, snapshot, field, ATTRIBUTE_KINDS[field])
    _text(controller, snapshot, F.PROFESSION)


def _render_preferences(controller: WizardController, snapshot: WizardSnapshot) -> None:
    categories = list(Category)
    current = controller.record.get(F.CATEGORY_INTEREST)
    selected = st.radio(
        _label(controller, F.CATEGORY_INTEREST, snapshot),
        categories,
        index=categories.index(Category(current)) if current in categories else None,
        format_func=lambda category: resolve_message(CATEGORY_LABELS[category]),
        key=f"field.{F.CATEGORY_INTEREST}",
    )
    if selected is not None and selected != current:
        controller.set_category(selected)
    _field_error(F.CATEGORY_INTEREST, snapshot)
    _number(controller, snapshot, F.AGE_PREFERENCE_MIN, 18, 80)
    _number(controller, snapshot, F.AGE_PREFERENCE_MAX, 18, 80)
    _number(controller, snapshot, F.LOCATION_PREFERENCE_RADIUS, 5, 200)

    branch = branch_for(controller.record.get(F.CATEGORY_INTEREST))
    if branch is None:
        return
    for field in branch.fields:
        kind = ATTRIBUTE_KINDS.get(field)
        if kind is not None:
            _select(controller, snapshot, field, kind)
        else:
            _text(controller, snapshot, field, area=field != F.CHURCH)


def _render_configuration(controller: WizardController, snapshot: WizardSnapshot) -> None:
    for field in (F.SHOW_AGE, F.SHOW_LOCATION, F.ALLOW_NOTIFICATIONS, F.SHOW_ME_IN_SEARCH):
        value = st.toggle(
            _label(controller, field, snapshot),
            value=controller.record.get(field) is not False,
            key=f"field.{field}",
        )
        _commit(controller, field, value)


STEP_RENDERERS: Final[Mapping[int, Callable[[WizardController, WizardSnapshot], None]]] = {
    1: _render_basic,
    2: _render_characteristics,
    3: _render_preferences,
    4: _render_configuration,
}


@st.cache_resource
def _api_client() -> ProfileApiClient:
    return ProfileApiClient()


def _controller() -> WizardController:
    client = _api_client()
    return WizardController(submission_client=client, reference_data=client)


def _render_language_switch() -> None:
    st.radio(
        "🌐",
        config.SUPPORTED_LANGUAGES,
        key=UIKeys.LANG_SELECT,
        horizontal=True,
        format_func=lambda code: {"es": "Español", "en": "English"}[code],
    )


def main() -> None:
    inject_navigation_style()
    maybe_scroll_to_top()
    _render_language_switch()
    st.title(tr("Completa tu perfil", "Complete your profile"))

    controller = _controller()
    snapshot = controller.snapshot()
    if snapshot.submitted:
        st.success(
            tr(
                "¡Perfil completado exitosamente! Ya puedes usar todas las funciones.",
                "Profile completed! You can now use every feature.",
            )
        )
        if st.button(tr("Empezar de nuevo", "Start over")):
            reset_state()
            st.rerun()
        return

    with log_context(wizard_id=controller.wizard_id):
        render_step_header(snapshot)
        STEP_RENDERERS[snapshot.current_step](controller, snapshot)
        render_validation_warnings(snapshot.field_errors)
        render_navigation(controller, controller.snapshot())


main()
