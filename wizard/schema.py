"""Per-field validation rules for the profile record.

Each field owns a pydantic ``TypeAdapter`` plus optional checks that look at
the rest of the record. Validating a subset of fields therefore never touches
the others, which is what lets each wizard step validate on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Annotated, Any, Callable, Final, Mapping, Sequence

from pydantic import Field, PositiveInt, StringConstraints, TypeAdapter, ValidationError

from constants.keys import ProfileFields as F
from core.errors import ErrorKind, FieldValidationError
from images.validator import validate_image_set
from utils.i18n import LocalizedText
from wizard.step_registry import Category

FieldCheck = Callable[[Any, Mapping[str, Any]], "FieldValidationError | None"]

_RANGE_ERROR_TYPES: Final[frozenset[str]] = frozenset(
    {
        "string_too_short",
        "string_too_long",
        "too_short",
        "too_long",
        "greater_than",
        "greater_than_equal",
        "less_than",
        "less_than_equal",
    }
)

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]


@dataclass(frozen=True)
class FieldRule:
    """Validation contract for one record field."""

    adapter: TypeAdapter[Any] | None
    messages: Mapping[ErrorKind, LocalizedText]
    checks: tuple[FieldCheck, ...] = ()

    def message_for(self, kind: ErrorKind) -> LocalizedText:
        return self.messages.get(kind) or self.messages.get(ErrorKind.FORMAT) or ("Valor inválido", "Invalid value")


def is_value_present(value: object | None) -> bool:
    """Return ``True`` when ``value`` should count as populated."""

    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return any(is_value_present(item) for item in value)
    count = getattr(value, "count", None)
    if isinstance(count, int):
        return count > 0
    return True


def _image_slots(value: object) -> list[object | None]:
    snapshot = getattr(value, "snapshot", None)
    if callable(snapshot):
        return list(snapshot())
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _check_images(value: Any, _record: Mapping[str, Any]) -> FieldValidationError | None:
    result = validate_image_set(_image_slots(value))
    if result.is_valid:
        return None
    return result.errors[0]


def _check_birth_date(value: Any, _record: Mapping[str, Any]) -> FieldValidationError | None:
    today = date.today()
    if value > today:
        return FieldValidationError(
            field=F.BIRTH_DATE,
            message=("La fecha no puede ser futura", "The date cannot be in the future"),
            kind=ErrorKind.RANGE,
        )
    age = today.year - value.year - ((today.month, today.day) < (value.month, value.day))
    if age < 18:
        return FieldValidationError(
            field=F.BIRTH_DATE,
            message=("Debes ser mayor de 18 años", "You must be at least 18 years old"),
            kind=ErrorKind.RANGE,
        )
    return None


def _check_age_preference_order(value: Any, record: Mapping[str, Any]) -> FieldValidationError | None:
    raw_min = record.get(F.AGE_PREFERENCE_MIN)
    if not is_value_present(raw_min):
        return None
    try:
        minimum = _AGE_MIN_ADAPTER.validate_python(raw_min)
    except ValidationError:
        return None
    if value > minimum:
        return None
    return FieldValidationError(
        field=F.AGE_PREFERENCE_MAX,
        message=(
            "La edad máxima debe ser mayor a la mínima",
            "The maximum age must be greater than the minimum",
        ),
        kind=ErrorKind.RANGE,
    )


_AGE_MIN_ADAPTER: Final[TypeAdapter[int]] = TypeAdapter(Annotated[int, Field(ge=18)])
_ID_ADAPTER: Final[TypeAdapter[int]] = TypeAdapter(PositiveInt)
_BOOL_ADAPTER: Final[TypeAdapter[bool]] = TypeAdapter(bool)
_FREE_TEXT_ADAPTER: Final[TypeAdapter[str]] = TypeAdapter(Annotated[str, StringConstraints(max_length=500)])


def _id_rule(required: LocalizedText) -> FieldRule:
    return FieldRule(
        adapter=_ID_ADAPTER,
        messages={ErrorKind.REQUIRED: required, ErrorKind.FORMAT: ("Opción inválida", "Invalid option")},
    )


def _privacy_rule() -> FieldRule:
    return FieldRule(
        adapter=_BOOL_ADAPTER,
        messages={ErrorKind.FORMAT: ("Debe ser sí o no", "Must be yes or no")},
    )


FIELD_RULES: Final[Mapping[str, FieldRule]] = {
    F.NAME: FieldRule(
        adapter=TypeAdapter(PersonName),
        messages={
            ErrorKind.REQUIRED: ("El nombre es requerido", "First name is required"),
            ErrorKind.RANGE: ("El nombre debe tener entre 2 y 50 caracteres", "First name must be 2-50 characters"),
        },
    ),
    F.LAST_NAME: FieldRule(
        adapter=TypeAdapter(PersonName),
        messages={
            ErrorKind.REQUIRED: ("El apellido es requerido", "Last name is required"),
            ErrorKind.RANGE: ("El apellido debe tener entre 2 y 50 caracteres", "Last name must be 2-50 characters"),
        },
    ),
    F.DOCUMENT: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(strip_whitespace=True, min_length=7)]),
        messages={
            ErrorKind.REQUIRED: ("El documento es requerido", "Document number is required"),
            ErrorKind.RANGE: ("El documento debe tener al menos 7 caracteres", "Document must have at least 7 characters"),
        },
    ),
    F.PHONE: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[0-9]+$", min_length=10)]),
        messages={
            ErrorKind.REQUIRED: ("El teléfono es requerido", "Phone number is required"),
            ErrorKind.RANGE: ("El teléfono debe tener al menos 10 dígitos", "Phone must have at least 10 digits"),
            ErrorKind.FORMAT: ("El teléfono solo debe contener números", "Phone must contain digits only"),
        },
    ),
    F.PHONE_CODE: FieldRule(
        adapter=TypeAdapter(NonEmptyStr),
        messages={ErrorKind.REQUIRED: ("Selecciona el código de país", "Select the country code")},
    ),
    F.BIRTH_DATE: FieldRule(
        adapter=TypeAdapter(date),
        messages={
            ErrorKind.REQUIRED: ("La fecha de nacimiento es requerida", "Birth date is required"),
            ErrorKind.FORMAT: ("Ingresa una fecha válida", "Enter a valid date"),
        },
        checks=(_check_birth_date,),
    ),
    F.COUNTRY: FieldRule(
        adapter=TypeAdapter(NonEmptyStr),
        messages={ErrorKind.REQUIRED: ("Selecciona un país", "Select a country")},
    ),
    F.CITY: FieldRule(
        adapter=TypeAdapter(NonEmptyStr),
        messages={ErrorKind.REQUIRED: ("Selecciona una ciudad", "Select a city")},
    ),
    F.DEPARTMENT: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(max_length=50)]),
        messages={ErrorKind.RANGE: ("Máximo 50 caracteres", "At most 50 characters")},
    ),
    F.LOCALITY: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(max_length=50)]),
        messages={ErrorKind.RANGE: ("Máximo 50 caracteres", "At most 50 characters")},
    ),
    F.IMAGES: FieldRule(
        adapter=None,
        messages={ErrorKind.REQUIRED: ("Debes subir al menos una foto de perfil", "Upload at least one profile photo")},
        checks=(_check_images,),
    ),
    F.DESCRIPTION: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=500)]),
        messages={
            ErrorKind.REQUIRED: ("La descripción es requerida", "Description is required"),
            ErrorKind.RANGE: (
                "La descripción debe tener entre 10 y 500 caracteres",
                "Description must be 10-500 characters",
            ),
        },
    ),
    F.GENDER_ID: _id_rule(("Selecciona tu género", "Select your gender")),
    F.HEIGHT: FieldRule(
        adapter=TypeAdapter(Annotated[int, Field(ge=140, le=220)]),
        messages={
            ErrorKind.REQUIRED: ("La estatura es requerida", "Height is required"),
            ErrorKind.RANGE: ("La estatura debe estar entre 140 y 220 cm", "Height must be between 140 and 220 cm"),
            ErrorKind.FORMAT: ("La estatura debe ser un número", "Height must be a number"),
        },
    ),
    F.TAGS: FieldRule(
        adapter=TypeAdapter(Annotated[list[NonEmptyStr], Field(min_length=1, max_length=10)]),
        messages={
            ErrorKind.REQUIRED: ("Agrega al menos un interés", "Add at least one interest"),
            ErrorKind.RANGE: ("Máximo 10 intereses", "At most 10 interests"),
        },
    ),
    F.BODY_TYPE_ID: _id_rule(("Selecciona tu contextura", "Select your body type")),
    F.EYE_COLOR_ID: _id_rule(("Selecciona tu color de ojos", "Select your eye color")),
    F.HAIR_COLOR_ID: _id_rule(("Selecciona tu color de cabello", "Select your hair color")),
    F.MARITAL_STATUS_ID: _id_rule(("Selecciona tu estado civil", "Select your marital status")),
    F.EDUCATION_LEVEL_ID: _id_rule(("Selecciona tu nivel educativo", "Select your education level")),
    F.PROFESSION: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(max_length=100)]),
        messages={ErrorKind.RANGE: ("La profesión no puede exceder 100 caracteres", "Profession is limited to 100 characters")},
    ),
    F.CATEGORY_INTEREST: FieldRule(
        adapter=TypeAdapter(Category),
        messages={
            ErrorKind.REQUIRED: ("Selecciona una categoría", "Select a category"),
            ErrorKind.FORMAT: ("Categoría desconocida", "Unknown category"),
        },
    ),
    F.AGE_PREFERENCE_MIN: FieldRule(
        adapter=_AGE_MIN_ADAPTER,
        messages={
            ErrorKind.REQUIRED: ("Define la edad mínima", "Set the minimum age"),
            ErrorKind.RANGE: ("La edad mínima debe ser 18 años", "The minimum age must be at least 18"),
        },
    ),
    F.AGE_PREFERENCE_MAX: FieldRule(
        adapter=TypeAdapter(Annotated[int, Field(le=80)]),
        messages={
            ErrorKind.REQUIRED: ("Define la edad máxima", "Set the maximum age"),
            ErrorKind.RANGE: ("La edad máxima no puede ser mayor a 80 años", "The maximum age cannot exceed 80"),
        },
        checks=(_check_age_preference_order,),
    ),
    F.LOCATION_PREFERENCE_RADIUS: FieldRule(
        adapter=TypeAdapter(Annotated[int, Field(ge=5, le=200)]),
        messages={
            ErrorKind.REQUIRED: ("Define el radio de búsqueda", "Set the search radius"),
            ErrorKind.RANGE: ("El radio debe estar entre 5 y 200 km", "The radius must be between 5 and 200 km"),
        },
    ),
    F.RELIGION_ID: _id_rule(("Selecciona tu religión", "Select your religion")),
    F.CHURCH: FieldRule(
        adapter=TypeAdapter(Annotated[str, StringConstraints(max_length=100)]),
        messages={ErrorKind.RANGE: ("Máximo 100 caracteres", "At most 100 characters")},
    ),
    F.SPIRITUAL_MOMENTS: FieldRule(
        adapter=_FREE_TEXT_ADAPTER,
        messages={ErrorKind.RANGE: ("Máximo 500 caracteres", "At most 500 characters")},
    ),
    F.SPIRITUAL_PRACTICES: FieldRule(
        adapter=_FREE_TEXT_ADAPTER,
        messages={ErrorKind.RANGE: ("Máximo 500 caracteres", "At most 500 characters")},
    ),
    F.SEXUAL_ROLE_ID: _id_rule(("Selecciona tu rol sexual", "Select your sexual role")),
    F.RELATIONSHIP_TYPE_ID: _id_rule(
        ("Selecciona el tipo de relación que buscas", "Select the relationship type you are looking for")
    ),
    F.SHOW_AGE: _privacy_rule(),
    F.SHOW_LOCATION: _privacy_rule(),
    F.ALLOW_NOTIFICATIONS: _privacy_rule(),
    F.SHOW_ME_IN_SEARCH: _privacy_rule(),
}


def _kind_for(exc: ValidationError) -> ErrorKind:
    errors = exc.errors()
    error_type = errors[0].get("type", "") if errors else ""
    if error_type in _RANGE_ERROR_TYPES:
        return ErrorKind.RANGE
    if error_type == "missing":
        return ErrorKind.REQUIRED
    return ErrorKind.FORMAT


def validate_field(
    name: str,
    record: Mapping[str, Any],
    *,
    required: bool,
    rules: Mapping[str, FieldRule] = FIELD_RULES,
) -> FieldValidationError | None:
    """Validate a single field of ``record``; unknown fields always pass."""

    rule = rules.get(name)
    if rule is None:
        return None
    value = record.get(name)
    if not is_value_present(value):
        if required:
            return FieldValidationError(field=name, message=rule.message_for(ErrorKind.REQUIRED), kind=ErrorKind.REQUIRED)
        return None

    coerced = value
    if rule.adapter is not None:
        try:
            coerced = rule.adapter.validate_python(value)
        except ValidationError as exc:
            kind = _kind_for(exc)
            return FieldValidationError(field=name, message=rule.message_for(kind), kind=kind)

    for check in rule.checks:
        error = check(coerced, record)
        if error is not None:
            return error
    return None


def validate_fields(
    fields: Sequence[str],
    record: Mapping[str, Any],
    *,
    required_fields: Sequence[str] | frozenset[str] = (),
    rules: Mapping[str, FieldRule] = FIELD_RULES,
) -> list[FieldValidationError]:
    """Validate ``fields`` in order and return every failure."""

    required = set(required_fields)
    errors: list[FieldValidationError] = []
    for name in dict.fromkeys(fields):
        error = validate_field(name, record, required=name in required, rules=rules)
        if error is not None:
            errors.append(error)
    return errors


__all__ = [
    "FIELD_RULES",
    "FieldRule",
    "is_value_present",
    "validate_field",
    "validate_fields",
]
