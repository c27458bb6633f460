"""Profile record defaults and the submission payload sent to the backend."""

from __future__ import annotations

import copy
from datetime import date
from types import MappingProxyType
from typing import Any, Final, Iterable, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from constants.keys import ProfileFields as F
from images.codec import BinaryImage
from wizard.step_registry import resolve_category


USER_DEFAULT_VALUES: Final[Mapping[str, Any]] = MappingProxyType(
    {
        F.NAME: "",
        F.LAST_NAME: "",
        F.DOCUMENT: "",
        F.PHONE: "",
        F.PHONE_CODE: "+57",
        F.BIRTH_DATE: "",
        F.COUNTRY: "Colombia",
        F.CITY: "Bogotá",
        F.DEPARTMENT: "",
        F.LOCALITY: "",
        F.DESCRIPTION: "",
        F.TAGS: [],
        F.GENDER_ID: "",
        F.MARITAL_STATUS_ID: "",
        F.EDUCATION_LEVEL_ID: "",
        F.PROFESSION: "",
        F.BODY_TYPE_ID: "",
        F.HEIGHT: 170,
        F.EYE_COLOR_ID: "",
        F.HAIR_COLOR_ID: "",
        F.CATEGORY_INTEREST: "",
        F.AGE_PREFERENCE_MIN: 18,
        F.AGE_PREFERENCE_MAX: 50,
        F.LOCATION_PREFERENCE_RADIUS: 50,
        F.RELIGION_ID: "",
        F.CHURCH: "",
        F.SPIRITUAL_MOMENTS: "",
        F.SPIRITUAL_PRACTICES: "",
        F.SEXUAL_ROLE_ID: "",
        F.RELATIONSHIP_TYPE_ID: "",
        F.SHOW_AGE: True,
        F.SHOW_LOCATION: True,
        F.ALLOW_NOTIFICATIONS: True,
        F.SHOW_ME_IN_SEARCH: True,
    }
)


def default_value(field: str) -> Any:
    """Return a fresh copy of the default for ``field`` (``None`` when unknown)."""

    return copy.deepcopy(USER_DEFAULT_VALUES.get(field))


def default_record(user: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return the starting record, pre-filled from ``user`` when editing.

    Values are looked up in ``user["profile"]`` first, then on ``user``
    itself, and fall back to the defaults when both are missing.
    """

    record = {field: default_value(field) for field in USER_DEFAULT_VALUES}
    if not user:
        return record
    profile = user.get("profile")
    sources: list[Mapping[str, Any]] = [profile] if isinstance(profile, Mapping) else []
    sources.append(user)
    for field in record:
        for source in sources:
            value = source.get(field)
            if value is not None:
                record[field] = copy.deepcopy(value)
                break
    return record


def _frontend(name: str, *, backend: str | None = None, exclude: bool = False) -> Any:
    return Field(
        exclude=exclude,
        default_factory=lambda: default_value(name),
        validate_default=True,
        validation_alias=AliasChoices(name, backend or name),
        serialization_alias=backend or name,
    )


class ProfileSubmission(BaseModel):
    """Backend DTO for a completed profile.

    Validation reads frontend field names; ``model_dump(by_alias=True)``
    writes backend names.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = _frontend(F.NAME)
    last_name: str = _frontend(F.LAST_NAME)
    document: str = _frontend(F.DOCUMENT)
    phone: str = _frontend(F.PHONE)
    phone_code: str = _frontend(F.PHONE_CODE, exclude=True)
    date_of_birth: Optional[date] = _frontend(F.BIRTH_DATE, backend="dateOfBirth")
    country: str = _frontend(F.COUNTRY)
    city: str = _frontend(F.CITY)
    department: str = _frontend(F.DEPARTMENT)
    locality: str = _frontend(F.LOCALITY)

    description: str = _frontend(F.DESCRIPTION)
    tags: list[str] = _frontend(F.TAGS)
    gender_id: Optional[int] = _frontend(F.GENDER_ID)
    marital_status_id: Optional[int] = _frontend(F.MARITAL_STATUS_ID)
    education_id: Optional[int] = _frontend(F.EDUCATION_LEVEL_ID, backend="educationId")
    profession: str = _frontend(F.PROFESSION)
    body_type_id: Optional[int] = _frontend(F.BODY_TYPE_ID)
    height: Optional[int] = _frontend(F.HEIGHT)
    eye_color_id: Optional[int] = _frontend(F.EYE_COLOR_ID)
    hair_color_id: Optional[int] = _frontend(F.HAIR_COLOR_ID)

    category_interest: Optional[str] = _frontend(F.CATEGORY_INTEREST)
    age_preference_min: int = _frontend(F.AGE_PREFERENCE_MIN)
    age_preference_max: int = _frontend(F.AGE_PREFERENCE_MAX)
    location_preference_radius: int = _frontend(F.LOCATION_PREFERENCE_RADIUS)
    religion_id: Optional[int] = _frontend(F.RELIGION_ID)
    church: str = _frontend(F.CHURCH)
    spiritual_moments: str = _frontend(F.SPIRITUAL_MOMENTS)
    spiritual_practices: str = _frontend(F.SPIRITUAL_PRACTICES)
    sexual_role_id: Optional[int] = _frontend(F.SEXUAL_ROLE_ID)
    relationship_id: Optional[int] = _frontend(F.RELATIONSHIP_TYPE_ID, backend="relationshipId")

    show_age: bool = _frontend(F.SHOW_AGE)
    show_location: bool = _frontend(F.SHOW_LOCATION)
    allow_notifications: bool = _frontend(F.ALLOW_NOTIFICATIONS)
    show_me_in_search: bool = _frontend(F.SHOW_ME_IN_SEARCH)

    @field_validator(
        "gender_id",
        "marital_status_id",
        "education_id",
        "body_type_id",
        "height",
        "eye_color_id",
        "hair_color_id",
        "religion_id",
        "sexual_role_id",
        "relationship_id",
        mode="before",
    )
    @classmethod
    def _coerce_int(cls, value: object) -> int | None:
        """Parse numeric ids leniently; blanks and garbage become ``None``."""

        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            cleaned = value.strip()
            try:
                return int(float(cleaned)) if cleaned else None
            except (ValueError, OverflowError):
                return None
        return None

    @field_validator(
        "name",
        "last_name",
        "document",
        "phone",
        "phone_code",
        "country",
        "city",
        "department",
        "locality",
        "description",
        "profession",
        "church",
        "spiritual_moments",
        "spiritual_practices",
        mode="before",
    )
    @classmethod
    def _blank_string(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _blank_date(cls, value: object) -> object | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_list(cls, value: object) -> list[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(tag).strip() for tag in value if str(tag).strip()]

    @field_validator("category_interest", mode="before")
    @classmethod
    def _category(cls, value: object) -> str | None:
        category = resolve_category(value)
        return category.value if category is not None else None

    @field_validator("age_preference_min", "age_preference_max", "location_preference_radius", mode="before")
    @classmethod
    def _numeric_preference(cls, value: object, info: ValidationInfo) -> int:
        default = _PREFERENCE_DEFAULTS[info.field_name]
        if value is None or isinstance(value, bool):
            return default
        try:
            parsed = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default
        return parsed or default

    @field_validator("show_age", "show_location", "allow_notifications", "show_me_in_search", mode="before")
    @classmethod
    def _privacy_flag(cls, value: object) -> bool:
        """Only an explicit ``False`` opts out."""

        return value is not False

    @model_validator(mode="after")
    def _international_phone(self) -> ProfileSubmission:
        """The backend stores a single number that carries the country code."""

        if self.phone and not self.phone.startswith("+"):
            self.phone = f"{self.phone_code}{self.phone}"
        return self


_PREFERENCE_DEFAULTS: Final[Mapping[str, int]] = MappingProxyType(
    {
        "age_preference_min": 18,
        "age_preference_max": 50,
        "location_preference_radius": 50,
    }
)

_PAYLOAD_FIELDS: Final[tuple[str, ...]] = tuple(field for field in USER_DEFAULT_VALUES)


def build_submission_payload(
    record: Mapping[str, Any],
    images: Iterable[BinaryImage],
) -> dict[str, Any]:
    """Map ``record`` to backend field names and attach ``images`` in slot order."""

    values = {field: record.get(field, USER_DEFAULT_VALUES[field]) for field in _PAYLOAD_FIELDS}
    submission = ProfileSubmission.model_validate(values)
    payload = submission.model_dump(mode="json", by_alias=True)
    payload[F.IMAGES] = list(images)
    return payload


__all__ = [
    "ProfileSubmission",
    "USER_DEFAULT_VALUES",
    "build_submission_payload",
    "default_record",
    "default_value",
]
