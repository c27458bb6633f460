"""Registry for wizard steps, category branches, and canonical order."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Final, Mapping

from constants.keys import ProfileFields as F
from utils.i18n import LocalizedText


class Category(StrEnum):
    """Discriminant values of ``categoryInterest``."""

    SPIRIT = "SPIRIT"
    ROUSE = "ROUSE"
    ESSENCE = "ESSENCE"


@dataclass(frozen=True)
class CategoryBranch:
    """Fields unlocked by one ``categoryInterest`` value."""

    category: Category
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...] = ()

    @property
    def fields(self) -> tuple[str, ...]:
        return self.required_fields + self.optional_fields


CATEGORY_BRANCHES: Final[Mapping[Category, CategoryBranch]] = MappingProxyType(
    {
        Category.SPIRIT: CategoryBranch(
            category=Category.SPIRIT,
            required_fields=(F.RELIGION_ID,),
            optional_fields=(F.CHURCH, F.SPIRITUAL_MOMENTS, F.SPIRITUAL_PRACTICES),
        ),
        Category.ROUSE: CategoryBranch(
            category=Category.ROUSE,
            required_fields=(F.SEXUAL_ROLE_ID, F.RELATIONSHIP_TYPE_ID),
        ),
        Category.ESSENCE: CategoryBranch(category=Category.ESSENCE, required_fields=()),
    }
)

_missing_branches = set(Category) - set(CATEGORY_BRANCHES)
if _missing_branches:  # pragma: no cover - guards edits to the table above
    raise RuntimeError(f"Categories without a field branch: {sorted(_missing_branches)}")


@dataclass(frozen=True)
class StepDefinition:
    """Metadata for an individual wizard step and the fields it owns."""

    index: int
    key: str
    label: LocalizedText
    panel_header: LocalizedText
    panel_subheader: LocalizedText
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...] = ()
    hosts_category_branch: bool = False

    @property
    def fields(self) -> tuple[str, ...]:
        return self.required_fields + self.optional_fields


WIZARD_STEPS: Final[tuple[StepDefinition, ...]] = (
    StepDefinition(
        index=1,
        key="basic",
        label=("Información básica", "Basic info"),
        panel_header=("Cuéntanos sobre ti", "Tell us about yourself"),
        panel_subheader=("Datos personales, contacto y fotos", "Personal data, contact & photos"),
        required_fields=(
            F.NAME,
            F.LAST_NAME,
            F.DOCUMENT,
            F.PHONE,
            F.PHONE_CODE,
            F.BIRTH_DATE,
            F.COUNTRY,
            F.CITY,
            F.IMAGES,
        ),
        optional_fields=(F.DEPARTMENT, F.LOCALITY),
    ),
    StepDefinition(
        index=2,
        key="characteristics",
        label=("Características", "Characteristics"),
        panel_header=("Cómo eres", "What you are like"),
        panel_subheader=("Descripción, rasgos e intereses", "Description, traits & interests"),
        required_fields=(F.DESCRIPTION, F.GENDER_ID, F.HEIGHT, F.TAGS),
        optional_fields=(
            F.BODY_TYPE_ID,
            F.EYE_COLOR_ID,
            F.HAIR_COLOR_ID,
            F.MARITAL_STATUS_ID,
            F.EDUCATION_LEVEL_ID,
            F.PROFESSION,
        ),
    ),
    StepDefinition(
        index=3,
        key="preferences",
        label=("Preferencias", "Preferences"),
        panel_header=("Qué buscas", "What you are looking for"),
        panel_subheader=("Categoría, edades y distancia", "Category, ages & distance"),
        required_fields=(
            F.CATEGORY_INTEREST,
            F.AGE_PREFERENCE_MIN,
            F.AGE_PREFERENCE_MAX,
            F.LOCATION_PREFERENCE_RADIUS,
        ),
        hosts_category_branch=True,
    ),
    StepDefinition(
        index=4,
        key="configuration",
        label=("Configuración", "Settings"),
        panel_header=("Privacidad", "Privacy"),
        panel_subheader=("Qué mostramos y cómo te avisamos", "What we show and how we notify you"),
        required_fields=(),
        optional_fields=(F.SHOW_AGE, F.SHOW_LOCATION, F.ALLOW_NOTIFICATIONS, F.SHOW_ME_IN_SEARCH),
    ),
)

TOTAL_STEPS: Final[int] = len(WIZARD_STEPS)


def get_step(index: int) -> StepDefinition | None:
    """Lookup step metadata by its 1-based index."""

    return next((step for step in WIZARD_STEPS if step.index == index), None)


def resolve_category(value: object) -> Category | None:
    """Return the :class:`Category` for ``value`` or ``None`` when unset/unknown."""

    if isinstance(value, Category):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Category(value.strip().upper())
    except ValueError:
        return None


def branch_for(category: object) -> CategoryBranch | None:
    resolved = resolve_category(category)
    if resolved is None:
        return None
    return CATEGORY_BRANCHES[resolved]


def all_branch_fields() -> tuple[str, ...]:
    """Return every conditional field across all branches, de-duplicated."""

    ordered: dict[str, None] = {}
    for branch in CATEGORY_BRANCHES.values():
        ordered.update(dict.fromkeys(branch.fields))
    return tuple(ordered)


def fields_exclusive_to_other_branches(category: object) -> tuple[str, ...]:
    """Return branch fields that ``category`` does not share with any other branch.

    With ``category`` unset, every branch field qualifies.
    """

    active = branch_for(category)
    keep = set(active.fields) if active is not None else set()
    return tuple(field for field in all_branch_fields() if field not in keep)


__all__ = [
    "CATEGORY_BRANCHES",
    "Category",
    "CategoryBranch",
    "StepDefinition",
    "TOTAL_STEPS",
    "WIZARD_STEPS",
    "all_branch_fields",
    "branch_for",
    "fields_exclusive_to_other_branches",
    "get_step",
    "resolve_category",
]
