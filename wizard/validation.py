"""Step-scoped validation of the profile record.

Only the fields a step owns are evaluated, so a field from a later step can
never block navigation out of an earlier one. Category branch fields join the
step that hosts them whenever ``categoryInterest`` selects their branch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from constants.keys import ProfileFields
from core.errors import FieldValidationError
from wizard.schema import FIELD_RULES, FieldRule, validate_fields
from wizard.step_registry import (
    CATEGORY_BRANCHES,
    WIZARD_STEPS,
    Category,
    CategoryBranch,
    StepDefinition,
    resolve_category,
)


@dataclass(frozen=True)
class StepValidationResult:
    """Structured validation outcome for a step or the whole record."""

    valid: bool
    errors: tuple[FieldValidationError, ...]

    def errors_by_field(self) -> dict[str, FieldValidationError]:
        return {error.field: error for error in self.errors}


class FieldDependencyValidator:
    """Stateless resolver of "which fields must pass to leave step N"."""

    def __init__(
        self,
        *,
        steps: Sequence[StepDefinition] = WIZARD_STEPS,
        branches: Mapping[Category, CategoryBranch] = CATEGORY_BRANCHES,
        rules: Mapping[str, FieldRule] = FIELD_RULES,
        discriminant: str = ProfileFields.CATEGORY_INTEREST,
    ) -> None:
        self._steps = {step.index: step for step in steps}
        self._branches = branches
        self._rules = rules
        self._discriminant = discriminant

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def step_indices(self) -> tuple[int, ...]:
        return tuple(sorted(self._steps))

    def _active_branch(self, step: StepDefinition, record: Mapping[str, Any]) -> CategoryBranch | None:
        if not step.hosts_category_branch:
            return None
        category = resolve_category(record.get(self._discriminant))
        if category is None:
            return None
        return self._branches.get(category)

    def fields_for_step(self, step_index: int, record: Mapping[str, Any]) -> list[str]:
        """Return the fields validated for ``step_index`` given ``record``.

        Unknown steps own no fields.
        """

        step = self._steps.get(step_index)
        if step is None:
            return []
        fields = list(step.fields)
        branch = self._active_branch(step, record)
        if branch is not None:
            fields.extend(field for field in branch.fields if field not in fields)
        return fields

    def required_fields_for_step(self, step_index: int, record: Mapping[str, Any]) -> list[str]:
        step = self._steps.get(step_index)
        if step is None:
            return []
        required = list(step.required_fields)
        branch = self._active_branch(step, record)
        if branch is not None:
            required.extend(field for field in branch.required_fields if field not in required)
        return required

    def validate_step(self, step_index: int, record: Mapping[str, Any]) -> StepValidationResult:
        """Validate only the fields owned by ``step_index``; empty steps pass."""

        fields = self.fields_for_step(step_index, record)
        if not fields:
            return StepValidationResult(valid=True, errors=())
        errors = validate_fields(
            fields,
            record,
            required_fields=self.required_fields_for_step(step_index, record),
            rules=self._rules,
        )
        return StepValidationResult(valid=not errors, errors=tuple(errors))

    def validate_all(self, record: Mapping[str, Any]) -> StepValidationResult:
        """Validate the union of every step's fields before submission."""

        fields: list[str] = []
        required: list[str] = []
        for index in self.step_indices:
            fields.extend(self.fields_for_step(index, record))
            required.extend(self.required_fields_for_step(index, record))
        errors = validate_fields(fields, record, required_fields=required, rules=self._rules)
        return StepValidationResult(valid=not errors, errors=tuple(errors))


_DEFAULT_VALIDATOR = FieldDependencyValidator()


def fields_for_step(step_index: int, record: Mapping[str, Any]) -> list[str]:
    return _DEFAULT_VALIDATOR.fields_for_step(step_index, record)


def validate_step(step_index: int, record: Mapping[str, Any]) -> StepValidationResult:
    return _DEFAULT_VALIDATOR.validate_step(step_index, record)


def validate_all(record: Mapping[str, Any]) -> StepValidationResult:
    return _DEFAULT_VALIDATOR.validate_all(record)


__all__ = [
    "FieldDependencyValidator",
    "StepValidationResult",
    "fields_for_step",
    "validate_all",
    "validate_step",
]
