from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, MutableMapping, Sequence, cast

import streamlit as st

from constants.keys import ProfileFields, StateKeys
from core.errors import (
    ErrorKind,
    FieldValidationError,
    ImageValidationError,
    SubmissionError,
    WizardStateError,
)
from images.codec import BinaryImage
from images.store import ImagePersistenceStore
from images.validator import ImageConstraints, image_error_key, validate_image
from models.profile import build_submission_payload, default_record, default_value
from state.autosave import AutosavePayload, parse_snapshot, persist_session_snapshot
from utils.i18n import SUBMISSION_FAILED_MESSAGE, LocalizedText
from utils.logging_context import set_wizard_step
from wizard.navigation.keys import WizardSessionKeys
from wizard.navigation_types import Option, ReferenceDataProvider, SubmissionClient, SubmissionResult
from wizard.step_registry import fields_exclusive_to_other_branches, resolve_category
from wizard.validation import FieldDependencyValidator

logger = logging.getLogger(__name__)

_IMAGE_STORE_ERROR: LocalizedText = (
    "No pudimos procesar la imagen, intenta con otra",
    "We could not process the image, please try another one",
)
_IMAGES_BUSY_ERROR: LocalizedText = (
    "Tus fotos aún se están cargando, intenta de nuevo",
    "Your photos are still loading, please try again",
)


@dataclass(frozen=True)
class NavigationResult:
    """Outcome of a step transition request."""

    moved: bool
    step: int
    errors: tuple[FieldValidationError, ...] = ()


@dataclass(frozen=True)
class WizardSnapshot:
    """Read-only view of the wizard for the rendering layer."""

    current_step: int
    total_steps: int
    field_errors: Mapping[str, FieldValidationError]
    can_advance: bool
    can_submit: bool
    submitting: bool
    submitted: bool
    submission_error: LocalizedText | None
    images: tuple[BinaryImage | None, ...] = field(default_factory=tuple)

    @property
    def slot_errors(self) -> dict[int, ImageValidationError]:
        return {
            error.slot: error for error in self.field_errors.values() if isinstance(error, ImageValidationError)
        }

    @property
    def progress(self) -> int:
        return round(self.current_step / self.total_steps * 100) if self.total_steps else 0

    @property
    def is_first(self) -> bool:
        return self.current_step == 1

    @property
    def is_last(self) -> bool:
        return self.current_step == self.total_steps


class WizardController:
    """Drive the profile wizard through its steps and final submission.

    The controller is cheap to rebuild on every Streamlit rerun: the record,
    the navigation state, the field errors, and the image store all live in
    ``session_state`` under keys namespaced by ``wizard_id``.
    """

    def __init__(
        self,
        *,
        submission_client: SubmissionClient,
        reference_data: ReferenceDataProvider | None = None,
        user: Mapping[str, Any] | None = None,
        validator: FieldDependencyValidator | None = None,
        image_constraints: ImageConstraints | None = None,
        max_images: int | None = None,
        wizard_id: str = "default",
        session_state: MutableMapping[str, Any] | None = None,
    ) -> None:
        self._client = submission_client
        self._reference_data = reference_data
        self._validator = validator or FieldDependencyValidator()
        self._constraints = image_constraints or ImageConstraints()
        self._session_state = cast(
            MutableMapping[str, Any], session_state if session_state is not None else st.session_state
        )
        self._wizard_id = wizard_id
        self._session_keys = WizardSessionKeys(wizard_id=wizard_id)
        self._ensure_state_defaults(user, max_images)
        set_wizard_step(self.current_step)

    def _ensure_state_defaults(self, user: Mapping[str, Any] | None, max_images: int | None) -> None:
        keys = self._session_keys
        store = self._session_state.get(keys.image_store)
        if not isinstance(store, ImagePersistenceStore) or store.closed:
            store = ImagePersistenceStore(max_images=max_images)
            self._session_state[keys.image_store] = store
        if not isinstance(self._session_state.get(keys.navigation_state), dict):
            self._session_state[keys.navigation_state] = {
                "current_step": 1,
                "submitting": False,
                "submitted": False,
                "submission_error": None,
            }
        if not isinstance(self._session_state.get(keys.field_errors), dict):
            self._session_state[keys.field_errors] = {}
        if not isinstance(self._session_state.get(keys.record), dict):
            record = default_record(user)
            record[ProfileFields.IMAGES] = store
            self._session_state[keys.record] = record
            saved = self._session_state.get(keys.namespace(StateKeys.SNAPSHOT))
            if isinstance(saved, Mapping):
                self.restore_snapshot(saved)

    @property
    def wizard_id(self) -> str:
        return self._wizard_id

    @property
    def state(self) -> dict[str, Any]:
        return self._session_state[self._session_keys.navigation_state]

    @property
    def _record(self) -> dict[str, Any]:
        return self._session_state[self._session_keys.record]

    @property
    def _errors(self) -> dict[str, FieldValidationError]:
        return self._session_state[self._session_keys.field_errors]

    @property
    def record(self) -> Mapping[str, Any]:
        """Read-only view of the record; mutate through the ``set_*`` methods."""

        return MappingProxyType(self._record)

    @property
    def image_store(self) -> ImagePersistenceStore:
        return self._session_state[self._session_keys.image_store]

    @property
    def validator(self) -> FieldDependencyValidator:
        return self._validator

    @property
    def current_step(self) -> int:
        return int(self.state.get("current_step", 1))

    @property
    def total_steps(self) -> int:
        return self._validator.total_steps

    @property
    def progress(self) -> int:
        return round(self.current_step / self.total_steps * 100)

    @property
    def is_first(self) -> bool:
        return self.current_step == 1

    @property
    def is_last(self) -> bool:
        return self.current_step == self.total_steps

    @property
    def submitted(self) -> bool:
        return bool(self.state.get("submitted"))

    @property
    def submitting(self) -> bool:
        return bool(self.state.get("submitting"))

    @property
    def field_errors(self) -> Mapping[str, FieldValidationError]:
        return MappingProxyType(self._errors)

    def _ensure_active(self) -> None:
        if self.submitted:
            raise WizardStateError("The profile has already been submitted")

    def _set_current_step(self, step: int) -> None:
        previous = self.current_step
        self.state["current_step"] = step
        self._session_state[StateKeys.SCROLL_TO_TOP] = True
        set_wizard_step(step)
        logger.info("Wizard moved from step %d to step %d", previous, step)
        self.persist()

    def _image_error_keys(self) -> list[str]:
        return [ProfileFields.IMAGES, *(image_error_key(slot) for slot in range(self.image_store.max_images))]

    def _clear_errors(self, fields: Iterable[str]) -> None:
        for name in fields:
            self._errors.pop(name, None)

    def _clear_image_errors(self, slots: Iterable[int] | None = None) -> None:
        if slots is None:
            self._clear_errors(self._image_error_keys())
            return
        self._clear_errors([ProfileFields.IMAGES, *(image_error_key(slot) for slot in slots)])

    def _replace_step_errors(self, step: int, errors: Sequence[FieldValidationError]) -> None:
        owned = self._validator.fields_for_step(step, self._record)
        self._clear_errors(owned)
        if ProfileFields.IMAGES in owned:
            self._clear_image_errors()
        for error in errors:
            self._errors[error.field] = error

    def options(self, kind: str, *, parent: int | str | None = None) -> Sequence[Option]:
        """Return reference options for ``kind``; empty without a provider."""

        if self._reference_data is None:
            return ()
        return self._reference_data.options(kind, parent=parent)

    def set_field(self, name: str, value: Any) -> None:
        """Record ``value`` for ``name`` and clear that field's error."""

        self._ensure_active()
        if name == ProfileFields.CATEGORY_INTEREST:
            self.set_category(value)
            return
        if name == ProfileFields.IMAGES:
            raise WizardStateError("Images are managed through set_images/add_image")
        self._record[name] = value
        self._errors.pop(name, None)

    def set_category(self, value: Any) -> None:
        """Select a category and reset fields that only other categories use."""

        self._ensure_active()
        previous = resolve_category(self._record.get(ProfileFields.CATEGORY_INTEREST))
        category = resolve_category(value)
        if category is not None:
            self._record[ProfileFields.CATEGORY_INTEREST] = category.value
        else:
            self._record[ProfileFields.CATEGORY_INTEREST] = value if value is not None else ""
        self._errors.pop(ProfileFields.CATEGORY_INTEREST, None)
        if category == previous:
            return
        cleared = fields_exclusive_to_other_branches(category)
        for name in cleared:
            self._record[name] = default_value(name)
        self._clear_errors(cleared)
        logger.info("Category changed from %s to %s; reset %d branch fields", previous, category, len(cleared))

    async def set_images(self, handles: Iterable[Any] | None) -> list[str]:
        """Replace every photo slot with ``handles`` (upload order is slot order)."""

        self._ensure_active()
        encoded = await self.image_store.reconcile(handles)
        self._clear_image_errors()
        return encoded

    async def add_image(self, slot: int, handle: Any) -> ImageValidationError | None:
        """Validate ``handle`` and place it in ``slot``; slots stay untouched on failure."""

        self._ensure_active()
        store = self.image_store
        if not 0 <= slot < store.max_images:
            raise IndexError(f"Image slot {slot} outside 0..{store.max_images - 1}")
        error = await validate_image(handle, self._constraints, slot=slot)
        if error is None and store.is_reconciling:
            # The in-flight reconcile owns every slot until it completes.
            error = ImageValidationError(
                field=image_error_key(slot),
                message=_IMAGES_BUSY_ERROR,
                kind=ErrorKind.FORMAT,
                slot=slot,
            )
        elif error is None and not store.set_slot(slot, handle):
            error = ImageValidationError(
                field=image_error_key(slot),
                message=_IMAGE_STORE_ERROR,
                kind=ErrorKind.FORMAT,
                slot=slot,
            )
        if error is not None:
            logger.info("Rejected image for slot %d: %s", slot, error.kind)
            self._errors[error.field] = error
            return error
        self._clear_image_errors([slot])
        return None

    def swap_images(self, position_a: int, position_b: int) -> None:
        self._ensure_active()
        self.image_store.swap(position_a, position_b)
        self._clear_image_errors([position_a, position_b])

    def promote_image(self, position: int) -> None:
        """Make the photo at ``position`` the main photo."""

        self.swap_images(0, position)

    def remove_image(self, position: int) -> None:
        self._ensure_active()
        self.image_store.remove_at(position)
        self._clear_image_errors([position])

    def move_image(self, source: int, target: int) -> None:
        self._ensure_active()
        self.image_store.move(source, target)
        low, high = sorted((source, target))
        self._clear_image_errors(range(low, high + 1))

    async def advance(self) -> NavigationResult:
        """Validate the current step and move forward when it passes."""

        self._ensure_active()
        step = self.current_step
        result = self._validator.validate_step(step, self._record)
        self._replace_step_errors(step, result.errors)
        if not result.valid:
            logger.info(
                "Step %d blocked by %d invalid field(s): %s",
                step,
                len(result.errors),
                ", ".join(error.field for error in result.errors),
            )
            return NavigationResult(moved=False, step=step, errors=result.errors)
        if step >= self.total_steps:
            return NavigationResult(moved=False, step=step)
        if not self.image_store.ready:
            await self.image_store.initialize()
        self._set_current_step(step + 1)
        return NavigationResult(moved=True, step=step + 1)

    def retreat(self) -> NavigationResult:
        """Move one step back without validating anything."""

        self._ensure_active()
        step = self.current_step
        if step <= 1:
            return NavigationResult(moved=False, step=step)
        self._set_current_step(step - 1)
        return NavigationResult(moved=True, step=step - 1)

    async def submit(self) -> SubmissionResult:
        """Validate the whole record and hand it to the submission client.

        Raises:
            WizardStateError: when called before the last step, after a
                successful submission, or while a submission is in flight.
        """

        self._ensure_active()
        if not self.is_last:
            raise WizardStateError(f"Submit is only available on step {self.total_steps}")
        if self.submitting:
            raise WizardStateError("A submission is already in progress")

        validation = self._validator.validate_all(self._record)
        self._clear_errors(list(self._errors))
        for error in validation.errors:
            self._errors[error.field] = error
        if not validation.valid:
            logger.info("Submission blocked by %d invalid field(s)", len(validation.errors))
            return SubmissionResult(success=False)

        payload = build_submission_payload(self._record, self.image_store.to_binary_handles())
        self.state["submission_error"] = None
        self.state["submitting"] = True
        try:
            response = await self._client.submit(payload)
        except (SubmissionError, OSError, TimeoutError) as exc:
            logger.warning("Profile submission failed: %s", exc)
            response = SubmissionResult(success=False, error=str(exc))
        finally:
            self.state["submitting"] = False

        if not response.success:
            self.state["submission_error"] = (
                (response.error, response.error) if response.error else SUBMISSION_FAILED_MESSAGE
            )
            self.persist()
            return response

        logger.info("Profile submitted")
        self.state["submitted"] = True
        self._reset_after_submit()
        return response

    def _reset_after_submit(self) -> None:
        store = self.image_store
        store.close()
        self._errors.clear()
        self._record.clear()
        self._record.update(default_record())
        self._record[ProfileFields.IMAGES] = ImagePersistenceStore(max_images=store.max_images)
        self._session_state[self._session_keys.image_store] = self._record[ProfileFields.IMAGES]
        self._session_state.pop(self._session_keys.namespace(StateKeys.SNAPSHOT), None)

    def snapshot(self) -> WizardSnapshot:
        step = self.current_step
        step_fields = set(self._validator.fields_for_step(step, self._record))
        if ProfileFields.IMAGES in step_fields:
            step_fields.update(self._image_error_keys())
        blocked = any(name in step_fields for name in self._errors)
        submitting = self.submitting
        submitted = self.submitted
        return WizardSnapshot(
            current_step=step,
            total_steps=self.total_steps,
            field_errors=dict(self._errors),
            can_advance=not submitted and not submitting and step < self.total_steps and not blocked,
            can_submit=not submitted and not submitting and self.is_last and not self._errors,
            submitting=submitting,
            submitted=submitted,
            submission_error=self.state.get("submission_error"),
            images=tuple(self.image_store.slots()),
        )

    def persist(self) -> AutosavePayload:
        """Write the current step, record scalars, and photo slots into the session."""

        return persist_session_snapshot(
            self._record,
            current_step=self.current_step,
            image_slots=self.image_store.snapshot(),
            session_state=self._session_state,
            key=self._session_keys.namespace(StateKeys.SNAPSHOT),
        )

    def restore_snapshot(self, payload: Mapping[str, Any]) -> None:
        """Load a snapshot produced by :meth:`persist`."""

        parsed = parse_snapshot(payload)
        for name, value in parsed["record"].items():
            if name != ProfileFields.IMAGES:
                self._record[name] = value
        self.image_store.restore(parsed["images"])
        step = parsed["wizard"].get("current_step")
        if isinstance(step, int) and 1 <= step <= self.total_steps:
            self.state["current_step"] = step
        logger.info("Restored wizard snapshot at step %d", self.current_step)

    def close(self) -> None:
        """Release the image store; pending conversions are discarded."""

        self.image_store.close()


__all__ = [
    "NavigationResult",
    "WizardController",
    "WizardSnapshot",
]
