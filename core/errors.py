"""Exception types and validation error records for the profile wizard."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class WizardError(Exception):
    """Base exception for profile wizard failures."""


class WizardStateError(WizardError):
    """Raised when an operation is invoked from a state that does not allow it."""


class ImageEncodingError(WizardError):
    """Base exception for image payloads that cannot be encoded or decoded."""


class UnsupportedImageInput(ImageEncodingError):
    """Raised when ``encode`` receives something that is neither bytes nor a string."""


class MalformedImageEncoding(ImageEncodingError):
    """Raised when an encoded image lacks a valid type marker or payload."""


SUBMISSION_UNAVAILABLE_MESSAGE = (
    "El servicio no está disponible, inténtalo más tarde. / The service is"
    " currently unavailable, please try again later."
)


class SubmissionError(WizardError):
    """Raised when the submission collaborator rejects or cannot receive a profile."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or SUBMISSION_UNAVAILABLE_MESSAGE)


class ErrorKind(StrEnum):
    """Machine-checkable category of a validation failure."""

    REQUIRED = "required"
    FORMAT = "format"
    RANGE = "range"
    DIMENSION = "dimension"
    SIZE = "size"


@dataclass(frozen=True)
class FieldValidationError:
    """Schema-level failure for one record field.

    Returned as data and rendered next to the field; never raised. ``message``
    is a ``(es, en)`` pair resolved by the UI layer.
    """

    field: str
    message: tuple[str, str]
    kind: ErrorKind


@dataclass(frozen=True)
class ImageValidationError(FieldValidationError):
    """Failure for a single image slot, keyed by ``profileImage``/``image<n>``."""

    slot: int = 0


__all__ = [
    "ErrorKind",
    "FieldValidationError",
    "ImageEncodingError",
    "ImageValidationError",
    "MalformedImageEncoding",
    "SUBMISSION_UNAVAILABLE_MESSAGE",
    "SubmissionError",
    "UnsupportedImageInput",
    "WizardError",
    "WizardStateError",
]
