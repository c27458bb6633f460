"""Core error types shared by the profile wizard."""

from .errors import (
    ErrorKind,
    FieldValidationError,
    ImageEncodingError,
    ImageValidationError,
    SubmissionError,
    WizardError,
    WizardStateError,
)

__all__ = [
    "ErrorKind",
    "FieldValidationError",
    "ImageEncodingError",
    "ImageValidationError",
    "SubmissionError",
    "WizardError",
    "WizardStateError",
]
