"""Pydantic models for the profile record and its submission payload."""

from .profile import ProfileSubmission, build_submission_payload, default_record

__all__ = [
    "ProfileSubmission",
    "build_submission_payload",
    "default_record",
]
