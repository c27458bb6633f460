from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class Option:
    """Selectable reference value (gender, city, religion, ...)."""

    id: int | str
    label: str


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome reported by a :class:`SubmissionClient`."""

    success: bool
    error: str | None = None


@runtime_checkable
class ReferenceDataProvider(Protocol):
    """Source of option lists for the selection fields of each step."""

    def options(self, kind: str, *, parent: int | str | None = None) -> Sequence[Option]: ...


@runtime_checkable
class SubmissionClient(Protocol):
    """Backend that receives the completed profile."""

    def submit(self, payload: Mapping[str, Any]) -> Awaitable[SubmissionResult]: ...


__all__ = [
    "Option",
    "ReferenceDataProvider",
    "SubmissionClient",
    "SubmissionResult",
]
