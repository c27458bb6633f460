from pathlib import Path
import sys
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Callable, Mapping

from PIL import Image
import streamlit as st

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from images.codec import BinaryImage  # noqa: E402
from wizard.navigation_types import SubmissionResult  # noqa: E402


@dataclass
class _SessionDict(dict[str, object]):
    """Lightweight replacement for ``st.session_state`` during tests."""

    def clear(self) -> None:  # type: ignore[override]
        super().clear()


@pytest.fixture(autouse=True)
def _stub_streamlit_session_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace Streamlit's runtime-bound session state with a plain dictionary."""

    session_state = _SessionDict()
    monkeypatch.setattr(st, "session_state", session_state, raising=False)
    yield


def build_image(
    width: int = 400,
    height: int = 400,
    *,
    fmt: str = "PNG",
    mime_type: str = "image/png",
    name: str = "photo.png",
    color: tuple[int, int, int] = (200, 80, 120),
) -> BinaryImage:
    """Return an in-memory image handle of the given size."""

    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return BinaryImage(name=name, mime_type=mime_type, data=buffer.getvalue())


@pytest.fixture
def make_image() -> Callable[..., BinaryImage]:
    return build_image


class RecordingSubmissionClient:
    """Submission collaborator double that replays scripted outcomes."""

    def __init__(self, *outcomes: SubmissionResult | Exception) -> None:
        self._outcomes = list(outcomes) or [SubmissionResult(success=True)]
        self.payloads: list[Mapping[str, Any]] = []

    async def submit(self, payload: Mapping[str, Any]) -> SubmissionResult:
        self.payloads.append(payload)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def submission_client() -> RecordingSubmissionClient:
    return RecordingSubmissionClient()
