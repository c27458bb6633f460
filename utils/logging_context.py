"""Per-session logging context for the profile wizard.

Every log record carries ``session_id``, ``wizard_id``, and ``wizard_step``
attributes so a single Streamlit session can be followed through the logs.
Values live in context variables, which ``asyncio`` copies into each task.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from types import MappingProxyType
from typing import Iterator, Mapping

_PLACEHOLDER = "-"
_DEFAULT_LOG_FORMAT = (
    "%(asctime)s %(levelname)s [session=%(session_id)s wizard=%(wizard_id)s "
    "step=%(wizard_step)s] %(name)s: %(message)s"
)

_CONTEXT_VARS: Mapping[str, contextvars.ContextVar[str]] = MappingProxyType(
    {
        name: contextvars.ContextVar(name, default=_PLACEHOLDER)
        for name in ("session_id", "wizard_id", "wizard_step")
    }
)
_base_record_factory = logging.getLogRecordFactory()
_factory_installed = False


def _coerce(value: object | None) -> str:
    text = "" if value is None else str(value).strip()
    return text or _PLACEHOLDER


def _stamp(record: logging.LogRecord) -> logging.LogRecord:
    for name, var in _CONTEXT_VARS.items():
        setattr(record, name, var.get())
    return record


class _ContextFilter(logging.Filter):
    """Stamp records that bypass the record factory (e.g. re-emitted ones)."""

    def filter(self, record: logging.LogRecord) -> bool:
        _stamp(record)
        return True


def _context_record_factory(*args: object, **kwargs: object) -> logging.LogRecord:
    return _stamp(_base_record_factory(*args, **kwargs))


def configure_logging(*, level: int = logging.INFO) -> None:
    """Install the context-aware record factory and root formatting once."""

    global _factory_installed
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_DEFAULT_LOG_FORMAT)
    for handler in root.handlers:
        if handler.formatter is None:
            handler.setFormatter(logging.Formatter(_DEFAULT_LOG_FORMAT))
    if not any(isinstance(flt, _ContextFilter) for flt in root.filters):
        root.addFilter(_ContextFilter())
    if not _factory_installed:
        logging.setLogRecordFactory(_context_record_factory)
        _factory_installed = True


def set_session_id(session_id: str | None) -> None:
    """Bind the Streamlit session id for the rest of this context."""

    configure_logging()
    _CONTEXT_VARS["session_id"].set(_coerce(session_id))


def set_wizard_step(step: int | str | None) -> None:
    _CONTEXT_VARS["wizard_step"].set(_coerce(step))


def current_wizard_step() -> str:
    return _CONTEXT_VARS["wizard_step"].get()


@contextmanager
def log_context(
    *,
    session_id: str | None = None,
    wizard_id: str | None = None,
    wizard_step: int | str | None = None,
) -> Iterator[None]:
    """Override context values for the duration of the ``with`` block."""

    overrides = {"session_id": session_id, "wizard_id": wizard_id, "wizard_step": wizard_step}
    tokens = [
        (_CONTEXT_VARS[name], _CONTEXT_VARS[name].set(_coerce(value)))
        for name, value in overrides.items()
        if value is not None
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


__all__ = [
    "configure_logging",
    "current_wizard_step",
    "log_context",
    "set_session_id",
    "set_wizard_step",
]
