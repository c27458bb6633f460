"""Validation of candidate profile photos and of the photo slot set."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from io import BytesIO
from typing import Any, Final, Sequence, TypeVar

from PIL import Image, UnidentifiedImageError

import config
from core.errors import (
    ErrorKind,
    FieldValidationError,
    ImageEncodingError,
    ImageValidationError,
)
from images.codec import BinaryImage, as_binary_image, decode, is_binary_handle
from utils.i18n import LocalizedText

logger = logging.getLogger(__name__)

_BYTES_PER_MB: Final[int] = 1024 * 1024

_MISSING_IMAGE_ERROR: Final[LocalizedText] = ("Debes seleccionar una imagen", "Please select an image")
_INVALID_FILE_ERROR: Final[LocalizedText] = (
    "El archivo seleccionado no es válido",
    "The selected file is not valid",
)
_UNREADABLE_IMAGE_ERROR: Final[LocalizedText] = (
    "Error al validar dimensiones",
    "Could not read the image dimensions",
)
_MAIN_IMAGE_REQUIRED_ERROR: Final[LocalizedText] = (
    "La foto principal es requerida",
    "A main photo is required",
)

T = TypeVar("T")


def _max_size_default() -> float:
    return config.IMAGE_MAX_SIZE_MB


def _allowed_types_default() -> tuple[str, ...]:
    return config.ALLOWED_IMAGE_TYPES


def _min_pixels_default() -> int:
    return config.IMAGE_MIN_PIXELS


def _max_pixels_default() -> int:
    return config.IMAGE_MAX_PIXELS


@dataclass(frozen=True)
class ImageConstraints:
    """Limits applied to a single photo; defaults come from :mod:`config`."""

    max_size_mb: float = field(default_factory=_max_size_default)
    allowed_types: tuple[str, ...] = field(default_factory=_allowed_types_default)
    min_width: int = field(default_factory=_min_pixels_default)
    min_height: int = field(default_factory=_min_pixels_default)
    max_width: int = field(default_factory=_max_pixels_default)
    max_height: int = field(default_factory=_max_pixels_default)

    @property
    def max_bytes(self) -> int:
        return int(self.max_size_mb * _BYTES_PER_MB)

    def with_overrides(self, **overrides: Any) -> "ImageConstraints":
        """Return a copy with ``overrides`` applied."""

        return replace(self, **overrides)


@dataclass(frozen=True)
class ImageSetValidation:
    """Outcome of validating the photo slots as a whole."""

    is_valid: bool
    errors: tuple[FieldValidationError, ...]
    valid_count: int


@dataclass(frozen=True)
class ImageStats:
    total: int
    remaining: int


def image_error_key(slot: int) -> str:
    """Return the error key for ``slot`` (``profileImage`` for the main photo)."""

    return "profileImage" if slot == 0 else f"image{slot}"


def normalize_slots(images: Sequence[T | None] | None, max_images: int) -> list[T | None]:
    """Pad or truncate ``images`` to exactly ``max_images`` positions."""

    normalized: list[T | None] = list(images or [])
    while len(normalized) < max_images:
        normalized.append(None)
    return normalized[:max_images]


def _is_filled(value: object) -> bool:
    return value is not None and value != ""


def image_stats(images: Sequence[object | None] | None, max_images: int | None = None) -> ImageStats:
    limit = max_images or config.MAX_IMAGES
    total = sum(1 for image in normalize_slots(images, limit) if _is_filled(image))
    return ImageStats(total=total, remaining=limit - total)


def _read_dimensions(data: bytes) -> tuple[int, int]:
    # Image.open only parses the header; pixel data stays undecoded.
    with Image.open(BytesIO(data)) as img:
        width, height = img.size
    return int(width), int(height)


async def probe_dimensions(candidate: BinaryImage) -> tuple[int, int]:
    """Return ``(width, height)`` of ``candidate`` without decoding pixels."""

    return await asyncio.to_thread(_read_dimensions, candidate.data)


def _error(slot: int, message: LocalizedText, kind: ErrorKind) -> ImageValidationError:
    return ImageValidationError(field=image_error_key(slot), message=message, kind=kind, slot=slot)


def _coerce_candidate(candidate: object) -> BinaryImage | None:
    if isinstance(candidate, str):
        try:
            return decode(candidate)
        except ImageEncodingError:
            return None
    if not is_binary_handle(candidate):
        return None
    try:
        return as_binary_image(candidate)
    except (ImageEncodingError, ValueError, OSError):
        return None


async def validate_image(
    candidate: object,
    constraints: ImageConstraints | None = None,
    *,
    slot: int = 0,
) -> ImageValidationError | None:
    """Validate ``candidate`` for ``slot`` and return the first failure.

    Checks run in a fixed order and stop at the first failure: presence,
    MIME allow-list, byte size, then the pixel dimension probe. The probe is
    the only suspension point.
    """

    limits = constraints or ImageConstraints()
    if candidate is None:
        return _error(slot, _MISSING_IMAGE_ERROR, ErrorKind.REQUIRED)
    image = _coerce_candidate(candidate)
    if image is None:
        return _error(slot, _INVALID_FILE_ERROR, ErrorKind.FORMAT)

    if image.mime_type not in limits.allowed_types:
        extensions = ", ".join(dict.fromkeys(t.split("/")[-1] for t in limits.allowed_types))
        return _error(
            slot,
            (f"Solo se permiten: {extensions}", f"Only these types are allowed: {extensions}"),
            ErrorKind.FORMAT,
        )

    if image.size > limits.max_bytes:
        size_mb = image.size / _BYTES_PER_MB
        return _error(
            slot,
            (
                f"Máximo {limits.max_size_mb:g}MB. Actual: {size_mb:.1f}MB",
                f"Maximum {limits.max_size_mb:g}MB. Current: {size_mb:.1f}MB",
            ),
            ErrorKind.SIZE,
        )

    try:
        width, height = await probe_dimensions(image)
    except Image.DecompressionBombError:
        return _error(
            slot,
            (
                f"Máximo {limits.max_width}x{limits.max_height}px",
                f"Maximum {limits.max_width}x{limits.max_height}px",
            ),
            ErrorKind.DIMENSION,
        )
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.info("Could not probe image dimensions for slot %d: %s", slot, exc)
        return _error(slot, _UNREADABLE_IMAGE_ERROR, ErrorKind.FORMAT)

    if width < limits.min_width or height < limits.min_height:
        return _error(
            slot,
            (
                f"Mínimo {limits.min_width}x{limits.min_height}px",
                f"Minimum {limits.min_width}x{limits.min_height}px",
            ),
            ErrorKind.DIMENSION,
        )
    if width > limits.max_width or height > limits.max_height:
        return _error(
            slot,
            (
                f"Máximo {limits.max_width}x{limits.max_height}px",
                f"Maximum {limits.max_width}x{limits.max_height}px",
            ),
            ErrorKind.DIMENSION,
        )
    return None


def validate_image_set(
    images: Sequence[object | None],
    *,
    require_main: bool = True,
    min_images: int = 1,
    max_images: int | None = None,
) -> ImageSetValidation:
    """Validate the slot list as a whole (main photo and image count)."""

    limit = max_images or config.MAX_IMAGES
    slots = list(images)
    valid_count = sum(1 for image in slots if _is_filled(image))
    errors: list[FieldValidationError] = []

    if require_main and (not slots or not _is_filled(slots[0])):
        errors.append(_error(0, _MAIN_IMAGE_REQUIRED_ERROR, ErrorKind.REQUIRED))

    if valid_count < min_images:
        plural = "es" if min_images > 1 else ""
        errors.append(
            FieldValidationError(
                field="images",
                message=(f"Mínimo {min_images} imagen{plural}", f"At least {min_images} image(s)"),
                kind=ErrorKind.REQUIRED if valid_count == 0 else ErrorKind.RANGE,
            )
        )
    elif valid_count > limit:
        errors.append(
            FieldValidationError(
                field="images",
                message=(f"Máximo {limit} imágenes", f"At most {limit} images"),
                kind=ErrorKind.RANGE,
            )
        )

    return ImageSetValidation(is_valid=not errors, errors=tuple(errors), valid_count=valid_count)


class DragState:
    """Per-slot "is dragging" flags for drag-and-drop upload targets."""

    def __init__(self) -> None:
        self._flags: dict[int, bool] = {}

    def enter(self, slot: int) -> None:
        self._flags[slot] = True

    def leave(self, slot: int) -> None:
        self._flags[slot] = False

    def drop(self, slot: int) -> None:
        """Clear the flag for ``slot``; the dropped file is validated separately."""

        self._flags[slot] = False

    def is_dragging(self, slot: int) -> bool:
        return self._flags.get(slot, False)

    def active_slots(self) -> tuple[int, ...]:
        return tuple(sorted(slot for slot, flag in self._flags.items() if flag))


__all__ = [
    "DragState",
    "ImageConstraints",
    "ImageSetValidation",
    "ImageStats",
    "image_error_key",
    "image_stats",
    "normalize_slots",
    "probe_dimensions",
    "validate_image",
    "validate_image_set",
]
