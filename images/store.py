"""Session-scoped store that keeps profile photos alive across wizard steps.

Photos are held as data-URI strings in a fixed number of slots. Slot 0 is
the main photo. Binary handles are rebuilt on demand, so navigation between
steps never loses ordering or the main-photo designation.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Sequence

import config
from core.errors import ImageEncodingError, WizardStateError
from images.codec import BinaryImage, EncodedImage, decode, encode, extension_for, mime_type_of
from images.validator import normalize_slots

logger = logging.getLogger(__name__)


def _slot_name(position: int, encoded: EncodedImage) -> str:
    return f"image_{position}.{extension_for(mime_type_of(encoded))}"


def _encode_checked(handle: Any) -> EncodedImage | None:
    encoded = encode(handle)
    if encoded is not None:
        # Pass-through strings are only trusted once they decode cleanly.
        decode(encoded)
    return encoded


class ImagePersistenceStore:
    """Own the ordered photo slots of one wizard session.

    The slot count never changes. Photos that fail to convert are dropped
    from a batch and the remaining ones close up behind slot 0.
    """

    def __init__(self, *, max_images: int | None = None) -> None:
        self._max_images = max_images or config.MAX_IMAGES
        self._slots: list[EncodedImage | None] = [None] * self._max_images
        self._ready = False
        self._reconciling = False
        self._closed = False
        self._generation = 0
        self._open_handles = 0

    @property
    def max_images(self) -> int:
        return self._max_images

    @property
    def ready(self) -> bool:
        """``False`` until the first batch of photos has been converted."""

        return self._ready

    @property
    def is_reconciling(self) -> bool:
        return self._reconciling

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def open_handles(self) -> int:
        """Number of renderable handles acquired and not yet released."""

        return self._open_handles

    @property
    def count(self) -> int:
        return sum(1 for slot in self._slots if slot is not None)

    @property
    def has_images(self) -> bool:
        return self.count > 0

    def __len__(self) -> int:
        return len(self._slots)

    def _check_position(self, position: int) -> None:
        if not 0 <= position < self._max_images:
            raise IndexError(f"Image slot {position} outside 0..{self._max_images - 1}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise WizardStateError("Image store has been closed")

    async def _convert(self, position: int, handle: Any) -> EncodedImage | None:
        if handle is None:
            return None
        try:
            return await asyncio.to_thread(_encode_checked, handle)
        except (ImageEncodingError, ValueError, OSError) as exc:
            logger.warning("Dropping image in slot %d: %s", position, exc)
            return None

    async def initialize(self, handles: Sequence[Any] | None = None) -> None:
        """Load the first batch of photos and mark the store ready.

        With no photos the store is ready at once; otherwise every entry is
        converted before ``ready`` flips.
        """

        self._ensure_open()
        if self._ready:
            return
        if not handles or all(handle is None for handle in handles):
            self._ready = True
            return
        await self.reconcile(handles)

    async def reconcile(self, handles: Iterable[Any] | None) -> list[EncodedImage]:
        """Replace the slots with ``handles`` converted to encoded form.

        ``None`` and unconvertible entries are dropped and the remaining photos
        fill the slots in order, so one corrupt entry never leaves the main
        slot empty. A call made while another is in flight is ignored and
        returns the current photos.
        """

        self._ensure_open()
        if self._reconciling:
            logger.warning("Image reconcile already in progress; ignoring overlapping call")
            return self.encoded()

        candidates = [handle for handle in handles or [] if handle is not None]
        if len(candidates) > self._max_images:
            logger.warning(
                "Received %d images for %d slots; extra images ignored",
                len(candidates),
                self._max_images,
            )
            candidates = candidates[: self._max_images]

        generation = self._generation
        self._reconciling = True
        try:
            converted = await asyncio.gather(
                *(self._convert(position, handle) for position, handle in enumerate(candidates))
            )
        finally:
            self._reconciling = False

        if self._closed or generation != self._generation:
            logger.info("Discarding image conversion results for a closed store")
            return []

        kept = [value for value in converted if value is not None]
        self._slots = normalize_slots(kept, self._max_images)
        self._ready = True
        logger.debug("Reconciled %d images", self.count)
        return self.encoded()

    def encoded(self) -> list[EncodedImage]:
        """Return the non-empty encoded photos in slot order."""

        return [slot for slot in self._slots if slot is not None]

    def snapshot(self) -> list[EncodedImage | None]:
        """Return a copy of every slot including empty ones."""

        return list(self._slots)

    def restore(self, slots: Sequence[EncodedImage | None] | None) -> None:
        """Load previously snapshotted slots, dropping entries that no longer decode."""

        self._ensure_open()
        restored: list[EncodedImage | None] = []
        for position, value in enumerate(normalize_slots(slots, self._max_images)):
            if value is None:
                restored.append(None)
                continue
            try:
                restored.append(_encode_checked(value))
            except ImageEncodingError as exc:
                logger.warning("Dropping restored image in slot %d: %s", position, exc)
                restored.append(None)
        self._slots = restored
        self._ready = True

    def to_binary_handles(self) -> list[BinaryImage]:
        """Rebuild binary handles for the non-empty slots, in slot order."""

        return [
            decode(value, _slot_name(position, value))
            for position, value in enumerate(self._slots)
            if value is not None
        ]

    def slots(self) -> list[BinaryImage | None]:
        """Rebuild every slot, keeping empty positions as ``None``."""

        return [
            decode(value, _slot_name(position, value)) if value is not None else None
            for position, value in enumerate(self._slots)
        ]

    def get(self, position: int) -> EncodedImage | None:
        self._check_position(position)
        return self._slots[position]

    def set_slot(self, position: int, handle: Any) -> bool:
        """Store ``handle`` in ``position``; returns ``False`` when it cannot be encoded."""

        self._ensure_open()
        if self._reconciling:
            raise WizardStateError("Image reconcile in progress; slot update refused")
        self._check_position(position)
        try:
            encoded = _encode_checked(handle)
        except (ImageEncodingError, ValueError, OSError) as exc:
            logger.warning("Could not store image in slot %d: %s", position, exc)
            return False
        self._slots[position] = encoded
        self._ready = True
        return True

    def swap(self, position_a: int, position_b: int) -> None:
        """Exchange two slots, empty ones included."""

        self._ensure_open()
        self._check_position(position_a)
        self._check_position(position_b)
        if position_a == position_b:
            return
        self._slots[position_a], self._slots[position_b] = self._slots[position_b], self._slots[position_a]

    def promote_to_main(self, position: int) -> None:
        self.swap(0, position)

    def remove_at(self, position: int) -> None:
        """Empty ``position`` without shifting later slots."""

        self._ensure_open()
        self._check_position(position)
        self._slots[position] = None

    def move(self, source: int, target: int) -> None:
        """Move the photo at ``source`` to ``target``, shifting the ones in between."""

        self._ensure_open()
        self._check_position(source)
        self._check_position(target)
        if source == target:
            return
        value = self._slots.pop(source)
        self._slots.insert(target, value)

    @contextmanager
    def renderable(self, position: int) -> Iterator[str | None]:
        """Acquire a displayable data URI for ``position`` and release it on exit."""

        self._check_position(position)
        value = self._slots[position]
        self._open_handles += 1
        try:
            yield value
        finally:
            self._open_handles -= 1

    def close(self) -> None:
        """Tear the store down; conversions still in flight are discarded."""

        if self._closed:
            return
        self._closed = True
        self._generation += 1
        if self._open_handles:
            logger.warning("Closing image store with %d renderable handles still open", self._open_handles)


__all__ = ["ImagePersistenceStore"]
