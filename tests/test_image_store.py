from __future__ import annotations

import asyncio

import pytest

from core.errors import WizardStateError
from images.codec import decode, encode
from images.store import ImagePersistenceStore


def _images(make_image, count: int) -> list:
    return [make_image(name=f"p{index}.png", color=(index * 40, 10, 10)) for index in range(count)]


def test_initialize_without_images_is_ready_immediately() -> None:
    store = ImagePersistenceStore(max_images=3)

    asyncio.run(store.initialize())

    assert store.ready
    assert store.snapshot() == [None, None, None]


def test_reconcile_drops_bad_entries_and_closes_gaps(make_image) -> None:
    store = ImagePersistenceStore(max_images=5)
    first, second = _images(make_image, 2)

    encoded = asyncio.run(
        store.reconcile([first, "data:image/png;base64,@@@", None, object(), second])
    )

    assert store.ready
    assert len(store) == 5
    assert encoded == [encode(first), encode(second)]
    assert store.snapshot() == [encode(first), encode(second), None, None, None]


def test_corrupt_main_photo_is_replaced_by_next_valid_one(make_image) -> None:
    store = ImagePersistenceStore(max_images=5)
    photo = _images(make_image, 1)[0]

    asyncio.run(store.reconcile(["data:image/png;base64,@@@", photo]))

    assert store.get(0) == encode(photo)
    assert store.count == 1


def test_reconcile_truncates_extra_images(make_image) -> None:
    store = ImagePersistenceStore(max_images=2)

    asyncio.run(store.reconcile(_images(make_image, 4)))

    assert len(store) == 2
    assert store.count == 2


def test_rebuilt_handles_match_original_bytes(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    originals = _images(make_image, 2)
    asyncio.run(store.reconcile([originals[0], None, originals[1]]))

    handles = store.to_binary_handles()

    assert [handle.data for handle in handles] == [image.data for image in originals]
    assert [handle.name for handle in handles] == ["image_0.png", "image_1.png"]
    assert store.slots()[2] is None


def test_swap_exchanges_exactly_two_slots(make_image) -> None:
    store = ImagePersistenceStore(max_images=4)
    asyncio.run(store.reconcile(_images(make_image, 3)))
    before = store.snapshot()

    store.swap(0, 2)

    after = store.snapshot()
    assert after[0] == before[2]
    assert after[2] == before[0]
    assert after[1] == before[1]
    assert after[3] is None


def test_promote_and_swap_with_empty_slot(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    image = _images(make_image, 1)[0]
    store.set_slot(2, image)

    store.promote_to_main(2)

    assert store.get(0) == encode(image)
    assert store.get(2) is None


def test_remove_does_not_shift_later_slots(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    asyncio.run(store.reconcile(_images(make_image, 3)))
    tail = store.get(2)

    store.remove_at(1)

    assert store.snapshot()[1] is None
    assert store.get(2) == tail
    assert store.count == 2


def test_move_reorders_slots(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    asyncio.run(store.reconcile(_images(make_image, 3)))
    original = store.snapshot()

    store.move(0, 2)

    assert store.snapshot() == [original[1], original[2], original[0]]


def test_positions_are_bounds_checked() -> None:
    store = ImagePersistenceStore(max_images=2)

    with pytest.raises(IndexError):
        store.swap(0, 2)
    with pytest.raises(IndexError):
        store.get(-1)


def test_set_slot_rejects_undecodable_input() -> None:
    store = ImagePersistenceStore(max_images=2)

    assert store.set_slot(0, "not-an-image") is False
    assert store.get(0) is None


def test_overlapping_reconcile_is_ignored(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    first_batch = _images(make_image, 2)

    async def _scenario() -> tuple[list[str], list[str]]:
        running = asyncio.create_task(store.reconcile(first_batch))
        while not store.is_reconciling:
            await asyncio.sleep(0)
        overlapping = await store.reconcile(_images(make_image, 3))
        return overlapping, await running

    overlapping, finished = asyncio.run(_scenario())

    assert overlapping == []
    assert finished == [encode(image) for image in first_batch]
    assert store.count == 2


def test_set_slot_refused_while_reconciling(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    late = _images(make_image, 1)[0]

    async def _scenario() -> list[str]:
        running = asyncio.create_task(store.reconcile(_images(make_image, 2)))
        while not store.is_reconciling:
            await asyncio.sleep(0)
        with pytest.raises(WizardStateError):
            store.set_slot(2, late)
        return await running

    assert len(asyncio.run(_scenario())) == 2
    assert store.get(2) is None


def test_close_discards_in_flight_conversions(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)

    async def _scenario() -> list[str]:
        running = asyncio.create_task(store.reconcile(_images(make_image, 2)))
        while not store.is_reconciling:
            await asyncio.sleep(0)
        store.close()
        return await running

    assert asyncio.run(_scenario()) == []
    assert store.closed
    assert store.snapshot() == [None, None, None]
    with pytest.raises(WizardStateError):
        store.set_slot(0, _images(make_image, 1)[0])


def test_renderable_handles_are_released(make_image) -> None:
    store = ImagePersistenceStore(max_images=2)
    image = _images(make_image, 1)[0]
    store.set_slot(0, image)

    with store.renderable(0) as uri:
        assert store.open_handles == 1
        assert decode(uri).data == image.data

    assert store.open_handles == 0


def test_restore_drops_entries_that_no_longer_decode(make_image) -> None:
    store = ImagePersistenceStore(max_images=3)
    good = encode(_images(make_image, 1)[0])

    store.restore([good, "data:image/png;base64,@@@"])

    assert store.ready
    assert store.snapshot() == [good, None, None]
