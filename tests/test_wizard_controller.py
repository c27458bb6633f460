from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

import pytest

from constants.keys import ProfileFields as F
from constants.keys import StateKeys
from core.errors import ErrorKind, SubmissionError, WizardStateError
from images.codec import BinaryImage, encode
from wizard.navigation.router import WizardController
from wizard.navigation_types import Option, SubmissionResult

from conftest import RecordingSubmissionClient

BASIC_FIELDS: dict[str, Any] = {
    F.NAME: "Ana",
    F.LAST_NAME: "Pérez",
    F.DOCUMENT: "1234567",
    F.PHONE: "3001234567",
    F.BIRTH_DATE: date(1990, 5, 17),
}
CHARACTERISTICS_FIELDS: dict[str, Any] = {
    F.DESCRIPTION: "Me gusta caminar por la montaña",
    F.GENDER_ID: "2",
    F.TAGS: ["música", "viajes"],
}
PREFERENCE_FIELDS: dict[str, Any] = {
    F.AGE_PREFERENCE_MIN: 25,
    F.AGE_PREFERENCE_MAX: 40,
}


def _controller(client: RecordingSubmissionClient, session: dict[str, Any] | None = None) -> WizardController:
    return WizardController(
        submission_client=client,
        session_state=session if session is not None else {},
        max_images=5,
    )


def _fill(controller: WizardController, values: dict[str, Any]) -> None:
    for name, value in values.items():
        controller.set_field(name, value)


async def _complete_basic(controller: WizardController, image: BinaryImage) -> None:
    _fill(controller, BASIC_FIELDS)
    assert await controller.add_image(0, image) is None
    assert (await controller.advance()).moved


async def _reach_last_step(controller: WizardController, image: BinaryImage, category: str = "ESSENCE") -> None:
    await _complete_basic(controller, image)
    _fill(controller, CHARACTERISTICS_FIELDS)
    assert (await controller.advance()).moved
    controller.set_category(category)
    _fill(controller, PREFERENCE_FIELDS)
    assert (await controller.advance()).moved


def test_happy_path_submits_mapped_payload(make_image, submission_client) -> None:
    controller = _controller(submission_client)
    photo = make_image(640, 640)

    async def _scenario() -> SubmissionResult:
        await _reach_last_step(controller, photo)
        assert controller.snapshot().can_submit
        return await controller.submit()

    result = asyncio.run(_scenario())

    assert result.success
    assert controller.submitted
    payload = submission_client.payloads[0]
    assert payload["name"] == "Ana"
    assert payload["lastName"] == "Pérez"
    assert payload["phone"] == "+573001234567"
    assert payload["dateOfBirth"] == "1990-05-17"
    assert payload["genderId"] == 2
    assert payload["categoryInterest"] == "ESSENCE"
    assert payload["relationshipId"] is None
    assert [image.data for image in payload["images"]] == [photo.data]
    assert payload["images"][0].name == "image_0.png"


def test_successful_submission_resets_and_locks_the_wizard(make_image, submission_client) -> None:
    session: dict[str, Any] = {}
    controller = _controller(submission_client, session)

    async def _scenario() -> None:
        await _reach_last_step(controller, make_image())
        await controller.submit()

    asyncio.run(_scenario())

    snapshot = controller.snapshot()
    assert snapshot.submitted
    assert not snapshot.can_submit
    assert not snapshot.can_advance
    assert controller.record[F.NAME] == ""
    assert controller.image_store.count == 0
    assert "wiz:default:wizard_snapshot" not in session
    with pytest.raises(WizardStateError):
        asyncio.run(controller.submit())
    with pytest.raises(WizardStateError):
        controller.set_field(F.NAME, "Otra")


def test_advance_is_blocked_by_current_step_errors_only(submission_client) -> None:
    controller = _controller(submission_client)

    result = asyncio.run(controller.advance())

    assert not result.moved
    assert result.step == 1
    blocked = {error.field for error in result.errors}
    assert {F.NAME, F.LAST_NAME, F.DOCUMENT, F.PHONE, F.BIRTH_DATE, F.IMAGES} <= blocked
    assert F.DESCRIPTION not in blocked
    snapshot = controller.snapshot()
    assert not snapshot.can_advance
    assert snapshot.field_errors[F.NAME].kind is ErrorKind.REQUIRED


def test_setting_a_field_clears_its_error(submission_client) -> None:
    controller = _controller(submission_client)
    asyncio.run(controller.advance())

    controller.set_field(F.NAME, "Ana")

    assert F.NAME not in controller.field_errors
    assert F.LAST_NAME in controller.field_errors


def test_oversized_image_leaves_slots_unchanged(submission_client) -> None:
    controller = _controller(submission_client)
    oversized = BinaryImage(name="huge.jpg", mime_type="image/jpeg", data=b"\xff" * (8 * 1024 * 1024))

    error = asyncio.run(controller.add_image(0, oversized))

    assert error is not None
    assert error.kind is ErrorKind.SIZE
    assert controller.image_store.snapshot() == [None] * 5
    assert controller.snapshot().slot_errors[0].kind is ErrorKind.SIZE


def test_undersized_image_is_rejected(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    error = asyncio.run(controller.add_image(2, make_image(200, 200)))

    assert error is not None
    assert error.kind is ErrorKind.DIMENSION
    assert error.field == "image2"
    assert controller.image_store.get(2) is None


def test_valid_image_clears_previous_slot_error(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    async def _scenario() -> None:
        await controller.add_image(1, make_image(100, 100))
        assert "image1" in controller.field_errors
        assert await controller.add_image(1, make_image()) is None

    asyncio.run(_scenario())

    assert "image1" not in controller.field_errors
    assert controller.image_store.get(1) is not None


def test_add_image_rejects_out_of_range_slot(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    with pytest.raises(IndexError):
        asyncio.run(controller.add_image(5, make_image()))


def test_retreat_never_validates(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    async def _scenario() -> None:
        await _complete_basic(controller, make_image())
        blocked = await controller.advance()
        assert not blocked.moved

    asyncio.run(_scenario())
    assert F.DESCRIPTION in controller.field_errors

    result = controller.retreat()

    assert result.moved
    assert controller.current_step == 1
    assert controller.retreat().moved is False


def test_images_survive_navigation(make_image, submission_client) -> None:
    controller = _controller(submission_client)
    main, extra = make_image(name="main.png"), make_image(name="extra.png", color=(1, 2, 3))

    async def _scenario() -> None:
        _fill(controller, BASIC_FIELDS)
        await controller.add_image(0, main)
        await controller.add_image(3, extra)
        assert (await controller.advance()).moved

    asyncio.run(_scenario())
    controller.retreat()

    images = controller.snapshot().images
    assert len(images) == 5
    assert images[0].data == main.data
    assert images[3].data == extra.data
    assert images[1] is None


def test_image_reordering(make_image, submission_client) -> None:
    controller = _controller(submission_client)
    first, second = make_image(color=(10, 10, 10)), make_image(color=(20, 20, 20))

    async def _scenario() -> None:
        await controller.add_image(0, first)
        await controller.add_image(2, second)

    asyncio.run(_scenario())
    controller.promote_image(2)

    assert controller.snapshot().images[0].data == second.data
    assert controller.snapshot().images[2].data == first.data

    controller.remove_image(0)
    assert controller.image_store.get(0) is None
    assert controller.image_store.get(2) is not None

    controller.move_image(2, 0)
    assert controller.snapshot().images[0].data == first.data


def test_promoted_photo_blocks_advance_without_main(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    async def _scenario():
        _fill(controller, BASIC_FIELDS)
        await controller.add_image(1, make_image())
        return await controller.advance()

    result = asyncio.run(_scenario())

    assert not result.moved
    assert [(error.field, error.kind) for error in result.errors] == [("profileImage", ErrorKind.REQUIRED)]


def test_set_images_replaces_every_slot(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    encoded = asyncio.run(controller.set_images([make_image(), None, "garbage"]))

    assert len(encoded) == 1
    assert controller.image_store.count == 1
    with pytest.raises(WizardStateError):
        controller.set_field(F.IMAGES, [])


def test_corrupt_first_photo_does_not_block_basic_step(make_image, submission_client) -> None:
    controller = _controller(submission_client)
    photo = make_image()

    async def _scenario() -> bool:
        await controller.set_images(["data:image/png;base64,@@@", photo])
        _fill(controller, BASIC_FIELDS)
        return (await controller.advance()).moved

    assert asyncio.run(_scenario())
    assert controller.image_store.get(0) == encode(photo)
    assert controller.image_store.count == 1


def test_add_image_refused_while_photos_are_loading(
    make_image, submission_client, monkeypatch: pytest.MonkeyPatch
) -> None:
    controller = _controller(submission_client)
    batch = [make_image(name="a.png"), make_image(name="b.png", color=(0, 0, 0))]
    pending: list[asyncio.Task[list[str]]] = []

    async def _probe_during_batch(handle: Any, constraints: Any, *, slot: int | None = None) -> None:
        pending.append(asyncio.create_task(controller.set_images(batch)))
        while not controller.image_store.is_reconciling:
            await asyncio.sleep(0)
        return None

    monkeypatch.setattr("wizard.navigation.router.validate_image", _probe_during_batch)

    async def _scenario() -> tuple[Any, list[str]]:
        error = await controller.add_image(0, make_image(name="late.png", color=(9, 9, 9)))
        return error, await pending[0]

    error, encoded = asyncio.run(_scenario())

    assert error is not None
    assert error.field == "image0"
    assert len(encoded) == 2
    assert controller.image_store.count == 2


def test_category_change_resets_other_branch_fields(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    async def _scenario() -> None:
        await _complete_basic(controller, make_image())
        _fill(controller, CHARACTERISTICS_FIELDS)
        await controller.advance()
        controller.set_category("SPIRIT")
        blocked = await controller.advance()
        assert {error.field for error in blocked.errors} == {F.RELIGION_ID}

    asyncio.run(_scenario())
    controller.set_field(F.CHURCH, "San José")

    controller.set_field(F.CATEGORY_INTEREST, "rouse")

    assert controller.record[F.CATEGORY_INTEREST] == "ROUSE"
    assert controller.record[F.CHURCH] == ""
    assert controller.record[F.RELIGION_ID] == ""
    assert F.RELIGION_ID not in controller.field_errors

    blocked = asyncio.run(controller.advance())
    assert {error.field for error in blocked.errors} == {F.SEXUAL_ROLE_ID, F.RELATIONSHIP_TYPE_ID}


def test_reselecting_same_category_keeps_branch_values(submission_client) -> None:
    controller = _controller(submission_client)
    controller.set_category("SPIRIT")
    controller.set_field(F.RELIGION_ID, 4)

    controller.set_category("SPIRIT")

    assert controller.record[F.RELIGION_ID] == 4


def test_submit_before_last_step_is_rejected(submission_client) -> None:
    controller = _controller(submission_client)

    with pytest.raises(WizardStateError):
        asyncio.run(controller.submit())
    assert submission_client.payloads == []


def test_failed_submission_keeps_record_and_can_retry(make_image) -> None:
    client = RecordingSubmissionClient(SubmissionError("Servicio caído"), SubmissionResult(success=True))
    controller = _controller(client)

    async def _scenario() -> tuple[SubmissionResult, SubmissionResult]:
        await _reach_last_step(controller, make_image())
        failed = await controller.submit()
        assert controller.snapshot().submission_error == ("Servicio caído", "Servicio caído")
        assert not controller.submitting
        assert controller.record[F.NAME] == "Ana"
        return failed, await controller.submit()

    failed, retried = asyncio.run(_scenario())

    assert not failed.success
    assert retried.success
    assert len(client.payloads) == 2
    assert client.payloads[0]["images"][0].data == client.payloads[1]["images"][0].data


def test_rejected_submission_without_message_uses_generic_error(make_image) -> None:
    client = RecordingSubmissionClient(SubmissionResult(success=False))
    controller = _controller(client)

    async def _scenario() -> SubmissionResult:
        await _reach_last_step(controller, make_image())
        return await controller.submit()

    result = asyncio.run(_scenario())

    assert not result.success
    assert not controller.submitted
    assert controller.snapshot().submission_error is not None
    assert controller.snapshot().can_submit


def test_submit_validates_every_step(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    async def _scenario() -> SubmissionResult:
        await _reach_last_step(controller, make_image())
        controller.set_field(F.NAME, "")
        return await controller.submit()

    result = asyncio.run(_scenario())

    assert not result.success
    assert submission_client.payloads == []
    assert controller.field_errors[F.NAME].kind is ErrorKind.REQUIRED
    assert not controller.snapshot().can_submit


def test_snapshot_flags(submission_client) -> None:
    controller = _controller(submission_client)

    snapshot = controller.snapshot()

    assert snapshot.current_step == 1
    assert snapshot.total_steps == 4
    assert snapshot.progress == 25
    assert snapshot.is_first and not snapshot.is_last
    assert snapshot.can_advance
    assert not snapshot.can_submit
    assert snapshot.submission_error is None


def test_last_step_does_not_advance(make_image, submission_client) -> None:
    controller = _controller(submission_client)

    async def _scenario():
        await _reach_last_step(controller, make_image())
        return await controller.advance()

    result = asyncio.run(_scenario())

    assert not result.moved
    assert result.step == 4
    assert controller.is_last


def test_state_survives_controller_rebuild(make_image, submission_client) -> None:
    session: dict[str, Any] = {}
    photo = make_image()
    asyncio.run(_complete_basic(_controller(submission_client, session), photo))

    rebuilt = _controller(submission_client, session)

    assert rebuilt.current_step == 2
    assert rebuilt.record[F.NAME] == "Ana"
    assert rebuilt.snapshot().images[0].data == photo.data
    assert session[StateKeys.SCROLL_TO_TOP] is True


def test_restore_from_persisted_snapshot(make_image, submission_client) -> None:
    session: dict[str, Any] = {}
    photo = make_image()
    asyncio.run(_complete_basic(_controller(submission_client, session), photo))
    saved = session["wiz:default:wizard_snapshot"]

    restored = _controller(submission_client, {"wiz:default:wizard_snapshot": saved})

    assert restored.current_step == 2
    assert restored.record[F.NAME] == "Ana"
    assert restored.record[F.BIRTH_DATE] == "1990-05-17"
    assert restored.image_store.get(0) is not None
    assert restored.image_store.to_binary_handles()[0].data == photo.data


def test_wizards_are_isolated_by_id(submission_client) -> None:
    session: dict[str, Any] = {}
    first = WizardController(submission_client=submission_client, session_state=session, wizard_id="a")
    second = WizardController(submission_client=submission_client, session_state=session, wizard_id="b")

    first.set_field(F.NAME, "Ana")

    assert second.record[F.NAME] == ""


def test_user_prefill(submission_client) -> None:
    controller = WizardController(
        submission_client=submission_client,
        session_state={},
        user={"name": "Luis", "profile": {"city": "Medellín", "height": None}},
    )

    assert controller.record[F.NAME] == "Luis"
    assert controller.record[F.CITY] == "Medellín"
    assert controller.record[F.HEIGHT] == 170


def test_options_delegate_to_reference_data(submission_client) -> None:
    class _Provider:
        def __init__(self) -> None:
            self.calls: list[tuple[str, object]] = []

        def options(self, kind: str, *, parent=None):
            self.calls.append((kind, parent))
            return (Option(id=1, label="Colombia"),)

    provider = _Provider()
    with_provider = WizardController(
        submission_client=submission_client,
        reference_data=provider,
        session_state={},
    )
    without_provider = _controller(submission_client)

    assert with_provider.options("country") == (Option(id=1, label="Colombia"),)
    assert with_provider.options("city", parent=1)
    assert provider.calls == [("country", None), ("city", 1)]
    assert without_provider.options("country") == ()
