from __future__ import annotations

from constants.keys import ProfileFields as F
from wizard.step_registry import (
    CATEGORY_BRANCHES,
    TOTAL_STEPS,
    WIZARD_STEPS,
    Category,
    all_branch_fields,
    branch_for,
    fields_exclusive_to_other_branches,
    get_step,
    resolve_category,
)


def test_steps_are_numbered_in_order() -> None:
    assert TOTAL_STEPS == 4
    assert [step.index for step in WIZARD_STEPS] == [1, 2, 3, 4]
    assert [step.key for step in WIZARD_STEPS] == ["basic", "characteristics", "preferences", "configuration"]


def test_step_lookups() -> None:
    assert get_step(3) is WIZARD_STEPS[2]
    assert get_step(0) is None
    assert get_step(5) is None


def test_fields_belong_to_exactly_one_step() -> None:
    seen: dict[str, int] = {}
    for step in WIZARD_STEPS:
        for field in step.fields:
            assert field not in seen, f"{field} owned by steps {seen.get(field)} and {step.index}"
            seen[field] = step.index


def test_every_category_has_a_branch() -> None:
    assert set(CATEGORY_BRANCHES) == set(Category)
    assert branch_for("SPIRIT").required_fields == (F.RELIGION_ID,)
    assert branch_for("ESSENCE").fields == ()
    assert branch_for(None) is None


def test_resolve_category_normalises_input() -> None:
    assert resolve_category(" rouse ") is Category.ROUSE
    assert resolve_category(Category.SPIRIT) is Category.SPIRIT
    assert resolve_category("GOLD") is None
    assert resolve_category(3) is None


def test_branch_fields_are_hosted_by_preferences_step() -> None:
    assert F.RELIGION_ID in all_branch_fields()
    assert [step.key for step in WIZARD_STEPS if step.hosts_category_branch] == ["preferences"]


def test_exclusive_fields_of_other_branches() -> None:
    spirit_only = {F.RELIGION_ID, F.CHURCH, F.SPIRITUAL_MOMENTS, F.SPIRITUAL_PRACTICES}
    rouse_only = {F.SEXUAL_ROLE_ID, F.RELATIONSHIP_TYPE_ID}

    assert set(fields_exclusive_to_other_branches("ROUSE")) == spirit_only
    assert set(fields_exclusive_to_other_branches("SPIRIT")) == rouse_only
    assert set(fields_exclusive_to_other_branches("ESSENCE")) == spirit_only | rouse_only
    assert set(fields_exclusive_to_other_branches(None)) == spirit_only | rouse_only
