"""Tests for story_builder.structure — chapter phase partitioning."""

import pytest

from story_builder.structure import (
    UNCLASSIFIED,
    InvalidArgumentError,
    estimate_chapter_length,
    phase_key_of,
    phase_keys,
    phase_name_for_key,
    phase_of,
    plan_structure,
    reading_minutes,
)


def _chapters(phases) -> list[list[int]]:
    return [p.chapters for p in phases]


# ── Kishotenketsu ───────────────────────────────────────────


class TestKishotenketsu:
    def test_eight_chapters_split_evenly(self) -> None:
        phases = plan_structure(8, "kishotenketsu")
        assert _chapters(phases) == [[1, 2], [3, 4], [5, 6], [7, 8]]

    def test_remainder_lands_in_last_phase(self) -> None:
        phases = plan_structure(10, "kishotenketsu")
        assert _chapters(phases) == [[1, 2, 3], [4, 5, 6], [7, 8, 9], [10]]

    def test_three_chapters_leave_last_phase_empty(self) -> None:
        phases = plan_structure(3, "kishotenketsu")
        assert _chapters(phases) == [[1], [2], [3], []]

    def test_names_and_keys(self) -> None:
        phases = plan_structure(4, "kishotenketsu")
        assert [p.name for p in phases] == ["起", "承", "転", "結"]
        assert [p.key for p in phases] == ["ki", "sho", "ten", "ketsu"]
        assert all(p.description for p in phases)

    def test_two_chapters_never_exceed_range(self) -> None:
        # base = 1: 起 [1], 承 [2], 転 would be [3] but chapter 3 does not exist
        phases = plan_structure(2, "kishotenketsu")
        assert _chapters(phases) == [[1], [2], [], []]

    def test_five_chapters(self) -> None:
        # base = 2 covers 6 chapters; the last phase has a negative size
        phases = plan_structure(5, "kishotenketsu")
        assert _chapters(phases) == [[1, 2], [3, 4], [5], []]


# ── Three-act ───────────────────────────────────────────────


class TestThreeAct:
    def test_ten_chapters(self) -> None:
        phases = plan_structure(10, "three-act")
        assert _chapters(phases) == [[1, 2, 3], [4, 5, 6, 7, 8], [9, 10]]

    def test_names_and_keys(self) -> None:
        phases = plan_structure(10, "three-act")
        assert [p.name for p in phases] == ["第一幕", "第二幕", "第三幕"]
        assert [p.key for p in phases] == ["act1", "act2", "act3"]

    def test_one_chapter(self) -> None:
        # act1 = 1, act2 = 1, act3 = -1
        phases = plan_structure(1, "three-act")
        assert _chapters(phases) == [[1], [], []]

    def test_two_chapters(self) -> None:
        phases = plan_structure(2, "three-act")
        assert _chapters(phases) == [[1], [2], []]


# ── Partition property ──────────────────────────────────────


@pytest.mark.parametrize("structure", ["kishotenketsu", "three-act"])
def test_phases_partition_every_total(structure: str) -> None:
    for total in range(1, 201):
        phases = plan_structure(total, structure)
        flat = [n for p in phases for n in p.chapters]
        assert flat == list(range(1, total + 1)), total
        # only the final phase may be empty
        for phase in phases[:-1]:
            if not phase.chapters:
                assert all(not p.chapters for p in phases[phases.index(phase):]), total
        # each phase is contiguous
        for phase in phases:
            if phase.chapters:
                assert phase.chapters == list(range(phase.chapters[0], phase.chapters[-1] + 1))


@pytest.mark.parametrize("structure", ["kishotenketsu", "three-act"])
def test_every_chapter_is_classified(structure: str) -> None:
    for total in range(1, 201):
        phases = plan_structure(total, structure)
        for n in range(1, total + 1):
            assert phase_of(phases, n) != UNCLASSIFIED


def test_plan_is_deterministic() -> None:
    assert plan_structure(37, "three-act") == plan_structure(37, "three-act")


# ── Lookup ──────────────────────────────────────────────────


def test_phase_of_returns_name() -> None:
    phases = plan_structure(10, "kishotenketsu")
    assert phase_of(phases, 1) == "起"
    assert phase_of(phases, 6) == "承"
    assert phase_of(phases, 9) == "転"
    assert phase_of(phases, 10) == "結"


def test_phase_of_out_of_range_is_unclassified() -> None:
    phases = plan_structure(10, "kishotenketsu")
    assert phase_of(phases, 0) == UNCLASSIFIED
    assert phase_of(phases, 11) == UNCLASSIFIED
    assert phase_of(phases, -3) == UNCLASSIFIED


def test_phase_key_of() -> None:
    phases = plan_structure(10, "three-act")
    assert phase_key_of(phases, 5) == "act2"
    assert phase_key_of(phases, 42) is None


def test_phase_keys_and_names() -> None:
    assert phase_keys("three-act") == ["act1", "act2", "act3"]
    assert phase_name_for_key("ten") == "転"
    assert phase_name_for_key("act3") == "第三幕"
    assert phase_name_for_key("prologue") == UNCLASSIFIED


# ── Edge cases and errors ───────────────────────────────────


@pytest.mark.parametrize("total", [0, -1, -10])
@pytest.mark.parametrize("structure", ["kishotenketsu", "three-act"])
def test_non_positive_total_gives_empty_phases(total: int, structure: str) -> None:
    phases = plan_structure(total, structure)
    assert phases
    assert all(p.chapters == [] for p in phases)
    assert phase_of(phases, 1) == UNCLASSIFIED


def test_unknown_structure() -> None:
    with pytest.raises(InvalidArgumentError):
        plan_structure(10, "hero-journey")
    with pytest.raises(InvalidArgumentError):
        phase_keys("hero-journey")


def test_invalid_argument_is_value_error() -> None:
    with pytest.raises(ValueError):
        plan_structure(10, "")


# ── Estimates ───────────────────────────────────────────────


def test_estimate_chapter_length() -> None:
    assert estimate_chapter_length(50000, 20) == (2500, 10)


def test_estimate_rounds_up() -> None:
    # 10001 / 4 = 2500.25 → 2501 words; 2501 / 250 = 10.004 → 11 minutes
    assert estimate_chapter_length(10001, 4) == (2501, 11)


def test_estimate_short_chapter_takes_at_least_a_minute() -> None:
    assert estimate_chapter_length(10, 10) == (1, 1)


@pytest.mark.parametrize("length,total", [(50000, 0), (50000, -2), (0, 10), (-5, 10)])
def test_estimate_rejects_non_positive(length: int, total: int) -> None:
    with pytest.raises(InvalidArgumentError):
        estimate_chapter_length(length, total)


def test_reading_minutes() -> None:
    assert reading_minutes("") == 0
    assert reading_minutes("あ" * 400) == 1
    assert reading_minutes("あ" * 401) == 2
