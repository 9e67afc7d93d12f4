"""Chapter structure planning.

Splits a requested chapter count into the phases of a narrative template:

    kishotenketsu  起 / 承 / 転 / 結   base = ceil(total / 4) chapters each,
                                        remainder in 結
    three-act      第一幕 / 第二幕 / 第三幕
                                        ceil(25%) / ceil(50%) / remainder

The first phases always take their rounded-up share, so the final phase
absorbs whatever is left. For small totals that leftover can be zero or
negative, in which case the final phase is simply empty. Every range is
clipped to 1..total, so a phase never holds a chapter number that does not
exist.

Everything here is pure computation over integers.
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, Field

StructureName = Literal["kishotenketsu", "three-act"]

STRUCTURES: tuple[str, ...] = ("kishotenketsu", "three-act")

UNCLASSIFIED = "未分類"

# Characters per minute for planned chapters.
READING_SPEED = 250

# Characters per minute for finished prose (synopsis, drafts).
PROSE_READING_SPEED = 400


class InvalidArgumentError(ValueError):
    """Raised for inputs the planner cannot work with."""


class Phase(BaseModel):
    """A named, contiguous span of chapter numbers."""

    key: str
    name: str
    description: str
    chapters: list[int] = Field(default_factory=list)


# (key, name, description) per phase, in narrative order
_TEMPLATES: dict[str, list[tuple[str, str, str]]] = {
    "kishotenketsu": [
        ("ki", "起", "導入：登場人物と舞台を紹介し、物語を始める"),
        ("sho", "承", "展開：出来事を積み重ね、物語を発展させる"),
        ("ten", "転", "転換：予想外の展開で物語が大きく動く"),
        ("ketsu", "結", "結末：物語をまとめ、余韻を残す"),
    ],
    "three-act": [
        ("act1", "第一幕", "設定：世界と主人公を示し、事件が起こる"),
        ("act2", "第二幕", "対立：障害と葛藤が高まっていく"),
        ("act3", "第三幕", "解決：クライマックスと結末"),
    ],
}


def _span(start: int, end: int, total: int) -> list[int]:
    """Chapter numbers start..end (inclusive), clipped to 1..total."""
    return list(range(max(start, 1), min(end, total) + 1))


def _phase_sizes(total_chapters: int, structure: str) -> list[int]:
    if structure == "kishotenketsu":
        base = math.ceil(total_chapters / 4)
        return [base, base, base, total_chapters - 3 * base]
    if structure == "three-act":
        act1 = math.ceil(total_chapters * 0.25)
        act2 = math.ceil(total_chapters * 0.5)
        return [act1, act2, total_chapters - act1 - act2]
    raise InvalidArgumentError(
        f"Unknown structure '{structure}' (expected one of: {', '.join(STRUCTURES)})"
    )


def plan_structure(total_chapters: int, structure: str) -> list[Phase]:
    """Partition chapters 1..total_chapters into the phases of ``structure``.

    >>> [p.chapters for p in plan_structure(10, "kishotenketsu")]
    [[1, 2, 3], [4, 5, 6], [7, 8, 9], [10]]

    A total below 1 yields phases that are all empty.
    """
    sizes = _phase_sizes(total_chapters, structure)
    phases: list[Phase] = []
    start = 1
    for (key, name, description), size in zip(_TEMPLATES[structure], sizes):
        end = start + size - 1
        if size > 0:
            chapters = _span(start, end, total_chapters)
        else:
            chapters = []
        phases.append(Phase(key=key, name=name, description=description, chapters=chapters))
        start = end + 1
    return phases


def phase_of(phases: list[Phase], chapter_number: int) -> str:
    """Name of the first phase containing ``chapter_number``, else UNCLASSIFIED."""
    for phase in phases:
        if chapter_number in phase.chapters:
            return phase.name
    return UNCLASSIFIED


def phase_key_of(phases: list[Phase], chapter_number: int) -> str | None:
    """Key (``ki``, ``act2``, ...) of the phase containing ``chapter_number``."""
    for phase in phases:
        if chapter_number in phase.chapters:
            return phase.key
    return None


def phase_keys(structure: str) -> list[str]:
    """Phase keys of a structure in narrative order."""
    if structure not in _TEMPLATES:
        raise InvalidArgumentError(f"Unknown structure '{structure}'")
    return [key for key, _, _ in _TEMPLATES[structure]]


def phase_name_for_key(key: str) -> str:
    """Display name for a phase key; unknown keys map to UNCLASSIFIED."""
    for template in _TEMPLATES.values():
        for phase_key, name, _ in template:
            if phase_key == key:
                return name
    return UNCLASSIFIED


def estimate_chapter_length(estimated_length: int, total_chapters: int) -> tuple[int, int]:
    """Default (estimated_words, estimated_reading_time) for one chapter.

    20 chapters over 50000 characters → (2500, 10).
    """
    if total_chapters < 1:
        raise InvalidArgumentError("total_chapters must be at least 1")
    if estimated_length < 1:
        raise InvalidArgumentError("estimated_length must be at least 1")
    words = math.ceil(estimated_length / total_chapters)
    return words, math.ceil(words / READING_SPEED)


def reading_minutes(text: str) -> int:
    """Reading time of finished prose in whole minutes."""
    return math.ceil(len(text) / PROSE_READING_SPEED)
