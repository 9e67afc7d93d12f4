"""AI generation for each writing step.

Each generate_* coroutine:

  1. builds a template context from the current project state,
  2. renders the stage template (story_builder.prompts),
  3. calls the injected LLM,
  4. extracts JSON from the reply and validates it into suggestion models.

Models often wrap JSON in prose or code fences, so extract_json() accepts
the first {...} or [...] block it can parse. A reply with no usable JSON
raises GenerationError. Plain-text stages (synopsis, draft) return the
stripped reply.

Nothing here touches storage; routes load the records, pass them in, and
decide what to persist.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from story_builder.llm import LLM
from story_builder.models import Chapter, Character, Episode, Plot, Project
from story_builder.prompts import SYSTEM_PROMPTS, get_template, render_prompt
from story_builder.structure import (
    estimate_chapter_length,
    phase_key_of,
    phase_name_for_key,
    plan_structure,
)

logger = logging.getLogger(__name__)

STRUCTURE_LABELS = {"kishotenketsu": "起承転結", "three-act": "三幕構成"}

# Per-chapter length assumed when the caller gives no total length.
DEFAULT_CHAPTER_LENGTH = 3000

COMPLETABLE_FIELDS = ("description", "personality", "background", "role", "affiliation")


class GenerationError(RuntimeError):
    """Raised when a model reply cannot be turned into suggestions."""


# ── Suggestion models ────────────────────────────────────


def _text(value: Any) -> Any:
    """Coerce list-valued fields (some models return arrays) into text."""
    if isinstance(value, list):
        return "、".join(str(v) for v in value)
    return value


class CharacterSuggestion(BaseModel):
    name: str
    description: str | None = None
    personality: str | None = None
    background: str | None = None
    role: str | None = None
    affiliation: str | None = None

    @field_validator(*COMPLETABLE_FIELDS, mode="before")
    @classmethod
    def _join_lists(cls, value: Any) -> Any:
        return _text(value)


class PlotSuggestion(BaseModel):
    theme: str | None = None
    setting: str | None = None
    hook: str | None = None
    opening: str | None = None
    development: str | None = None
    climax: str | None = None
    conclusion: str | None = None


class ChapterSuggestion(BaseModel):
    title: str
    summary: str | None = None
    structure: str = ""
    estimated_words: int | None = Field(default=None, alias="estimatedWords")
    estimated_reading_time: int | None = Field(default=None, alias="estimatedReadingTime")
    character_ids: list[str] = Field(default_factory=list, alias="characterIds")

    model_config = {"populate_by_name": True}


class EpisodeSuggestion(BaseModel):
    title: str
    description: str | None = None
    perspective: str | None = None
    mood: str | None = None
    events: list[str] = Field(default_factory=list)
    dialogue: str | None = None
    setting: str | None = None

    @field_validator("events", mode="before")
    @classmethod
    def _events_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value or []


# ── JSON extraction ──────────────────────────────────────

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json(text: str) -> Any:
    """Parse the JSON payload of a model reply.

    Tries, in order: the whole reply, a fenced ```json block, then the
    outermost {...} and [...] spans, whichever opens first.
    """
    candidates = [text.strip()]
    fence = _FENCE_RE.search(text)
    if fence:
        candidates.append(fence.group(1).strip())
    spans = []
    for open_char, close_char in (("{", "}"), ("[", "]")):
        start, end = text.find(open_char), text.rfind(close_char)
        if start != -1 and end > start:
            spans.append((start, text[start:end + 1]))
    candidates.extend(span for _, span in sorted(spans))
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise GenerationError("Model reply did not contain valid JSON")


def _items(data: Any, key: str) -> list[Any]:
    """List payload either bare or wrapped as {key: [...]}."""
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise GenerationError(f"Expected a list of {key} in model reply")
    return data


def _validate_all(model: type[BaseModel], items: list[Any], stage: str) -> list[Any]:
    results = []
    for item in items:
        try:
            results.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("skipping invalid %s suggestion: %s", stage, e.errors()[0]["msg"])
    return results


# ── Context helpers ──────────────────────────────────────


def _plain(record: BaseModel | None) -> dict[str, Any]:
    """Model dump with None replaced by "" so templates print nothing."""
    if record is None:
        return {}
    return {k: ("" if v is None else v) for k, v in record.model_dump(mode="json").items()}


def _span_label(chapters: list[int]) -> str:
    if not chapters:
        return "なし"
    if len(chapters) == 1:
        return f"第{chapters[0]}章"
    return f"第{chapters[0]}章〜第{chapters[-1]}章"


async def _ask(llm: LLM, stage: str, template: str, context: dict[str, Any], json_mode: bool) -> str:
    prompt = render_prompt(template, context)
    return await llm(stage, prompt, system=SYSTEM_PROMPTS[stage], json_mode=json_mode)


# ── Stages ───────────────────────────────────────────────


async def generate_characters(
    llm: LLM,
    project: Project,
    existing: list[Character],
    *,
    count: int = 3,
    prompts: dict[str, str] | None = None,
) -> list[CharacterSuggestion]:
    context = {
        "project": _plain(project),
        "character_names": [c.name for c in existing],
        "count": count,
    }
    reply = await _ask(llm, "characters", get_template("characters", prompts), context, True)
    return _validate_all(CharacterSuggestion, _items(extract_json(reply), "characters"), "character")


async def complete_character(
    llm: LLM,
    project: Project,
    character: Character,
    *,
    prompts: dict[str, str] | None = None,
) -> dict[str, str]:
    """Suggested values for the character's blank fields only."""
    context = {"project": _plain(project), "character": _plain(character)}
    template = get_template("character_completion", prompts)
    data = extract_json(await _ask(llm, "character_completion", template, context, True))
    if not isinstance(data, dict):
        raise GenerationError("Expected an object in model reply")
    completion: dict[str, str] = {}
    for field in COMPLETABLE_FIELDS:
        value = _text(data.get(field))
        if not getattr(character, field) and value:
            completion[field] = str(value)
    return completion


async def generate_plot(
    llm: LLM,
    project: Project,
    characters: list[Character],
    *,
    structure: str = "kishotenketsu",
    prompts: dict[str, str] | None = None,
) -> PlotSuggestion:
    context = {
        "project": _plain(project),
        "characters": [_plain(c) for c in characters],
        "structure_label": STRUCTURE_LABELS.get(structure, structure),
    }
    data = extract_json(await _ask(llm, "plot", get_template("plot", prompts), context, True))
    if isinstance(data, dict) and isinstance(data.get("plot"), dict):
        data = data["plot"]
    try:
        return PlotSuggestion.model_validate(data)
    except ValidationError as e:
        raise GenerationError("Model reply is not a plot object") from e


async def generate_synopsis(
    llm: LLM,
    project: Project,
    plot: Plot | None,
    characters: list[Character],
    *,
    prompts: dict[str, str] | None = None,
) -> str:
    context = {
        "project": _plain(project),
        "plot": _plain(plot),
        "character_names": [c.name for c in characters],
    }
    content = (await _ask(llm, "synopsis", get_template("synopsis", prompts), context, False)).strip()
    if not content:
        raise GenerationError("The model returned an empty synopsis")
    return content


async def generate_chapters(
    llm: LLM,
    project: Project,
    plot: Plot | None,
    synopsis: str,
    characters: list[Character],
    *,
    count: int = 10,
    estimated_length: int | None = None,
    prompts: dict[str, str] | None = None,
) -> list[ChapterSuggestion]:
    """Chapter suggestions tagged with their phase and default estimates.

    Phases are planned over the number of chapters actually returned, so a
    model that answers with fewer chapters still gets a full structure.
    """
    structure = plot.structure if plot else "kishotenketsu"
    context = {
        "project": _plain(project),
        "plot": _plain(plot),
        "synopsis": synopsis,
        "count": count,
        "structure_label": STRUCTURE_LABELS[structure],
        "phases": [
            {"name": p.name, "description": p.description, "span": _span_label(p.chapters)}
            for p in plan_structure(count, structure)
        ],
    }
    reply = await _ask(llm, "chapters", get_template("chapters", prompts), context, True)
    suggestions = _validate_all(ChapterSuggestion, _items(extract_json(reply), "chapters"), "chapter")
    if not suggestions:
        return []

    total = len(suggestions)
    phases = plan_structure(total, structure)
    words, minutes = estimate_chapter_length(
        estimated_length or DEFAULT_CHAPTER_LENGTH * total, total
    )
    ids_by_name = {c.name: c.id for c in characters}
    for number, suggestion in enumerate(suggestions, start=1):
        suggestion.structure = phase_key_of(phases, number) or suggestion.structure
        if not suggestion.estimated_words:
            suggestion.estimated_words = words
        if not suggestion.estimated_reading_time:
            suggestion.estimated_reading_time = minutes
        suggestion.character_ids = [
            ids_by_name.get(ref, ref) for ref in suggestion.character_ids
            if ref in ids_by_name or ref in ids_by_name.values()
        ]
    return suggestions


async def generate_episodes(
    llm: LLM,
    chapter: Chapter,
    existing: list[Episode],
    characters: list[Character],
    *,
    prompts: dict[str, str] | None = None,
) -> list[EpisodeSuggestion]:
    in_chapter = [c for c in characters if c.id in chapter.character_ids] or characters
    context = {
        "chapter": _plain(chapter),
        "phase_name": phase_name_for_key(chapter.structure),
        "character_names": [c.name for c in in_chapter],
        "existing_titles": [e.title for e in existing],
    }
    reply = await _ask(llm, "episodes", get_template("episodes", prompts), context, True)
    return _validate_all(EpisodeSuggestion, _items(extract_json(reply), "episodes"), "episode")


async def generate_draft(
    llm: LLM,
    chapter: Chapter | None,
    episode: Episode,
    characters: list[Character],
    *,
    tone: str,
    prompts: dict[str, str] | None = None,
) -> str:
    context = {
        "chapter": _plain(chapter) if chapter else {"title": "章"},
        "episode": _plain(episode),
        "characters": [_plain(c) for c in characters],
        "tone": tone,
    }
    content = (await _ask(llm, "draft", get_template("draft", prompts), context, False)).strip()
    if not content:
        raise GenerationError("The model returned an empty draft")
    return content
