"""Core domain models.

Every storage backend and API endpoint operates on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from story_builder.structure import StructureName

TOTAL_STEPS = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def step_progress(current_step: int) -> int:
    """Percentage shown in the sidebar progress bar."""
    return round(current_step / TOTAL_STEPS * 100)


class Project(BaseModel):
    id: str
    title: str
    genre: str
    description: str | None = None
    image_url: str | None = None
    current_step: int = 1
    progress: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Character(BaseModel):
    id: str
    project_id: str
    name: str
    description: str | None = None
    personality: str | None = None
    background: str | None = None
    role: str | None = None
    affiliation: str | None = None
    image_url: str | None = None
    order: int = 0


class Plot(BaseModel):
    id: str
    project_id: str
    theme: str | None = None
    setting: str | None = None
    structure: StructureName = "kishotenketsu"
    hook: str | None = None
    opening: str | None = None
    development: str | None = None
    climax: str | None = None
    conclusion: str | None = None


class Synopsis(BaseModel):
    id: str
    project_id: str
    content: str
    tone: str | None = None
    style: str | None = None


class SynopsisVersion(BaseModel):
    """A snapshot of synopsis content; one per project is active."""

    id: str
    project_id: str
    content: str
    version: int
    is_active: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Chapter(BaseModel):
    id: str
    project_id: str
    title: str
    summary: str | None = None
    structure: str  # phase key: ki | sho | ten | ketsu | act1 | act2 | act3
    estimated_words: int = 0
    estimated_reading_time: int = 0
    character_ids: list[str] = Field(default_factory=list)
    order: int


class Episode(BaseModel):
    id: str
    chapter_id: str
    title: str
    description: str | None = None
    perspective: str | None = None
    mood: str | None = None
    events: list[str] = Field(default_factory=list)
    dialogue: str | None = None
    setting: str | None = None
    order: int


class Draft(BaseModel):
    id: str
    episode_id: str
    content: str
    tone: str | None = None
    is_generated: bool = False
    version: int = 1


# Table name → model; storage backends key their rows by these names.
TABLES: dict[str, type[BaseModel]] = {
    "projects": Project,
    "characters": Character,
    "plots": Plot,
    "synopses": Synopsis,
    "synopsis_versions": SynopsisVersion,
    "chapters": Chapter,
    "episodes": Episode,
    "drafts": Draft,
}
