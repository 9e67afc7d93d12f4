"""Pydantic request bodies for API endpoints."""

from pydantic import BaseModel, Field

from story_builder.models import TOTAL_STEPS
from story_builder.structure import StructureName


class CreateProject(BaseModel):
    title: str
    genre: str
    description: str | None = None
    image_url: str | None = None


class UpdateProject(BaseModel):
    title: str | None = None
    genre: str | None = None
    description: str | None = None
    image_url: str | None = None
    current_step: int | None = Field(default=None, ge=1, le=TOTAL_STEPS)


class StepBody(BaseModel):
    step: int = Field(ge=1, le=TOTAL_STEPS)


class CreateCharacter(BaseModel):
    name: str
    description: str | None = None
    personality: str | None = None
    background: str | None = None
    role: str | None = None
    affiliation: str | None = None
    image_url: str | None = None
    order: int | None = None


class UpdateCharacter(BaseModel):
    name: str | None = None
    description: str | None = None
    personality: str | None = None
    background: str | None = None
    role: str | None = None
    affiliation: str | None = None
    image_url: str | None = None
    order: int | None = None


class GenerateCharactersBody(BaseModel):
    count: int = Field(default=3, ge=1, le=10)


class CreatePlot(BaseModel):
    theme: str | None = None
    setting: str | None = None
    structure: StructureName = "kishotenketsu"
    hook: str | None = None
    opening: str | None = None
    development: str | None = None
    climax: str | None = None
    conclusion: str | None = None


class UpdatePlot(BaseModel):
    theme: str | None = None
    setting: str | None = None
    structure: StructureName | None = None
    hook: str | None = None
    opening: str | None = None
    development: str | None = None
    climax: str | None = None
    conclusion: str | None = None


class GeneratePlotBody(BaseModel):
    structure: StructureName | None = None


class CreateSynopsis(BaseModel):
    content: str
    tone: str | None = None
    style: str | None = None


class UpdateSynopsis(BaseModel):
    content: str | None = None
    tone: str | None = None
    style: str | None = None


class CreateChapter(BaseModel):
    title: str
    summary: str | None = None
    structure: str | None = None
    estimated_words: int | None = Field(default=None, ge=0)
    estimated_reading_time: int | None = Field(default=None, ge=0)
    character_ids: list[str] = []
    order: int | None = None


class UpdateChapter(BaseModel):
    title: str | None = None
    summary: str | None = None
    structure: str | None = None
    estimated_words: int | None = Field(default=None, ge=0)
    estimated_reading_time: int | None = Field(default=None, ge=0)
    character_ids: list[str] | None = None
    order: int | None = None


class ChapterPlan(BaseModel):
    total_chapters: int = Field(ge=1)
    structure: StructureName = "kishotenketsu"
    estimated_length: int = Field(ge=1)


class GenerateChaptersBody(BaseModel):
    count: int | None = Field(default=None, ge=1, le=100)
    estimated_length: int | None = Field(default=None, ge=1)


class CreateEpisode(BaseModel):
    title: str
    description: str | None = None
    perspective: str | None = None
    mood: str | None = None
    events: list[str] = []
    dialogue: str | None = None
    setting: str | None = None
    order: int | None = None


class UpdateEpisode(BaseModel):
    title: str | None = None
    description: str | None = None
    perspective: str | None = None
    mood: str | None = None
    events: list[str] | None = None
    dialogue: str | None = None
    setting: str | None = None
    order: int | None = None


class CreateDraft(BaseModel):
    content: str
    tone: str | None = None
    is_generated: bool = False
    version: int | None = Field(default=None, ge=1)


class UpdateDraft(BaseModel):
    content: str | None = None
    tone: str | None = None


class GenerateDraftBody(BaseModel):
    tone: str | None = None


class CheckConnectionBody(BaseModel):
    provider: str
    base_url: str | None = None
    api_key: str | None = None


class ConnectionSettings(BaseModel):
    base_url: str | None = None
    api_key: str | None = None
    model: str | None = None


class UpdateSettings(BaseModel):
    provider: str | None = None
    connections: dict[str, ConnectionSettings] | None = None
    prompts: dict[str, str] | None = None
    target_chapters: int | None = Field(default=None, ge=1, le=100)
    default_tone: str | None = Field(default=None, min_length=1)
