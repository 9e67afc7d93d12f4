"""Draft endpoints. Each save or generation adds a new draft version."""

from fastapi import APIRouter, HTTPException

from story_builder import generation
from story_builder.llm import build_llm
from story_builder.settings import get_settings
from story_builder.storage import get_storage
from story_builder.structure import reading_minutes

from .errors import generation_errors
from .models import CreateDraft, GenerateDraftBody, UpdateDraft

router = APIRouter()


def _with_reading_time(draft) -> dict:
    return {**draft.model_dump(), "reading_time": reading_minutes(draft.content)}


@router.get("/episodes/{episode_id}/drafts")
async def list_drafts(episode_id: str):
    """List an episode's drafts, oldest version first."""
    storage = get_storage()
    if not storage.get_episode(episode_id):
        raise HTTPException(404, "Episode not found")
    return [_with_reading_time(d) for d in storage.list_drafts(episode_id)]


@router.post("/episodes/{episode_id}/drafts", status_code=201)
async def create_draft(episode_id: str, body: CreateDraft):
    """Save a draft as the episode's next version."""
    storage = get_storage()
    if not storage.get_episode(episode_id):
        raise HTTPException(404, "Episode not found")
    return _with_reading_time(storage.create_draft(episode_id, body.model_dump()))


@router.patch("/drafts/{draft_id}")
async def update_draft(draft_id: str, body: UpdateDraft):
    """Edit a draft version in place."""
    draft = get_storage().update_draft(draft_id, body.model_dump(exclude_none=True))
    if not draft:
        raise HTTPException(404, "Draft not found")
    return _with_reading_time(draft)


@router.delete("/drafts/{draft_id}")
async def delete_draft(draft_id: str):
    """Delete a draft version."""
    if not get_storage().delete_draft(draft_id):
        raise HTTPException(404, "Draft not found")
    return {"ok": True}


@router.post("/episodes/{episode_id}/drafts/generate", status_code=201)
async def generate_draft(episode_id: str, body: GenerateDraftBody | None = None):
    """Write a draft for the episode with the LLM and save it as a new version."""
    storage = get_storage()
    episode = storage.get_episode(episode_id)
    if not episode:
        raise HTTPException(404, "Episode not found")
    chapter = storage.get_chapter(episode.chapter_id)
    characters = storage.list_characters(chapter.project_id) if chapter else []
    settings = get_settings()
    tone = (body.tone if body else None) or settings["default_tone"]
    with generation_errors():
        content = await generation.generate_draft(
            build_llm(settings), chapter, episode, characters, tone=tone, prompts=settings["prompts"]
        )
    draft = storage.create_draft(episode_id, {"content": content, "tone": tone, "is_generated": True})
    return _with_reading_time(draft)
