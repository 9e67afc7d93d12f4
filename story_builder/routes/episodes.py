"""Episode CRUD and generation endpoints."""

from fastapi import APIRouter, HTTPException

from story_builder import generation
from story_builder.llm import build_llm
from story_builder.settings import get_settings
from story_builder.storage import get_storage

from .errors import generation_errors
from .models import CreateEpisode, UpdateEpisode

router = APIRouter()


@router.get("/chapters/{chapter_id}/episodes")
async def list_episodes(chapter_id: str):
    """List a chapter's episodes in order."""
    storage = get_storage()
    if not storage.get_chapter(chapter_id):
        raise HTTPException(404, "Chapter not found")
    return storage.list_episodes(chapter_id)


@router.post("/chapters/{chapter_id}/episodes", status_code=201)
async def create_episode(chapter_id: str, body: CreateEpisode):
    """Add an episode to a chapter."""
    storage = get_storage()
    if not storage.get_chapter(chapter_id):
        raise HTTPException(404, "Chapter not found")
    fields = body.model_dump()
    if fields["order"] is None:
        fields["order"] = len(storage.list_episodes(chapter_id))
    return storage.create_episode(chapter_id, fields)


@router.get("/episodes/{episode_id}")
async def get_episode(episode_id: str):
    """Get a single episode."""
    episode = get_storage().get_episode(episode_id)
    if not episode:
        raise HTTPException(404, "Episode not found")
    return episode


@router.patch("/episodes/{episode_id}")
async def update_episode(episode_id: str, body: UpdateEpisode):
    """Update episode fields."""
    episode = get_storage().update_episode(episode_id, body.model_dump(exclude_none=True))
    if not episode:
        raise HTTPException(404, "Episode not found")
    return episode


@router.delete("/episodes/{episode_id}")
async def delete_episode(episode_id: str):
    """Delete an episode with its drafts."""
    if not get_storage().delete_episode(episode_id):
        raise HTTPException(404, "Episode not found")
    return {"ok": True}


@router.post("/chapters/{chapter_id}/episodes/generate", status_code=201)
async def generate_episodes(chapter_id: str):
    """Generate episodes for a chapter with the LLM and append them."""
    storage = get_storage()
    chapter = storage.get_chapter(chapter_id)
    if not chapter:
        raise HTTPException(404, "Chapter not found")
    existing = storage.list_episodes(chapter_id)
    settings = get_settings()
    with generation_errors():
        suggestions = await generation.generate_episodes(
            build_llm(settings),
            chapter,
            existing,
            storage.list_characters(chapter.project_id),
            prompts=settings["prompts"],
        )
    return [
        storage.create_episode(chapter_id, {**s.model_dump(), "order": order})
        for order, s in enumerate(suggestions, start=len(existing))
    ]
