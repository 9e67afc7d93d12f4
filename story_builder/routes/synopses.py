"""Synopsis endpoints with version history."""

from fastapi import APIRouter, HTTPException

from story_builder import generation
from story_builder.llm import build_llm
from story_builder.settings import get_settings
from story_builder.storage import get_storage
from story_builder.structure import reading_minutes

from .errors import generation_errors
from .models import CreateSynopsis, UpdateSynopsis

router = APIRouter()


@router.get("/projects/{project_id}/synopsis")
async def get_synopsis(project_id: str):
    """Get the project's synopsis, or null if none has been written yet."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    synopsis = storage.get_synopsis(project_id)
    if not synopsis:
        return None
    return {**synopsis.model_dump(), "reading_time": reading_minutes(synopsis.content)}


@router.post("/projects/{project_id}/synopsis", status_code=201)
async def create_synopsis(project_id: str, body: CreateSynopsis):
    """Create the project's synopsis (recorded as version 1)."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    if storage.get_synopsis(project_id):
        raise HTTPException(409, "Synopsis already exists")
    return storage.create_synopsis(project_id, body.model_dump())


@router.patch("/synopsis/{synopsis_id}")
async def update_synopsis(synopsis_id: str, body: UpdateSynopsis):
    """Update the synopsis; new content is recorded as a new version."""
    synopsis = get_storage().update_synopsis(synopsis_id, body.model_dump(exclude_none=True))
    if not synopsis:
        raise HTTPException(404, "Synopsis not found")
    return synopsis


@router.get("/projects/{project_id}/synopsis/versions")
async def list_synopsis_versions(project_id: str):
    """List stored synopsis versions, newest first."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    return storage.list_synopsis_versions(project_id)


@router.post("/projects/{project_id}/synopsis/versions/{version_id}/restore")
async def restore_synopsis_version(project_id: str, version_id: str):
    """Make a stored version the current synopsis content."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    synopsis = storage.restore_synopsis_version(project_id, version_id)
    if not synopsis:
        raise HTTPException(404, "Synopsis version not found")
    return synopsis


@router.post("/projects/{project_id}/synopsis/generate")
async def generate_synopsis(project_id: str):
    """Generate a synopsis with the LLM and save it as a new version."""
    storage = get_storage()
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    settings = get_settings()
    with generation_errors():
        content = await generation.generate_synopsis(
            build_llm(settings),
            project,
            storage.get_plot(project_id),
            storage.list_characters(project_id),
            prompts=settings["prompts"],
        )
    synopsis = storage.get_synopsis(project_id)
    if synopsis:
        return storage.update_synopsis(synopsis.id, {"content": content})
    return storage.create_synopsis(project_id, {"content": content})
