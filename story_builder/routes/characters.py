"""Character CRUD, generation and completion endpoints."""

from fastapi import APIRouter, HTTPException

from story_builder import generation
from story_builder.llm import build_llm
from story_builder.settings import get_settings
from story_builder.storage import get_storage

from .errors import generation_errors
from .models import CreateCharacter, GenerateCharactersBody, UpdateCharacter

router = APIRouter()


@router.get("/projects/{project_id}/characters")
async def list_characters(project_id: str):
    """List a project's characters in display order."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    return storage.list_characters(project_id)


@router.post("/projects/{project_id}/characters", status_code=201)
async def create_character(project_id: str, body: CreateCharacter):
    """Add a character to a project."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    fields = body.model_dump()
    if fields["order"] is None:
        fields["order"] = len(storage.list_characters(project_id))
    return storage.create_character(project_id, fields)


@router.patch("/characters/{character_id}")
async def update_character(character_id: str, body: UpdateCharacter):
    """Update character fields."""
    character = get_storage().update_character(character_id, body.model_dump(exclude_none=True))
    if not character:
        raise HTTPException(404, "Character not found")
    return character


@router.delete("/characters/{character_id}")
async def delete_character(character_id: str):
    """Remove a character."""
    if not get_storage().delete_character(character_id):
        raise HTTPException(404, "Character not found")
    return {"ok": True}


@router.post("/projects/{project_id}/characters/generate", status_code=201)
async def generate_characters(project_id: str, body: GenerateCharactersBody | None = None):
    """Generate new characters with the LLM and add them to the project."""
    storage = get_storage()
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    count = body.count if body else 3
    settings = get_settings()
    existing = storage.list_characters(project_id)
    with generation_errors():
        suggestions = await generation.generate_characters(
            build_llm(settings), project, existing, count=count, prompts=settings["prompts"]
        )
    created = []
    for order, suggestion in enumerate(suggestions, start=len(existing)):
        created.append(storage.create_character(project_id, {**suggestion.model_dump(), "order": order}))
    return created


@router.post("/characters/{character_id}/complete")
async def complete_character(character_id: str):
    """Fill the character's blank fields with LLM suggestions."""
    storage = get_storage()
    character = storage.get_character(character_id)
    if not character:
        raise HTTPException(404, "Character not found")
    project = storage.get_project(character.project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    settings = get_settings()
    with generation_errors():
        completion = await generation.complete_character(
            build_llm(settings), project, character, prompts=settings["prompts"]
        )
    if not completion:
        return character
    return storage.update_character(character_id, completion)
