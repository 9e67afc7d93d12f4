"""Chapter CRUD, structure planning, stats and generation endpoints."""

from fastapi import APIRouter, HTTPException

from story_builder import generation
from story_builder.llm import build_llm
from story_builder.settings import get_settings
from story_builder.storage import Storage, get_storage
from story_builder.structure import (
    StructureName,
    estimate_chapter_length,
    phase_key_of,
    phase_keys,
    phase_of,
    plan_structure,
)

from .errors import generation_errors
from .models import ChapterPlan, CreateChapter, GenerateChaptersBody, UpdateChapter

router = APIRouter()


def _project_structure(storage: Storage, project_id: str) -> str:
    plot = storage.get_plot(project_id)
    return plot.structure if plot else "kishotenketsu"


@router.get("/projects/{project_id}/chapters")
async def list_chapters(project_id: str):
    """List a project's chapters in order."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    return storage.list_chapters(project_id)


@router.post("/projects/{project_id}/chapters", status_code=201)
async def create_chapter(project_id: str, body: CreateChapter):
    """Add a chapter at the end; without a structure tag it gets the phase of its position."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    number = len(storage.list_chapters(project_id)) + 1
    fields = {k: v for k, v in body.model_dump().items() if v is not None}
    fields.setdefault("order", number)
    if not fields.get("structure"):
        structure = _project_structure(storage, project_id)
        phase_key = phase_key_of(plan_structure(number, structure), number)
        fields["structure"] = phase_key or phase_keys(structure)[-1]
    return storage.create_chapter(project_id, fields)


@router.get("/chapters/{chapter_id}")
async def get_chapter(chapter_id: str):
    """Get a single chapter."""
    chapter = get_storage().get_chapter(chapter_id)
    if not chapter:
        raise HTTPException(404, "Chapter not found")
    return chapter


@router.patch("/chapters/{chapter_id}")
async def update_chapter(chapter_id: str, body: UpdateChapter):
    """Update chapter fields."""
    chapter = get_storage().update_chapter(chapter_id, body.model_dump(exclude_none=True))
    if not chapter:
        raise HTTPException(404, "Chapter not found")
    return chapter


@router.delete("/chapters/{chapter_id}")
async def delete_chapter(chapter_id: str):
    """Delete a chapter with its episodes and drafts."""
    if not get_storage().delete_chapter(chapter_id):
        raise HTTPException(404, "Chapter not found")
    return {"ok": True}


@router.post("/projects/{project_id}/chapters/plan", status_code=201)
async def plan_chapters(project_id: str, body: ChapterPlan):
    """Create empty chapters for a chapter plan, tagged with their phases."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    if storage.list_chapters(project_id):
        raise HTTPException(409, "Project already has chapters")

    phases = plan_structure(body.total_chapters, body.structure)
    words, minutes = estimate_chapter_length(body.estimated_length, body.total_chapters)
    plot = storage.get_plot(project_id)
    if plot and plot.structure != body.structure:
        storage.update_plot(plot.id, {"structure": body.structure})

    chapters = []
    for number in range(1, body.total_chapters + 1):
        chapters.append(storage.create_chapter(project_id, {
            "title": f"第{number}章",
            "structure": phase_key_of(phases, number) or phase_keys(body.structure)[-1],
            "estimated_words": words,
            "estimated_reading_time": minutes,
            "order": number,
        }))
    return chapters


@router.get("/projects/{project_id}/chapters/phases")
async def chapter_phases(project_id: str, structure: StructureName | None = None):
    """Phase partition over the existing chapters, and the phase of each chapter."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    structure = structure or _project_structure(storage, project_id)
    chapters = storage.list_chapters(project_id)
    phases = plan_structure(len(chapters), structure)
    return {
        "structure": structure,
        "phases": [p.model_dump() for p in phases],
        "chapters": [
            {"id": c.id, "title": c.title, "number": number, "phase": phase_of(phases, number)}
            for number, c in enumerate(chapters, start=1)
        ],
    }


@router.get("/projects/{project_id}/chapters/stats")
async def chapter_stats(project_id: str):
    """Totals over the project's chapters."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    chapters = storage.list_chapters(project_id)
    return {
        "total_chapters": len(chapters),
        "total_words": sum(c.estimated_words for c in chapters),
        "total_reading_time": sum(c.estimated_reading_time for c in chapters),
        "unique_characters": len({cid for c in chapters for cid in c.character_ids}),
    }


@router.post("/projects/{project_id}/chapters/generate", status_code=201)
async def generate_chapters(project_id: str, body: GenerateChaptersBody | None = None):
    """Generate a chapter outline with the LLM and create the chapters."""
    storage = get_storage()
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    if storage.list_chapters(project_id):
        raise HTTPException(409, "Project already has chapters")
    settings = get_settings()
    count = (body.count if body else None) or settings["target_chapters"]
    synopsis = storage.get_synopsis(project_id)
    with generation_errors():
        suggestions = await generation.generate_chapters(
            build_llm(settings),
            project,
            storage.get_plot(project_id),
            synopsis.content if synopsis else "",
            storage.list_characters(project_id),
            count=count,
            estimated_length=body.estimated_length if body else None,
            prompts=settings["prompts"],
        )
    return [
        storage.create_chapter(project_id, {**s.model_dump(), "order": number})
        for number, s in enumerate(suggestions, start=1)
    ]
