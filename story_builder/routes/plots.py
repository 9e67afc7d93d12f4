"""Plot endpoints (one plot per project)."""

from fastapi import APIRouter, HTTPException

from story_builder import generation
from story_builder.llm import build_llm
from story_builder.settings import get_settings
from story_builder.storage import get_storage

from .errors import generation_errors
from .models import CreatePlot, GeneratePlotBody, UpdatePlot

router = APIRouter()


@router.get("/projects/{project_id}/plot")
async def get_plot(project_id: str):
    """Get the project's plot, or null if none has been written yet."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    return storage.get_plot(project_id)


@router.post("/projects/{project_id}/plot", status_code=201)
async def create_plot(project_id: str, body: CreatePlot):
    """Create the project's plot."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise HTTPException(404, "Project not found")
    if storage.get_plot(project_id):
        raise HTTPException(409, "Plot already exists")
    return storage.create_plot(project_id, body.model_dump())


@router.patch("/plots/{plot_id}")
async def update_plot(plot_id: str, body: UpdatePlot):
    """Update plot fields."""
    plot = get_storage().update_plot(plot_id, body.model_dump(exclude_none=True))
    if not plot:
        raise HTTPException(404, "Plot not found")
    return plot


@router.post("/projects/{project_id}/plot/generate")
async def generate_plot(project_id: str, body: GeneratePlotBody | None = None):
    """Generate a plot with the LLM and save it as the project's plot."""
    storage = get_storage()
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    plot = storage.get_plot(project_id)
    structure = (body.structure if body else None) or (plot.structure if plot else "kishotenketsu")
    settings = get_settings()
    with generation_errors():
        suggestion = await generation.generate_plot(
            build_llm(settings),
            project,
            storage.list_characters(project_id),
            structure=structure,
            prompts=settings["prompts"],
        )
    fields = {**suggestion.model_dump(), "structure": structure}
    if plot:
        return storage.update_plot(plot.id, fields)
    return storage.create_plot(project_id, fields)
