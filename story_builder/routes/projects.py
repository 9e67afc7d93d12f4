"""Project CRUD, step navigation and manuscript export."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from story_builder.export import export_manuscript
from story_builder.storage import get_storage

from .models import CreateProject, StepBody, UpdateProject

router = APIRouter()


@router.get("/projects")
async def list_projects():
    """List all projects, most recently updated first."""
    return get_storage().list_projects()


@router.post("/projects", status_code=201)
async def create_project(body: CreateProject):
    """Create a new project at step 1."""
    return get_storage().create_project(body.model_dump())


@router.get("/projects/{project_id}")
async def get_project(project_id: str):
    """Get a single project."""
    project = get_storage().get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return project


@router.patch("/projects/{project_id}")
async def update_project(project_id: str, body: UpdateProject):
    """Update project metadata or current step."""
    project = get_storage().update_project(project_id, body.model_dump(exclude_none=True))
    if not project:
        raise HTTPException(404, "Project not found")
    return project


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str):
    """Delete a project and everything under it."""
    if not get_storage().delete_project(project_id):
        raise HTTPException(404, "Project not found")
    return {"ok": True}


@router.post("/projects/{project_id}/step")
async def change_step(project_id: str, body: StepBody):
    """Move to another writing step.

    Any reached step can be revisited; going forward is limited to the next
    step. The current step only ever advances, so revisiting an earlier step
    keeps the project's progress.
    """
    storage = get_storage()
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    if body.step > project.current_step + 1:
        raise HTTPException(409, f"Step {body.step} is not reachable from step {project.current_step}")
    if body.step > project.current_step:
        project = storage.update_project(project_id, {"current_step": body.step})
    return {"step": body.step, "project": project}


@router.get("/projects/{project_id}/export", response_class=PlainTextResponse)
async def export_project(project_id: str):
    """Export the project as a plain-text manuscript."""
    storage = get_storage()
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return PlainTextResponse(
        export_manuscript(storage, project),
        headers={"Content-Disposition": f'attachment; filename="{project_id}.txt"'},
    )
