"""FastMCP server exposing the chapter planner and project lookups as MCP tools.

Tools:
  - chapter_structure(total_chapters, structure, estimated_length?)
                                    — phase partition + per-chapter estimates
  - chapter_phase(total_chapters, structure, chapter_number)
                                    — phase name of one chapter
  - list_projects()                 — id, title, genre, step of every project
  - list_chapters(project_id)       — the project's chapters with their phases

Project tools read the store opened by init_storage(); when run as
__main__ the store comes from DATA_DIR / DATABASE_URL.

Usage:
    python -m story_builder.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from story_builder.storage import get_storage
from story_builder.structure import estimate_chapter_length, phase_of, plan_structure

mcp = FastMCP("story-builder")


@mcp.tool()
def chapter_structure(
    total_chapters: int, structure: str = "kishotenketsu", estimated_length: int | None = None
) -> dict:
    """Split total_chapters into the phases of a structure (kishotenketsu or three-act)."""
    result: dict = {
        "structure": structure,
        "phases": [p.model_dump() for p in plan_structure(total_chapters, structure)],
    }
    if estimated_length is not None:
        words, minutes = estimate_chapter_length(estimated_length, total_chapters)
        result["estimated_words"] = words
        result["estimated_reading_time"] = minutes
    return result


@mcp.tool()
def chapter_phase(total_chapters: int, structure: str, chapter_number: int) -> str:
    """Name of the phase containing chapter_number, or 未分類 when it is outside the plan."""
    return phase_of(plan_structure(total_chapters, structure), chapter_number)


@mcp.tool()
def list_projects() -> list[dict]:
    """List projects with their current writing step."""
    return [
        {"id": p.id, "title": p.title, "genre": p.genre, "current_step": p.current_step}
        for p in get_storage().list_projects()
    ]


@mcp.tool()
def list_chapters(project_id: str) -> list[dict]:
    """List a project's chapters in order with their phase names."""
    storage = get_storage()
    if not storage.get_project(project_id):
        raise ValueError(f"Project '{project_id}' not found")
    plot = storage.get_plot(project_id)
    chapters = storage.list_chapters(project_id)
    phases = plan_structure(len(chapters), plot.structure if plot else "kishotenketsu")
    return [
        {"number": number, "id": c.id, "title": c.title, "summary": c.summary or "",
         "phase": phase_of(phases, number)}
        for number, c in enumerate(chapters, start=1)
    ]


if __name__ == "__main__":
    import os
    from pathlib import Path

    from story_builder.storage import init_storage

    init_storage(Path(os.getenv("DATA_DIR", "data")), os.getenv("DATABASE_URL") or None)
    mcp.run()
