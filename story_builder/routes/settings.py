"""Health check, settings, connection check, model list and structure preview."""

from fastapi import APIRouter, HTTPException, Query

from story_builder import llm
from story_builder.settings import PROVIDERS, get_settings, public_settings, update_settings
from story_builder.structure import StructureName, estimate_chapter_length, plan_structure

from .models import CheckConnectionBody, UpdateSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings_endpoint():
    """Get app settings (provider, connections without keys, prompt overrides)."""
    return public_settings(get_settings())


@router.patch("/settings")
async def update_settings_endpoint(body: UpdateSettings):
    """Update app settings (partial merge)."""
    if body.provider is not None and body.provider not in PROVIDERS:
        raise HTTPException(400, f"Unknown provider '{body.provider}'")
    return public_settings(update_settings(body.model_dump(exclude_none=True)))


@router.post("/check-connection")
async def check_connection(body: CheckConnectionBody):
    """Quick reachability check against an LLM provider."""
    conn = get_settings()["connections"].get(body.provider)
    if conn is None:
        raise HTTPException(400, f"Unknown provider '{body.provider}'")
    base_url = body.base_url or conn["base_url"]
    api_key = body.api_key if body.api_key is not None else conn["api_key"]
    return {"ok": await llm.check_connection(body.provider, base_url, api_key)}


@router.get("/models")
async def list_models():
    """List models installed in the configured Ollama server."""
    base_url = get_settings()["connections"]["ollama"]["base_url"]
    try:
        models = await llm.list_ollama_models(base_url)
    except llm.LLMError as e:
        raise HTTPException(502, str(e))
    return {"models": models}


@router.get("/structure")
async def structure_preview(
    total_chapters: int = Query(ge=1),
    structure: StructureName = "kishotenketsu",
    estimated_length: int | None = Query(default=None, ge=1),
):
    """Preview the phase partition and per-chapter estimates for a chapter plan."""
    result = {
        "structure": structure,
        "total_chapters": total_chapters,
        "phases": [p.model_dump() for p in plan_structure(total_chapters, structure)],
        "estimated_words": None,
        "estimated_reading_time": None,
    }
    if estimated_length is not None:
        words, minutes = estimate_chapter_length(estimated_length, total_chapters)
        result["estimated_words"] = words
        result["estimated_reading_time"] = minutes
    return result
