"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, settings, check-connection, models,
structure preview), projects, characters, plot, synopsis, chapters,
episodes, drafts. Child collections are nested under their parent
(/projects/{id}/characters, /chapters/{id}/episodes, ...); single records
are addressed by their own id (/characters/{id}, /drafts/{id}, ...).

Every stage has a .../generate endpoint that calls the configured LLM and
stores the result.
"""

from fastapi import APIRouter

from .chapters import router as chapters_router
from .characters import router as characters_router
from .drafts import router as drafts_router
from .episodes import router as episodes_router
from .plots import router as plots_router
from .projects import router as projects_router
from .settings import router as settings_router
from .synopses import router as synopses_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(projects_router)
router.include_router(characters_router)
router.include_router(plots_router)
router.include_router(synopses_router)
router.include_router(chapters_router)
router.include_router(episodes_router)
router.include_router(drafts_router)
