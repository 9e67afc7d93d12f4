import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from story_builder import storage
from story_builder.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(data_dir: Path | None = None, database_url: str | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved, database_url or os.getenv("DATABASE_URL") or None)

    app = FastAPI(title="AI Story Builder")
    app.include_router(router, prefix="/api")
    return app


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Default app instance for uvicorn (uses DATA_DIR / DATABASE_URL env vars or defaults)
app = create_app()
