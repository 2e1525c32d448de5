import os
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from backend.routes import router
from lf_sheet.characters import SAVE_DELAY, CharacterManager, utc_now
from lf_sheet.debounce import AsyncioScheduler, Scheduler
from lf_sheet.library import LibraryManager
from lf_sheet.storage import Storage

load_dotenv(Path(__file__).parent.parent / ".env")

STATIC_DIR = Path(__file__).parent / "static"
DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(
    data_dir: Path | None = None,
    scheduler: Scheduler | None = None,
    *,
    save_delay: float | None = None,
    stale_save_policy: str | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    if save_delay is None:
        save_delay = float(os.getenv("SAVE_DEBOUNCE_SECONDS", str(SAVE_DELAY)))
    policy = stale_save_policy or os.getenv("STALE_SAVE_POLICY", "proceed")

    storage = Storage(resolved)
    library = LibraryManager(storage)
    session = CharacterManager(
        storage,
        library,
        scheduler or AsyncioScheduler(),
        save_delay=save_delay,
        stale_save_policy=policy,
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Write any edit still inside its debounce window before exiting
        session.close()

    app = FastAPI(title="Lasers & Feelings Character Creator", lifespan=lifespan)
    app.state.storage = storage
    app.state.library = library
    app.state.session = session
    app.include_router(router, prefix="/api")

    if STATIC_DIR.exists() and not os.getenv("VITE_DEV", ""):
        # Serve static assets (JS, CSS, etc.)
        app.mount("/assets", StaticFiles(directory=STATIC_DIR / "assets"), name="assets")

        # SPA fallback: all non-API routes serve index.html
        @app.get("/{path:path}")
        async def spa_fallback(path: str):
            return FileResponse(STATIC_DIR / "index.html")

    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
