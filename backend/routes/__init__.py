"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, save status, uniform gear), the active
character, saved characters (load, duplicate, export, import, delete), and
the option library. There is one editing session per app instance; routers
reach it through request.app.state.
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .library import router as library_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(characters_router)
router.include_router(library_router)
