"""Health check, save status, and static game data endpoints."""

from fastapi import APIRouter, Request

from lf_sheet.library import UNIFORM_GEAR

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/status")
async def save_status(request: Request):
    """Autosave status of the active character (idle, saving, saved, error)."""
    return {"saveState": request.app.state.session.save_state}


@router.get("/gear")
async def uniform_gear():
    """Standard issue gear every character carries."""
    return list(UNIFORM_GEAR)
