"""Option library endpoints (styles, roles, goals)."""

from fastapi import APIRouter, HTTPException, Request

from lf_sheet.library import LibraryManager
from lf_sheet.models import OptionCategory
from lf_sheet.storage import StorageWriteError

from .models import CreateOption, ShowDefaultsBody

router = APIRouter()


def _library(request: Request) -> LibraryManager:
    return request.app.state.library


@router.get("/library")
async def get_library(request: Request, visible: bool = False):
    """Merged library; with visible=true, filtered by the show-defaults flag."""
    manager = _library(request)
    library = manager.visible_library() if visible else manager.library
    return {**library.to_json_dict(), "showDefaults": manager.show_defaults}


@router.patch("/library/show-defaults")
async def set_show_defaults(request: Request, body: ShowDefaultsBody):
    """Toggle whether default options are listed (display only)."""
    manager = _library(request)
    manager.show_defaults = body.show_defaults
    return {"showDefaults": manager.show_defaults}


@router.post("/library/{category}", status_code=201)
async def add_option(request: Request, category: OptionCategory, body: CreateOption):
    """Add a custom option to a category."""
    try:
        option = _library(request).add_custom_option(
            category, body.label, color=body.color, description=body.description
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    except StorageWriteError as e:
        raise HTTPException(507, str(e))
    return option.to_json_dict()


@router.delete("/library/{category}/{option_id}")
async def remove_option(request: Request, category: OptionCategory, option_id: str):
    """Remove an option from a category."""
    try:
        removed = _library(request).remove_option(category, option_id)
    except StorageWriteError as e:
        raise HTTPException(507, str(e))
    if not removed:
        raise HTTPException(404, "Option not found")
    return {"ok": True}
