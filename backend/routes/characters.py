"""Active character and saved-character endpoints."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from pydantic import ValidationError

from lf_sheet.characters import CharacterManager
from lf_sheet.models import Character

from .models import ImportCharacter, UpdateCharacter

router = APIRouter()


def _session(request: Request) -> CharacterManager:
    return request.app.state.session


# ── Active character ─────────────────────────────────────


@router.get("/character")
async def get_active_character(request: Request):
    """The character currently being edited."""
    return _session(request).active.to_json_dict()


@router.patch("/character")
async def update_active_character(request: Request, body: UpdateCharacter):
    """Apply a partial edit to the active character; saved after a quiet period."""
    fields = body.model_dump(exclude_unset=True)

    def apply(character: Character) -> Character:
        return Character.model_validate({**character.model_dump(), **fields})

    try:
        updated = _session(request).update(apply)
    except ValidationError:
        raise HTTPException(422, "Invalid character update")
    return updated.to_json_dict()


@router.post("/character/new")
async def new_active_character(request: Request):
    """Start a blank character (not saved until edited)."""
    return _session(request).create_new().to_json_dict()


@router.post("/character/save-as-new", status_code=201)
async def save_active_as_new(request: Request):
    """Fork the active character under a new id and save it."""
    return _session(request).save_as_new().to_json_dict()


# ── Saved characters ─────────────────────────────────────


@router.get("/characters")
async def list_characters(request: Request):
    """Index of saved characters, most recently saved first."""
    return [r.to_json_dict() for r in _session(request).index]


@router.post("/characters/import", status_code=201)
async def import_character(request: Request, body: ImportCharacter):
    """Import an exported character JSON as a new saved character."""
    session = _session(request)
    result = session.import_json(body.text)
    if not result.success:
        raise HTTPException(400, result.message)
    return session.active.to_json_dict()


@router.post("/characters/{character_id}/load")
async def load_character(request: Request, character_id: str):
    """Make a saved character the active one."""
    loaded = _session(request).load(character_id)
    if loaded is None:
        raise HTTPException(404, "Character not found")
    return loaded.to_json_dict()


@router.post("/characters/{character_id}/duplicate", status_code=201)
async def duplicate_character(request: Request, character_id: str):
    """Copy a saved character under a new id and make the copy active."""
    copy = _session(request).duplicate(character_id)
    if copy is None:
        raise HTTPException(404, "Character not found")
    return copy.to_json_dict()


@router.get("/characters/{character_id}/export")
async def export_character(request: Request, character_id: str):
    """Download a saved character as JSON."""
    text = _session(request).export_json(character_id)
    if text is None:
        raise HTTPException(404, "Character not found")
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="character-{character_id}.json"'},
    )


@router.delete("/characters/{character_id}")
async def delete_character(request: Request, character_id: str):
    """Delete a saved character."""
    session = _session(request)
    if not any(r.id == character_id for r in session.index):
        raise HTTPException(404, "Character not found")
    session.delete(character_id)
    return {"ok": True, "active": session.active.to_json_dict()}
