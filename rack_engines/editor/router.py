from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rack_engines.common.error_envelope import error_response
from rack_engines.editor.service import EditorError, EditorRegistry, LayoutEditor
from rack_engines.history.models import HistoryState
from rack_engines.layout_core.models import DeviceFace, DeviceType, Layout, Rack

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/layouts/{layout_id}", tags=["layout-editor"])

# Global in-memory registry; tests swap it via dependency_overrides.
_REGISTRY = EditorRegistry()

def get_registry() -> EditorRegistry:
    return _REGISTRY


def get_editor(layout_id: str, registry: EditorRegistry = Depends(get_registry)) -> LayoutEditor:
    return registry.get(layout_id)


def view_editor(layout_id: str, registry: EditorRegistry = Depends(get_registry)) -> LayoutEditor:
    return registry.view(layout_id)


class UndoRedoResult(BaseModel):
    applied: bool
    history: HistoryState


class PlaceDeviceRequest(BaseModel):
    device_type: str
    position: float
    face: DeviceFace = DeviceFace.FRONT
    name: Optional[str] = None


class MoveDeviceRequest(BaseModel):
    position: float


class FaceRequest(BaseModel):
    face: Optional[DeviceFace] = None  # omitted means flip


class NameRequest(BaseModel):
    name: Optional[str] = None


class SettingsRequest(BaseModel):
    settings: Dict[str, Any] = Field(default_factory=dict)


def _resource_kind(code: str) -> str:
    return code.split(".", 1)[0]


def _apply(action, *args, **kwargs) -> HistoryState:
    try:
        return action(*args, **kwargs)
    except EditorError as e:
        logger.info("Rejected %s: %s", e.code, e.message)
        error_response(
            code=e.code,
            message=e.message,
            status_code=e.status_code,
            resource_kind=_resource_kind(e.code),
            details=e.details,
        )


# --- Document & history ---

@router.get("/layout", response_model=Layout)
async def get_layout(editor: LayoutEditor = Depends(view_editor)):
    return editor.get_layout()

@router.put("/layout", response_model=HistoryState)
async def load_layout(layout_id: str, layout: Layout, editor: LayoutEditor = Depends(get_editor)):
    layout.id = layout_id
    editor.load_layout(layout)
    return editor.history_state()

@router.get("/history", response_model=HistoryState)
async def get_history(editor: LayoutEditor = Depends(view_editor)):
    return editor.history_state()

@router.post("/history/undo", response_model=UndoRedoResult)
async def undo(editor: LayoutEditor = Depends(view_editor)):
    applied = editor.undo()
    return UndoRedoResult(applied=applied, history=editor.history_state())

@router.post("/history/redo", response_model=UndoRedoResult)
async def redo(editor: LayoutEditor = Depends(view_editor)):
    applied = editor.redo()
    return UndoRedoResult(applied=applied, history=editor.history_state())

@router.post("/history/clear", response_model=HistoryState)
async def clear_history(editor: LayoutEditor = Depends(view_editor)):
    editor.clear_history()
    return editor.history_state()


# --- Device types ---

@router.post("/device-types", response_model=HistoryState)
async def add_device_type(device_type: DeviceType, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.add_device_type, device_type)

@router.patch("/device-types/{slug}", response_model=HistoryState)
async def update_device_type(slug: str, req: SettingsRequest, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.update_device_type, slug, req.settings)

@router.delete("/device-types/{slug}", response_model=HistoryState)
async def delete_device_type(slug: str, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.delete_device_type, slug)


# --- Placed devices ---

@router.post("/devices", response_model=HistoryState)
async def place_device(req: PlaceDeviceRequest, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.place_device, req.device_type, req.position, req.face, req.name)

@router.patch("/devices/{index}/position", response_model=HistoryState)
async def move_device(index: int, req: MoveDeviceRequest, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.move_device, index, req.position)

@router.patch("/devices/{index}/face", response_model=HistoryState)
async def set_device_face(index: int, req: FaceRequest, editor: LayoutEditor = Depends(get_editor)):
    if req.face is None:
        return _apply(editor.flip_device, index)
    return _apply(editor.set_device_face, index, req.face)

@router.patch("/devices/{index}/name", response_model=HistoryState)
async def rename_device(index: int, req: NameRequest, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.rename_device, index, req.name)

@router.delete("/devices/{index}", response_model=HistoryState)
async def remove_device(index: int, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.remove_device, index)


# --- Rack ---

@router.patch("/rack", response_model=HistoryState)
async def update_rack(req: SettingsRequest, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.update_rack, req.settings)

@router.put("/rack", response_model=HistoryState)
async def replace_rack(rack: Rack, editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.replace_rack, rack)

@router.post("/rack/clear", response_model=HistoryState)
async def clear_rack(editor: LayoutEditor = Depends(get_editor)):
    return _apply(editor.clear_rack)
