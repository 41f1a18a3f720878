from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HistoryState(BaseModel):
    """Read model of the history for UI binding."""
    can_undo: bool = False
    can_redo: bool = False
    undo_description: Optional[str] = None  # "Undo: Move device"
    redo_description: Optional[str] = None
    history_length: int = 0
    redo_length: int = 0
    max_depth: int
