"""Editor History Engine (Undo/Redo)."""
from __future__ import annotations

import logging
from typing import List, Optional

from rack_engines.history.commands.base import Command
from rack_engines.history.models import HistoryState

logger = logging.getLogger(__name__)

MAX_HISTORY_DEPTH = 50


class HistoryStack:
    """
    Linear undo/redo timeline over reversible commands.

    Executing a new command discards the redo stack. Only the undo stack is
    bounded; the redo stack can never hold more than was undone from it.
    Stack bookkeeping happens only after a command's action returns, so a
    command that raises stays where it was and the error reaches the caller.
    """

    def __init__(self, max_depth: int = MAX_HISTORY_DEPTH, commands: Optional[List[Command]] = None):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.max_depth = max_depth
        self.undo_stack: List[Command] = list(commands or [])[-max_depth:]
        self.redo_stack: List[Command] = []

    def execute(self, cmd: Command) -> None:
        """Runs a command and pushes it to history."""
        cmd.forward()
        self.undo_stack.append(cmd)
        self.redo_stack.clear()

        overflow = len(self.undo_stack) - self.max_depth
        if overflow > 0:
            del self.undo_stack[:overflow]
            logger.info("History full, dropped %s oldest command(s)", overflow)
        logger.debug("Executed %s", cmd.description)

    def undo(self) -> bool:
        if not self.undo_stack:
            return False

        cmd = self.undo_stack[-1]
        cmd.reverse()
        self.undo_stack.pop()
        self.redo_stack.append(cmd)
        logger.debug("Undid %s", cmd.description)
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            return False

        cmd = self.redo_stack[-1]
        cmd.forward()
        self.redo_stack.pop()
        self.undo_stack.append(cmd)
        logger.debug("Redid %s", cmd.description)
        return True

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()
        logger.debug("History cleared")

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    @property
    def undo_description(self) -> Optional[str]:
        if not self.undo_stack:
            return None
        return f"Undo: {self.undo_stack[-1].description}"

    @property
    def redo_description(self) -> Optional[str]:
        if not self.redo_stack:
            return None
        return f"Redo: {self.redo_stack[-1].description}"

    @property
    def history_length(self) -> int:
        return len(self.undo_stack)

    def state(self) -> HistoryState:
        return HistoryState(
            can_undo=self.can_undo,
            can_redo=self.can_redo,
            undo_description=self.undo_description,
            redo_description=self.redo_description,
            history_length=self.history_length,
            redo_length=len(self.redo_stack),
            max_depth=self.max_depth,
        )
