"""Command contract for the editor history."""
from __future__ import annotations

import abc
import logging
import time
from enum import Enum
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandKind(str, Enum):
    PLACE_DEVICE = "PLACE_DEVICE"
    MOVE_DEVICE = "MOVE_DEVICE"
    REMOVE_DEVICE = "REMOVE_DEVICE"
    UPDATE_DEVICE_FACE = "UPDATE_DEVICE_FACE"
    UPDATE_DEVICE_NAME = "UPDATE_DEVICE_NAME"
    ADD_DEVICE_TYPE = "ADD_DEVICE_TYPE"
    UPDATE_DEVICE_TYPE = "UPDATE_DEVICE_TYPE"
    DELETE_DEVICE_TYPE = "DELETE_DEVICE_TYPE"
    UPDATE_RACK = "UPDATE_RACK"
    REPLACE_RACK = "REPLACE_RACK"
    CLEAR_RACK = "CLEAR_RACK"
    BATCH = "BATCH"


class CommandContractError(ValueError):
    """A command was built without the data it needs to identify its target."""


class _Clock:
    """Wall-clock timestamps that never go backwards within the process."""

    def __init__(self):
        self._last = 0.0

    def now(self) -> float:
        self._last = max(self._last, time.time())
        return self._last


_clock = _Clock()


def command_timestamp() -> float:
    return _clock.now()


class Command(abc.ABC):
    """
    A reversible, named unit of mutation.

    `forward()` applies the change to the layout; `reverse()` undoes the
    most recent `forward()`. Subclasses snapshot any structured data they
    are given when constructed.
    """

    kind: CommandKind

    def __init__(self, description: str, created_at: Optional[float] = None):
        if not description:
            raise CommandContractError("Command requires a description")
        self.description = description
        self.created_at = created_at if created_at is not None else command_timestamp()

    @abc.abstractmethod
    def forward(self) -> None:
        """Applies the change."""

    @abc.abstractmethod
    def reverse(self) -> None:
        """Reverts the change."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind.value} {self.description!r}>"


class BatchCommand(Command):
    """
    Several commands that undo and redo as one step.

    Children run in order on `forward()` and in reverse order on `reverse()`.
    If a child raises, the children already run in that pass are rolled back
    before the error propagates, so the batch is all-or-nothing.
    """

    kind = CommandKind.BATCH

    def __init__(self, description: str, commands: Sequence[Command], created_at: Optional[float] = None):
        super().__init__(description, created_at)
        if not commands:
            raise CommandContractError("Batch requires at least one command")
        self.commands: List[Command] = list(commands)

    def forward(self) -> None:
        applied: List[Command] = []
        try:
            for cmd in self.commands:
                cmd.forward()
                applied.append(cmd)
        except Exception:
            logger.warning("Batch %r failed after %s of %s commands, rolling back",
                           self.description, len(applied), len(self.commands))
            for cmd in reversed(applied):
                cmd.reverse()
            raise

    def reverse(self) -> None:
        reverted: List[Command] = []
        try:
            for cmd in reversed(self.commands):
                cmd.reverse()
                reverted.append(cmd)
        except Exception:
            logger.warning("Batch %r undo failed after %s of %s commands, re-applying",
                           self.description, len(reverted), len(self.commands))
            for cmd in reversed(reverted):
                cmd.forward()
            raise
