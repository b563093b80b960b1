"""Engine error reporting."""

from __future__ import annotations

from typing import NoReturn


class EngineError(RuntimeError):
    """Raised when the engine hits an unrecoverable condition."""


def fatal_error(message: str) -> NoReturn:
    """Abort the current operation by raising an EngineError."""
    raise EngineError(message)