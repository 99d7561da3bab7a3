# src/logging/context.py
"""Contextual logging support: attach batch key and finalize step to log records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_batch_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_key", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    batch_key: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(batch_key=_batch_key.get(), step=_step.get())


def set_batch_context(batch_key: str | None) -> None:
    """Set the batch currently being finalized."""
    _batch_key.set(batch_key)


@contextmanager
def step_context(step: str) -> Iterator[None]:
    """Tag records emitted inside the block with a finalize step name."""
    token = _step.set(step)
    try:
        yield
    finally:
        _step.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_key.set(None)
    _step.set(None)
