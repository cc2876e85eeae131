from __future__ import annotations

import logging
import sys
from typing import Callable


LOGGER = logging.getLogger(__name__)

DisplayHook = Callable[[str, "str | bytes"], None]

_HOOKS: list[DisplayHook] = []


def push_display(hook: DisplayHook) -> None:
    """Route finished in-memory documents to `hook(mime, payload)` until popped."""

    _HOOKS.append(hook)


def pop_display() -> DisplayHook:
    if not _HOOKS:
        raise RuntimeError("no display hook to pop")
    return _HOOKS.pop()


def display(mime: str, payload: str | bytes) -> None:
    if _HOOKS:
        _HOOKS[-1](mime, payload)
        return
    LOGGER.debug("no display hook registered; writing %s to stdout", mime)
    if isinstance(payload, bytes):
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        sys.stdout.write(payload)
        sys.stdout.flush()
