"""Run-wide coordination primitives: the cargo serialization gate and the abort flag."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

T = TypeVar("T")


class BuildSerializationGate:
    """Counting mutex with a limit of one. rustup may install a missing target's std on first use; that step is not safe to run twice at once."""

    def __init__(self) -> None:
        self._sem = threading.BoundedSemaphore(1)

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._sem:
            yield

    def with_exclusive_access(self, fn: Callable[[], T]) -> T:
        with self.exclusive():
            return fn()


class RunAbort:
    """Set by the first failing task. Tasks that have not reached cargo yet check it and skip."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()

    def is_set(self) -> bool:
        return self._event.is_set()

    def claim(self) -> bool:
        """Set the flag. True only for the call that set it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True


__all__ = ["BuildSerializationGate", "RunAbort"]
