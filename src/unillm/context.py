from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from .errors import DeadlineExceededError, RequestCancelledError


class CallContext:
    """Deadline and cancellation signal carried from the caller into a provider.

    A context may be shared by several calls; cancelling it aborts all of them.
    Providers call `check()` before network I/O, bound the HTTP timeout with
    `remaining()` and register `on_cancel` hooks to abort requests in flight.
    """

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._hooks: List[Callable[[], None]] = []
        self.deadline: Optional[float] = (
            time.monotonic() + timeout_s if timeout_s is not None else None
        )

    @classmethod
    def background(cls) -> "CallContext":
        return cls()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled.set()
            hooks, self._hooks = self._hooks, []
        for fn in hooks:
            fn()

    def on_cancel(self, fn: Callable[[], None]) -> Callable[[], None]:
        """Run `fn` once when the context is cancelled (now, if it already is).

        Returns a function that unregisters the hook.
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._hooks.append(fn)
                return lambda: self._discard(fn)
        fn()
        return lambda: None

    def _discard(self, fn: Callable[[], None]) -> None:
        with self._lock:
            if fn in self._hooks:
                self._hooks.remove(fn)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        if self._cancelled.is_set():
            raise RequestCancelledError()
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise DeadlineExceededError()

    def timeout_for(self, default_s: float) -> float:
        """HTTP timeout for the next request: the default, capped by the deadline."""
        left = self.remaining()
        if left is None:
            return default_s
        return min(default_s, left)
