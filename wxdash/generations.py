"""Request generation tokens for discarding superseded responses."""

from __future__ import annotations

import threading
from typing import Dict, Hashable


class GenerationGuard:
    """Per-key monotonically increasing tokens.

    ``issue(key)`` is called when a request starts; when it resolves the
    result is applied only if ``is_current(key, token)`` still holds.
    """

    def __init__(self):
        self._current: Dict[Hashable, int] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def issue(self, key: Hashable) -> int:
        with self._lock:
            self._counter += 1
            self._current[key] = self._counter
            return self._counter

    def is_current(self, key: Hashable, token: int) -> bool:
        with self._lock:
            return self._current.get(key) == token

    def invalidate(self, key: Hashable = None) -> None:
        """Make outstanding tokens stale, for one key or (key=None) all of them."""
        with self._lock:
            if key is None:
                self._current.clear()
            else:
                self._current.pop(key, None)
