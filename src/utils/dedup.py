"""
CampfireBot - Duplicate Protection
==================================

Guards used by command dispatch:
    - InteractionCache: remembers handled interaction ids for a while so a
      redelivered interaction is not processed twice
    - OperationGuard: marks a per-guild operation as running so the periodic
      refresh and a manual rebuild never touch the same message together
"""

import time
from contextlib import contextmanager
from typing import Callable, Dict, Hashable, Iterator, Set

from src.core.constants import INTERACTION_TTL


class InteractionCache:
    """Set of recently seen keys with time-based eviction."""

    def __init__(self, ttl: float = INTERACTION_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._seen: Dict[Hashable, float] = {}

    def __len__(self) -> int:
        self._evict()
        return len(self._seen)

    def _evict(self) -> None:
        now = self._clock()
        expired = [key for key, at in self._seen.items() if now - at >= self.ttl]
        for key in expired:
            del self._seen[key]

    def claim(self, key: Hashable) -> bool:
        """
        Mark a key as handled.

        Returns:
            True the first time a key is claimed within the TTL, False after
        """
        self._evict()
        if key in self._seen:
            return False
        self._seen[key] = self._clock()
        return True


class OperationGuard:
    """Named in-progress markers."""

    def __init__(self) -> None:
        self._running: Set[Hashable] = set()

    def is_running(self, key: Hashable) -> bool:
        return key in self._running

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[bool]:
        """
        Run an operation under a key.

        Yields:
            False if the key was already held (caller should back off)
        """
        if key in self._running:
            yield False
            return
        self._running.add(key)
        try:
            yield True
        finally:
            self._running.discard(key)
