"""
XP System - Voice Tick Scheduler
================================

One cancellable per-minute timer for every member connected to voice.

Sessions are keyed by (guild_id, user_id). Stopping a session closes it
before the record is dropped, then cancels its task and waits for it, so no
tick can run for a member who has already left. A member who rejoins while
the old timer is still winding down gets a fresh session.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Tuple

from src.core.logger import log


SessionKey = Tuple[int, int]
TickCallback = Callable[[int, int], Awaitable[None]]


@dataclass
class VoiceSession:
    """A member's current stay in voice."""

    guild_id: int
    user_id: int
    username: str
    joined_at: float = field(default_factory=time.time)
    ticks: int = 0
    closed: bool = False
    task: Optional[asyncio.Task] = None

    @property
    def minutes(self) -> int:
        return int((time.time() - self.joined_at) / 60)


class VoiceTickScheduler:
    """Owns the per-member voice XP timers."""

    def __init__(self, on_tick: TickCallback, interval: float = 60.0) -> None:
        self._on_tick = on_tick
        self._interval = interval
        self._sessions: Dict[SessionKey, VoiceSession] = {}
        self._closing = False

    def __len__(self) -> int:
        return len(self._sessions)

    def is_tracking(self, guild_id: int, user_id: int) -> bool:
        return (guild_id, user_id) in self._sessions

    def get(self, guild_id: int, user_id: int) -> Optional[VoiceSession]:
        return self._sessions.get((guild_id, user_id))

    def start(self, guild_id: int, user_id: int, username: str) -> bool:
        """
        Begin ticking for a member.

        Returns:
            False if the member already had a running timer (e.g. channel
            switch) or the scheduler is shutting down
        """
        key = (guild_id, user_id)
        if self._closing or key in self._sessions:
            return False

        session = VoiceSession(guild_id=guild_id, user_id=user_id, username=username)
        session.task = asyncio.create_task(
            self._run(session), name=f"voice-xp-{guild_id}-{user_id}"
        )
        self._sessions[key] = session
        return True

    async def stop(self, guild_id: int, user_id: int) -> Optional[VoiceSession]:
        """Close a member's timer, forget the session, then wait for the task to end."""
        key = (guild_id, user_id)
        session = self._sessions.get(key)
        if session is None:
            return None

        session.closed = True
        del self._sessions[key]
        await self._cancel(session)
        return session

    async def stop_all(self) -> int:
        """Cancel every timer (shutdown). Returns how many were running."""
        self._closing = True
        stopped = 0
        while self._sessions:
            key = next(iter(self._sessions))
            session = self._sessions.pop(key)
            session.closed = True
            await self._cancel(session)
            stopped += 1
        return stopped

    async def _cancel(self, session: VoiceSession) -> None:
        session.closed = True
        task = session.task
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return  # Stopping from inside our own tick; the loop exits on `closed`
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self, session: VoiceSession) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if session.closed:
                return

            try:
                await self._on_tick(session.guild_id, session.user_id)
                session.ticks += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error_tree("Voice XP Tick Failed", e, [
                    ("User", session.username),
                    ("ID", str(session.user_id)),
                    ("Guild ID", str(session.guild_id)),
                ])
