"""
Playback Coordinator - single owner of every live audio resource

Slots:
- narration: at most one session; a new play() preempts the current one
- ambient:   at most one looping background session, same preemption rule
- effects:   up to ``max_effects`` one-shot sessions; extra requests are dropped

Each session moves through LOADING -> PLAYING <-> PAUSED -> ENDED | ERRORED
and its resource handle is released exactly once, whichever way it ends.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from adapters.base import ResourceHandle
from errors import PlaybackError

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[ResourceHandle]]


class SessionKind(Enum):
    NARRATION = "narration"
    AMBIENT = "ambient"
    EFFECT = "effect"


class SessionState(Enum):
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    ERRORED = "errored"


ACTIVE_STATES = (SessionState.LOADING, SessionState.PLAYING, SessionState.PAUSED)


class PlaybackSession:
    """One in-flight narration, ambient loop or sound effect."""

    def __init__(self, kind: SessionKind, volume: float = 1.0, loop: bool = False, label: str = ""):
        self.kind = kind
        self.volume = volume
        self.loop = loop
        self.label = label or kind.value
        self.state = SessionState.LOADING
        self.started_at = time.monotonic()
        self.handle: Optional[ResourceHandle] = None
        self.interrupted = False
        self.error: Optional[PlaybackError] = None
        self._released = False
        self._task: Optional[asyncio.Future] = None
        self._done = asyncio.get_running_loop().create_future()
        # Nobody awaits effect sessions; mark failures as retrieved
        self._done.add_done_callback(lambda f: f.cancelled() or f.exception())

    @property
    def active(self) -> bool:
        return self.state in ACTIVE_STATES

    def current_time(self) -> float:
        if self.handle is None or not self.active:
            return 0.0
        return self.handle.current_time()

    def duration(self) -> float:
        if self.handle is None or not self.active:
            return 0.0
        return self.handle.duration()

    async def wait(self) -> None:
        """
        Wait for the session to finish.

        Returns normally on natural end, stop or preemption; raises
        PlaybackError if playback failed.
        """
        await asyncio.shield(self._done)

    def _release(self) -> None:
        if self.handle is None or self._released:
            return
        self._released = True
        try:
            self.handle.release()
        except Exception as e:
            logger.warning(f"Error releasing {self.label}: {e}")

    def __repr__(self):
        return f"<PlaybackSession {self.label} {self.state.value}>"


class PlaybackCoordinator:
    """
    Serializes all playback requests.

    There is no queue for narration: the last play() wins and everything
    it replaces is stopped and released before the new resource is loaded.
    """

    def __init__(self, max_effects: int = 3):
        self.max_effects = max_effects
        self._narration: Optional[PlaybackSession] = None
        self._ambient: Optional[PlaybackSession] = None
        self._effects: List[PlaybackSession] = []

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    async def play(
        self,
        loader: Loader,
        kind: SessionKind = SessionKind.NARRATION,
        volume: float = 1.0,
        loop: bool = False,
        label: str = "",
    ) -> Optional[PlaybackSession]:
        """
        Start a new session in the slot for ``kind``.

        Args:
            loader: Coroutine function that acquires and starts the resource
            kind: Which slot to play in
            volume: Volume the resource was started with
            loop: Whether the resource loops
            label: Name used in logs

        Returns:
            The session once it is playing (or already interrupted), or None
            when an effect was dropped because all effect slots are busy

        Raises:
            PlaybackError: the loader failed; the session is ERRORED
        """
        if kind is SessionKind.EFFECT:
            self._effects = [s for s in self._effects if s.active]
            if len(self._effects) >= self.max_effects:
                logger.info(f"Dropping sound effect {label!r}: {len(self._effects)} already playing")
                return None
        else:
            current = self._slot(kind)
            if current is not None and current.active:
                logger.info(f"Preempting {current.label}")
                self._terminate(current)

        session = PlaybackSession(kind, volume=volume, loop=loop, label=label)
        if kind is SessionKind.EFFECT:
            self._effects.append(session)
        elif kind is SessionKind.AMBIENT:
            self._ambient = session
        else:
            self._narration = session

        session._task = asyncio.ensure_future(loader())
        try:
            handle = await session._task
        except asyncio.CancelledError:
            if session.interrupted:
                return session
            self._terminate(session)
            raise
        except Exception as e:
            if session.interrupted:
                return session
            error = PlaybackError(e)
            logger.error(f"Could not start {session.label}: {e}")
            self._finish(session, SessionState.ERRORED, error)
            raise error from e

        session.handle = handle
        if not session.active:
            # stopped while the loader was finishing
            session._release()
            return session

        session.state = SessionState.PLAYING
        session._task = asyncio.ensure_future(self._watch(session))
        logger.info(f"Playing {session.label}")
        return session

    async def _watch(self, session: PlaybackSession) -> None:
        try:
            await session.handle.wait()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Playback of {session.label} failed: {e}")
            self._finish(session, SessionState.ERRORED, PlaybackError(e))
        else:
            logger.debug(f"Finished {session.label}")
            self._finish(session, SessionState.ENDED)

    def _finish(self, session: PlaybackSession, state: SessionState,
                error: Optional[PlaybackError] = None) -> None:
        if not session.active:
            return
        session.state = state
        session.error = error
        session._release()

        if self._narration is session:
            self._narration = None
        elif self._ambient is session:
            self._ambient = None
        elif session in self._effects:
            self._effects.remove(session)

        if not session._done.done():
            if error is not None:
                session._done.set_exception(error)
            else:
                session._done.set_result(None)

    def _terminate(self, session: PlaybackSession) -> None:
        """Stop a session without raising to whoever is waiting on it."""
        if not session.active:
            return
        session.interrupted = True
        task = session._task
        if task is not None and not task.done():
            task.cancel()
        self._finish(session, SessionState.ENDED)

    def _slot(self, kind: SessionKind) -> Optional[PlaybackSession]:
        if kind is SessionKind.AMBIENT:
            return self._ambient
        if kind is SessionKind.NARRATION:
            return self._narration
        return None

    # ------------------------------------------------------------------
    # Narration controls
    # ------------------------------------------------------------------

    def pause(self) -> None:
        session = self._narration
        if session is None or session.state is not SessionState.PLAYING:
            return
        session.handle.pause()
        session.state = SessionState.PAUSED
        logger.info(f"Paused {session.label}")

    def resume(self) -> None:
        session = self._narration
        if session is None or session.state is not SessionState.PAUSED:
            return
        session.handle.resume()
        session.state = SessionState.PLAYING
        logger.info(f"Resumed {session.label}")

    def stop(self) -> None:
        session = self._narration
        if session is not None:
            self._terminate(session)
            logger.info(f"Stopped {session.label}")

    def stop_ambient(self) -> None:
        if self._ambient is not None:
            self._terminate(self._ambient)

    def stop_effects(self) -> None:
        for session in list(self._effects):
            self._terminate(session)
        self._effects = []

    def stop_all(self) -> None:
        self.stop()
        self.stop_ambient()
        self.stop_effects()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def narration_session(self) -> Optional[PlaybackSession]:
        return self._narration

    @property
    def ambient_session(self) -> Optional[PlaybackSession]:
        return self._ambient

    def active_effects(self) -> List[PlaybackSession]:
        return [s for s in self._effects if s.active]

    def is_loading(self) -> bool:
        return self._narration is not None and self._narration.state is SessionState.LOADING

    def is_speaking(self) -> bool:
        return self._narration is not None and self._narration.state is SessionState.PLAYING

    def is_paused(self) -> bool:
        return self._narration is not None and self._narration.state is SessionState.PAUSED

    def get_current_time(self) -> float:
        return self._narration.current_time() if self._narration else 0.0

    def get_duration(self) -> float:
        return self._narration.duration() if self._narration else 0.0
