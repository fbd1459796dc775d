"""
Shared fakes for narration and playback tests.
"""

import asyncio
from typing import List, Optional

import pytest

from adapters.base import ResourceHandle, SynthesisBackend
from models.personality import VoiceCharacteristics


class FakeHandle(ResourceHandle):
    """A resource handle the test finishes by hand."""

    def __init__(self, duration: float = 0.0, current: float = 0.0):
        self._finished = asyncio.Event()
        self._error: Optional[BaseException] = None
        self._duration = duration
        self._current = current
        self.release_count = 0
        self.pause_count = 0
        self.resume_count = 0

    async def wait(self) -> None:
        await self._finished.wait()
        if self._error is not None:
            raise self._error

    def finish(self, error: Optional[BaseException] = None) -> None:
        self._error = error
        self._finished.set()

    def pause(self) -> None:
        self.pause_count += 1

    def resume(self) -> None:
        self.resume_count += 1

    def release(self) -> None:
        self.release_count += 1
        self._finished.set()

    def current_time(self) -> float:
        return self._current

    def duration(self) -> float:
        return self._duration


class FakeBackend(SynthesisBackend):
    """Records open() calls and hands out FakeHandles."""

    def __init__(
        self,
        name: str = "local",
        available: bool = True,
        remote_only: bool = False,
        error: Optional[BaseException] = None,
        duration: float = 0.0,
        current: float = 0.0,
    ):
        self._name = name
        self.available = available
        self.remote_only = remote_only
        self.error = error
        self.duration = duration
        self.current = current
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[tuple] = []
        self.handles: List[FakeHandle] = []

    @property
    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self.available

    def supports(self, characteristics: VoiceCharacteristics) -> bool:
        return characteristics.has_remote_voice if self.remote_only else True

    async def open(self, text, characteristics, volume=1.0) -> ResourceHandle:
        self.calls.append((text, characteristics, volume))
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        handle = FakeHandle(duration=self.duration, current=self.current)
        self.handles.append(handle)
        return handle


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def local_backend() -> FakeBackend:
    return FakeBackend("local")


@pytest.fixture
def remote_backend() -> FakeBackend:
    return FakeBackend("elevenlabs", remote_only=True, duration=10.0)
