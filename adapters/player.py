"""
Process-backed audio playback

Plays audio through an external command (afplay on macOS, ffplay elsewhere)
and drives the local speech synthesizer the same way. Pause and resume stop
and continue the process; release terminates it and deletes the temp file.
"""

import asyncio
import logging
import os
import shutil
import signal
import tempfile
import time
from pathlib import Path
from typing import List, Optional

import aiofiles

from adapters.base import AudioResource, ResourceHandle
from config import settings

logger = logging.getLogger(__name__)


class ProcessPlayback(ResourceHandle):
    """A running playback command, owned by whoever started it."""

    def __init__(
        self,
        command: List[str],
        duration: float = 0.0,
        loop: bool = False,
        temp_path: Optional[Path] = None,
        timed: bool = True,
        failure: type = RuntimeError,
    ):
        self.command = command
        self.loop = loop
        self.temp_path = temp_path
        self.timed = timed
        self.failure = failure
        self._duration = duration
        self._process: Optional[asyncio.subprocess.Process] = None
        self._started_at: Optional[float] = None
        self._paused_at: Optional[float] = None
        self._paused_total = 0.0
        self._released = False

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def paused(self) -> bool:
        return self._paused_at is not None

    async def start(self) -> None:
        """Spawn the command. Raises OSError if it cannot be started."""
        self._process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        if self._started_at is None:
            self._started_at = time.monotonic()
        logger.debug(f"Started {self.command[0]} (pid={self._process.pid})")

    async def wait(self) -> None:
        while True:
            returncode = await self._process.wait()
            if self._released:
                return
            if returncode != 0:
                raise self.failure(f"{self.command[0]} exited with status {returncode}")
            if not self.loop:
                return
            await self.start()

    def pause(self) -> None:
        if not self.running or self.paused:
            return
        self._process.send_signal(signal.SIGSTOP)
        self._paused_at = time.monotonic()

    def resume(self) -> None:
        if not self.paused:
            return
        if self.running:
            self._process.send_signal(signal.SIGCONT)
        self._paused_total += time.monotonic() - self._paused_at
        self._paused_at = None

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self.running:
            try:
                if self.paused:
                    self._process.send_signal(signal.SIGCONT)
                self._process.terminate()
            except ProcessLookupError:
                pass
        if self.temp_path is not None:
            try:
                os.unlink(self.temp_path)
            except OSError:
                pass
        logger.debug(f"Released {self.command[0]} playback")

    def current_time(self) -> float:
        if not self.timed or self._started_at is None:
            return 0.0
        now = self._paused_at if self._paused_at is not None else time.monotonic()
        elapsed = max(0.0, now - self._started_at - self._paused_total)
        if self._duration > 0:
            if self.loop:
                return elapsed % self._duration
            return min(elapsed, self._duration)
        return elapsed

    def duration(self) -> float:
        return self._duration if self.timed else 0.0


class AudioPlayer:
    """
    Plays encoded audio bytes with a command-line player.

    The bytes go to a temp file that lives exactly as long as the playback.
    """

    def __init__(self, command: Optional[str] = None, temp_dir: Optional[str] = None):
        self.command = command or settings.player_command
        self.temp_dir = temp_dir

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def build_command(self, path: Path, volume: float) -> List[str]:
        name = Path(self.command).name
        if name == "afplay":
            return [self.command, "-v", f"{volume:.2f}", str(path)]
        if name == "ffplay":
            return [
                self.command, "-nodisp", "-autoexit", "-loglevel", "quiet",
                "-volume", str(int(round(volume * 100))), str(path),
            ]
        return [self.command, str(path)]

    async def play(self, resource: AudioResource, volume: float = 1.0,
                   loop: bool = False) -> ProcessPlayback:
        """Write the audio to a temp file and start playing it."""
        with tempfile.NamedTemporaryFile(
            suffix=f".{resource.format}", dir=self.temp_dir, delete=False
        ) as tmp:
            path = Path(tmp.name)

        playback = ProcessPlayback(
            self.build_command(path, volume),
            duration=resource.duration_seconds,
            loop=loop,
            temp_path=path,
        )
        try:
            async with aiofiles.open(path, 'wb') as f:
                await f.write(resource.audio_bytes)
            await playback.start()
        except BaseException:
            playback.release()
            raise

        logger.info(f"Playing {len(resource.audio_bytes)} bytes "
                    f"(~{resource.duration_seconds:.1f}s, volume={volume:.2f}, loop={loop})")
        return playback
