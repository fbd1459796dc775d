"""
Tests for process-backed playback handles and the audio player.
"""

import asyncio
import sys
from pathlib import Path

import pytest

from adapters.base import AudioResource
from adapters.player import AudioPlayer, ProcessPlayback
from errors import SynthesisError


def _python(code: str):
    return [sys.executable, "-c", code]


class TestProcessPlayback:

    @pytest.mark.asyncio
    async def test_clean_exit(self) -> None:
        playback = ProcessPlayback(_python("pass"))
        await playback.start()

        await asyncio.wait_for(playback.wait(), timeout=10)
        assert not playback.running

    @pytest.mark.asyncio
    async def test_failed_exit_raises_configured_error(self) -> None:
        playback = ProcessPlayback(_python("raise SystemExit(3)"), failure=SynthesisError)
        await playback.start()

        with pytest.raises(SynthesisError, match="status 3"):
            await asyncio.wait_for(playback.wait(), timeout=10)

    @pytest.mark.asyncio
    async def test_release_stops_process_and_deletes_file(self, tmp_path: Path) -> None:
        audio = tmp_path / "clip.mp3"
        audio.write_bytes(b"audio")
        playback = ProcessPlayback(_python("import time; time.sleep(30)"), temp_path=audio)
        await playback.start()

        playback.release()
        playback.release()
        await asyncio.wait_for(playback.wait(), timeout=10)

        assert not audio.exists()
        assert not playback.running

    @pytest.mark.asyncio
    async def test_pause_and_resume(self) -> None:
        playback = ProcessPlayback(_python("import time; time.sleep(30)"), duration=30.0)
        await playback.start()

        playback.pause()
        assert playback.paused
        frozen = playback.current_time()
        assert playback.current_time() == frozen

        playback.resume()
        assert not playback.paused
        playback.release()
        await asyncio.wait_for(playback.wait(), timeout=10)

    def test_untimed_reports_zero(self) -> None:
        playback = ProcessPlayback(["say", "hi"], duration=5.0, timed=False)
        assert playback.current_time() == 0.0
        assert playback.duration() == 0.0


class TestAudioPlayer:

    def test_afplay_command(self) -> None:
        player = AudioPlayer(command="afplay")
        assert player.build_command(Path("/tmp/a.mp3"), 0.5) == ["afplay", "-v", "0.50", "/tmp/a.mp3"]

    def test_ffplay_command(self) -> None:
        player = AudioPlayer(command="ffplay")
        cmd = player.build_command(Path("/tmp/a.mp3"), 0.42)
        assert cmd[:5] == ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"]
        assert cmd[-3:] == ["-volume", "42", "/tmp/a.mp3"]

    @pytest.mark.asyncio
    async def test_play_writes_temp_file_until_release(self, tmp_path: Path) -> None:
        player = AudioPlayer(command="true", temp_dir=str(tmp_path))

        playback = await player.play(AudioResource(audio_bytes=b"mp3 data", duration_seconds=1.5))
        await asyncio.wait_for(playback.wait(), timeout=10)

        assert playback.temp_path.read_bytes() == b"mp3 data"
        assert playback.duration() == 1.5
        playback.release()
        assert not playback.temp_path.exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_play_failure_cleans_up(self, tmp_path: Path) -> None:
        player = AudioPlayer(command="no-such-audio-player", temp_dir=str(tmp_path))

        with pytest.raises(OSError):
            await player.play(AudioResource(audio_bytes=b"mp3 data", duration_seconds=1.0))

        assert list(tmp_path.iterdir()) == []
