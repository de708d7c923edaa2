"""Unit tests for the ffmpeg HLS transcoder."""

from unittest.mock import MagicMock, patch

import pytest

from src.infrastructure.video import FFmpegHlsTranscoder

RUN = "src.infrastructure.video.ffmpeg_transcoder.subprocess.run"


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


class TestFFmpegHlsTranscoder:
    """Tests for the audio check and the ffmpeg invocation."""

    async def test_both_commands_are_bounded_by_timeout(self, tmp_path):
        transcoder = FFmpegHlsTranscoder(timeout_seconds=45)
        with patch(RUN, side_effect=[_completed("1\n"), _completed()]) as run:
            output = await transcoder.transcode(
                tmp_path / "source.mp4", tmp_path / "hls"
            )

        assert run.call_count == 2
        assert all(call.kwargs["timeout"] == 45 for call in run.call_args_list)
        assert str(output.playlist) == "master.m3u8"

    async def test_audio_stream_is_mapped(self, tmp_path):
        transcoder = FFmpegHlsTranscoder()
        with patch(RUN, side_effect=[_completed("1\n"), _completed()]) as run:
            await transcoder.transcode(tmp_path / "source.mp4", tmp_path / "hls")

        ffmpeg_cmd = run.call_args_list[1].args[0]
        assert "-c:a" in ffmpeg_cmd
        assert "v:0,a:0,name:360 v:1,a:1,name:720" in ffmpeg_cmd

    async def test_silent_source_skips_audio(self, tmp_path):
        transcoder = FFmpegHlsTranscoder()
        with patch(RUN, side_effect=[_completed(""), _completed()]) as run:
            await transcoder.transcode(tmp_path / "source.mp4", tmp_path / "hls")

        ffmpeg_cmd = run.call_args_list[1].args[0]
        assert "-c:a" not in ffmpeg_cmd
        assert "v:0,name:360 v:1,name:720" in ffmpeg_cmd

    async def test_ffmpeg_failure(self, tmp_path):
        transcoder = FFmpegHlsTranscoder()
        failed = _completed(returncode=1, stderr="line\nInvalid data found")
        with (
            patch(RUN, side_effect=[_completed("1\n"), failed]),
            pytest.raises(RuntimeError, match="Invalid data found"),
        ):
            await transcoder.transcode(tmp_path / "source.mp4", tmp_path / "hls")
