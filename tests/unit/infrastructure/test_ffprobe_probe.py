"""Unit tests for the ffprobe duration probe."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.domain.exceptions import DurationProbeException
from src.infrastructure.video import FFprobeDurationProbe

RUN = "src.infrastructure.video.ffprobe_probe.subprocess.run"


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


class TestFFprobeDurationProbe:
    """Tests for duration parsing and failure mapping."""

    def test_parses_duration(self):
        probe = FFprobeDurationProbe(ffprobe_path="/usr/bin/ffprobe")
        with patch(RUN, return_value=_completed("12.345678\n")) as run:
            duration = probe.probe(Path("/tmp/source.mp4"), timeout_seconds=30)

        assert duration.seconds == pytest.approx(12.345678)
        assert duration.milliseconds == 12346
        cmd = run.call_args.args[0]
        assert cmd[0] == "/usr/bin/ffprobe"
        assert cmd[-1] == "/tmp/source.mp4"
        assert "format=duration" in cmd
        assert run.call_args.kwargs["timeout"] == 30

    def test_non_zero_exit(self):
        probe = FFprobeDurationProbe()
        with (
            patch(RUN, return_value=_completed(returncode=1, stderr="moov missing")),
            pytest.raises(DurationProbeException, match="moov missing"),
        ):
            probe.probe(Path("/tmp/broken.mp4"))

    @pytest.mark.parametrize("output", ["N/A", "", "nan", "-1"])
    def test_rejects_unusable_output(self, output):
        probe = FFprobeDurationProbe()
        with (
            patch(RUN, return_value=_completed(output)),
            pytest.raises(DurationProbeException),
        ):
            probe.probe(Path("/tmp/source.mp4"))

    def test_timeout(self):
        probe = FFprobeDurationProbe()
        with (
            patch(RUN, side_effect=subprocess.TimeoutExpired("ffprobe", 5)),
            pytest.raises(DurationProbeException, match="timed out"),
        ):
            probe.probe(Path("/tmp/source.mp4"), timeout_seconds=5)

    def test_missing_binary(self):
        probe = FFprobeDurationProbe(ffprobe_path="/nope/ffprobe")
        with (
            patch(RUN, side_effect=FileNotFoundError("/nope/ffprobe")),
            pytest.raises(DurationProbeException),
        ):
            probe.probe(Path("/tmp/source.mp4"))
