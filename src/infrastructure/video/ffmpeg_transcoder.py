"""FFmpeg implementation of HLS transcoding."""

import asyncio
import subprocess
from dataclasses import dataclass
from pathlib import Path

from src.commons.telemetry import get_logger, timed
from src.infrastructure.video.base import TranscodeOutput, TranscoderBase

MASTER_PLAYLIST = "master.m3u8"


@dataclass(frozen=True)
class Rendition:
    """One HLS variant."""

    name: str
    width: int
    height: int
    bitrate: str
    maxrate: str
    bufsize: str


DEFAULT_RENDITIONS = (
    Rendition("360", 640, 360, "800k", "900k", "1200k"),
    Rendition("720", 1280, 720, "2800k", "3000k", "4200k"),
)


class FFmpegHlsTranscoder(TranscoderBase):
    """Encodes a source video into a multi-rendition HLS ladder.

    Requires ffmpeg and ffprobe to be installed and available in PATH.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        renditions: tuple[Rendition, ...] = DEFAULT_RENDITIONS,
        segment_seconds: int = 4,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the transcoder.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            ffprobe_path: Path to ffprobe executable.
            renditions: Variants to produce, lowest first.
            segment_seconds: Target HLS segment length.
            timeout_seconds: Kill ffmpeg after this long.
        """
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._renditions = renditions
        self._segment_seconds = segment_seconds
        self._timeout = timeout_seconds
        self._logger = get_logger(__name__)

    @timed
    async def transcode(self, input_path: Path, output_dir: Path) -> TranscodeOutput:
        """Run ffmpeg and collect the produced playlists and segments."""
        output_dir.mkdir(parents=True, exist_ok=True)
        has_audio = await self._has_audio(input_path)
        cmd = self._build_command(input_path, output_dir, has_audio=has_audio)

        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None,
            lambda: subprocess.run(
                cmd, capture_output=True, text=True, timeout=self._timeout
            ),
        )
        if result.returncode != 0:
            tail = result.stderr.strip().splitlines()[-5:]
            raise RuntimeError(
                f"ffmpeg exited with {result.returncode}: {' | '.join(tail)}"
            )

        files = sorted(
            p.relative_to(output_dir) for p in output_dir.rglob("*") if p.is_file()
        )
        self._logger.info(
            "HLS transcode finished",
            extra={"files": len(files), "has_audio": has_audio},
        )
        return TranscodeOutput(
            output_dir=output_dir,
            playlist=Path(MASTER_PLAYLIST),
            files=files,
        )

    def _build_command(
        self, input_path: Path, output_dir: Path, *, has_audio: bool
    ) -> list[str]:
        count = len(self._renditions)
        labels = "".join(f"[v{i}]" for i in range(count))
        filters = [f"[0:v]split={count}{labels}"]
        for i, rendition in enumerate(self._renditions):
            filters.append(
                f"[v{i}]scale={rendition.width}:{rendition.height}"
                f":flags=lanczos[v{i}out]"
            )

        cmd = [self._ffmpeg, "-y", "-i", str(input_path)]
        cmd += ["-filter_complex", ";".join(filters)]

        stream_map: list[str] = []
        for i, rendition in enumerate(self._renditions):
            cmd += ["-map", f"[v{i}out]"]
            if has_audio:
                cmd += ["-map", "0:a:0"]
            cmd += [
                f"-c:v:{i}", "libx264",
                f"-b:v:{i}", rendition.bitrate,
                f"-maxrate:v:{i}", rendition.maxrate,
                f"-bufsize:v:{i}", rendition.bufsize,
            ]
            stream_map.append(
                f"v:{i},a:{i},name:{rendition.name}"
                if has_audio
                else f"v:{i},name:{rendition.name}"
            )

        cmd += ["-pix_fmt", "yuv420p", "-g", "60", "-keyint_min", "60"]
        cmd += ["-sc_threshold", "0"]
        if has_audio:
            cmd += ["-c:a", "aac", "-b:a", "128k", "-ac", "2"]

        cmd += [
            "-f", "hls",
            "-hls_time", str(self._segment_seconds),
            "-hls_playlist_type", "vod",
            "-hls_flags", "independent_segments",
            "-hls_segment_filename", str(output_dir / "%v" / "segment_%03d.ts"),
            "-master_pl_name", MASTER_PLAYLIST,
            "-var_stream_map", " ".join(stream_map),
            str(output_dir / "%v" / "index.m3u8"),
        ]
        return cmd

    async def _has_audio(self, input_path: Path) -> bool:
        cmd = [
            self._ffprobe,
            "-v",
            "error",
            "-select_streams",
            "a",
            "-show_entries",
            "stream=index",
            "-of",
            "csv=p=0",
            str(input_path),
        ]
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None,
            lambda: subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self._timeout,
            ),
        )
        return bool(result.stdout.strip())
