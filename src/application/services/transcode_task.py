"""Transcode task runner: the work done inside the dispatched external task."""

import asyncio
import contextlib
import tempfile
from pathlib import Path, PurePosixPath
from types import TracebackType

from src.commons.infrastructure.blob.base import BlobStorageBase
from src.commons.settings.models import Settings
from src.commons.telemetry import LogContext, get_logger
from src.infrastructure.content.base import ContentCallbackBase, TranscodeResult
from src.infrastructure.locks.base import LockStoreBase
from src.infrastructure.video.base import DurationProbeBase, TranscoderBase

logger = get_logger(__name__)

# Content types for the files an HLS ladder is made of.
_HLS_CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
    ".m4s": "video/iso.segment",
    ".mp4": "video/mp4",
}


class LockLostError(RuntimeError):
    """Raised when another owner took over the processing lock."""


class LeaseHeartbeat:
    """Extends the processing lock's lease on a fixed interval.

    Use as ``async with``; the background task stops when the block exits.
    If the lock turns out to belong to someone else, ``lost`` is set and
    the heartbeat stops.
    """

    def __init__(
        self,
        lock_store: LockStoreBase,
        video_id: str,
        owner: str,
        interval_seconds: float,
        extension_seconds: int,
    ) -> None:
        self._locks = lock_store
        self._video_id = video_id
        self._owner = owner
        self._interval = interval_seconds
        self._extension = extension_seconds
        self._task: asyncio.Task[None] | None = None
        self.lost = False
        self.beats = 0

    async def __aenter__(self) -> "LeaseHeartbeat":
        self._task = asyncio.create_task(self._run())
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                still_owned = await self._locks.extend_lease(
                    self._video_id, self._owner, self._extension
                )
            except Exception:
                # A missed beat is survivable while the lease has time left.
                logger.warning("Lease heartbeat failed", exc_info=True)
                continue

            self.beats += 1
            if not still_owned:
                self.lost = True
                logger.error(
                    "Processing lock taken over by another owner",
                    extra={"video_id": self._video_id, "owner": self._owner},
                )
                return


class TranscodeTaskRunner:
    """Downloads, transcodes, publishes and reports one video.

    The lock is marked DONE on success. Any failure marks it FAILED and
    re-raises, so the task exits non-zero.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        lock_store: LockStoreBase,
        transcoder: TranscoderBase,
        duration_probe: DurationProbeBase,
        settings: Settings,
        content_callback: ContentCallbackBase | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            blob_storage: Storage holding the source and receiving the output.
            lock_store: Processing locks to heartbeat and mark.
            transcoder: Produces the streamable output.
            duration_probe: Measures the source duration.
            settings: Application settings.
            content_callback: Receives the result; skipped when None.
        """
        self._blob = blob_storage
        self._locks = lock_store
        self._transcoder = transcoder
        self._probe = duration_probe
        self._callback = content_callback
        self._bucket = settings.blob_storage.buckets.permanent
        self._transcode = settings.transcode

    async def run(
        self, object_key: str, video_id: str, lock_owner: str
    ) -> TranscodeResult:
        """Process one video while holding its lock.

        Args:
            object_key: Source object in the permanent bucket.
            video_id: Id the lock is held under.
            lock_owner: Identity the intake worker acquired the lock as.

        Returns:
            The result that was reported.
        """
        with LogContext(video_id=video_id, object_key=object_key):
            logger.info("Transcode task started", extra={"owner": lock_owner})
            try:
                heartbeat = LeaseHeartbeat(
                    self._locks,
                    video_id,
                    lock_owner,
                    interval_seconds=self._transcode.heartbeat_interval_seconds,
                    extension_seconds=self._transcode.lease_extension_seconds,
                )
                async with heartbeat:
                    result = await self._process(object_key, video_id)
                    if heartbeat.lost:
                        raise LockLostError(f"lock for {video_id} is no longer ours")
                    if self._callback is not None:
                        await self._callback.report(result)
            except Exception:
                logger.exception("Transcode task failed")
                await self._mark_failed(video_id, lock_owner)
                raise

            await self._locks.mark_completed(video_id, lock_owner)
            logger.info(
                "Transcode task finished",
                extra={
                    "playlist_key": result.playlist_key,
                    "duration_ms": result.duration_ms,
                },
            )
            return result

    async def _process(self, object_key: str, video_id: str) -> TranscodeResult:
        work_root = Path(self._transcode.work_dir)
        work_root.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=work_root) as temp_dir:
            source = Path(temp_dir) / f"source{PurePosixPath(object_key).suffix}"
            await self._blob.download_to_file(self._bucket, object_key, source)

            output = await self._transcoder.transcode(source, Path(temp_dir) / "hls")

            prefix = f"{self._transcode.output_prefix.strip('/')}/{video_id}"
            for relative in output.files:
                await self._blob.upload_file(
                    self._bucket,
                    f"{prefix}/{relative.as_posix()}",
                    output.output_dir / relative,
                    content_type=_HLS_CONTENT_TYPES.get(
                        relative.suffix.lower(), "application/octet-stream"
                    ),
                )

            loop = asyncio.get_event_loop()
            duration = await loop.run_in_executor(
                None,
                lambda: self._probe.probe(
                    source, timeout_seconds=self._transcode.probe_timeout_seconds
                ),
            )

        return TranscodeResult(
            video_id=video_id,
            object_key=object_key,
            playlist_key=f"{prefix}/{output.playlist.as_posix()}",
            duration_seconds=duration.seconds,
            duration_ms=duration.milliseconds,
        )

    async def _mark_failed(self, video_id: str, owner: str) -> None:
        try:
            await self._locks.mark_failed(video_id, owner)
        except Exception:
            logger.warning("Could not mark lock FAILED", exc_info=True)
