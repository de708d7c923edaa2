"""Unit tests for the transcode task runner and lease heartbeat."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.services.transcode_task import (
    LeaseHeartbeat,
    LockLostError,
    TranscodeTaskRunner,
)
from src.commons.settings.models import Settings
from src.domain.exceptions import DurationProbeException
from src.infrastructure.video.base import TranscodeOutput, VideoDuration

VIDEO_KEY = "u1/lessons/42/video/v123/source.mp4"


@pytest.fixture
def settings(tmp_path):
    settings = Settings()
    settings.transcode.work_dir = str(tmp_path / "work")
    settings.transcode.heartbeat_interval_seconds = 0.01
    return settings


@pytest.fixture
def blob_storage():
    blob = AsyncMock()

    async def download(bucket, path, local_path):
        Path(local_path).write_bytes(b"video")

    blob.download_to_file.side_effect = download
    return blob


@pytest.fixture
def lock_store():
    store = AsyncMock()
    store.extend_lease.return_value = True
    store.mark_completed.return_value = True
    store.mark_failed.return_value = True
    return store


@pytest.fixture
def transcoder():
    transcoder = AsyncMock()

    async def transcode(input_path, output_dir):
        output_dir.mkdir(parents=True, exist_ok=True)
        files = [Path("master.m3u8"), Path("360/index.m3u8"), Path("360/seg_000.ts")]
        for relative in files:
            (output_dir / relative).parent.mkdir(parents=True, exist_ok=True)
            (output_dir / relative).write_text("x")
        return TranscodeOutput(
            output_dir=output_dir, playlist=Path("master.m3u8"), files=files
        )

    transcoder.transcode.side_effect = transcode
    return transcoder


@pytest.fixture
def probe():
    probe = MagicMock()
    probe.probe.return_value = VideoDuration.from_seconds(12.5)
    return probe


@pytest.fixture
def callback():
    return AsyncMock()


@pytest.fixture
def runner(blob_storage, lock_store, transcoder, probe, settings, callback):
    return TranscodeTaskRunner(
        blob_storage=blob_storage,
        lock_store=lock_store,
        transcoder=transcoder,
        duration_probe=probe,
        settings=settings,
        content_callback=callback,
    )


class TestTranscodeTaskRunner:
    """Tests for the task run inside the external container."""

    async def test_happy_path(self, runner, blob_storage, lock_store, callback):
        result = await runner.run(VIDEO_KEY, "v123", "worker-1")

        assert result.playlist_key == "hls/v123/master.m3u8"
        assert result.duration_seconds == 12.5
        assert result.duration_ms == 12500

        download = blob_storage.download_to_file.await_args
        assert download.args[:2] == ("video-intake-media", VIDEO_KEY)

        uploaded = {
            call.args[1]: call.kwargs["content_type"]
            for call in blob_storage.upload_file.await_args_list
        }
        assert uploaded == {
            "hls/v123/master.m3u8": "application/vnd.apple.mpegurl",
            "hls/v123/360/index.m3u8": "application/vnd.apple.mpegurl",
            "hls/v123/360/seg_000.ts": "video/mp2t",
        }

        callback.report.assert_awaited_once_with(result)
        lock_store.mark_completed.assert_awaited_once_with("v123", "worker-1")
        lock_store.mark_failed.assert_not_awaited()

    async def test_probe_runs_with_timeout(self, runner, probe):
        await runner.run(VIDEO_KEY, "v123", "worker-1")
        assert probe.probe.call_args.kwargs["timeout_seconds"] == 60.0

    async def test_failure_marks_failed_and_reraises(
        self, runner, probe, lock_store, callback
    ):
        probe.probe.side_effect = DurationProbeException("x", "exit 1")

        with pytest.raises(DurationProbeException):
            await runner.run(VIDEO_KEY, "v123", "worker-1")

        lock_store.mark_failed.assert_awaited_once_with("v123", "worker-1")
        lock_store.mark_completed.assert_not_awaited()
        callback.report.assert_not_awaited()

    async def test_callback_failure_marks_failed(self, runner, lock_store, callback):
        callback.report.side_effect = RuntimeError("503")

        with pytest.raises(RuntimeError):
            await runner.run(VIDEO_KEY, "v123", "worker-1")

        lock_store.mark_failed.assert_awaited_once()

    async def test_without_callback(
        self, blob_storage, lock_store, transcoder, probe, settings
    ):
        runner = TranscodeTaskRunner(
            blob_storage, lock_store, transcoder, probe, settings
        )
        await runner.run(VIDEO_KEY, "v123", "worker-1")
        lock_store.mark_completed.assert_awaited_once()

    async def test_work_dir_cleaned_up(self, runner, settings):
        await runner.run(VIDEO_KEY, "v123", "worker-1")
        assert list(Path(settings.transcode.work_dir).iterdir()) == []

    async def test_lost_lock_fails_before_reporting(
        self, runner, transcoder, lock_store, callback
    ):
        lock_store.extend_lease.return_value = False
        original = transcoder.transcode.side_effect

        async def slow_transcode(input_path, output_dir):
            await asyncio.sleep(0.05)
            return await original(input_path, output_dir)

        transcoder.transcode.side_effect = slow_transcode

        with pytest.raises(LockLostError):
            await runner.run(VIDEO_KEY, "v123", "worker-1")
        callback.report.assert_not_awaited()


class TestLeaseHeartbeat:
    """Tests for the periodic lease extension."""

    async def test_extends_lease_periodically(self, lock_store):
        async with LeaseHeartbeat(
            lock_store, "v1", "w1", interval_seconds=0.01, extension_seconds=900
        ) as heartbeat:
            await asyncio.sleep(0.05)

        assert heartbeat.beats >= 2
        lock_store.extend_lease.assert_awaited_with("v1", "w1", 900)
        assert not heartbeat.lost

    async def test_stops_on_exit(self, lock_store):
        async with LeaseHeartbeat(
            lock_store, "v1", "w1", interval_seconds=0.01, extension_seconds=900
        ):
            await asyncio.sleep(0.02)
        count = lock_store.extend_lease.await_count
        await asyncio.sleep(0.03)
        assert lock_store.extend_lease.await_count == count

    async def test_marks_lost_when_taken_over(self, lock_store):
        lock_store.extend_lease.return_value = False
        async with LeaseHeartbeat(
            lock_store, "v1", "w1", interval_seconds=0.01, extension_seconds=900
        ) as heartbeat:
            await asyncio.sleep(0.05)

        assert heartbeat.lost
        assert lock_store.extend_lease.await_count == 1

    async def test_keeps_beating_through_errors(self, lock_store):
        lock_store.extend_lease.side_effect = [RuntimeError("blip"), True, True, True]
        async with LeaseHeartbeat(
            lock_store, "v1", "w1", interval_seconds=0.01, extension_seconds=900
        ) as heartbeat:
            await asyncio.sleep(0.06)

        assert heartbeat.beats >= 1
        assert not heartbeat.lost
