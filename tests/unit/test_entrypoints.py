"""Unit tests for the worker and transcode task entry points."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.commons.settings.models import Settings
from src.task import main as task_main
from src.worker import main as worker_main

TASK_ENV = {
    "VIDEO_KEY": "u1/lessons/42/video/v123/source.mp4",
    "VIDEO_ID": "v123",
    "LOCK_OWNER": "worker-1",
}


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def quiet_logging():
    with (
        patch.object(task_main, "configure_logging"),
        patch.object(worker_main, "configure_logging"),
    ):
        yield


class TestTaskMain:
    """Tests for the transcode task exit codes."""

    def test_missing_environment(self, monkeypatch, settings, quiet_logging):
        for name in TASK_ENV:
            monkeypatch.delenv(name, raising=False)

        with (
            patch.object(task_main, "get_settings", return_value=settings),
            patch.object(task_main, "run_task", new_callable=AsyncMock) as run_task,
        ):
            assert task_main.main() == 2
        run_task.assert_not_awaited()

    def test_success(self, monkeypatch, settings, quiet_logging):
        for name, value in TASK_ENV.items():
            monkeypatch.setenv(name, value)

        with (
            patch.object(task_main, "get_settings", return_value=settings),
            patch.object(task_main, "run_task", new_callable=AsyncMock) as run_task,
        ):
            assert task_main.main() == 0
        run_task.assert_awaited_once_with(
            TASK_ENV["VIDEO_KEY"], "v123", "worker-1"
        )

    def test_failure(self, monkeypatch, settings, quiet_logging):
        for name, value in TASK_ENV.items():
            monkeypatch.setenv(name, value)

        with (
            patch.object(task_main, "get_settings", return_value=settings),
            patch.object(
                task_main,
                "run_task",
                new_callable=AsyncMock,
                side_effect=RuntimeError("ffmpeg exited with 1"),
            ),
        ):
            assert task_main.main() == 1

    async def test_run_task_closes_factory(self, settings):
        factory = MagicMock()
        factory.close_all = AsyncMock()
        runner = MagicMock()
        runner.run = AsyncMock(side_effect=RuntimeError("boom"))

        with (
            patch.object(task_main, "get_settings", return_value=settings),
            patch.object(task_main, "get_factory", return_value=factory),
            patch.object(task_main, "TranscodeTaskRunner", return_value=runner),
            patch.object(task_main, "reset_factory") as reset,
            pytest.raises(RuntimeError),
        ):
            await task_main.run_task("k", "v1", "w1")

        factory.close_all.assert_awaited_once()
        reset.assert_called_once()


class TestWorkerMain:
    """Tests for the intake worker process."""

    async def test_run_worker_closes_factory(self, settings):
        factory = MagicMock()
        factory.close_all = AsyncMock()
        worker = MagicMock()
        worker.run_forever = AsyncMock()

        with (
            patch.object(worker_main, "get_settings", return_value=settings),
            patch.object(worker_main, "get_factory", return_value=factory),
            patch.object(worker_main, "VideoIntakeWorker", return_value=worker),
            patch.object(worker_main, "reset_factory"),
        ):
            await worker_main.run_worker()

        worker.run_forever.assert_awaited_once()
        factory.close_all.assert_awaited_once()
