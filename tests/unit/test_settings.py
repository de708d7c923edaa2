"""Unit tests for settings models and loader."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from src.commons.settings.loader import (
    SettingsLoader,
    coerce_env_value,
    deep_merge,
    get_settings,
    reset_settings,
)
from src.commons.settings.models import (
    AppSettings,
    AssetPolicy,
    IntakeSettings,
    LockStoreSettings,
    QueueSettings,
    ServerSettings,
    Settings,
    UploadSettings,
)


class TestAppSettings:
    """Tests for AppSettings model."""

    def test_default_values(self):
        settings = AppSettings()
        assert settings.name == "video-intake"
        assert settings.version == "0.1.0"
        assert settings.environment == "dev"
        assert settings.debug is False
        assert settings.log_level == "INFO"

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            AppSettings(environment="invalid")  # type: ignore[arg-type]


class TestServerSettings:
    """Tests for ServerSettings model."""

    def test_default_values(self):
        settings = ServerSettings()
        assert settings.port == 8000
        assert settings.api_prefix == "/v1"

    def test_port_validation(self):
        with pytest.raises(ValueError):
            ServerSettings(port=0)
        with pytest.raises(ValueError):
            ServerSettings(port=70000)


class TestUploadSettings:
    """Tests for upload limits and allow-lists."""

    def test_defaults(self):
        settings = UploadSettings()
        assert settings.intent_ttl_seconds == 300
        assert settings.multipart_threshold_bytes == 100 * 1024 * 1024
        assert settings.min_part_size_bytes == 5 * 1024 * 1024
        assert settings.max_parts == 10_000
        assert set(settings.policies) == {"video", "image", "document"}

    def test_intent_ttl_capped_at_five_minutes(self):
        with pytest.raises(ValueError):
            UploadSettings(intent_ttl_seconds=301)
        with pytest.raises(ValueError):
            UploadSettings(intent_ttl_seconds=0)

    def test_max_parts_capped_at_provider_ceiling(self):
        with pytest.raises(ValueError):
            UploadSettings(max_parts=10_001)


class TestAssetPolicy:
    """Tests for MIME allow-list matching."""

    def test_prefix_entry_matches_any_subtype(self):
        policy = AssetPolicy(mime_types=["video/"], max_size_bytes=1)
        assert policy.allows_mime("video/mp4")
        assert policy.allows_mime("VIDEO/WebM")
        assert not policy.allows_mime("audio/mpeg")

    def test_exact_entry(self):
        policy = AssetPolicy(mime_types=["image/png"], max_size_bytes=1)
        assert policy.allows_mime("image/png")
        assert not policy.allows_mime("image/pngx")
        assert not policy.allows_mime("image/jpeg")


class TestWorkerSettings:
    """Tests for queue, lock and intake settings."""

    def test_queue_wait_bounded_by_long_poll_limit(self):
        assert QueueSettings().wait_time_seconds == 20
        with pytest.raises(ValueError):
            QueueSettings(wait_time_seconds=21)

    def test_lock_store_defaults(self):
        settings = LockStoreSettings()
        assert settings.provider == "dynamodb"
        assert settings.lease_seconds == 3600

    def test_lock_store_rejects_unknown_provider(self):
        with pytest.raises(ValueError):
            LockStoreSettings(provider="redis")  # type: ignore[arg-type]

    def test_intake_defaults(self):
        settings = IntakeSettings()
        assert settings.video_extensions == [".mp4"]
        assert settings.video_id_marker == "video"
        assert settings.worker_id


class TestHelpers:
    """Tests for loader helpers."""

    def test_deep_merge_nested(self):
        base = {"a": {"b": 1, "c": 2}, "d": 1}
        override = {"a": {"c": 3}, "e": 4}
        assert deep_merge(base, override) == {"a": {"b": 1, "c": 3}, "d": 1, "e": 4}

    def test_deep_merge_does_not_mutate(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}

    def test_coerce_json_list(self):
        assert coerce_env_value('["subnet-1", "subnet-2"]') == ["subnet-1", "subnet-2"]

    def test_coerce_leaves_scalars(self):
        assert coerce_env_value("42") == "42"
        assert coerce_env_value("true") == "true"

    def test_coerce_bad_json_kept_as_string(self):
        assert coerce_env_value("[oops") == "[oops"


class TestSettingsLoader:
    """Tests for layered loading."""

    def setup_method(self):
        reset_settings()

    def teardown_method(self):
        reset_settings()

    def test_loads_defaults_without_files(self, monkeypatch):
        monkeypatch.delenv("VIDEO_INTAKE__APP__ENVIRONMENT", raising=False)
        with TemporaryDirectory() as temp_dir:
            settings = SettingsLoader(config_dir=Path(temp_dir)).load()
        assert isinstance(settings, Settings)
        assert settings.blob_storage.buckets.temp == "video-intake-temp"

    def test_environment_file_overrides_base(self):
        with TemporaryDirectory() as temp_dir:
            config_dir = Path(temp_dir)
            (config_dir / "appsettings.json").write_text(
                json.dumps({"queue": {"queue_url": "base"}, "app": {"debug": True}})
            )
            (config_dir / "appsettings.staging.json").write_text(
                json.dumps({"queue": {"queue_url": "staging"}})
            )
            loader = SettingsLoader(config_dir=config_dir, environment="staging")
            settings = loader.load()

        assert settings.queue.queue_url == "staging"
        assert settings.app.debug is True

    def test_env_vars_win(self, monkeypatch):
        monkeypatch.setenv("VIDEO_INTAKE__LOCK_STORE__LEASE_SECONDS", "120")
        monkeypatch.setenv("VIDEO_INTAKE__TASKS__SUBNETS", '["subnet-a"]')
        with TemporaryDirectory() as temp_dir:
            config_dir = Path(temp_dir)
            (config_dir / "appsettings.json").write_text(
                json.dumps({"lock_store": {"lease_seconds": 60}})
            )
            settings = SettingsLoader(config_dir=config_dir, environment="dev").load()

        assert settings.lock_store.lease_seconds == 120
        assert settings.tasks.subnets == ["subnet-a"]

    def test_get_settings_is_cached(self):
        with TemporaryDirectory() as temp_dir:
            first = get_settings(config_dir=Path(temp_dir))
            second = get_settings()
            assert first is second
            reloaded = get_settings(config_dir=Path(temp_dir), reload=True)
            assert reloaded is not first
