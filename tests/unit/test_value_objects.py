"""Unit tests for domain value objects."""

import pytest

from src.domain.exceptions import InvalidVideoKeyException, UploadValidationException
from src.domain.models.upload import AssetType, ResourceRef
from src.domain.value_objects.object_key import (
    extract_video_id,
    file_extension,
    has_extension,
    permanent_object_key,
    temp_object_key,
)
from src.domain.value_objects.part_plan import PartPlan

MIB = 1024 * 1024


class TestPartPlan:
    """Tests for multipart part sizing."""

    def test_25_mib_splits_into_five_parts(self):
        plan = PartPlan.for_size(25 * MIB)
        assert plan.part_size == 5 * MIB
        assert plan.total_parts == 5

    def test_small_file_is_one_part(self):
        plan = PartPlan.for_size(1024)
        assert plan.part_size == 5 * MIB
        assert plan.total_parts == 1

    def test_last_part_shorter(self):
        plan = PartPlan.for_size(12 * MIB)
        assert plan.total_parts == 3
        assert plan.byte_range(3, 12 * MIB) == (10 * MIB, 2 * MIB)

    def test_huge_file_respects_part_ceiling(self):
        size = 100 * 1024 * MIB  # 100 GiB
        plan = PartPlan.for_size(size)
        assert plan.total_parts <= 10_000
        assert plan.part_size == -(-size // 10_000)
        assert plan.part_size >= 5 * MIB

    def test_custom_limits(self):
        plan = PartPlan.for_size(100, min_part_size=10, max_parts=5)
        assert plan.part_size == 20
        assert plan.total_parts == 5

    def test_byte_ranges_cover_file_exactly(self):
        size = 23 * MIB + 17
        plan = PartPlan.for_size(size)
        covered = 0
        for number in range(1, plan.total_parts + 1):
            offset, length = plan.byte_range(number, size)
            assert offset == covered
            covered += length
        assert covered == size

    def test_rejects_non_positive_size(self):
        with pytest.raises(UploadValidationException):
            PartPlan.for_size(0)

    def test_rejects_out_of_range_part(self):
        plan = PartPlan.for_size(10 * MIB)
        with pytest.raises(UploadValidationException):
            plan.byte_range(3, 10 * MIB)
        with pytest.raises(UploadValidationException):
            plan.byte_range(0, 10 * MIB)


class TestFileExtension:
    """Tests for extension selection."""

    def test_from_filename(self):
        assert file_extension("Lecture.MP4", "video/mp4") == ".mp4"

    def test_falls_back_to_mime(self):
        assert file_extension(None, "video/quicktime") == ".mov"
        assert file_extension("noext", "image/png") == ".png"

    def test_rejects_unsafe_extension(self):
        assert file_extension("evil.mp4/../x", "video/mp4") == ".mp4"
        assert file_extension("x.th!s", "application/octet-stream") == ""


class TestObjectKeys:
    """Tests for temp and permanent key layouts."""

    def test_temp_key(self):
        assert temp_object_key("u1", "abc", ".mp4") == "u1/abc/source.mp4"

    def test_permanent_key_layout(self):
        key = permanent_object_key(
            "u1",
            ResourceRef(kind="lessons", id="42"),
            AssetType.VIDEO,
            ".mp4",
            unique_id="f00",
        )
        assert key == "u1/lessons/42/video/f00/source.mp4"

    def test_permanent_keys_are_unique(self):
        resource = ResourceRef(kind="lessons", id="42")
        first = permanent_object_key("u1", resource, AssetType.VIDEO, ".mp4")
        second = permanent_object_key("u1", resource, AssetType.VIDEO, ".mp4")
        assert first != second

    def test_video_id_round_trips_from_permanent_key(self):
        key = permanent_object_key(
            "u1",
            ResourceRef(kind="lessons", id="42"),
            AssetType.VIDEO,
            ".mp4",
            unique_id="vid123",
        )
        assert extract_video_id(key, "video") == "vid123"


class TestExtractVideoId:
    """Tests for positional video id extraction."""

    def test_segment_after_marker(self):
        assert extract_video_id("raw/video/v123/source.mp4", "video") == "v123"

    def test_leading_slash_ignored(self):
        assert extract_video_id("/video/v1/a.mp4", "video") == "v1"

    def test_missing_marker(self):
        with pytest.raises(InvalidVideoKeyException):
            extract_video_id("uploads/readme.mp4", "video")

    def test_marker_is_last_segment(self):
        with pytest.raises(InvalidVideoKeyException):
            extract_video_id("uploads/video", "video")

    def test_marker_must_be_whole_segment(self):
        with pytest.raises(InvalidVideoKeyException):
            extract_video_id("uploads/videos/v1/a.mp4", "video")

    def test_resource_kind_named_like_marker(self):
        resource = ResourceRef(kind="video", id="42")
        first = permanent_object_key("u1", resource, AssetType.VIDEO, ".mp4")
        second = permanent_object_key("u1", resource, AssetType.VIDEO, ".mp4")

        first_id = extract_video_id(first, "video")
        second_id = extract_video_id(second, "video")

        assert first_id != "42"
        assert first_id != second_id
        assert first.split("/")[-2] == first_id

    def test_owner_and_resource_named_like_marker(self):
        resource = ResourceRef(kind="users", id="video")
        first = permanent_object_key("video", resource, AssetType.VIDEO, ".mp4")
        second = permanent_object_key("video", resource, AssetType.VIDEO, ".mp4")

        first_id = extract_video_id(first, "video")
        second_id = extract_video_id(second, "video")

        assert "users" not in (first_id, second_id)
        assert first_id != second_id

    def test_marker_after_video_id_is_last_segment(self):
        with pytest.raises(InvalidVideoKeyException):
            extract_video_id("raw/video/v1/video", "video")


class TestHasExtension:
    """Tests for the extension filter."""

    def test_case_insensitive(self):
        assert has_extension("a/video/v1/source.MP4", [".mp4"])

    def test_rejects_other_types(self):
        assert not has_extension("uploads/readme.txt", [".mp4"])
        assert not has_extension("uploads/clip.mp4.txt", [".mp4"])
