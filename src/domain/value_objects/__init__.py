"""Domain value objects."""

from src.domain.value_objects.object_key import (
    extract_video_id,
    file_extension,
    has_extension,
    permanent_object_key,
    temp_object_key,
)
from src.domain.value_objects.part_plan import PartPlan

__all__ = [
    "PartPlan",
    "extract_video_id",
    "file_extension",
    "has_extension",
    "permanent_object_key",
    "temp_object_key",
]
