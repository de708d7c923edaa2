"""Multipart part-size plan value object."""

import math
from typing import Self

from pydantic import BaseModel, Field

from src.domain.exceptions import UploadValidationException

MIN_PART_SIZE_BYTES = 5 * 1024 * 1024
MAX_PARTS = 10_000


class PartPlan(BaseModel):
    """How a file of a given size is split into multipart parts.

    Examples:
        >>> PartPlan.for_size(25 * 1024 * 1024).total_parts
        5
    """

    part_size: int = Field(gt=0)
    total_parts: int = Field(ge=1)

    @classmethod
    def for_size(
        cls,
        size_bytes: int,
        *,
        min_part_size: int = MIN_PART_SIZE_BYTES,
        max_parts: int = MAX_PARTS,
    ) -> Self:
        """Pick the part size for ``size_bytes``.

        The part size is the larger of the provider floor and
        ``ceil(size / max_parts)``, so the part count never exceeds the
        provider ceiling.

        Raises:
            UploadValidationException: If the size is not positive.
        """
        if size_bytes <= 0:
            raise UploadValidationException("size must be positive", field="size_bytes")
        part_size = max(min_part_size, math.ceil(size_bytes / max_parts))
        return cls(part_size=part_size, total_parts=math.ceil(size_bytes / part_size))

    def byte_range(self, part_number: int, size_bytes: int) -> tuple[int, int]:
        """Return ``(offset, length)`` of a 1-based part; the last may be short."""
        if not 1 <= part_number <= self.total_parts:
            raise UploadValidationException(
                f"part number {part_number} outside 1..{self.total_parts}",
                field="part_number",
            )
        offset = (part_number - 1) * self.part_size
        return offset, min(self.part_size, size_bytes - offset)
