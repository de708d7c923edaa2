"""Durable per-intent record of the parts already uploaded."""

import json
import os
import re
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from src.commons.telemetry import get_logger

logger = get_logger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class PartState(BaseModel):
    """What survives a restart: the session and its finished parts."""

    upload_id: str
    parts: dict[int, str] = Field(default_factory=dict)


class PartStateStore:
    """One JSON file per intent under ``directory``.

    The file is the source of truth on resume. Writes go to a sibling
    temp file first and are swapped in with an atomic replace, so a crash
    mid-write leaves the previous state intact.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def _path(self, intent_id: str) -> Path:
        if not _SAFE_NAME.match(intent_id):
            raise ValueError(f"Unsafe intent id: {intent_id!r}")
        return self._directory / f"{intent_id}.json"

    def load(self, intent_id: str, upload_id: str) -> dict[int, str]:
        """Return ``{part_number: etag}`` recorded for this session.

        State left by a different upload id (an aborted or replaced
        session) is discarded, as is an unreadable file.
        """
        path = self._path(intent_id)
        if not path.exists():
            return {}

        try:
            state = PartState.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError:
            logger.warning(
                "Discarding unreadable part state", extra={"path": str(path)}
            )
            self.clear(intent_id)
            return {}

        if state.upload_id != upload_id:
            logger.info(
                "Discarding part state of another session",
                extra={"intent_id": intent_id},
            )
            self.clear(intent_id)
            return {}
        return dict(state.parts)

    def save(self, intent_id: str, upload_id: str, parts: dict[int, str]) -> None:
        """Persist the finished parts."""
        path = self._path(intent_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        state = PartState(upload_id=upload_id, parts=parts)

        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(state.model_dump(mode="json"), f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)

    def clear(self, intent_id: str) -> None:
        """Forget the intent's state."""
        self._path(intent_id).unlink(missing_ok=True)
