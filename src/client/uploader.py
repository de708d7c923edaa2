"""Resumable multipart chunk uploader."""

import asyncio
import math
from collections import deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import httpx

from src.application.dtos.uploads import UploadedPart
from src.client.state import PartStateStore
from src.commons.telemetry import get_logger
from src.domain.value_objects.part_plan import PartPlan

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 4


class UploadOutcome(str, Enum):
    """How an upload call ended."""

    COMPLETED = "completed"
    PAUSED = "paused"


class PartUploadError(Exception):
    """A part could not be stored; the whole upload call fails."""

    def __init__(self, part_number: int, reason: str) -> None:
        self.part_number = part_number
        self.reason = reason
        super().__init__(f"Part {part_number} failed: {reason}")


@dataclass(frozen=True)
class MultipartSession:
    """Server-side multipart session the parts belong to."""

    intent_id: str
    upload_id: str
    part_size: int
    total_parts: int


class MultipartApi(Protocol):
    """Server calls the uploader needs."""

    async def sign_part(
        self, intent_id: str, upload_id: str, part_number: int
    ) -> str: ...

    async def complete_multipart(
        self, intent_id: str, upload_id: str, parts: list[UploadedPart]
    ) -> object: ...


class ChunkUploader:
    """Uploads a file part by part through a bounded pool of workers.

    Finished parts are persisted after each success, so a later call with
    the same intent re-queues only what is missing. Pausing is
    cooperative: workers check ``is_paused`` before claiming a part and
    in-flight parts are allowed to finish. Any part failure cancels the
    pool and propagates; retrying the call resumes from the saved state.
    """

    def __init__(
        self,
        api: MultipartApi,
        state_store: PartStateStore,
        http_client: httpx.AsyncClient | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        part_timeout_seconds: float = 300.0,
    ) -> None:
        """Initialize the uploader.

        Args:
            api: Signs parts and completes the session.
            state_store: Durable per-intent part state.
            http_client: Client for the storage PUTs; one is created per
                upload when omitted.
            concurrency: Parts in flight at once.
            part_timeout_seconds: Timeout of one part PUT.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._api = api
        self._state = state_store
        self._http = http_client
        self._concurrency = concurrency
        self._timeout = part_timeout_seconds

    async def upload(
        self,
        path: Path,
        session: MultipartSession,
        is_paused: Callable[[], bool] = lambda: False,
        on_progress: Callable[[float], None] | None = None,
    ) -> UploadOutcome:
        """Upload the remaining parts of ``path`` and complete the session.

        Args:
            path: Local file being uploaded.
            session: Session returned by init-multipart.
            is_paused: Polled before each part is claimed.
            on_progress: Receives the cumulative percentage of bytes done.

        Returns:
            COMPLETED once the server assembled the object, PAUSED if the
            pool drained because of ``is_paused``.

        Raises:
            PartUploadError: A part PUT failed or returned no ETag.
            ValueError: The file does not match the session's part layout.
        """
        size = path.stat().st_size
        plan = PartPlan(part_size=session.part_size, total_parts=session.total_parts)
        if size <= 0 or math.ceil(size / plan.part_size) != plan.total_parts:
            raise ValueError(
                f"{path} ({size} bytes) does not split into "
                f"{plan.total_parts} parts of {plan.part_size} bytes"
            )

        done = {
            number: etag
            for number, etag in self._state.load(
                session.intent_id, session.upload_id
            ).items()
            if 1 <= number <= plan.total_parts
        }
        pending = deque(n for n in range(1, plan.total_parts + 1) if n not in done)
        uploaded = sum(plan.byte_range(n, size)[1] for n in done)

        def report() -> None:
            if on_progress is not None:
                on_progress(round(uploaded * 100 / size, 2))

        logger.info(
            "Multipart upload starting",
            extra={
                "intent_id": session.intent_id,
                "total_parts": plan.total_parts,
                "resumed_parts": len(done),
            },
        )
        report()

        async def worker(http: httpx.AsyncClient) -> None:
            nonlocal uploaded
            while pending:
                if is_paused():
                    return
                part_number = pending.popleft()
                etag, length = await self._upload_part(
                    http, path, session, plan, size, part_number
                )
                done[part_number] = etag
                self._state.save(session.intent_id, session.upload_id, done)
                uploaded += length
                report()

        if self._http is not None:
            await self._run_pool(worker, self._http)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as http:
                await self._run_pool(worker, http)

        if len(done) < plan.total_parts:
            logger.info(
                "Multipart upload paused",
                extra={"intent_id": session.intent_id, "done_parts": len(done)},
            )
            return UploadOutcome.PAUSED

        parts = [
            UploadedPart(part_number=number, etag=done[number])
            for number in sorted(done)
        ]
        await self._api.complete_multipart(session.intent_id, session.upload_id, parts)
        self._state.clear(session.intent_id)
        logger.info(
            "Multipart upload completed", extra={"intent_id": session.intent_id}
        )
        return UploadOutcome.COMPLETED

    async def _run_pool(
        self,
        worker: Callable[[httpx.AsyncClient], Coroutine[Any, Any, None]],
        http: httpx.AsyncClient,
    ) -> None:
        tasks = [
            asyncio.create_task(worker(http)) for _ in range(self._concurrency)
        ]
        finished, unfinished = await asyncio.wait(
            tasks, return_when=asyncio.FIRST_EXCEPTION
        )
        for task in unfinished:
            task.cancel()
        if unfinished:
            await asyncio.gather(*unfinished, return_exceptions=True)
        for task in finished:
            error = task.exception()
            if error is not None:
                raise error

    async def _upload_part(
        self,
        http: httpx.AsyncClient,
        path: Path,
        session: MultipartSession,
        plan: PartPlan,
        size: int,
        part_number: int,
    ) -> tuple[str, int]:
        offset, length = plan.byte_range(part_number, size)
        loop = asyncio.get_event_loop()
        data = await loop.run_in_executor(None, _read_range, path, offset, length)

        # Part URLs are single-use per attempt; never reuse one.
        url = await self._api.sign_part(
            session.intent_id, session.upload_id, part_number
        )
        try:
            response = await http.put(url, content=data)
        except httpx.HTTPError as e:
            raise PartUploadError(part_number, str(e)) from e

        if not response.is_success:
            raise PartUploadError(
                part_number, f"storage returned {response.status_code}"
            )
        etag = response.headers.get("ETag")
        if not etag:
            raise PartUploadError(part_number, "storage response carried no ETag")
        return etag, length


def _read_range(path: Path, offset: int, length: int) -> bytes:
    with path.open("rb") as f:
        f.seek(offset)
        return f.read(length)
