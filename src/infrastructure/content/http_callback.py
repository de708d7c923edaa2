"""HTTP content callback using httpx."""

import httpx

from src.commons.telemetry import get_logger
from src.infrastructure.content.base import ContentCallbackBase, TranscodeResult


class HttpContentCallback(ContentCallbackBase):
    """POSTs the transcode result as JSON to a fixed URL.

    The receiving service owns the payload's meaning; a non-2xx answer
    fails the task so the video is marked FAILED.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        api_key: str | None = None,
    ) -> None:
        """Initialize the callback client.

        Args:
            url: Endpoint receiving the result.
            timeout: Request timeout in seconds.
            api_key: Optional bearer token.
        """
        self._url = url
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout),
        )
        self._logger = get_logger(__name__)

    async def report(self, result: TranscodeResult) -> None:
        """POST the result."""
        response = await self._client.post(self._url, json=result.to_payload())
        response.raise_for_status()
        self._logger.info(
            "Content record updated",
            extra={"video_id": result.video_id, "status_code": response.status_code},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
