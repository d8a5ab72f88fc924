"""Client for the external image-processing service.

Only the trigger call lives here; progress comes back through the internal
callback routes.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from utils.exceptions import ExternalTriggerError

LOGGER = logging.getLogger(__name__)


class ProcessorClient:
    """Ask the image processor to start working on a generation request.

    Args:
        base_url: Root URL of the processor service (no trailing slash needed).
        timeout_seconds: Upper bound for the whole trigger call. No retries.
        http_client: Optional preconfigured `httpx.AsyncClient`; one is created
            (and owned) when omitted.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def trigger_processing(
        self,
        request_id: str,
        image_path: str,
        color_count: int,
        difficulty: str,
    ) -> None:
        """POST the request parameters as a urlencoded form to `/process`.

        Raises:
            ExternalTriggerError: On transport failure, timeout, or a non-2xx reply.
        """
        url = f"{self.base_url}/process"
        form = {
            "request_id": request_id,
            "image_path": image_path,
            "color_count": str(color_count),
            "difficulty": difficulty,
        }
        try:
            response = await self._client.post(url, data=form, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ExternalTriggerError(
                f"Processor rejected request {request_id} with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalTriggerError(
                f"Processor unreachable for request {request_id}: {exc.__class__.__name__}"
            ) from exc

        LOGGER.info("Processor triggered successfully for request: %s", request_id)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
