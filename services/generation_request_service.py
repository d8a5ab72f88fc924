"""Orchestration for generation requests.

`GenerationRequestService` is the only component that talks to both the
persistence gateway and the external processor. It validates input, enforces
the per-session credit limit, creates requests, and applies the lifecycle
callbacks reported by the processor.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Set

from dal.gateway import GenerationRequestGateway
from models.generation_request import ColorCount, Difficulty, GenerationRequest, GenerationStatus
from services.processor_client import ProcessorClient
from utils.exceptions import (
    CreditLimitExceededError,
    ExternalTriggerError,
    GenerationRequestError,
    NotFoundError,
    ValidationError,
)

LOGGER = logging.getLogger(__name__)

CREDIT_LIMIT = 2
TRIGGER_FAILURE_MESSAGE = "Failed to start processing"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class GenerationRequestService:
    """Create generation requests and drive them through their lifecycle.

    Args:
        gateway: Persistence gateway (SQLite or in-memory).
        processor: Client used to start processing. Its trigger call runs as a
            detached task; the caller of `create_request` never waits for it.
    """

    def __init__(self, gateway: GenerationRequestGateway, processor: ProcessorClient) -> None:
        self._gateway = gateway
        self._processor = processor
        self._background: Set[asyncio.Task] = set()

    async def create_request(
        self,
        original_filename: str,
        original_image_path: str,
        color_count: ColorCount,
        difficulty: Difficulty,
        client_session_id: str,
    ) -> GenerationRequest:
        """Persist a new pending request and start processing in the background.

        Raises:
            ValidationError: If filename, image path or session id is empty.
            CreditLimitExceededError: If the session already used its credits.
        """
        self._validate_create_request(original_filename, original_image_path, client_session_id)

        used = await self._gateway.count_by_session(client_session_id)
        if used >= CREDIT_LIMIT:
            raise CreditLimitExceededError(current_usage=used, limit=CREDIT_LIMIT)

        request = GenerationRequest(
            id=str(uuid.uuid4()),
            original_filename=original_filename,
            original_image_path=original_image_path,
            color_count=color_count,
            difficulty=difficulty,
            client_session_id=client_session_id,
        )
        await self._gateway.create(request)
        LOGGER.info("Generation request %s created for session %s", request.id, client_session_id)

        task = asyncio.create_task(self._trigger_processing(request))
        self._background.add(task)
        task.add_done_callback(self._on_trigger_done)

        return request

    async def get_request_by_id(self, request_id: str) -> GenerationRequest:
        try:
            return await self._gateway.get(request_id)
        except NotFoundError as exc:
            raise NotFoundError(f"Generation request with ID {request_id} not found") from exc

    async def get_requests_by_session(self, client_session_id: str) -> List[GenerationRequest]:
        if _is_blank(client_session_id):
            raise ValidationError("Client session ID is required", {"sessionIdRequired": True})
        return await self._gateway.list_by_session(client_session_id)

    async def get_all_requests(self) -> List[GenerationRequest]:
        return await self._gateway.list_all()

    async def get_requests_by_status(self, status: GenerationStatus) -> List[GenerationRequest]:
        return await self._gateway.list_by_status(status)

    async def get_remaining_credits(self, client_session_id: str) -> int:
        if _is_blank(client_session_id):
            raise ValidationError("Client session ID is required", {"sessionIdRequired": True})
        used = await self._gateway.count_by_session(client_session_id)
        return max(0, CREDIT_LIMIT - used)

    async def mark_as_processing(self, request_id: str) -> GenerationRequest:
        request = await self.get_request_by_id(request_id)
        request.mark_as_processing()
        await self._gateway.update(request)
        return request

    async def mark_as_completed(self, request_id: str, output_path: str) -> GenerationRequest:
        if _is_blank(output_path):
            raise ValidationError(
                "Output path is required to mark request as completed",
                {"outputPathRequired": True},
            )
        request = await self.get_request_by_id(request_id)
        request.mark_as_completed(output_path)
        await self._gateway.update(request)
        return request

    async def mark_as_failed(self, request_id: str, error_message: str) -> GenerationRequest:
        if _is_blank(error_message):
            raise ValidationError(
                "Error message is required to mark request as failed",
                {"errorMessageRequired": True},
            )
        request = await self.get_request_by_id(request_id)
        request.mark_as_failed(error_message)
        await self._gateway.update(request)
        return request

    async def drain(self) -> None:
        """Wait for every outstanding trigger task to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @staticmethod
    def _validate_create_request(
        original_filename: str, original_image_path: str, client_session_id: str
    ) -> None:
        errors: Dict[str, bool] = {}
        if _is_blank(original_filename):
            errors["filenameRequired"] = True
        if _is_blank(original_image_path):
            errors["imagePathRequired"] = True
        if _is_blank(client_session_id):
            errors["sessionIdRequired"] = True

        if errors:
            raise ValidationError(
                "Invalid request: filename, image path, and session ID are required",
                errors,
            )

    async def _trigger_processing(self, request: GenerationRequest) -> None:
        try:
            await self._processor.trigger_processing(
                request.id,
                request.original_image_path,
                request.color_count.as_int(),
                request.difficulty.value.lower(),
            )
        except ExternalTriggerError as exc:
            LOGGER.error("Error triggering processing for request %s: %s", request.id, exc)
            await self._fail_untriggered(request.id)

    async def _fail_untriggered(self, request_id: str) -> None:
        """Record a trigger failure on the stored request, best effort.

        A pending request is moved through processing so the failure can be
        recorded without bypassing the state machine.
        """
        try:
            request = await self._gateway.get(request_id)
            if request.status is GenerationStatus.PENDING:
                request.mark_as_processing()
            request.mark_as_failed(TRIGGER_FAILURE_MESSAGE)
            await self._gateway.update(request)
        except GenerationRequestError as exc:
            LOGGER.error("Failed to mark request %s as failed: %s", request_id, exc)
            return
        LOGGER.info("Request %s marked as failed after trigger error", request_id)

    def _on_trigger_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            LOGGER.warning("Trigger task cancelled before completion")
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Unexpected error in trigger task", exc_info=exc)
