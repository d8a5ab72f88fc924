"""Lifecycle callbacks reported by the image processor.

These back the `/api/internal` routes and are not meant to be exposed
publicly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request

from services.generation_request_service import GenerationRequestService

LOGGER = logging.getLogger(__name__)


async def mark_processing(request: Request, request_id: str) -> Dict[str, Any]:
	service: GenerationRequestService = request.app.state.request_service
	await service.mark_as_processing(request_id)
	LOGGER.info("Request %s marked as processing", request_id)
	return {"success": True, "message": "Request marked as processing"}


async def mark_completed(request: Request, request_id: str, output_path: str) -> Dict[str, Any]:
	service: GenerationRequestService = request.app.state.request_service
	await service.mark_as_completed(request_id, output_path)
	LOGGER.info("Request %s marked as completed with output: %s", request_id, output_path)
	return {"success": True, "message": "Request marked as completed", "outputPath": output_path}


async def mark_failed(request: Request, request_id: str, error_message: str) -> Dict[str, Any]:
	service: GenerationRequestService = request.app.state.request_service
	await service.mark_as_failed(request_id, error_message)
	LOGGER.error("Request %s marked as failed: %s", request_id, error_message)
	return {"success": True, "message": "Request marked as failed", "error": error_message}
