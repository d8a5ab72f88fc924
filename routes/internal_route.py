"""Internal callback routes used by the image processor."""

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from controllers.internal_controller import mark_completed, mark_failed, mark_processing

router = APIRouter(prefix="/api/internal/requests", tags=["internal"])


class CompletePayload(BaseModel):
	output_path: Optional[str] = Field(None, alias="outputPath")


class FailPayload(BaseModel):
	error: Optional[str] = None


@router.post("/{request_id}/processing")
async def processing_route(request: Request, request_id: str):
	return await mark_processing(request, request_id)


@router.post("/{request_id}/complete")
async def complete_route(request: Request, request_id: str, payload: CompletePayload):
	return await mark_completed(request, request_id, payload.output_path or "")


@router.post("/{request_id}/fail")
async def fail_route(request: Request, request_id: str, payload: FailPayload):
	return await mark_failed(request, request_id, payload.error or "")
