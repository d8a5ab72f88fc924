from typing import Any, Dict, List, Optional

from fastapi import Request, UploadFile

from models.generation_request import ColorCount, Difficulty, GenerationRequest, GenerationStatus
from services.generation_request_service import CREDIT_LIMIT, GenerationRequestService
from services.upload_store import UploadStore
from utils.exceptions import GenerationRequestError, ValidationError
from utils.media_validation import read_image_bytes, validate_image_file


def _service(request: Request) -> GenerationRequestService:
    return request.app.state.request_service


def serialize_request(record: GenerationRequest, include_session: bool = False) -> Dict[str, Any]:
    """Render a GenerationRequest as the camelCase JSON shape clients poll."""
    body: Dict[str, Any] = {
        "id": record.id,
        "originalFilename": record.original_filename,
        "colorCount": record.color_count.value,
        "difficulty": record.difficulty.value,
        "status": record.status.value,
        "createdAt": record.created_at.isoformat(),
        "outputPath": record.output_path,
        "errorMessage": record.error_message,
        "completedAt": record.completed_at.isoformat() if record.completed_at else None,
    }
    if include_session:
        body["clientSessionId"] = record.client_session_id
    return body


async def create_request(
    request: Request,
    file: Optional[UploadFile],
    color_count: Optional[str],
    difficulty: Optional[str],
    session_id: Optional[str],
) -> Dict[str, Any]:
    """Validate the multipart form, store the image, and create a pending request.

    Args:
        request: FastAPI Request (used to access app.state for shared services).
        file: Uploaded source image.
        color_count: Raw "colorCount" form value ("16", "32" or "50").
        difficulty: Raw "difficulty" form value (easy/medium/hard, any case).
        session_id: Client session id taken from the cookie or header.

    Returns:
        A dict containing: id, status, createdAt

    Raises:
        ValidationError: For a missing file, missing or invalid form fields, or a bad image.
        CreditLimitExceededError: If the session has no credits left.
    """
    if file is None:
        raise ValidationError("Image file is required", {"fileMissing": True})

    if not color_count or not difficulty:
        raise ValidationError(
            "colorCount and difficulty are required",
            {"colorCountMissing": not color_count, "difficultyMissing": not difficulty},
        )

    if not session_id:
        raise ValidationError("Client session ID is required", {"sessionIdMissing": True})

    color_count_enum = ColorCount.parse(color_count)
    difficulty_enum = Difficulty.parse(difficulty)

    settings = request.app.state.settings
    upload_store: UploadStore = request.app.state.upload_store

    extension = validate_image_file(file)
    image_bytes = await read_image_bytes(file, settings.max_upload_bytes)
    image_path = await upload_store.save(image_bytes, extension)

    try:
        created = await _service(request).create_request(
            file.filename or "uploaded_image",
            image_path,
            color_count_enum,
            difficulty_enum,
            session_id,
        )
    except GenerationRequestError:
        # Nothing references the stored image if the request was rejected
        await upload_store.remove(image_path)
        raise

    return {
        "id": created.id,
        "status": created.status.value,
        "createdAt": created.created_at.isoformat(),
    }


async def get_request(request: Request, request_id: str) -> Dict[str, Any]:
    record = await _service(request).get_request_by_id(request_id)
    return serialize_request(record)


async def get_requests_by_session(request: Request, session_id: str) -> List[Dict[str, Any]]:
    records = await _service(request).get_requests_by_session(session_id)
    return [serialize_request(r) for r in records]


async def get_all_requests(request: Request, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Admin listing of every request, optionally filtered by status."""
    service = _service(request)
    if status:
        try:
            status_enum = GenerationStatus(status.strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Invalid status: {status}", {"invalidStatus": True}) from exc
        records = await service.get_requests_by_status(status_enum)
    else:
        records = await service.get_all_requests()
    return [serialize_request(r, include_session=True) for r in records]


async def get_remaining_credits(request: Request, session_id: str) -> Dict[str, Any]:
    remaining = await _service(request).get_remaining_credits(session_id)
    return {"sessionId": session_id, "remainingCredits": remaining, "totalCredits": CREDIT_LIMIT}
