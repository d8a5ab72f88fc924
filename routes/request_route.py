"""FastAPI routes for creating and polling generation requests."""

from typing import Optional

from fastapi import APIRouter, Cookie, File, Form, Header, Request, UploadFile

from controllers.generation_request_controller import (
    create_request,
    get_all_requests,
    get_remaining_credits,
    get_request,
    get_requests_by_session,
)

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.post("", status_code=201, summary="Upload an image and create a generation request")
async def create_request_route(
    request: Request,
    file: Optional[UploadFile] = File(None),
    color_count: Optional[str] = Form(None, alias="colorCount"),
    difficulty: Optional[str] = Form(None),
    session_cookie: Optional[str] = Cookie(None, alias="sessionId"),
    session_header: Optional[str] = Header(None, alias="x-session-id"),
):
    """Create a pending request; the session comes from the cookie, else the header."""
    return await create_request(request, file, color_count, difficulty, session_cookie or session_header)


@router.get("", summary="List all generation requests")
async def list_requests_route(request: Request, status: Optional[str] = None):
    return await get_all_requests(request, status)


@router.get("/session/{session_id}", summary="Request history for a client session")
async def session_history_route(request: Request, session_id: str):
    return await get_requests_by_session(request, session_id)


@router.get("/credits/{session_id}", summary="Remaining free credits for a client session")
async def credits_route(request: Request, session_id: str):
    return await get_remaining_credits(request, session_id)


@router.get("/{request_id}", summary="Poll a single generation request")
async def get_request_route(request: Request, request_id: str):
    return await get_request(request, request_id)
