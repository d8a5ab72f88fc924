"""Storage contract for generation requests.

Both `GenerationRequestDAL` (SQLite) and `InMemoryGenerationRequestDAL`
satisfy this protocol; the service depends only on it.
"""

from __future__ import annotations

from typing import List, Protocol

from models.generation_request import GenerationRequest, GenerationStatus


class GenerationRequestGateway(Protocol):
    """Async persistence operations for `GenerationRequest`.

    All operations may raise `StorageUnavailableError`. Listing operations
    return newest-created first. `update` overwrites the mutable fields of an
    existing row and does not check the state machine; callers apply the
    transition first.
    """

    async def create(self, request: GenerationRequest) -> str: ...

    async def get(self, request_id: str) -> GenerationRequest: ...

    async def list_all(self) -> List[GenerationRequest]: ...

    async def update(self, request: GenerationRequest) -> None: ...

    async def count_by_session(self, session_id: str) -> int: ...

    async def list_by_session(self, session_id: str) -> List[GenerationRequest]: ...

    async def list_by_status(self, status: GenerationStatus) -> List[GenerationRequest]: ...
