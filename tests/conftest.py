"""Shared pytest fixtures for the generation backend tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import List, Tuple

import pytest
from PIL import Image

from dal.generation_request_dal import GenerationRequestDAL
from dal.memory_dal import InMemoryGenerationRequestDAL
from services.generation_request_service import GenerationRequestService
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer
from utils.exceptions import ExternalTriggerError


class FakeProcessor:
    """Stands in for ProcessorClient; records trigger calls."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[Tuple[str, str, int, str]] = []
        self.closed = False

    async def trigger_processing(self, request_id: str, image_path: str, color_count: int, difficulty: str) -> None:
        self.calls.append((request_id, image_path, color_count, difficulty))
        if self.fail:
            raise ExternalTriggerError(f"Processor unreachable for request {request_id}")

    async def aclose(self) -> None:
        self.closed = True


# ============================================================================
# Gateway Fixtures
# ============================================================================


@pytest.fixture
def memory_gateway() -> InMemoryGenerationRequestDAL:
    return InMemoryGenerationRequestDAL()


@pytest.fixture
def db_initializer(tmp_path: Path) -> AsyncDatabaseInitializer:
    return AsyncDatabaseInitializer(tmp_path / "db")


@pytest.fixture
def sqlite_gateway(db_initializer: AsyncDatabaseInitializer) -> GenerationRequestDAL:
    return GenerationRequestDAL(db_initializer)


@pytest.fixture(params=["memory", "sqlite"])
def gateway(request, memory_gateway, sqlite_gateway):
    """Run gateway contract tests against both implementations."""
    return memory_gateway if request.param == "memory" else sqlite_gateway


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def failing_processor() -> FakeProcessor:
    return FakeProcessor(fail=True)


@pytest.fixture
def service(memory_gateway, processor) -> GenerationRequestService:
    return GenerationRequestService(memory_gateway, processor)


# ============================================================================
# App Fixtures
# ============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        storage_backend="memory",
        database_dir=None,
        processor_service_url="http://processor.test",
        processor_timeout_seconds=1.0,
        upload_dir=tmp_path / "uploads",
        output_dir=tmp_path / "outputs",
        max_upload_bytes=1024 * 1024,
        log_level="INFO",
        log_dir=None,
    )


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()
