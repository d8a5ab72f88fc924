"""Contract tests run against both the SQLite and in-memory gateways."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from dal.generation_request_dal import GenerationRequestDAL
from models.generation_request import ColorCount, Difficulty, GenerationRequest, GenerationStatus
from utils.database_init import AsyncDatabaseInitializer
from utils.exceptions import DuplicateIdError, NotFoundError, StorageUnavailableError

BASE_TIME = datetime(2026, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_request(request_id: str, session: str = "sess-1", minutes: int = 0) -> GenerationRequest:
    return GenerationRequest(
        id=request_id,
        original_filename=f"{request_id}.png",
        original_image_path=f"/uploads/{request_id}.png",
        color_count=ColorCount.C32,
        difficulty=Difficulty.MEDIUM,
        client_session_id=session,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.mark.asyncio
async def test_create_then_get_round_trips(gateway):
    request = make_request("a")
    assert await gateway.create(request) == "a"
    assert await gateway.get("a") == request


@pytest.mark.asyncio
async def test_get_unknown_id_raises_not_found(gateway):
    with pytest.raises(NotFoundError):
        await gateway.get("missing")


@pytest.mark.asyncio
async def test_create_rejects_duplicate_id(gateway):
    await gateway.create(make_request("dup"))
    with pytest.raises(DuplicateIdError):
        await gateway.create(make_request("dup"))


@pytest.mark.asyncio
async def test_list_all_is_newest_first(gateway):
    await gateway.create(make_request("middle", minutes=5))
    await gateway.create(make_request("oldest", minutes=0))
    await gateway.create(make_request("newest", minutes=10))

    listed = await gateway.list_all()
    assert [r.id for r in listed] == ["newest", "middle", "oldest"]


@pytest.mark.asyncio
async def test_same_created_at_lists_latest_insert_first(gateway):
    await gateway.create(make_request("first"))
    await gateway.create(make_request("second"))
    assert [r.id for r in await gateway.list_all()] == ["second", "first"]


@pytest.mark.asyncio
async def test_update_persists_lifecycle_fields(gateway):
    request = make_request("u")
    await gateway.create(request)

    request.mark_as_processing()
    request.mark_as_completed("/out/u.zip")
    await gateway.update(request)

    stored = await gateway.get("u")
    assert stored.status is GenerationStatus.COMPLETED
    assert stored.output_path == "/out/u.zip"
    assert stored.completed_at == request.completed_at
    assert stored.error_message is None


@pytest.mark.asyncio
async def test_unsaved_changes_are_not_visible(gateway):
    await gateway.create(make_request("x"))
    local = await gateway.get("x")
    local.mark_as_processing()

    assert (await gateway.get("x")).status is GenerationStatus.PENDING


@pytest.mark.asyncio
async def test_update_unknown_id_raises_not_found(gateway):
    with pytest.raises(NotFoundError):
        await gateway.update(make_request("ghost"))


@pytest.mark.asyncio
async def test_session_queries(gateway):
    await gateway.create(make_request("s1-old", session="s1", minutes=1))
    await gateway.create(make_request("s2", session="s2", minutes=2))
    await gateway.create(make_request("s1-new", session="s1", minutes=3))

    assert await gateway.count_by_session("s1") == 2
    assert await gateway.count_by_session("nobody") == 0
    assert [r.id for r in await gateway.list_by_session("s1")] == ["s1-new", "s1-old"]
    assert await gateway.list_by_session("nobody") == []


@pytest.mark.asyncio
async def test_list_by_status(gateway):
    pending = make_request("p", minutes=1)
    running = make_request("r", minutes=2)
    await gateway.create(pending)
    await gateway.create(running)
    running.mark_as_processing()
    await gateway.update(running)

    assert [r.id for r in await gateway.list_by_status(GenerationStatus.PROCESSING)] == ["r"]
    assert [r.id for r in await gateway.list_by_status(GenerationStatus.PENDING)] == ["p"]
    assert await gateway.list_by_status(GenerationStatus.FAILED) == []


@pytest.mark.asyncio
async def test_sqlite_rows_survive_a_new_initializer(tmp_path):
    first = GenerationRequestDAL(AsyncDatabaseInitializer(tmp_path))
    await first.create(make_request("kept"))

    second = GenerationRequestDAL(AsyncDatabaseInitializer(tmp_path))
    assert (await second.get("kept")).id == "kept"


@pytest.mark.asyncio
async def test_sqlite_failures_surface_as_storage_unavailable(tmp_path, caplog):
    initializer = AsyncDatabaseInitializer(tmp_path)
    # A directory cannot be opened as a database file.
    initializer.db_path = tmp_path
    dal = GenerationRequestDAL(initializer)

    with pytest.raises(StorageUnavailableError) as excinfo:
        await dal.count_by_session("s1")

    assert "SQLite" not in excinfo.value.message
    assert "count generation requests by session" in caplog.text


@pytest.mark.asyncio
async def test_sqlite_constraint_failures_other_than_duplicate_id(sqlite_gateway):
    request = make_request("a")
    request.client_session_id = None

    with pytest.raises(StorageUnavailableError) as excinfo:
        await sqlite_gateway.create(request)

    assert not isinstance(excinfo.value, DuplicateIdError)


def test_initializer_rejects_a_file_path(tmp_path):
    target = tmp_path / "not-a-dir"
    target.write_text("x")
    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer(target)


def test_initializer_requires_a_directory(monkeypatch):
    monkeypatch.delenv("DATABASE_DIR", raising=False)
    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer()
