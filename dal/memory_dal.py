"""Simple in-memory store for generation requests."""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from models.generation_request import GenerationRequest, GenerationStatus
from utils.exceptions import DuplicateIdError, NotFoundError

LOGGER = logging.getLogger(__name__)


class InMemoryGenerationRequestDAL:
	"""Dict-backed implementation of the generation request gateway.

	Entities are stored as records and rebuilt on every read, so callers
	must go through `update` for a change to be visible to others.
	"""

	def __init__(self) -> None:
		self._records: Dict[str, Tuple[int, dict]] = {}
		self._sequence = 0

	async def create(self, request: GenerationRequest) -> str:
		if request.id in self._records:
			raise DuplicateIdError(f"Generation request with ID {request.id} already exists.")
		self._sequence += 1
		self._records[request.id] = (self._sequence, request.to_record())
		LOGGER.info("Generation request stored in memory with ID: %s", request.id)
		return request.id

	async def get(self, request_id: str) -> GenerationRequest:
		entry = self._records.get(request_id)
		if entry is None:
			raise NotFoundError(f"Generation request with ID {request_id} not found.")
		return GenerationRequest.from_record(entry[1])

	async def list_all(self) -> List[GenerationRequest]:
		return self._newest_first(self._records.values())

	async def update(self, request: GenerationRequest) -> None:
		entry = self._records.get(request.id)
		if entry is None:
			raise NotFoundError(f"Generation request with ID {request.id} not found for update.")
		sequence, stored = entry
		fresh = request.to_record()
		updated = dict(stored)
		for key in ("status", "output_path", "error_message", "completed_at"):
			updated[key] = fresh[key]
		self._records[request.id] = (sequence, updated)

	async def count_by_session(self, session_id: str) -> int:
		return sum(1 for _, rec in self._records.values() if rec["client_session_id"] == session_id)

	async def list_by_session(self, session_id: str) -> List[GenerationRequest]:
		return self._newest_first(
			entry for entry in self._records.values() if entry[1]["client_session_id"] == session_id
		)

	async def list_by_status(self, status: GenerationStatus) -> List[GenerationRequest]:
		return self._newest_first(
			entry for entry in self._records.values() if entry[1]["status"] == status.value
		)

	@staticmethod
	def _newest_first(entries) -> List[GenerationRequest]:
		"""Sort by created_at then insertion order, both descending."""
		requests = [(seq, GenerationRequest.from_record(rec)) for seq, rec in entries]
		requests.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
		return [req for _, req in requests]
