from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from utils.exceptions import InvalidStateTransitionError, ValidationError


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class GenerationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Difficulty":
        """Parse form text (case-insensitive) into a Difficulty."""
        try:
            return cls((value or "").strip().lower())
        except ValueError as exc:
            raise ValidationError(
                f"Invalid difficulty: {value}. Must be easy, medium, or hard",
                {"invalidDifficulty": True},
            ) from exc


class ColorCount(str, Enum):
    C16 = "16"
    C32 = "32"
    C50 = "50"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ColorCount":
        """Parse form text ("16", "32" or "50") into a ColorCount."""
        try:
            return cls((value or "").strip())
        except ValueError as exc:
            raise ValidationError(
                f"Invalid color count: {value}. Must be 16, 32, or 50",
                {"invalidColorCount": True},
            ) from exc

    def as_int(self) -> int:
        return int(self.value)


@dataclass
class GenerationRequest:
    """A paint-by-numbers generation request tracked through its lifecycle.

    Status only moves forward: pending -> processing -> completed | failed.
    The three ``mark_as_*`` methods are the only way to change it.

    Attributes:
        id: UUID string assigned once at creation.
        original_filename: Name of the uploaded file as sent by the client.
        original_image_path: Where the uploaded source image was stored.
        color_count: Number of paint colours requested.
        difficulty: Requested puzzle difficulty.
        status: Current lifecycle state.
        client_session_id: Session the request is billed against.
        created_at: UTC timestamp of creation.
        output_path: Result archive location, set on completion.
        error_message: Failure reason, set on failure.
        completed_at: UTC timestamp of reaching a terminal state.
    """

    id: str
    original_filename: str
    original_image_path: str
    color_count: ColorCount
    difficulty: Difficulty
    client_session_id: str
    status: GenerationStatus = GenerationStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    output_path: Optional[str] = None
    error_message: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (GenerationStatus.COMPLETED, GenerationStatus.FAILED)

    def mark_as_processing(self) -> None:
        if self.status is not GenerationStatus.PENDING:
            raise InvalidStateTransitionError(
                "Can only start processing from pending status", self.status.value
            )
        self.status = GenerationStatus.PROCESSING

    def mark_as_completed(self, output_path: str) -> None:
        if self.status is not GenerationStatus.PROCESSING:
            raise InvalidStateTransitionError(
                "Can only complete from processing status", self.status.value
            )
        if not output_path or not output_path.strip():
            raise ValidationError(
                "Output path is required to mark request as completed",
                {"outputPathRequired": True},
            )
        self.status = GenerationStatus.COMPLETED
        self.output_path = output_path
        self.completed_at = utc_now()

    def mark_as_failed(self, error_message: str) -> None:
        if self.status is not GenerationStatus.PROCESSING:
            raise InvalidStateTransitionError(
                "Can only fail from processing status", self.status.value
            )
        if not error_message or not error_message.strip():
            raise ValidationError(
                "Error message is required to mark request as failed",
                {"errorMessageRequired": True},
            )
        self.status = GenerationStatus.FAILED
        self.error_message = error_message
        self.completed_at = utc_now()

    def to_record(self) -> Dict[str, Any]:
        """Flatten into the persisted record shape (text enums, ISO timestamps)."""
        return {
            "id": self.id,
            "original_filename": self.original_filename,
            "original_image_path": self.original_image_path,
            "color_count": self.color_count.value,
            "difficulty": self.difficulty.value,
            "status": self.status.value,
            "client_session_id": self.client_session_id,
            "created_at": self.created_at.isoformat(),
            "output_path": self.output_path,
            "error_message": self.error_message,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "GenerationRequest":
        """Rebuild an entity from a record produced by `to_record`."""
        completed_at = record.get("completed_at")
        return cls(
            id=record["id"],
            original_filename=record["original_filename"],
            original_image_path=record["original_image_path"],
            color_count=ColorCount(record["color_count"]),
            difficulty=Difficulty(record["difficulty"]),
            status=GenerationStatus(record["status"]),
            client_session_id=record["client_session_id"],
            created_at=datetime.fromisoformat(record["created_at"]),
            output_path=record.get("output_path"),
            error_message=record.get("error_message"),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
        )
