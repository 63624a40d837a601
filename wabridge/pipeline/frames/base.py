"""
Base Frame abstraction for the wabridge inbound pipeline.

Frames are immutable data containers that flow through the pipeline.
Every inbound protocol event becomes a frame; each processor derives a
new frame instead of mutating the one it received.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

# Type variable for generic derive() method
F = TypeVar("F", bound="Frame")


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


@dataclass(frozen=True, kw_only=True, slots=True)
class Frame:
    """
    Base class for all frames in the wabridge pipeline.

    Frames are immutable data containers with:
    - Unique ID for tracking
    - Creation timestamp
    - Source frame ID for lineage tracking
    - Metadata for extensibility
    """

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    source_frame_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def frame_type(self) -> str:
        """Frame type name for logging and debugging."""
        return self.__class__.__name__

    def derive(self: F, **changes: Any) -> F:
        """
        Create a new frame derived from this one.

        The new frame gets a fresh ID and timestamp, and its
        source_frame_id points back to this frame.
        """
        return replace(
            self,
            id=uuid4(),
            created_at=_utc_now(),
            source_frame_id=self.id,
            **changes,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize frame to dictionary for logging."""
        return {
            "id": str(self.id),
            "frame_type": self.frame_type,
            "created_at": self.created_at.isoformat(),
            "source_frame_id": str(self.source_frame_id) if self.source_frame_id else None,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"{self.frame_type}(id={str(self.id)[:8]}...)"


@dataclass(frozen=True, kw_only=True, slots=True)
class ErrorFrame(Frame):
    """
    Frame representing an error that occurred during processing.

    ErrorFrames flow through the pipeline like regular frames. Inbound
    processing is best-effort, so an ErrorFrame is logged and reported
    in the pipeline result but never surfaced to a caller.
    """

    error_type: str = "unknown"
    error_message: str = "An error occurred"
    processor_name: str = ""
    original_frame_type: str = ""
    exception_class: str | None = None
    message_id: str | None = None

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        processor_name: str,
        source_frame: Frame | None = None,
    ) -> ErrorFrame:
        """Create ErrorFrame from an exception."""
        info = getattr(source_frame, "info", None)
        return cls(
            error_type=_classify_error(exc),
            error_message=str(exc),
            processor_name=processor_name,
            original_frame_type=source_frame.frame_type if source_frame else "",
            exception_class=type(exc).__name__,
            source_frame_id=source_frame.id if source_frame else None,
            message_id=getattr(info, "message_id", None),
        )

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base.update(
            {
                "error_type": self.error_type,
                "error_message": self.error_message,
                "processor_name": self.processor_name,
                "original_frame_type": self.original_frame_type,
                "exception_class": self.exception_class,
                "message_id": self.message_id,
            }
        )
        return base


def _classify_error(exc: Exception) -> str:
    """Classify exception into error type."""
    name = type(exc).__name__.lower()
    msg = str(exc).lower()

    if "timeout" in name or "timeout" in msg:
        return "timeout"
    if "connect" in name or "network" in name:
        return "network"
    if "validation" in name or "invalid" in name:
        return "validation"
    return "internal"
