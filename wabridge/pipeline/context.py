"""
Pipeline Context for wabridge.

The context provides event-scoped state and access to the protocol
client for all processors in the inbound pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from wabridge.client.protocol import ProtocolClient


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineContext:
    """
    Event-scoped context passed through the pipeline.

    Provides:
    - Unique execution ID for tracing
    - Protocol client access (mark-read, download)
    - Audit trail of frame processing
    """

    # Execution identification
    execution_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)

    # Collaborators (injected by the pipeline runner)
    client: ProtocolClient | None = None

    # Event context
    message_id: str = ""
    sender: str = ""
    chat: str = ""

    # Audit trail
    processor_timings: dict[str, float] = field(default_factory=dict)
    frame_log: list[dict[str, Any]] = field(default_factory=list)

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since pipeline started."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def record_frame(self, frame_dict: dict[str, Any], processor_name: str) -> None:
        """Record a frame in the audit trail."""
        self.frame_log.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "processor": processor_name,
            "frame": frame_dict,
            "elapsed_ms": self.elapsed_ms,
        })

    def record_timing(self, processor_name: str, duration_ms: float) -> None:
        """Record processor execution timing."""
        self.processor_timings[processor_name] = duration_ms


@dataclass
class PipelineResult:
    """
    Result of pipeline execution.

    Contains all frames produced by the pipeline,
    timing information, and any errors encountered.
    """

    context: PipelineContext
    output_frames: list[Any] = field(default_factory=list)
    success: bool = True
    error: str | None = None

    @property
    def execution_id(self) -> UUID:
        return self.context.execution_id

    @property
    def duration_ms(self) -> float:
        return self.context.elapsed_ms

    def get_frame(self, frame_type: type) -> Any | None:
        """Get the first frame of a specific type."""
        for frame in self.output_frames:
            if isinstance(frame, frame_type):
                return frame
        return None

