"""
Processor abstraction for the wabridge pipeline.

Processors are modular workers that transform frames.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import PipelineContext
    from .frames import Frame

logger = logging.getLogger(__name__)


# Type alias for processor return value
ProcessorResult = "Frame | Sequence[Frame] | None"


class Processor(ABC):
    """
    Base class for all processors in the wabridge pipeline.

    Processors are single-responsibility transformers that:
    - Receive a frame and context
    - Return transformed frame(s), or None to stop

    Design Principles:
    - process(Frame, Context) -> Frame | list[Frame] | None
    - Frames a processor does not handle are returned unchanged
    - Errors become ErrorFrames (the pipeline catches exceptions)

    Subclasses must implement:
    - name: Unique processor identifier
    - process(): The transformation logic
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this processor, used in logging."""
        ...

    @abstractmethod
    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> ProcessorResult:
        """
        Transform input frame.

        Args:
            frame: Input frame to process
            ctx: Pipeline context with the protocol client and audit state

        Returns:
            Frame: Continue pipeline with single frame
            Sequence[Frame]: Fan-out to multiple frames
            None: Stop pipeline (frame consumed)

        Raises:
            Exception: Pipeline wraps in ErrorFrame
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
