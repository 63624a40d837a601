"""
wabridge Pipeline Framework

Inbound protocol messages are processed as immutable frames flowing
through a sequence of single-responsibility processors.

Core Components:
- Frame: Immutable data containers that flow through the pipeline
- Processor: Single-responsibility transformers
- Pipeline: Sequential executor
- Context: Event-scoped state and protocol client access

Usage:
    pipeline = create_inbound_pipeline(settings, store=store, jobs=jobs)
    result = await pipeline.execute(
        InboundMessageFrame(info=info, content=content),
        PipelineContext(client=client, message_id=info.message_id),
    )
"""

from .builder import PipelineFactory, create_inbound_pipeline
from .context import PipelineContext, PipelineResult
from .executor import Pipeline, PipelineBuilder
from .processor import Processor

__all__ = [
    "Pipeline",
    "PipelineBuilder",
    "PipelineContext",
    "PipelineResult",
    "PipelineFactory",
    "Processor",
    "create_inbound_pipeline",
]
