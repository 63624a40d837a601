"""
wabridge - REST bridge for a WhatsApp multi-device session.

wabridge pairs with a WhatsApp account through a scannable QR code,
sends text and media on behalf of API callers, and relays every inbound
message to a configured webhook.

Features:

- **Pairing**: QR-code pairing with one attempt in flight at a time
- **Outbound Composer**: Ordered text and attachment sending
- **Attachment Pipeline**: Fetch, JPEG-normalize and upload media from URLs
- **Inbound Pipeline**: Frame-based classification, read receipts and webhook relay
- **Pluggable Client**: The protocol client is loaded from a factory

Quick Start:
    $ export WABRIDGE_CLIENT_FACTORY=mycompany.wa_adapter:create_client
    $ export WABRIDGE_WEBHOOK_URL=https://example.com/hooks/whatsapp
    $ python -m wabridge.app.main
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports for convenient imports
from wabridge.pipeline import Pipeline, PipelineBuilder, PipelineContext, PipelineResult
from wabridge.pipeline.processor import Processor
from wabridge.pipeline.frames import Frame

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Core pipeline
    "Pipeline",
    "PipelineBuilder",
    "PipelineContext",
    "PipelineResult",
    "Processor",
    "Frame",
]
