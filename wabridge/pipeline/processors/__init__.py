"""
wabridge Pipeline Processors

Processors are single-responsibility frame transformers for the inbound
message path.
"""

from .classification import CLASSIFIERS, NON_TEXT_SUMMARY, ClassificationProcessor, classify
from .media_retrieval import MediaRetrievalProcessor, retrieve_image
from .receipts import ReadReceiptProcessor, SelfMessageFilterProcessor
from .webhook import MESSAGE_EVENT, WebhookProcessor, build_notification

__all__ = [
    # Envelope
    "SelfMessageFilterProcessor",
    "ReadReceiptProcessor",
    # Classification
    "ClassificationProcessor",
    "CLASSIFIERS",
    "NON_TEXT_SUMMARY",
    "classify",
    # Media
    "MediaRetrievalProcessor",
    "retrieve_image",
    # Webhook
    "WebhookProcessor",
    "MESSAGE_EVENT",
    "build_notification",
]
