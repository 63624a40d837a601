"""
Action frames for the wabridge pipeline.

These frames record side effects performed for an inbound message.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .base import Frame


@dataclass(frozen=True, kw_only=True, slots=True)
class WebhookDeliveryFrame(Frame):
    """
    Result of posting a notification to the webhook.

    Attributes:
        message_id: Inbound message the notification describes
        webhook_url: Destination that was called
        status_code: HTTP status returned (None on transport failure)
        success: Whether the webhook answered 2xx
        error: Error description if delivery failed
        payload: The JSON body that was posted
    """

    message_id: str = ""
    webhook_url: str = ""
    status_code: int | None = None
    success: bool = False
    error: str | None = None
    payload: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base.update({
            "message_id": self.message_id,
            "status_code": self.status_code,
            "success": self.success,
            "error": self.error,
        })
        return base
