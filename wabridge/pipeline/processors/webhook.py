"""
Webhook Processor for wabridge.

Posts a normalized notification for each inbound message to the
configured webhook URL.
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from ..processor import Processor

if TYPE_CHECKING:
    from ..context import PipelineContext
    from ..frames import ClassifiedMessageFrame, Frame

logger = logging.getLogger(__name__)

MESSAGE_EVENT = "message"


def build_notification(
    frame: ClassifiedMessageFrame,
    event: str = MESSAGE_EVENT,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Build the JSON body posted to the webhook.

    Empty message/sender/chat and a missing attachment are omitted;
    event and time are always present.
    """
    payload: dict[str, Any] = {"event": event}
    if frame.summary:
        payload["message"] = frame.summary
    if frame.info.sender:
        payload["sender"] = frame.info.sender
    if frame.info.chat:
        payload["chat"] = frame.info.chat
    payload["time"] = (now or datetime.now(UTC)).isoformat()
    if frame.attachment is not None:
        payload["attachment"] = frame.attachment
    return payload


class WebhookProcessor(Processor):
    """
    Delivers inbound notifications to the webhook.

    Input: ClassifiedMessageFrame
    Output: WebhookDeliveryFrame

    One POST per message. A non-2xx answer or transport failure is logged
    and recorded on the output frame; it is never retried.
    """

    def __init__(
        self,
        webhook_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
    ):
        self._url = webhook_url
        self._http = http_client
        self._timeout = timeout_seconds

    @property
    def name(self) -> str:
        return "webhook"

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        from ..frames import ClassifiedMessageFrame, WebhookDeliveryFrame

        if not isinstance(frame, ClassifiedMessageFrame):
            return frame

        payload = build_notification(frame)
        message_id = frame.info.message_id
        status_code: int | None = None
        error: str | None = None

        try:
            response = await self._post(payload)
            status_code = response.status_code
            if not response.is_success:
                error = f"Webhook returned {status_code}"
        except httpx.HTTPError as e:
            error = f"{type(e).__name__}: {e}"

        if error is None:
            logger.info(f"Webhook delivered for {message_id} ({status_code})")
        else:
            logger.warning(f"Webhook delivery failed for {message_id}: {error}")

        return WebhookDeliveryFrame(
            message_id=message_id,
            webhook_url=self._url,
            status_code=status_code,
            success=error is None,
            error=error,
            payload=payload,
            source_frame_id=frame.id,
        )

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return await self._http.post(self._url, json=payload, timeout=self._timeout)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(self._url, json=payload)
