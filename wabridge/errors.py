"""
Error taxonomy for wabridge.

Every synchronous failure surfaced to an API caller is a WABridgeError.
Each class carries the HTTP status the facade answers with, so routes
can let these propagate to the single exception handler in app.main.
"""

from __future__ import annotations

from typing import Any


class WABridgeError(Exception):
    """Base class for all wabridge errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def details(self) -> dict[str, Any] | None:
        """Extra fields for the response envelope's data member."""
        return None


# =============================================================================
# Guards
# =============================================================================


class NotPaired(WABridgeError):
    """Raised when an action needs a connected, paired session."""

    status_code = 409

    def __init__(self, message: str = "Not paired with WhatsApp. Please use /pair endpoint first"):
        super().__init__(message)


class ServiceUnavailable(WABridgeError):
    """Raised for new work arriving after shutdown has begun."""

    status_code = 503

    def __init__(self, message: str = "Service is shutting down"):
        super().__init__(message)


class InvalidRecipient(WABridgeError):
    """Raised when the target number cannot be turned into an address."""

    status_code = 400


# =============================================================================
# Pairing
# =============================================================================


class PairingTimeout(WABridgeError):
    """Raised when no pairing event arrives within the wait window."""

    status_code = 408

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"QR code generation timeout after {timeout:g} seconds - please try again"
        )


class PairingError(WABridgeError):
    """Raised when the first pairing event is an error instead of a code."""

    status_code = 500

    def __init__(self, variant: str, detail: str | None = None):
        self.variant = variant
        self.detail = detail
        super().__init__(
            f"QR generation error: {variant}" + (f" ({detail})" if detail else "")
        )

    def details(self) -> dict[str, Any]:
        return {"variant": self.variant}


# =============================================================================
# Attachments
# =============================================================================


class AttachmentError(WABridgeError):
    """Base class for attachment preparation failures."""

    status_code = 422


class UnsupportedSourceScheme(AttachmentError):
    """Raised for attachment sources that are not HTTP(S) URLs."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(
            "attachment URL must be a publicly accessible HTTP/HTTPS link, "
            f"not base64 data. Found: {source[:50]}"
        )


class FetchFailed(AttachmentError):
    """Raised when the attachment GET fails. status_code 0 means no response."""

    status_code = 502

    def __init__(self, url: str, fetch_status: int, detail: str | None = None):
        self.url = url
        self.fetch_status = fetch_status
        super().__init__(
            f"failed to load attachment: HTTP error: {fetch_status}"
            if fetch_status
            else f"failed to load attachment: {detail or 'request failed'}"
        )


class ImageDecodeFailed(AttachmentError):
    """Raised when image bytes cannot be decoded for JPEG conversion."""

    def __init__(self, content_type: str, detail: str):
        self.content_type = content_type
        super().__init__(f"failed to convert image: failed to decode {content_type}: {detail}")


class UploadFailed(AttachmentError):
    """Raised when the protocol client rejects an upload."""

    status_code = 502

    def __init__(self, detail: str):
        super().__init__(f"failed to upload attachment: {detail}")


# =============================================================================
# Sending
# =============================================================================


class SendFailed(WABridgeError):
    """
    Raised when a composed message fails to send.

    Attributes:
        index: 1-based position of the failed message
        delivered: Number of messages sent before the failure
    """

    status_code = 502

    def __init__(self, index: int, detail: str):
        self.index = index
        self.delivered = index - 1
        super().__init__(f"Failed to send message {index}: {detail}")

    def details(self) -> dict[str, Any]:
        return {"failed_index": self.index, "delivered": self.delivered}


# =============================================================================
# Media retrieval
# =============================================================================


class InvalidMediaName(WABridgeError):
    """Raised for retrieval names containing path traversal sequences."""

    status_code = 400

    def __init__(self, name: str):
        self.name = name
        super().__init__("Invalid filename")


class MediaNotFound(WABridgeError):
    """Raised when no stored file matches the requested name."""

    status_code = 404

    def __init__(self, name: str):
        self.name = name
        super().__init__("Image not found")


# =============================================================================
# Startup
# =============================================================================


class ClientLoadError(WABridgeError):
    """Raised when the protocol client cannot be built. Fatal at startup."""
