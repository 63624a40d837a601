"""
Pytest configuration and fixtures for wabridge tests.

The protocol client is external, so tests run against the in-memory
FakeProtocolClient below. Every call is recorded on client.calls in
order, which lets tests assert sequencing (teardown before pairing,
typing indicator before sends, and so on).
"""

import asyncio
import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add the repository root to path for imports
# This allows `from wabridge.pipeline import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from wabridge.client.protocol import (  # noqa: E402
    DeviceIdentity,
    MediaReference,
    PairingEvent,
    PairingEventType,
    SendReceipt,
)
from wabridge.config.schemas import AppSettings  # noqa: E402

_CLOSE = object()


# =============================================================================
# Fake protocol client
# =============================================================================


class FakeDeviceStore:
    """In-memory device store."""

    def __init__(self, identity: DeviceIdentity | None = None):
        self.identity = identity
        self.deleted = 0
        self.fail_delete: Exception | None = None

    @property
    def device_identity(self) -> DeviceIdentity | None:
        return self.identity

    async def delete(self) -> None:
        self.deleted += 1
        if self.fail_delete is not None:
            raise self.fail_delete
        self.identity = None


class FakeProtocolClient:
    """
    In-memory protocol client.

    Pairing events listed in pairing_script are queued on the channel
    when get_pairing_channel() is called; more can be pushed later with
    push_pairing_event() and the channel ended with close_pairing_channel().
    """

    def __init__(self, identity: DeviceIdentity | None = None):
        self._store = FakeDeviceStore(identity)
        self.connected = False
        self.handlers: list = []
        self.calls: list[str] = []

        self.sent: list[tuple[str, object]] = []
        self.uploads: list[tuple[bytes, object]] = []
        self.downloads: list[tuple[object, object]] = []
        self.read_marks: list[tuple[list[str], str, str]] = []
        self.presences: list[tuple[str, object]] = []

        self.pairing_script: list[PairingEvent] = []
        self._pairing_queue: asyncio.Queue | None = None

        self.download_data = b"\xff\xd8\xff\xe0fake-jpeg"
        self.fail_connect: Exception | None = None
        self.fail_channel: Exception | None = None
        self.fail_send_at: int | None = None
        self.fail_upload: Exception | None = None
        self.fail_download: Exception | None = None
        self.fail_mark_read: Exception | None = None
        self.fail_presence: Exception | None = None
        self.fail_disconnect: Exception | None = None

    @property
    def store(self) -> FakeDeviceStore:
        return self._store

    def is_connected(self) -> bool:
        return self.connected

    def add_event_handler(self, handler) -> None:
        self.handlers.append(handler)

    async def emit(self, event) -> None:
        for handler in self.handlers:
            await handler(event)

    async def connect(self) -> None:
        self.calls.append("connect")
        if self.fail_connect is not None:
            raise self.fail_connect
        self.connected = True

    async def disconnect(self) -> None:
        self.calls.append("disconnect")
        if self.fail_disconnect is not None:
            raise self.fail_disconnect
        self.connected = False

    async def get_pairing_channel(self):
        self.calls.append("get_pairing_channel")
        if self.fail_channel is not None:
            raise self.fail_channel
        queue: asyncio.Queue = asyncio.Queue()
        for event in self.pairing_script:
            queue.put_nowait(event)
        self._pairing_queue = queue
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue):
        while True:
            item = await queue.get()
            if item is _CLOSE:
                return
            yield item

    def push_pairing_event(self, event: PairingEvent) -> None:
        assert self._pairing_queue is not None
        self._pairing_queue.put_nowait(event)

    def close_pairing_channel(self) -> None:
        assert self._pairing_queue is not None
        self._pairing_queue.put_nowait(_CLOSE)

    def complete_pairing(self, identity: DeviceIdentity) -> None:
        """Simulate the phone scanning the code."""
        self._store.identity = identity
        self.push_pairing_event(PairingEvent(event=PairingEventType.SUCCESS.value))

    async def send_message(self, jid, message) -> SendReceipt:
        self.calls.append("send_message")
        if self.fail_send_at is not None and len(self.sent) + 1 == self.fail_send_at:
            raise RuntimeError("server returned error 479")
        self.sent.append((jid, message))
        return SendReceipt(message_id=f"MSG{len(self.sent)}")

    async def upload(self, data, kind) -> MediaReference:
        self.calls.append("upload")
        if self.fail_upload is not None:
            raise self.fail_upload
        self.uploads.append((data, kind))
        return MediaReference(
            url=f"https://mmg.example/{len(self.uploads)}",
            direct_path=f"/v/t62/{len(self.uploads)}",
            media_key=b"k" * 32,
            file_length=len(data),
        )

    async def download(self, locator, kind) -> bytes:
        self.calls.append("download")
        self.downloads.append((locator, kind))
        if self.fail_download is not None:
            raise self.fail_download
        return self.download_data

    async def mark_read(self, message_ids, timestamp, chat, sender) -> None:
        self.calls.append("mark_read")
        if self.fail_mark_read is not None:
            raise self.fail_mark_read
        self.read_marks.append((list(message_ids), chat, sender))

    async def send_chat_presence(self, jid, state) -> None:
        self.calls.append("send_chat_presence")
        if self.fail_presence is not None:
            raise self.fail_presence
        self.presences.append((jid, state))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def identity():
    """A paired device identity."""
    return DeviceIdentity(jid="15551234567:12@s.whatsapp.net", user="15551234567")


@pytest.fixture
def fake_client():
    """Unpaired, disconnected fake client."""
    return FakeProtocolClient()


@pytest.fixture
def paired_client(identity):
    """Fake client with a stored identity and a live connection."""
    client = FakeProtocolClient(identity)
    client.connected = True
    return client


@pytest.fixture
def settings(tmp_path):
    """Settings tuned for fast tests."""
    return AppSettings(
        client_factory="",
        downloads_dir=tmp_path / "downloads",
        pairing_timeout_seconds=0.2,
        pairing_settle_seconds=0,
        shutdown_grace_seconds=0.5,
        webhook_url="",
    )


@pytest.fixture
def png_bytes():
    """A small opaque PNG image."""
    buf = io.BytesIO()
    Image.new("RGB", (8, 6), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def rgba_png_bytes():
    """A small PNG with an alpha channel."""
    buf = io.BytesIO()
    Image.new("RGBA", (4, 4), (0, 0, 255, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes():
    """A small JPEG image."""
    buf = io.BytesIO()
    Image.new("RGB", (8, 6), (30, 200, 30)).save(buf, format="JPEG")
    return buf.getvalue()
