"""
Tests for the Attachment Pipeline and image helpers.

HTTP is served by httpx.MockTransport; uploads go to the fake client.
"""
import io

import httpx
import pytest
from PIL import Image

from wabridge.client.protocol import MediaKind
from wabridge.errors import FetchFailed, ImageDecodeFailed, UnsupportedSourceScheme, UploadFailed
from wabridge.media import AttachmentPipeline, check_source, render_qr_png, sniff_content_type, to_jpeg
from wabridge.outbound import AttachmentSpec


class Recorder:
    """MockTransport handler serving a fixed response and recording requests."""

    def __init__(self, status_code=200, content=b"", headers=None, error=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, content=self.content, headers=self.headers)


def _pipeline(client, handler) -> AttachmentPipeline:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AttachmentPipeline(client, http_client=http)


# =============================================================================
# Source checks
# =============================================================================


class TestCheckSource:
    """Tests for check_source."""

    @pytest.mark.parametrize("url", ["https://cdn.example/a.png", "http://cdn.example/a.png"])
    def test_accepts_http(self, url):
        check_source(url)

    @pytest.mark.parametrize(
        "url",
        [
            "data:image/png;base64,iVBORw0KGgo=",
            "iVBORw0KGgoAAAANSUhEUgAA",
            "ftp://files.example/a.png",
            "file:///etc/passwd",
            "https://",
        ],
    )
    def test_rejects_everything_else(self, url):
        with pytest.raises(UnsupportedSourceScheme):
            check_source(url)

    @pytest.mark.asyncio
    async def test_rejected_without_network_call(self, fake_client):
        handler = Recorder()
        pipeline = _pipeline(fake_client, handler)

        with pytest.raises(UnsupportedSourceScheme, match="not base64 data"):
            await pipeline.fetch_and_normalize(
                AttachmentSpec(type="image", url="data:image/png;base64,AAAA")
            )

        assert handler.requests == []
        assert fake_client.uploads == []


# =============================================================================
# Fetching
# =============================================================================


class TestFetch:
    """Tests for AttachmentPipeline.fetch."""

    @pytest.mark.asyncio
    async def test_http_error_status(self, fake_client):
        pipeline = _pipeline(fake_client, Recorder(status_code=404))

        with pytest.raises(FetchFailed) as exc_info:
            await pipeline.fetch("https://cdn.example/missing.png")

        assert exc_info.value.fetch_status == 404
        assert "HTTP error: 404" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error_reports_status_zero(self, fake_client):
        handler = Recorder(error=httpx.ConnectError("connection refused"))
        pipeline = _pipeline(fake_client, handler)

        with pytest.raises(FetchFailed) as exc_info:
            await pipeline.fetch("https://cdn.example/a.png")

        assert exc_info.value.fetch_status == 0

    @pytest.mark.asyncio
    async def test_content_type_from_header_without_parameters(self, fake_client):
        handler = Recorder(content=b"%PDF-1.4", headers={"content-type": "application/pdf; charset=binary"})
        pipeline = _pipeline(fake_client, handler)

        data, content_type = await pipeline.fetch("https://cdn.example/r.pdf")

        assert data == b"%PDF-1.4"
        assert content_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_content_type_sniffed_when_header_missing(self, fake_client, png_bytes):
        pipeline = _pipeline(fake_client, Recorder(content=png_bytes))

        _, content_type = await pipeline.fetch("https://cdn.example/download?id=1")

        assert content_type == "image/png"


# =============================================================================
# Normalization and upload
# =============================================================================


class TestFetchAndNormalize:
    """Tests for AttachmentPipeline.fetch_and_normalize."""

    @pytest.mark.asyncio
    async def test_png_is_converted_to_jpeg(self, fake_client, png_bytes):
        pipeline = _pipeline(fake_client, Recorder(content=png_bytes, headers={"content-type": "image/png"}))

        media = await pipeline.fetch_and_normalize(
            AttachmentSpec(type="image", url="https://cdn.example/a.png")
        )

        uploaded, kind = fake_client.uploads[0]
        assert kind is MediaKind.IMAGE
        assert uploaded[:3] == b"\xff\xd8\xff"
        assert media.mimetype == "image/jpeg"
        assert media.file_length == len(uploaded)
        assert media.reference.direct_path == "/v/t62/1"

    @pytest.mark.asyncio
    async def test_jpeg_uploaded_unchanged(self, fake_client, jpeg_bytes):
        pipeline = _pipeline(fake_client, Recorder(content=jpeg_bytes, headers={"content-type": "image/jpeg"}))

        await pipeline.fetch_and_normalize(AttachmentSpec(type="image", url="https://cdn.example/a.jpg"))

        assert fake_client.uploads[0][0] == jpeg_bytes

    @pytest.mark.asyncio
    async def test_document_uploaded_as_fetched(self, fake_client):
        pipeline = _pipeline(
            fake_client, Recorder(content=b"%PDF-1.4 body", headers={"content-type": "application/pdf"})
        )

        media = await pipeline.fetch_and_normalize(
            AttachmentSpec(type="document", url="https://cdn.example/r.pdf", filename="r.pdf")
        )

        assert fake_client.uploads == [(b"%PDF-1.4 body", MediaKind.DOCUMENT)]
        assert media.mimetype == "application/pdf"

    @pytest.mark.asyncio
    async def test_undecodable_image(self, fake_client):
        pipeline = _pipeline(fake_client, Recorder(content=b"<html>nope</html>", headers={"content-type": "image/png"}))

        with pytest.raises(ImageDecodeFailed, match="failed to decode image/png"):
            await pipeline.fetch_and_normalize(AttachmentSpec(type="image", url="https://cdn.example/a.png"))

        assert fake_client.uploads == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("side", [64, 40], ids=["over_error_limit", "over_warning_limit"])
    async def test_oversized_image(self, fake_client, monkeypatch, side):
        buf = io.BytesIO()
        Image.new("1", (side, side)).save(buf, format="PNG")
        # 64x64 exceeds twice the limit (error), 40x40 only the limit (warning)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        pipeline = _pipeline(fake_client, Recorder(content=buf.getvalue(), headers={"content-type": "image/png"}))

        with pytest.raises(ImageDecodeFailed, match="failed to decode image/png"):
            await pipeline.fetch_and_normalize(AttachmentSpec(type="image", url="https://cdn.example/big.png"))

        assert fake_client.uploads == []

    @pytest.mark.asyncio
    async def test_upload_failure(self, fake_client):
        fake_client.fail_upload = RuntimeError("media conn refused")
        pipeline = _pipeline(fake_client, Recorder(content=b"abc", headers={"content-type": "audio/ogg"}))

        with pytest.raises(UploadFailed, match="media conn refused"):
            await pipeline.fetch_and_normalize(AttachmentSpec(type="audio", url="https://cdn.example/a.ogg"))

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client_open(self, fake_client):
        http = httpx.AsyncClient(transport=httpx.MockTransport(Recorder()))
        pipeline = AttachmentPipeline(fake_client, http_client=http)

        await pipeline.close()

        assert not http.is_closed
        await http.aclose()


# =============================================================================
# Image helpers
# =============================================================================


class TestImaging:
    """Tests for the synchronous image helpers."""

    def test_sniff_falls_back_to_extension(self):
        assert sniff_content_type(b"not an image", "https://x/report.pdf") == "application/pdf"

    def test_sniff_unknown(self):
        assert sniff_content_type(b"\x00\x01", "https://x/blob") == "application/octet-stream"

    def test_transparent_png_flattened_on_white(self, rgba_png_bytes):
        data = to_jpeg(rgba_png_bytes, "image/png")

        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            r, g, b = img.convert("RGB").getpixel((1, 1))
            assert min(r, g, b) > 240

    def test_qr_png(self):
        data = render_qr_png("2@abc,def,ghi==")

        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "PNG"
            assert img.size == (256, 256)
