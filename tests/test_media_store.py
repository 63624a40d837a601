"""
Tests for the inbound media store.
"""
import pytest

from wabridge.errors import InvalidMediaName, MediaNotFound
from wabridge.media import MediaStore, content_type_for_name, image_url, validate_name


class TestValidateName:
    """Tests for validate_name."""

    @pytest.mark.parametrize("name", ["3EB0C767D26A1B2E.jpg", "photo.jpeg", "a.b.png"])
    def test_accepts_plain_names(self, name):
        assert validate_name(name) == name

    @pytest.mark.parametrize("name", ["", "..", "../etc/passwd", "a/b.jpg", "a\\b.jpg", "x..jpg"])
    def test_rejects_traversal(self, name):
        with pytest.raises(InvalidMediaName):
            validate_name(name)


class TestContentTypes:
    """Tests for extension-based content types."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("a.jpg", "image/jpeg"),
            ("a.JPEG", "image/jpeg"),
            ("a.png", "image/png"),
            ("a.gif", "image/gif"),
            ("a.webp", "image/webp"),
            ("a.bin", "application/octet-stream"),
            ("noext", "application/octet-stream"),
        ],
    )
    def test_content_type_for_name(self, name, expected):
        assert content_type_for_name(name) == expected


class TestMediaStore:
    """Tests for MediaStore."""

    def test_image_url(self):
        assert image_url("ABC123") == "/images/ABC123.jpg"

    @pytest.mark.asyncio
    async def test_save_and_read(self, tmp_path):
        store = MediaStore(tmp_path / "downloads")

        path = await store.save_image("ABC123", b"\xff\xd8data")
        data, content_type = await store.read("ABC123.jpg")

        assert path == tmp_path / "downloads" / "ABC123.jpg"
        assert data == b"\xff\xd8data"
        assert content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_read_missing(self, tmp_path):
        store = MediaStore(tmp_path)

        with pytest.raises(MediaNotFound):
            await store.read("nothing.jpg")

    @pytest.mark.asyncio
    async def test_read_rejects_traversal(self, tmp_path):
        (tmp_path / "secret.txt").write_text("x")
        store = MediaStore(tmp_path / "downloads")

        with pytest.raises(InvalidMediaName):
            await store.read("../secret.txt")
