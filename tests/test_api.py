"""
Tests for the HTTP facade.

Each test builds the app around a fake protocol client and runs it
through FastAPI's TestClient, lifespan included.
"""
import sys
import types

import pytest
from fastapi.testclient import TestClient

from wabridge.app.dependencies import get_services, initialize_services
from wabridge.app.main import create_app
from wabridge.client import ProtocolClient, load_client, resolve_factory
from wabridge.client.protocol import PairingEvent, PairingEventType
from wabridge.errors import ClientLoadError

CODE = PairingEvent(event=PairingEventType.CODE.value, code="2@Xk9cQ,ZmFrZS1rZXk=,c2VjcmV0")


@pytest.fixture
def api(settings, paired_client):
    """TestClient for a paired and connected session."""
    with TestClient(create_app(settings, client=paired_client)) as client:
        yield client


@pytest.fixture
def unpaired_api(settings, fake_client):
    """TestClient for a session that was never paired."""
    with TestClient(create_app(settings, client=fake_client)) as client:
        yield client


# =============================================================================
# Status routes
# =============================================================================


class TestStatusRoutes:
    """Tests for /health, /devices, /swagger."""

    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "WhatsApp service is running"
        assert body["data"]["paired"] is True
        assert body["data"]["connected"] is True
        assert body["data"]["webhook_configured"] is False

    def test_devices_unpaired(self, unpaired_api):
        body = unpaired_api.get("/devices").json()

        assert body["data"] == {
            "connected": False,
            "paired": False,
            "device_id": None,
            "jid": None,
            "phone": None,
        }

    def test_devices_paired(self, api, identity):
        body = api.get("/devices").json()

        assert body["data"]["jid"] == identity.jid
        assert body["data"]["phone"] == identity.user

    def test_swagger(self, api):
        body = api.get("/swagger").json()

        assert body["success"] is True
        assert "send" in body["data"]["endpoints"]


# =============================================================================
# Sending
# =============================================================================


class TestSendRoute:
    """Tests for POST /send."""

    def test_send_text(self, api, paired_client):
        response = api.post("/send", json={"number": "15551230000", "message": "hi"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Successfully sent 1 message(s)"
        assert body["data"]["sent"] == [
            {"index": 1, "type": "text", "content": "hi", "message_id": "MSG1"}
        ]
        assert paired_client.sent[0][0] == "15551230000@s.whatsapp.net"

    def test_not_paired(self, unpaired_api, fake_client):
        response = unpaired_api.post("/send", json={"number": "1", "message": "hi"})

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "message": "Not paired with WhatsApp. Please use /pair endpoint first",
        }
        assert fake_client.sent == []

    def test_missing_content(self, api):
        response = api.post("/send", json={"number": "1"})

        assert response.status_code == 400
        assert response.json()["message"] == "Either message or attachments are required"

    def test_missing_number(self, api):
        response = api.post("/send", json={"message": "hi"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["message"].startswith("number")

    def test_invalid_json(self, api):
        response = api.post(
            "/send",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request body"

    def test_inline_data_attachment_rejected(self, api, paired_client):
        response = api.post(
            "/send",
            json={
                "number": "1",
                "attachments": [{"type": "image", "url": "data:image/png;base64,AAAA"}],
            },
        )

        assert response.status_code == 422
        assert "not base64 data" in response.json()["message"]
        assert paired_client.sent == []

    def test_send_failure_reports_delivered(self, api, paired_client):
        paired_client.fail_send_at = 1

        response = api.post("/send", json={"number": "1", "message": "hi"})

        assert response.status_code == 502
        body = response.json()
        assert body["message"].startswith("Failed to send message 1")
        assert body["data"] == {"failed_index": 1, "delivered": 0}


# =============================================================================
# Pairing and disconnect
# =============================================================================


class TestPairingRoutes:
    """Tests for GET /pair and POST /disconnect."""

    def test_pair_returns_png(self, unpaired_api, fake_client):
        fake_client.pairing_script = [CODE]

        response = unpaired_api.get("/pair")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert response.headers["pragma"] == "no-cache"
        assert response.content[:8] == b"\x89PNG\r\n\x1a\n"

    def test_pair_timeout(self, unpaired_api):
        response = unpaired_api.get("/pair")

        assert response.status_code == 408
        assert response.json()["success"] is False
        assert "timeout" in response.json()["message"]

    def test_pair_error(self, unpaired_api, fake_client):
        fake_client.pairing_script = [
            PairingEvent(event=PairingEventType.ERR_CLIENT_OUTDATED.value)
        ]

        response = unpaired_api.get("/pair")

        assert response.status_code == 500
        assert response.json()["data"] == {"variant": "err-client-outdated"}

    def test_disconnect(self, api, paired_client):
        response = api.post("/disconnect")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Successfully disconnected and session cleared",
        }
        assert paired_client.store.device_identity is None
        assert api.get("/health").json()["data"]["paired"] is False

    def test_disconnect_when_client_fails(self, api, paired_client):
        paired_client.fail_disconnect = RuntimeError("socket closed")

        response = api.post("/disconnect")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert paired_client.store.device_identity is None
        assert api.get("/devices").json()["data"]["paired"] is False


# =============================================================================
# Unexpected errors
# =============================================================================


class TestUnexpectedErrors:
    """Tests for the catch-all error envelope."""

    def test_unexpected_error_uses_envelope(self, settings, paired_client, monkeypatch):
        app = create_app(settings, client=paired_client)

        with TestClient(app, raise_server_exceptions=False) as client:
            lifecycle = get_services().lifecycle

            def broken_device_info():
                raise RuntimeError("store unreadable")

            monkeypatch.setattr(lifecycle, "device_info", broken_device_info)

            response = client.get("/devices")

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"success": False, "message": "Internal server error"}


# =============================================================================
# Media retrieval
# =============================================================================


class TestImageRoute:
    """Tests for GET /images/{filename}."""

    def test_serves_stored_image(self, api, settings):
        settings.downloads_dir.mkdir(parents=True, exist_ok=True)
        (settings.downloads_dir / "ABC.jpg").write_bytes(b"\xff\xd8jpeg")

        response = api.get("/images/ABC.jpg")

        assert response.status_code == 200
        assert response.content == b"\xff\xd8jpeg"
        assert response.headers["content-type"] == "image/jpeg"
        assert response.headers["cache-control"] == "public, max-age=3600"

    def test_missing_image(self, api):
        response = api.get("/images/NOPE.jpg")

        assert response.status_code == 404
        assert response.json()["message"] == "Image not found"

    @pytest.mark.parametrize("name", ["..secret.jpg", "a%5Cb.jpg"])
    def test_traversal_rejected(self, api, name):
        response = api.get(f"/images/{name}")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid filename"


# =============================================================================
# Client loading
# =============================================================================


class TestClientLoading:
    """Tests for the protocol client factory."""

    @pytest.fixture
    def adapter_module(self, monkeypatch, fake_client):
        module = types.ModuleType("fake_wa_adapter")
        module.create_client = lambda settings: fake_client

        async def create_client_async(settings):
            return fake_client

        module.create_client_async = create_client_async
        module.create_nothing = lambda settings: object()
        module.NOT_CALLABLE = 42
        monkeypatch.setitem(sys.modules, "fake_wa_adapter", module)
        return module

    @pytest.mark.parametrize(
        "path",
        ["no_colon", ":create_client", "fake_wa_adapter:", "wabridge_missing_module_x:f"],
    )
    def test_bad_paths(self, path):
        with pytest.raises(ClientLoadError):
            resolve_factory(path)

    def test_missing_attribute(self, adapter_module):
        with pytest.raises(ClientLoadError):
            resolve_factory("fake_wa_adapter:nope")

    def test_not_callable(self, adapter_module):
        with pytest.raises(ClientLoadError, match="not callable"):
            resolve_factory("fake_wa_adapter:NOT_CALLABLE")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("factory", ["create_client", "create_client_async"])
    async def test_loads_sync_and_async_factories(self, settings, adapter_module, fake_client, factory):
        configured = settings.model_copy(update={"client_factory": f"fake_wa_adapter:{factory}"})

        client = await load_client(configured)

        assert client is fake_client
        assert isinstance(client, ProtocolClient)

    @pytest.mark.asyncio
    async def test_rejects_non_client(self, settings, adapter_module):
        configured = settings.model_copy(update={"client_factory": "fake_wa_adapter:create_nothing"})

        with pytest.raises(ClientLoadError, match="does not implement ProtocolClient"):
            await load_client(configured)

    @pytest.mark.asyncio
    async def test_missing_factory_is_fatal(self, settings):
        with pytest.raises(ClientLoadError, match="WABRIDGE_CLIENT_FACTORY"):
            await initialize_services(settings)
