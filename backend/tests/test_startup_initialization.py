from __future__ import annotations

from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from backend.app.core.config import get_settings
from backend.app.main import create_app


def test_startup_creates_missing_public_dir_and_closes_http_client(tmp_path: Path, monkeypatch) -> None:
    public_dir = tmp_path / "site" / "public"
    assert not public_dir.parent.exists()

    monkeypatch.setenv("JERSEYFM_PUBLIC_DIR", str(public_dir))
    monkeypatch.setenv("JERSEYFM_STORAGE_PRIVATE_KEY", "operator-secret")
    get_settings.cache_clear()

    app = create_app(http_transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    with TestClient(app) as client:
        response = client.get("/api/health")
        assert response.status_code == 200
        container = client.app.state.container
        assert container.settings.storage_private_key.get_secret_value() == "operator-secret"
        assert "operator-secret" not in repr(container.settings)
        assert not container.http_client.is_closed

    assert public_dir.is_dir()
    assert container.http_client.is_closed

    get_settings.cache_clear()
