import pytest

pytest.importorskip("loguru")

from httpx import ASGITransport, AsyncClient

from candidate_store.storage.facade import create_storage
from services.api.main import create_app
from tests.utils_store import filesystem_settings


@pytest.mark.asyncio()
async def test_health_endpoint(tmp_path) -> None:
    app = create_app(storage=create_storage(filesystem_settings(tmp_path)))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
