"""
Tests del servidor webhook del bot (rutas aiohttp y URL base).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from theconnection.scripts import run_bot


@pytest.fixture
def application():
    application = MagicMock()
    application.update_queue.put = AsyncMock()
    return application


class TestWebApp:

    @pytest.mark.asyncio
    async def test_health_reports_service(self, application):
        app = run_bot.build_web_app(application, "/telegram")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.get("/health")
            body = await response.json()

        assert response.status == 200
        assert body == {"service": "theconnection-bot", "status": "ok"}

    @pytest.mark.asyncio
    async def test_webhook_enqueues_update(self, application, monkeypatch):
        parsed = object()
        fake_update = MagicMock()
        fake_update.de_json.return_value = parsed
        monkeypatch.setattr(run_bot, "Update", fake_update)
        app = run_bot.build_web_app(application, "/telegram")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post("/telegram", json={"update_id": 1})

        assert response.status == 200
        fake_update.de_json.assert_called_once_with(
            data={"update_id": 1}, bot=application.bot
        )
        application.update_queue.put.assert_awaited_once_with(parsed)


class TestWebhookBaseUrl:

    def test_prefers_configured_url(self, settings, monkeypatch):
        monkeypatch.setenv("RENDER_EXTERNAL_URL", "https://render.example")
        settings.telegram_webhook_url = "https://bot.example"

        assert run_bot.webhook_base_url(settings) == "https://bot.example"

    def test_falls_back_to_render_url(self, settings, monkeypatch):
        monkeypatch.setenv("RENDER_EXTERNAL_URL", "https://render.example")
        settings.telegram_webhook_url = None

        assert run_bot.webhook_base_url(settings) == "https://render.example"

    def test_none_means_polling(self, settings, monkeypatch):
        monkeypatch.delenv("RENDER_EXTERNAL_URL", raising=False)
        settings.telegram_webhook_url = None

        assert run_bot.webhook_base_url(settings) is None
