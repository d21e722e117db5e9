"""
Levanta el bot de The Connection (onboarding Start Here).

Con TELEGRAM_WEBHOOK_URL (o RENDER_EXTERNAL_URL) corre por webhook detrás
de aiohttp; si no, por polling.

Uso:
    python -m theconnection.scripts.run_bot
"""

import asyncio
import os
import sys
from typing import Optional

import structlog
from aiohttp import web
from telegram import Update
from telegram.ext import Application

from theconnection.bot import ConnectionBot
from theconnection.config import Settings, get_settings
from theconnection.log import configure_logging

logger = structlog.get_logger()

SERVICE_NAME = "theconnection-bot"


def build_web_app(application: Application, webhook_path: str) -> web.Application:
    """
    App aiohttp con dos rutas:
    - POST webhook_path: updates de Telegram hacia la cola de PTB
    - GET /health: estado del servicio
    """

    async def receive_update(request: web.Request) -> web.Response:
        payload = await request.json()
        await application.update_queue.put(
            Update.de_json(data=payload, bot=application.bot)
        )
        return web.Response(text="ok")

    async def health(_: web.Request) -> web.Response:
        return web.json_response({"service": SERVICE_NAME, "status": "ok"})

    app = web.Application()
    app.router.add_post(webhook_path, receive_update)
    app.router.add_get("/health", health)
    return app


def webhook_base_url(settings: Settings) -> Optional[str]:
    return settings.telegram_webhook_url or os.getenv("RENDER_EXTERNAL_URL")


async def serve_webhook(bot: ConnectionBot, settings: Settings, base_url: str, port: int):
    """Registra el webhook en Telegram y sirve updates hasta que se corte el proceso."""
    application = bot.setup(use_webhook=True)

    path = "/" + settings.telegram_webhook_path.strip("/")
    url = base_url.rstrip("/") + path
    await application.bot.set_webhook(url=url, allowed_updates=Update.ALL_TYPES)

    runner = web.AppRunner(build_web_app(application, path))
    await runner.setup()
    site = web.TCPSite(runner, host=settings.telegram_webhook_listen, port=port)

    try:
        async with application:
            await application.start()
            await site.start()
            logger.info(
                "Start Here escuchando por webhook",
                url=url,
                listen=settings.telegram_webhook_listen,
                port=port,
            )
            await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main():
    """Entry point del bot."""
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        bot = ConnectionBot()
        base_url = webhook_base_url(settings)
        if base_url:
            port = int(os.getenv("PORT", "10000"))
            asyncio.run(serve_webhook(bot, settings, base_url, port))
        else:
            logger.info("Start Here escuchando por polling")
            bot.run()
    except KeyboardInterrupt:
        logger.info("Bot detenido por usuario")
        sys.exit(0)
    except Exception as e:
        logger.error("El bot de The Connection terminó con error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
