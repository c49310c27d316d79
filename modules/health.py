import logging
import time
from typing import Callable

from aiohttp import web


logger = logging.getLogger(__name__)

NOT_FOUND = {
    "error": "Not Found",
    "message": "This is a Telegram Bot. Please use Telegram to interact.",
}


def build_app(started_at: float | None = None, clock: Callable[[], float] = time.time) -> web.Application:
    """HTTP-пульс для хостингу: бот живе, поки відповідає /health."""
    started = clock() if started_at is None else started_at

    def uptime() -> int:
        return int(clock() - started)

    async def index(request: web.Request) -> web.Response:
        return web.json_response({
            "status": "online",
            "message": "🔮 TarotAI Bot is running successfully!",
            "uptime_seconds": uptime(),
            "endpoints": {"status": "/status", "health": "/health", "ping": "/ping"},
        })

    async def status(request: web.Request) -> web.Response:
        return web.json_response({
            "status": "healthy",
            "bot_running": True,
            "uptime_seconds": uptime(),
        })

    async def health(request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def ping(request: web.Request) -> web.Response:
        return web.Response(text="pong")

    @web.middleware
    async def not_found(request: web.Request, handler):
        try:
            return await handler(request)
        except web.HTTPNotFound:
            return web.json_response(NOT_FOUND, status=404)

    app = web.Application(middlewares=[not_found])
    app.router.add_get("/", index)
    app.router.add_get("/status", status)
    app.router.add_get("/health", health)
    app.router.add_get("/ping", ping)
    return app


async def start_health_server(port: int, host: str = "0.0.0.0") -> web.AppRunner:
    runner = web.AppRunner(build_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("🌐 Health server listening on %s:%s", host, port)
    return runner
