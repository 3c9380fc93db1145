"""
API server.

aiohttp application factory, error middleware and entry point.
"""

import asyncio
from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger

from app.api.routes import ENGINE_KEY, routes
from app.services.rewards.engine import RewardEngine
from app.utils.exceptions import RewardEngineError, must_log

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map engine errors to JSON responses; hide details of anything else."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except RewardEngineError as e:
        log = logger.warning if must_log(e) else logger.info
        log(f"{request.method} {request.path} -> {e.http_status} {e.code}: {e.message}")
        return web.json_response(e.to_dict(), status=e.http_status)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.path}: {e}")
        return web.json_response(
            {
                "success": False,
                "error": "Internal server error",
                "code": "internal_error",
                "retryable": False,
            },
            status=500,
        )


def create_app(engine: RewardEngine) -> web.Application:
    """
    Build the API application.

    Args:
        engine: Reward engine serving the requests

    Returns:
        aiohttp Application; the engine is closed on cleanup
    """
    app = web.Application(middlewares=[error_middleware])
    app[ENGINE_KEY] = engine
    app.add_routes(routes)

    async def close_engine(app: web.Application) -> None:
        await app[ENGINE_KEY].close()

    app.on_cleanup.append(close_engine)
    return app


async def serve() -> None:
    """Run the API until cancelled."""
    from app.config.logging import setup_logging
    from app.config.settings import settings
    from app.services.rewards.engine import build_engine

    setup_logging("api")
    app = create_app(build_engine(settings))

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.api_host, settings.api_port)
    await site.start()
    logger.info(f"Reward API listening on {settings.api_host}:{settings.api_port}")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main() -> None:
    """Console entry point."""
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Reward API stopped")


if __name__ == "__main__":
    main()
