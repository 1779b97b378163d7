import asyncio
import logging
import signal

import uvicorn

from call_inbox.core.config import settings
from call_inbox.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_server() -> uvicorn.Server:
    config = uvicorn.Config(
        "call_inbox.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        # Open SSE streams never finish on their own.
        timeout_graceful_shutdown=5,
    )
    return uvicorn.Server(config)


async def serve(server: uvicorn.Server) -> None:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def request_stop(sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down %s", sig.name, settings.app_name)
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, request_stop, sig)

    server_task = asyncio.create_task(server.serve())
    stop_task = asyncio.create_task(stop_event.wait())
    done, _ = await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    if stop_task in done:
        server.should_exit = True
        await server_task
    else:
        stop_task.cancel()
        # Startup failures surface here.
        server_task.result()


def main() -> None:
    configure_logging()
    logger.info(
        "Starting %s on %s:%s (%s)",
        settings.app_name,
        settings.host,
        settings.port,
        settings.environment,
    )
    asyncio.run(serve(build_server()))


if __name__ == "__main__":
    main()
