import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, List

from starlette.concurrency import run_in_threadpool

from call_inbox.schemas import CallClaimOut
from call_inbox.services.claims import CallFilters, list_active

logger = logging.getLogger(__name__)

CONNECTED = {"type": "connected"}
HEARTBEAT = {"type": "heartbeat"}


def format_sse(frame: dict) -> str:
    return f"data: {json.dumps(frame, separators=(',', ':'))}\n\n"


class CallFeed:
    """Per-connection poller pushing the full active-call snapshot every tick.

    Each tick runs one query in a worker thread with a fresh session. A failed
    query is logged and the tick skipped; the stream itself stays open.
    """

    def __init__(self, session_factory, interval: float, heartbeat_every: int) -> None:
        self.session_factory = session_factory
        self.interval = interval
        self.heartbeat_every = max(heartbeat_every, 1)
        self.queries = 0

    def snapshot(self) -> List[dict]:
        self.queries += 1
        db = self.session_factory()
        try:
            claims = list_active(db, CallFilters())
            return [CallClaimOut.model_validate(claim).model_dump(mode="json") for claim in claims]
        finally:
            db.close()

    async def frames(self, is_disconnected: Callable[[], Awaitable[bool]]) -> AsyncIterator[dict]:
        yield CONNECTED
        ticks = 0
        try:
            while True:
                await asyncio.sleep(self.interval)
                if await is_disconnected():
                    logger.info("Feed client disconnected after %s tick(s)", ticks)
                    return
                ticks += 1
                try:
                    calls = await run_in_threadpool(self.snapshot)
                except Exception:
                    logger.exception("Feed tick %s failed; retrying next tick", ticks)
                else:
                    yield {"type": "update", "calls": calls}
                if ticks % self.heartbeat_every == 0:
                    yield HEARTBEAT
        except asyncio.CancelledError:
            logger.info("Feed cancelled after %s tick(s)", ticks)
            raise

    async def stream(self, is_disconnected: Callable[[], Awaitable[bool]]) -> AsyncIterator[str]:
        async for frame in self.frames(is_disconnected):
            yield format_sse(frame)
