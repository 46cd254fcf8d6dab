import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from models import BroadcastHub, Producer, random_score_step
from utilities import (
    EVENT_STREAM_MEDIA_TYPE,
    ProducerError,
    Settings,
    SubscriptionClosed,
    make_frame,
    make_heartbeat,
)

logger = structlog.get_logger()

router = APIRouter()

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # stop reverse proxies from buffering the stream
    "X-Accel-Buffering": "no",
}


# -------------- Stream transport --------------
async def event_stream(hub: BroadcastHub, heartbeat_interval: float = 0) -> AsyncIterator[str]:
    """
    Per-connection generator: subscribe, then yield one frame per published value.
    Ends when the hub closes; a client disconnect cancels it at the pending await.
    The subscription is released on every way out.
    """
    sub = hub.subscribe()
    try:
        while True:
            try:
                if heartbeat_interval:
                    value = await asyncio.wait_for(sub.get(), timeout=heartbeat_interval)
                else:
                    value = await sub.get()
            except asyncio.TimeoutError:
                yield make_heartbeat()
                continue
            except SubscriptionClosed:
                break
            yield make_frame(value)
    finally:
        sub.close()
        logger.info("stream.closed", subscriber_id=sub.id, dropped=sub.dropped)


@router.get("/events")
async def events(request: Request):
    state = request.app.state
    return StreamingResponse(
        event_stream(state.hub, state.settings.heartbeat_interval),
        media_type=EVENT_STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


# -------------- REST endpoints --------------

@router.get("/health")
async def rest_health(request: Request):
    state = request.app.state
    now = datetime.now(timezone.utc)
    uptime_sec = int((now - state.started_at).total_seconds())
    return {"status": "ok", "uptime_sec": uptime_sec, "subscribers": state.hub.subscriber_count}


@router.get("/stats")
async def rest_stats(request: Request):
    hub: BroadcastHub = request.app.state.hub
    producer: Producer = request.app.state.producer
    return {
        "subscribers": hub.subscriber_count,
        "published": hub.published_count,
        "dropped": hub.dropped_count,
        "ticks": producer.ticks,
        "overflow_policy": hub.overflow_policy,
        "queue_size": hub.queue_size,
    }


# -------------- App factory --------------

def _request_shutdown():
    # servers that handle SIGTERM stop gracefully; main() swaps in a direct call
    signal.raise_signal(signal.SIGTERM)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    settings: Settings = state.settings
    logger.info(
        "livescore.starting",
        host=settings.host,
        port=settings.port,
        tick_interval=settings.tick_interval,
        queue_size=settings.queue_size,
        overflow_policy=settings.overflow_policy,
    )

    def on_producer_done(task: asyncio.Task):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # already logged by the producer
            state.producer_error = exc
            # end open streams first so the server is not held open waiting on them
            state.hub.close()
            state.request_shutdown()

    producer_task = asyncio.create_task(state.producer.run())
    producer_task.add_done_callback(on_producer_done)

    yield

    logger.info("livescore.shutdown", subscribers=state.hub.subscriber_count)
    state.producer.stop()
    producer_task.cancel()
    try:
        await producer_task
    except asyncio.CancelledError:
        pass
    except ProducerError:
        # already recorded by on_producer_done
        pass
    state.hub.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app with its own hub and producer.

    The producer only runs while the lifespan is active.
    """
    settings = settings or Settings()
    app = FastAPI(title="Live Score Stream", lifespan=lifespan)

    hub = BroadcastHub(queue_size=settings.queue_size, overflow_policy=settings.overflow_policy)
    app.state.settings = settings
    app.state.hub = hub
    app.state.producer = Producer(
        hub,
        transition=random_score_step(settings.score_probability),
        interval=settings.tick_interval,
    )
    app.state.started_at = datetime.now(timezone.utc)
    app.state.producer_error = None
    app.state.request_shutdown = _request_shutdown

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )
    app.include_router(router)
    return app


# -------------- Server --------------

class LiveScoreServer(uvicorn.Server):
    """
    uvicorn waits for in-flight responses before running lifespan shutdown,
    and an event stream never finishes by itself, so the hub is closed as
    soon as an exit signal arrives.
    """

    def __init__(self, config: uvicorn.Config, hub: BroadcastHub):
        super().__init__(config)
        self.hub = hub
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def startup(self, sockets=None):
        self._loop = asyncio.get_running_loop()
        await super().startup(sockets=sockets)

    def handle_exit(self, sig, frame):
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.hub.close)
        super().handle_exit(sig, frame)


def main():
    settings = Settings()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.log_level.upper())),
    )
    app = create_app(settings)
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level=settings.log_level)
    server = LiveScoreServer(config, app.state.hub)
    app.state.request_shutdown = lambda: server.handle_exit(signal.SIGTERM, None)
    # uvicorn exits the process itself if the address cannot be bound
    server.run()
    if app.state.producer_error is not None:
        sys.exit(1)


if __name__ == "__main__":
    main()
