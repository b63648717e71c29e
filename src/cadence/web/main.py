import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Iterable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from cadence.core.output import drain_pending_messages
from cadence.domain.library.catalog import CatalogClient
from cadence.domain.playback.session import PlaybackSession

BackgroundJob = Callable[[], Awaitable[None]]


def create_app(
    session: PlaybackSession,
    catalog: CatalogClient,
    drain_messages: Callable[[], list[tuple[str, str]]] = drain_pending_messages,
    background: Iterable[BackgroundJob] = (),
    allowed_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Build the control API around an existing session.

    Args:
        session: The process-wide playback session
        catalog: Catalog used by the album/playlist queue routes
        drain_messages: Source of transient user-facing messages
        background: Coroutine functions run for the app's lifetime
            (e.g. the mpv watcher)
        allowed_origins: CORS origins (dev default: Vite on 5173)
    """
    jobs = list(background)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tasks = [asyncio.create_task(job()) for job in jobs]
        if tasks:
            logger.info(f"Started {len(tasks)} background job(s)")
        try:
            yield
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    app = FastAPI(title="Cadence Player API", version="1.0.0", lifespan=lifespan)
    app.state.session = session
    app.state.catalog = catalog
    app.state.drain_messages = drain_messages

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from cadence.web.routers import player

    app.include_router(player.router, prefix="/api/player", tags=["player"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app
