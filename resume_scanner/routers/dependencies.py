import asyncio
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Request

from resume_scanner.models.settings import AppSettings
from resume_scanner.services.ai_client import AzureOpenAIClient
from resume_scanner.services.pipeline import ResumeParser
from resume_scanner.services.storage import LocalStorage
from resume_scanner.utils.config import get_settings
from resume_scanner.utils.logging_config import get_logger

logger = get_logger(__name__)

DISCONNECT_POLL_SECONDS = 0.5


def get_app_settings() -> AppSettings:
    return get_settings()


@lru_cache(maxsize=1)
def get_storage() -> LocalStorage:
    return LocalStorage()


@lru_cache(maxsize=1)
def get_ai_client() -> AzureOpenAIClient:
    return AzureOpenAIClient(get_settings().ai)


@lru_cache(maxsize=1)
def get_parser() -> ResumeParser:
    settings = get_settings()
    return ResumeParser(
        settings.ai,
        ai_client=get_ai_client(),
        storage=get_storage(),
        processing=settings.processing,
    )


@asynccontextmanager
async def cancel_on_disconnect(
    request: Request, poll_interval: float = DISCONNECT_POLL_SECONDS
) -> AsyncIterator[asyncio.Event]:
    """Yield an event that is set once the client has gone away."""
    event = asyncio.Event()

    async def watch() -> None:
        while not event.is_set():
            if await request.is_disconnected():
                logger.info(f"Client disconnected from {request.url.path}; cancelling work")
                event.set()
                return
            await asyncio.sleep(poll_interval)

    watcher = asyncio.create_task(watch())
    try:
        yield event
    finally:
        watcher.cancel()


async def get_cancel_event(request: Request) -> AsyncIterator[asyncio.Event]:
    async with cancel_on_disconnect(request) as event:
        yield event
