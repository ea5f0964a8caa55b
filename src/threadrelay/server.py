from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .client import AsyncAssistantClient
from .errors import ErrorResponse, RelayHTTPError, install_error_handlers
from .exceptions import ThreadRelayError
from .runs import RunOrchestrator
from .settings import Settings, get_settings
from .thread_manager import ThreadManager
from .threads import MessageCreateRequest

logger = logging.getLogger("threadrelay.server")

router = APIRouter(prefix="/api", responses={500: {"model": ErrorResponse}})

# Endpoint name -> error message returned when that route fails.
FAILURE_MESSAGES = {
    "create_thread": "Failed to create thread",
    "add_message": "Failed to add message",
    "run_assistant": "Failed to run assistant",
    "get_run_status": "Failed to get run status",
    "get_messages": "Failed to get messages",
}


def get_thread_manager(request: Request) -> ThreadManager:
    return request.app.state.thread_manager


def get_orchestrator(request: Request) -> RunOrchestrator:
    return request.app.state.orchestrator


def get_client(request: Request) -> AsyncAssistantClient:
    return request.app.state.client


def _failure(message: str, exc: ThreadRelayError) -> RelayHTTPError:
    logger.error("%s: %s", message, exc, exc_info=exc)
    return RelayHTTPError(message)


@router.post("/thread")
async def create_thread(
    threads: ThreadManager = Depends(get_thread_manager),
) -> Dict[str, Any]:
    try:
        thread = await threads.create_thread()
    except ThreadRelayError as exc:
        raise _failure(FAILURE_MESSAGES["create_thread"], exc) from exc
    return thread.model_dump()


@router.post("/thread/{thread_id}/message")
async def add_message(
    thread_id: str,
    body: MessageCreateRequest,
    threads: ThreadManager = Depends(get_thread_manager),
) -> Dict[str, Any]:
    try:
        message = await threads.post_message(thread_id, body.content)
    except ThreadRelayError as exc:
        raise _failure(FAILURE_MESSAGES["add_message"], exc) from exc
    return message.model_dump()


@router.post("/thread/{thread_id}/run")
async def run_assistant(
    thread_id: str,
    orchestrator: RunOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    try:
        run = await orchestrator.start_run(thread_id)
    except ThreadRelayError as exc:
        raise _failure(FAILURE_MESSAGES["run_assistant"], exc) from exc
    return run.model_dump()


@router.get("/thread/{thread_id}/run/{run_id}")
async def get_run_status(
    thread_id: str,
    run_id: str,
    orchestrator: RunOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    try:
        run = await orchestrator.poll_run(thread_id, run_id)
    except ThreadRelayError as exc:
        raise _failure(FAILURE_MESSAGES["get_run_status"], exc) from exc
    return run.model_dump()


@router.get("/thread/{thread_id}/messages")
async def get_messages(
    thread_id: str,
    client: AsyncAssistantClient = Depends(get_client),
) -> Dict[str, Any]:
    try:
        messages = await client.list_messages(thread_id)
    except ThreadRelayError as exc:
        raise _failure(FAILURE_MESSAGES["get_messages"], exc) from exc
    return messages.model_dump()


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[AsyncAssistantClient] = None,
) -> FastAPI:
    """Build the API app.

    The provider client is created in the lifespan and closed on shutdown
    unless one is passed in, in which case the caller owns it.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = client is None
        provider = client or AsyncAssistantClient(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
            mock_mode=settings.mock_mode,
        )
        if provider.mock_mode:
            logger.warning("Mock mode enabled; replies come from the in-memory fake provider")
        if not settings.openai_assistant_id:
            logger.warning("OPENAI_ASSISTANT_ID is not set; runs will be rejected")

        app.state.client = provider
        app.state.thread_manager = ThreadManager(provider)
        app.state.orchestrator = RunOrchestrator(
            provider,
            settings.openai_assistant_id,
            poll_interval=settings.poll_interval,
            max_duration=settings.poll_timeout,
        )
        try:
            yield
        finally:
            if owned:
                await provider.close()

    app = FastAPI(title="threadrelay", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    install_error_handlers(app, FAILURE_MESSAGES)
    app.include_router(router)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["FAILURE_MESSAGES", "create_app", "router"]
