from __future__ import annotations

import logging

from .client import AsyncAssistantClient
from .exceptions import ThreadRelayError
from .threads import Thread, ThreadMessage
from .utils import require_id

logger = logging.getLogger("threadrelay.threads")


class ThreadManager:
    """Creates conversation threads and submits user messages to them."""

    def __init__(self, client: AsyncAssistantClient) -> None:
        self._client = client

    async def create_thread(self) -> Thread:
        thread = await self._client.create_thread()
        logger.info("Created thread %s", thread.id)
        return thread

    async def post_message(self, thread_id: str, content: str) -> ThreadMessage:
        thread_id = require_id(thread_id, "Thread ID")
        if not content.strip():
            raise ThreadRelayError("Message content must be a non-empty string")
        message = await self._client.create_message(thread_id, content)
        logger.debug("Posted message %s to thread %s", message.id, thread_id)
        return message
