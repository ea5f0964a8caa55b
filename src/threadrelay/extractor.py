"""Isolate the assistant reply produced by a run and clean it for display."""

from __future__ import annotations

import logging
import re
from typing import Literal, Union

from pydantic import BaseModel

from .client import AsyncAssistantClient
from .threads import ChatMessage
from .utils import require_id

logger = logging.getLogger("threadrelay.extractor")

# File-citation annotation emitted by the provider, e.g. 【3:1†doc.txt】
CITATION_MARKER = re.compile(r"【\d+:\d+†[^】]*】")


def strip_citations(text: str) -> str:
    """Remove provider citation markers from ``text``.

    Removal is repeated until nothing matches, because deleting an inner
    marker can close up an outer one.
    """
    while True:
        text, count = CITATION_MARKER.subn("", text)
        if not count:
            return text


class ReplyFound(BaseModel):
    status: Literal["found"] = "found"
    run_id: str
    message: ChatMessage


class ReplyMissing(BaseModel):
    status: Literal["missing"] = "missing"
    run_id: str


ExtractionResult = Union[ReplyFound, ReplyMissing]


class ResponseExtractor:
    def __init__(self, client: AsyncAssistantClient, *, page_size: int = 20) -> None:
        self._client = client
        self._page_size = page_size

    async def extract_response(self, thread_id: str, run_id: str) -> ExtractionResult:
        thread_id = require_id(thread_id, "Thread ID")
        run_id = require_id(run_id, "Run ID")
        page = await self._client.list_messages(thread_id, limit=self._page_size)

        for message in page.data:
            if message.role == "assistant" and message.run_id == run_id:
                content = strip_citations(message.text)
                return ReplyFound(
                    run_id=run_id,
                    message=ChatMessage(role="assistant", content=content),
                )

        logger.info("No assistant message for run %s in thread %s", run_id, thread_id)
        return ReplyMissing(run_id=run_id)
