"""Client-side chat session: the state a chat UI holds for one conversation."""

from __future__ import annotations

import logging
from typing import List, Optional

from .exceptions import ConfigurationError, ProviderError, ThreadRelayError
from .extractor import ReplyFound, ResponseExtractor
from .runs import RunOrchestrator
from .thread_manager import ThreadManager
from .threads import ChatMessage

INIT_FAILED = "Failed to initialize chat"
TURN_FAILED = "Failed to get a reply from the assistant"

logger = logging.getLogger("threadrelay.session")


class ChatSession:
    """Drives one conversation: a thread, its visible messages and a busy flag.

    ``send`` runs a whole user turn: submit the message, start a run, poll it
    and append the reply. A failed turn keeps the user's message and appends
    nothing; the user can simply send again.
    """

    def __init__(
        self,
        thread_manager: ThreadManager,
        orchestrator: RunOrchestrator,
        extractor: ResponseExtractor,
    ) -> None:
        self._threads = thread_manager
        self._runs = orchestrator
        self._extractor = extractor
        self.messages: List[ChatMessage] = []
        self.thread_id: Optional[str] = None
        self.is_loading = False
        self.disabled = False
        self.error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.thread_id is not None and not self.disabled

    async def initialize(self) -> bool:
        if self.thread_id is not None:
            return True
        try:
            thread = await self._threads.create_thread()
        except ProviderError:
            logger.exception("Error initializing chat")
            self.error = INIT_FAILED
            return False
        self.thread_id = thread.id
        return True

    async def send(self, text: str) -> Optional[ChatMessage]:
        content = text.strip()
        if not content or not self.ready or self.is_loading:
            return None

        thread_id = self.thread_id
        if thread_id is None:
            return None
        self.messages.append(ChatMessage(role="user", content=content))
        self.is_loading = True
        self.error = None
        try:
            await self._threads.post_message(thread_id, content)
            run = await self._runs.start_run(thread_id)
            run = await self._runs.wait_for_run(run)
            result = await self._extractor.extract_response(thread_id, run.id)
        except ConfigurationError:
            logger.exception("Assistant is not configured; disabling chat")
            self.disabled = True
            self.error = TURN_FAILED
            return None
        except ThreadRelayError:
            logger.exception("Error sending message")
            self.error = TURN_FAILED
            return None
        finally:
            self.is_loading = False

        if isinstance(result, ReplyFound):
            self.messages.append(result.message)
            return result.message
        return None

    def transcript(self, user_label: str = "User", assistant_label: str = "Assistant") -> str:
        labels = {"user": user_label, "assistant": assistant_label}
        return "\n\n".join(f"{labels[m.role]}: {m.content}" for m in self.messages)
