"""Thread, message and run models for the hosted-assistant API."""

from typing import Any, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RunStatus = Literal[
    "queued",
    "in_progress",
    "requires_action",
    "cancelling",
    "cancelled",
    "failed",
    "completed",
    "incomplete",
    "expired",
]

# Statuses after which a run will not progress without outside help.
TERMINAL_RUN_STATUSES: FrozenSet[str] = frozenset(
    {"completed", "failed", "cancelled", "expired", "requires_action", "incomplete"}
)


class ProviderObject(BaseModel):
    """Base for provider payloads; unknown fields are kept as-is."""

    model_config = ConfigDict(extra="allow")


class Thread(ProviderObject):
    """Represents a conversation thread."""

    id: str
    object: str = "thread"
    created_at: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


class MessageText(ProviderObject):
    value: str = ""
    annotations: List[Dict[str, Any]] = Field(default_factory=list)


class MessageContent(ProviderObject):
    """One content part of a message. Only ``text`` parts carry readable text."""

    type: str
    text: Optional[MessageText] = None


class ThreadMessage(ProviderObject):
    """Represents a message within a thread."""

    id: str
    object: str = "thread.message"
    thread_id: str
    role: Literal["user", "assistant"]
    content: List[MessageContent] = Field(default_factory=list)
    created_at: Optional[int] = None
    assistant_id: Optional[str] = None
    run_id: Optional[str] = None

    @property
    def text(self) -> str:
        """Text of the first text part, or an empty string."""
        for part in self.content:
            if part.type == "text" and part.text is not None:
                return part.text.value
        return ""


class ThreadMessageList(ProviderObject):
    """Page of thread messages, newest first unless requested otherwise."""

    object: str = "list"
    data: List[ThreadMessage] = Field(default_factory=list)
    first_id: Optional[str] = None
    last_id: Optional[str] = None
    has_more: bool = False


class RunError(ProviderObject):
    code: Optional[str] = None
    message: Optional[str] = None


class Run(ProviderObject):
    """A single execution of the assistant against a thread."""

    id: str
    object: str = "thread.run"
    thread_id: str
    assistant_id: Optional[str] = None
    status: RunStatus
    created_at: Optional[int] = None
    last_error: Optional[RunError] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES


class ChatMessage(BaseModel):
    """A message as shown in a chat session."""

    role: Literal["user", "assistant"]
    content: str


class MessageCreateRequest(BaseModel):
    """Body of ``POST /api/thread/{thread_id}/message``."""

    content: str

    @field_validator("content")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()
