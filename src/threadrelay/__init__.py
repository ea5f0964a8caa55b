"""threadrelay: conversation orchestration for hosted-assistant threads."""

from importlib.metadata import version

from .client import AsyncAssistantClient
from .exceptions import (
    ConfigurationError,
    ProviderError,
    RunFailedError,
    RunInFlightError,
    RunTimeoutError,
    ThreadRelayError,
)
from .extractor import (
    ExtractionResult,
    ReplyFound,
    ReplyMissing,
    ResponseExtractor,
    strip_citations,
)
from .runs import RunOrchestrator, RunStatusStream
from .session import ChatSession
from .thread_manager import ThreadManager
from .threads import (
    TERMINAL_RUN_STATUSES,
    ChatMessage,
    Run,
    RunStatus,
    Thread,
    ThreadMessage,
    ThreadMessageList,
)

__version__ = version("threadrelay")

__all__ = [
    "AsyncAssistantClient",
    "ThreadManager",
    "RunOrchestrator",
    "RunStatusStream",
    "ResponseExtractor",
    "ChatSession",
    "strip_citations",
    # Errors
    "ThreadRelayError",
    "ConfigurationError",
    "ProviderError",
    "RunInFlightError",
    "RunFailedError",
    "RunTimeoutError",
    # Extraction results
    "ExtractionResult",
    "ReplyFound",
    "ReplyMissing",
    # Thread types
    "Thread",
    "ThreadMessage",
    "ThreadMessageList",
    "Run",
    "RunStatus",
    "TERMINAL_RUN_STATUSES",
    "ChatMessage",
    "__version__",
]
