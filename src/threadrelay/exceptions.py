from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .threads import Run


class ThreadRelayError(Exception):
    """Base error raised by the threadrelay orchestration layer."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ThreadRelayError):
    """A required credential or assistant identity is missing."""


class ProviderError(ThreadRelayError):
    """The hosted-assistant API could not be reached or rejected the call."""


class RunInFlightError(ThreadRelayError):
    """Another run is still active on the thread."""

    def __init__(self, thread_id: str, run_id: str) -> None:
        super().__init__(f"Thread {thread_id} already has run {run_id} in progress")
        self.thread_id = thread_id
        self.run_id = run_id


class RunFailedError(ThreadRelayError):
    """A run reached a terminal status other than ``completed``."""

    def __init__(self, run: "Run") -> None:
        detail = run.last_error.message if run.last_error else None
        message = f"Run {run.id} ended with status '{run.status}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.run = run


class RunTimeoutError(ThreadRelayError):
    """The run did not reach a terminal status before the poll deadline."""
