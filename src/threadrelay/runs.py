"""Run submission and the status poll loop."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Tuple

from .client import AsyncAssistantClient
from .exceptions import (
    ConfigurationError,
    RunFailedError,
    RunInFlightError,
    RunTimeoutError,
    ThreadRelayError,
)
from .threads import Run
from .types import Clock, RunStatusCallback, Sleeper
from .utils import require_id

DEFAULT_POLL_INTERVAL = 1.0

logger = logging.getLogger("threadrelay.runs")


class RunStatusStream:
    """Async iterator over run snapshots until the run is terminal.

    The first item is the run as it was handed in; every following item is
    one poll, taken after sleeping one interval.
    """

    def __init__(
        self,
        orchestrator: "RunOrchestrator",
        run: Run,
        *,
        on_status: Optional[RunStatusCallback] = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._run = run
        self._on_status = on_status

    def __aiter__(self) -> AsyncIterator[Run]:
        return self._iterate()

    def _emit(self, run: Run) -> None:
        if self._on_status:
            self._on_status(run)

    async def _iterate(self) -> AsyncIterator[Run]:
        orchestrator = self._orchestrator
        run = self._run
        deadline = None
        if orchestrator.max_duration is not None:
            deadline = orchestrator.clock() + orchestrator.max_duration

        self._emit(run)
        yield run

        while not run.is_terminal:
            await orchestrator.sleep(orchestrator.poll_interval)
            run = await orchestrator.poll_run(run.thread_id, run.id)
            self._emit(run)
            yield run
            if not run.is_terminal and deadline is not None and orchestrator.clock() >= deadline:
                raise RunTimeoutError(
                    f"Run {run.id} did not finish within {orchestrator.max_duration:g}s"
                )


class RunOrchestrator:
    """Starts assistant runs on a thread and waits for them to finish.

    Only one run may be in flight per thread; the slot is released as soon
    as a poll observes a terminal status.
    """

    def __init__(
        self,
        client: AsyncAssistantClient,
        assistant_id: Optional[str],
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_duration: Optional[float] = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        if poll_interval <= 0:
            raise ThreadRelayError("Poll interval must be positive")
        if max_duration is not None and max_duration <= 0:
            raise ThreadRelayError("Maximum poll duration must be positive")

        self._client = client
        self._assistant_id = (assistant_id or "").strip() or None
        self.poll_interval = poll_interval
        self.max_duration = max_duration
        self.sleep = sleep
        self.clock = clock
        self._in_flight: Dict[str, str] = {}
        # thread id -> (lock, number of start_run calls holding or awaiting it)
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    @property
    def assistant_id(self) -> Optional[str]:
        return self._assistant_id

    def in_flight(self, thread_id: str) -> Optional[str]:
        """Identifier of the unresolved run on ``thread_id``, if any."""
        return self._in_flight.get(thread_id)

    async def start_run(self, thread_id: str) -> Run:
        thread_id = require_id(thread_id, "Thread ID")
        if self._assistant_id is None:
            raise ConfigurationError("OPENAI_ASSISTANT_ID is not set")

        async with self._slot_lock(thread_id):
            await self._ensure_slot_free(thread_id)
            run = await self._client.create_run(thread_id, self._assistant_id)
            if not run.is_terminal:
                self._in_flight[thread_id] = run.id

        logger.info("Started run %s on thread %s (status=%s)", run.id, thread_id, run.status)
        return run

    @asynccontextmanager
    async def _slot_lock(self, thread_id: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(thread_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[thread_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[thread_id]
            if users == 1:
                del self._locks[thread_id]
            else:
                self._locks[thread_id] = (lock, users - 1)

    async def _ensure_slot_free(self, thread_id: str) -> None:
        run_id = self._in_flight.get(thread_id)
        if run_id is None:
            return
        # The previous caller may have stopped polling; ask the provider once.
        current = await self.poll_run(thread_id, run_id)
        if not current.is_terminal:
            raise RunInFlightError(thread_id, run_id)

    async def poll_run(self, thread_id: str, run_id: str) -> Run:
        run = await self._client.retrieve_run(thread_id, run_id)
        logger.debug("Run %s on thread %s is %s", run.id, thread_id, run.status)
        if run.is_terminal and self._in_flight.get(thread_id) == run.id:
            del self._in_flight[thread_id]
        return run

    def stream_run_status(
        self,
        run: Run,
        *,
        on_status: Optional[RunStatusCallback] = None,
    ) -> RunStatusStream:
        return RunStatusStream(self, run, on_status=on_status)

    async def wait_for_run(
        self,
        run: Run,
        *,
        on_status: Optional[RunStatusCallback] = None,
    ) -> Run:
        final = run
        async for snapshot in self.stream_run_status(run, on_status=on_status):
            final = snapshot

        if final.status == "completed":
            return final
        logger.warning("Run %s ended with status %s", final.id, final.status)
        raise RunFailedError(final)
