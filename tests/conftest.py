"""
Shared pytest fixtures.

FakeProvider emulates the hosted-assistant threads API behind an
httpx.MockTransport so the real client code runs against it.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import httpx
import pytest

from threadrelay.client import AsyncAssistantClient
from threadrelay.extractor import ResponseExtractor
from threadrelay.runs import RunOrchestrator
from threadrelay.thread_manager import ThreadManager

BASE_URL = "https://provider.test/v1"
ASSISTANT_ID = "asst_test"


class FakeProvider:
    """
    Minimal in-memory threads API.

    Each run replays ``statuses`` on successive polls (the last one sticks)
    and, once it reports ``completed``, gets an assistant message with
    ``reply`` as its text unless ``reply`` is None.
    """

    def __init__(
        self,
        statuses: Sequence[str] = ("in_progress", "completed"),
        *,
        initial_status: str = "queued",
        reply: Optional[str] = "Hello from the assistant",
    ) -> None:
        self.statuses = list(statuses)
        self.initial_status = initial_status
        self.reply = reply
        self.requests: List[httpx.Request] = []
        self.messages: Dict[str, List[Dict[str, Any]]] = {}
        self.runs: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, int] = {}
        self.transport_errors: set = set()
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def seed_message(
        self,
        thread_id: str,
        role: str,
        text: Optional[str],
        *,
        run_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert a message at the newest end of the thread."""
        content = [] if text is None else [
            {"type": "text", "text": {"value": text, "annotations": []}}
        ]
        message = {
            "id": self._next_id("msg"),
            "object": "thread.message",
            "created_at": 1700000000 + self._counter,
            "thread_id": thread_id,
            "role": role,
            "content": content,
            "assistant_id": ASSISTANT_ID if role == "assistant" else None,
            "run_id": run_id,
        }
        self.messages.setdefault(thread_id, []).insert(0, message)
        return message

    def calls(self, method: str, suffix: str) -> List[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path.endswith(suffix)
        ]

    def _operation(self, method: str, parts: List[str]) -> str:
        if parts == ["threads"]:
            return "create_thread"
        if parts[2:] == ["messages"]:
            return "create_message" if method == "POST" else "list_messages"
        if parts[2:] == ["runs"]:
            return "create_run"
        return "retrieve_run"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/")[2:]
        operation = self._operation(request.method, parts)

        if operation in self.transport_errors:
            raise httpx.ConnectError("connection refused", request=request)
        if operation in self.failures:
            return httpx.Response(
                self.failures[operation],
                json={"error": {"message": f"{operation} exploded", "type": "server_error"}},
            )

        body = json.loads(request.content) if request.content else {}

        if operation == "create_thread":
            thread_id = self._next_id("thread")
            self.messages[thread_id] = []
            return httpx.Response(
                200, json={"id": thread_id, "object": "thread", "created_at": 1700000000}
            )

        thread_id = parts[1]
        if operation == "create_message":
            return httpx.Response(200, json=self.seed_message(thread_id, "user", body["content"]))

        if operation == "list_messages":
            data = list(self.messages.get(thread_id, []))
            return httpx.Response(
                200,
                json={
                    "object": "list",
                    "data": data,
                    "first_id": data[0]["id"] if data else None,
                    "last_id": data[-1]["id"] if data else None,
                    "has_more": False,
                },
            )

        if operation == "create_run":
            run = {
                "id": self._next_id("run"),
                "object": "thread.run",
                "thread_id": thread_id,
                "assistant_id": body["assistant_id"],
                "status": self.initial_status,
                "created_at": 1700000000,
                "last_error": None,
            }
            self.runs[run["id"]] = {"run": run, "pending": list(self.statuses)}
            return httpx.Response(200, json=run)

        entry = self.runs.get(parts[3])
        if entry is None:
            return httpx.Response(404, json={"error": {"message": "No run found"}})
        run = entry["run"]
        if entry["pending"]:
            run["status"] = entry["pending"].pop(0)
        if run["status"] == "failed":
            run["last_error"] = {"code": "server_error", "message": "Something went wrong"}
        if run["status"] == "completed" and not entry.get("replied"):
            entry["replied"] = True
            if self.reply is not None:
                self.seed_message(thread_id, "assistant", self.reply, run_id=run["id"])
        return httpx.Response(200, json=run)


class FakeClock:
    """Injectable sleep/clock pair; sleeping advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(provider: FakeProvider) -> AsyncAssistantClient:
    return AsyncAssistantClient(
        "sk-test",
        base_url=BASE_URL,
        transport=httpx.MockTransport(provider),
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def thread_manager(client: AsyncAssistantClient) -> ThreadManager:
    return ThreadManager(client)


@pytest.fixture
def orchestrator(client: AsyncAssistantClient, fake_clock: FakeClock) -> RunOrchestrator:
    return RunOrchestrator(client, ASSISTANT_ID, sleep=fake_clock.sleep, clock=fake_clock)


@pytest.fixture
def extractor(client: AsyncAssistantClient) -> ResponseExtractor:
    return ResponseExtractor(client)
