from __future__ import annotations

import logging
import time
import uuid
from types import TracebackType
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .exceptions import ConfigurationError, ProviderError
from .threads import Run, Thread, ThreadMessage, ThreadMessageList
from .types import ResponseHook
from .utils import extract_error_message, redact_headers, require_id

DEFAULT_BASE_URL = "https://api.openai.com/v1"
ASSISTANTS_BETA_HEADER = "assistants=v2"
MOCK_REPLY = "This is a mock reply from the assistant 【4:0†mock-source.txt】."

logger = logging.getLogger("threadrelay.client")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: Type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ProviderError(
            f"Unexpected provider response for {model.__name__}: {exc.error_count()} error(s)"
        ) from exc


def _headers(api_key: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
        "OpenAI-Beta": ASSISTANTS_BETA_HEADER,
    }


class AsyncAssistantClient:
    """Asynchronous client for the hosted-assistant threads API."""

    def __init__(
        self,
        api_key: str = "",
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        response_hook: Optional[ResponseHook] = None,
        mock_mode: bool = False,
    ) -> None:
        self._mock_mode = mock_mode
        self._mock_threads: Dict[str, List[Dict[str, Any]]] = {}
        self._mock_runs: Dict[str, Dict[str, Any]] = {}

        if not mock_mode and not api_key.strip():
            raise ConfigurationError("API key must be a non-empty string")

        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = (
            httpx.AsyncClient(timeout=timeout, transport=transport) if not mock_mode else None
        )
        self._response_hook = response_hook

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    async def __aenter__(self) -> "AsyncAssistantClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()

    def _mock_message(
        self,
        thread_id: str,
        role: str,
        content: str,
        run_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "id": f"msg_mock_{uuid.uuid4().hex[:8]}",
            "object": "thread.message",
            "created_at": int(time.time()),
            "thread_id": thread_id,
            "role": role,
            "content": [{"type": "text", "text": {"value": content, "annotations": []}}],
            "assistant_id": "asst_mock" if role == "assistant" else None,
            "run_id": run_id,
        }

    def _mock_response(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Emulate the provider for development without an API key."""
        parts = endpoint.split("?")[0].strip("/").split("/")

        if method == "POST" and parts == ["threads"]:
            thread_id = f"thread_mock_{uuid.uuid4().hex[:8]}"
            self._mock_threads[thread_id] = []
            return {"id": thread_id, "object": "thread", "created_at": int(time.time())}

        thread_id = parts[1]
        messages = self._mock_threads.get(thread_id)
        if messages is None:
            raise ProviderError(f"No thread found with id '{thread_id}'", status_code=404)

        if method == "POST" and parts[2:] == ["messages"]:
            message = self._mock_message(thread_id, "user", (json or {}).get("content", ""))
            messages.insert(0, message)
            return message

        if method == "GET" and parts[2:] == ["messages"]:
            return {
                "object": "list",
                "data": list(messages),
                "first_id": messages[0]["id"] if messages else None,
                "last_id": messages[-1]["id"] if messages else None,
                "has_more": False,
            }

        if method == "POST" and parts[2:] == ["runs"]:
            run_id = f"run_mock_{uuid.uuid4().hex[:8]}"
            run = {
                "id": run_id,
                "object": "thread.run",
                "thread_id": thread_id,
                "assistant_id": (json or {}).get("assistant_id"),
                "status": "queued",
                "created_at": int(time.time()),
                "polls": 0,
            }
            self._mock_runs[run_id] = run
            return {k: v for k, v in run.items() if k != "polls"}

        if method == "GET" and parts[2:3] == ["runs"]:
            run = self._mock_runs.get(parts[3])
            if run is None:
                raise ProviderError(f"No run found with id '{parts[3]}'", status_code=404)
            run["polls"] += 1
            if run["polls"] < 2:
                run["status"] = "in_progress"
            elif run["status"] != "completed":
                run["status"] = "completed"
                messages.insert(
                    0, self._mock_message(thread_id, "assistant", MOCK_REPLY, run["id"])
                )
            return {k: v for k, v in run.items() if k != "polls"}

        return {"status": "ok"}

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if self._mock_mode:
            return self._mock_response(method, endpoint, json)

        url = f"{self._base_url}{endpoint}"
        headers = _headers(self._api_key)
        logger.debug("%s %s headers=%s", method, url, redact_headers(headers))
        try:
            response = await self._client.request(
                method=method,
                url=url,
                json=json,
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
            if self._response_hook:
                self._response_hook(response)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise ProviderError("Request timeout") from exc
        except httpx.HTTPStatusError as exc:
            message = extract_error_message(exc.response)
            raise ProviderError(message, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Network error: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"Invalid JSON in provider response: {exc}") from exc

    async def create_thread(self) -> Thread:
        """Create a new conversation thread."""
        data = await self._request("POST", "/threads", json={})
        return _parse(Thread, data)

    async def create_message(self, thread_id: str, content: str) -> ThreadMessage:
        """Append a user message to a thread."""
        thread_id = require_id(thread_id, "Thread ID")
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": content},
        )
        return _parse(ThreadMessage, data)

    async def list_messages(
        self,
        thread_id: str,
        *,
        limit: int = 20,
        order: str = "desc",
    ) -> ThreadMessageList:
        """List the messages of a thread, newest first by default."""
        thread_id = require_id(thread_id, "Thread ID")
        data = await self._request(
            "GET",
            f"/threads/{thread_id}/messages",
            params={"limit": limit, "order": order},
        )
        return _parse(ThreadMessageList, data)

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        """Run an assistant over the thread's current messages."""
        thread_id = require_id(thread_id, "Thread ID")
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": assistant_id},
        )
        return _parse(Run, data)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        """Fetch the current state of a run."""
        thread_id = require_id(thread_id, "Thread ID")
        run_id = require_id(run_id, "Run ID")
        data = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return _parse(Run, data)
