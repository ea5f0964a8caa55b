from __future__ import annotations

from typing import Awaitable, Callable

import httpx

from .threads import Run

ResponseHook = Callable[[httpx.Response], None]
RunStatusCallback = Callable[[Run], None]
Sleeper = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]
