"""Prints session events as they arrive, from a single reader task."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .assistant_session import SessionEvent, SessionEventKind

logger = logging.getLogger(__name__)

EventFormatter = Callable[[SessionEvent], Optional[str]]


def format_analysis_event(event: SessionEvent) -> Optional[str]:
    if event.kind is SessionEventKind.ASSISTANT_MESSAGE:
        return f"\n📊 {event.content}\n"
    if event.kind is SessionEventKind.TOOL_EXECUTION_START:
        return f"  ⚙️  {event.tool_name}"
    return None


def format_dashboard_event(event: SessionEvent) -> Optional[str]:
    if event.kind is SessionEventKind.ASSISTANT_MESSAGE:
        return f"\n{event.content}\n"
    if event.kind is SessionEventKind.TOOL_EXECUTION_START:
        return f"  ⚙️  {event.tool_name}"
    return None


class EventRelay:
    """Drains a session event queue until its `None` sentinel."""

    def __init__(self, events: "asyncio.Queue[Optional[SessionEvent]]", *, formatter: EventFormatter) -> None:
        self._events = events
        self._formatter = formatter
        self._task: Optional[asyncio.Task[None]] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._consume())

    async def stop(self) -> None:
        """Wait until the relay has printed everything up to the sentinel."""

        if self._task is not None:
            await self._task

    async def _consume(self) -> None:
        while True:
            event = await self._events.get()
            if event is None:
                logger.debug("Event relay reached end of session.")
                return
            line = self._formatter(event)
            if line is not None:
                print(line, flush=True)
