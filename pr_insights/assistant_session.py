"""
Assistant client and session objects for the PR insights tools.

- Built on Microsoft AutoGen (agentchat/core/ext stack).
- OpenAI chat completions model accessed via the OpenAI API.
- GitHub pull-request lookups and a local Python code executor exposed as tools.

A session wraps one `AssistantAgent` whose model context carries the
conversation across turns.  Every turn is streamed; the streamed AutoGen
messages are reduced to `SessionEvent`s and pushed onto the session's event
queue, which the caller drains with a single reader (see `event_relay`).

Required env:
  - OPENAI_API_KEY
  - GITHUB_TOKEN (optional, unauthenticated requests are rate limited)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Set
from uuid import uuid4

from autogen_agentchat.agents import AssistantAgent
from autogen_agentchat.base import TaskResult
from autogen_agentchat.messages import BaseChatMessage, ToolCallExecutionEvent, ToolCallRequestEvent
from autogen_core.models import ChatCompletionClient, ModelInfo
from autogen_ext.code_executors.local import LocalCommandLineCodeExecutor
from autogen_ext.models.openai import OpenAIChatCompletionClient
from autogen_ext.tools.code_execution import PythonCodeExecutionTool

from .github_client import GitHubClient, GitHubConfig, build_github_tools
from .run_config import AssistantSettings

logger = logging.getLogger(__name__)

AGENT_NAME = "pr_insights"


class SessionEventKind(str, Enum):
    ASSISTANT_MESSAGE = "assistant.message"
    TOOL_EXECUTION_START = "tool.execution_start"
    TOOL_EXECUTION_COMPLETE = "tool.execution_complete"
    SESSION_IDLE = "session.idle"
    SESSION_ERROR = "session.error"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    """One observable step of a session turn."""

    kind: SessionEventKind
    content: str = ""
    tool_name: str = ""
    is_error: bool = False


def events_from_message(message: Any, agent_name: str) -> List[SessionEvent]:
    """Translate one streamed AutoGen item into zero or more session events."""

    if isinstance(message, ToolCallRequestEvent):
        return [
            SessionEvent(SessionEventKind.TOOL_EXECUTION_START, tool_name=call.name)
            for call in message.content
        ]
    if isinstance(message, ToolCallExecutionEvent):
        return [
            SessionEvent(
                SessionEventKind.TOOL_EXECUTION_COMPLETE,
                content=str(result.content),
                tool_name=getattr(result, "name", "") or "",
                is_error=bool(getattr(result, "is_error", False)),
            )
            for result in message.content
        ]
    # the user's own task is echoed back first; only the agent's replies are relayed
    if isinstance(message, BaseChatMessage) and message.source == agent_name:
        return [SessionEvent(SessionEventKind.ASSISTANT_MESSAGE, content=message.to_text().strip())]
    return []


class AssistantSession:
    """Conversation with one assistant agent; turns run one at a time in send order."""

    def __init__(self, *, agent: Any, executor: Any = None, session_id: Optional[str] = None) -> None:
        self._agent = agent
        self._executor = executor
        self.session_id = session_id or uuid4().hex
        self._events: asyncio.Queue[Optional[SessionEvent]] = asyncio.Queue()
        self._turn_lock = asyncio.Lock()
        self._pending: Set[asyncio.Task[Any]] = set()
        self._failures: List[BaseException] = []
        self._destroyed = False

    @property
    def events(self) -> "asyncio.Queue[Optional[SessionEvent]]":
        """Event channel; a `None` item marks the end of the session."""

        return self._events

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def send_and_wait(self, prompt: str) -> Optional[TaskResult]:
        """Run one turn and return once the assistant has finished it."""

        self._ensure_open()
        return await self._run_turn(prompt)

    def send(self, prompt: str) -> "asyncio.Task[Any]":
        """Schedule one turn and return immediately."""

        self._ensure_open()
        task = asyncio.get_running_loop().create_task(self._run_background_turn(prompt))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_until_idle(self) -> None:
        """Wait for every turn scheduled with `send()` to finish.

        Re-raises the first failure of those turns, if any.
        """

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        if self._failures:
            failure = self._failures[0]
            self._failures.clear()
            raise failure

    async def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        logger.info("Destroying session %s", self.session_id)
        try:
            for task in list(self._pending):
                task.cancel()
            if self._pending:
                await asyncio.gather(*list(self._pending), return_exceptions=True)
            if self._executor is not None:
                await self._executor.stop()
        finally:
            self._events.put_nowait(None)

    async def _run_turn(self, prompt: str) -> Optional[TaskResult]:
        async with self._turn_lock:
            logger.info("Session %s starting turn: %s", self.session_id, prompt.splitlines()[0] if prompt else "")
            result: Optional[TaskResult] = None
            async for item in self._agent.run_stream(task=prompt):
                if isinstance(item, TaskResult):
                    result = item
                    continue
                for event in events_from_message(item, self._agent.name):
                    self._events.put_nowait(event)
            self._events.put_nowait(SessionEvent(SessionEventKind.SESSION_IDLE))
            logger.info("Session %s turn finished.", self.session_id)
            return result

    async def _run_background_turn(self, prompt: str) -> None:
        try:
            await self._run_turn(prompt)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Background turn failed in session %s", self.session_id)
            self._failures.append(exc)
            self._events.put_nowait(SessionEvent(SessionEventKind.SESSION_ERROR, content=str(exc), is_error=True))

    def _ensure_open(self) -> None:
        if self._destroyed:
            raise RuntimeError(f"Session {self.session_id} has been destroyed.")


class AssistantClient:
    """Owns the model and GitHub connections and hands out sessions."""

    def __init__(self, settings: AssistantSettings) -> None:
        self._settings = settings
        self._github: Optional[GitHubClient] = None
        self._model_clients: List[ChatCompletionClient] = []
        self._sessions: List[AssistantSession] = []
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        if not self._settings.openai_api_key:
            raise EnvironmentError("OPENAI_API_KEY is not set.")
        self._github = GitHubClient(
            config=GitHubConfig(
                base_url=self._settings.github_api_url,
                token=self._settings.github_token,
            )
        )
        self._started = True
        logger.info("Assistant client started (default model '%s').", self._settings.model)

    async def create_session(
        self,
        *,
        system_message: str,
        work_dir: Path,
        model: Optional[str] = None,
    ) -> AssistantSession:
        if not self._started or self._github is None:
            raise RuntimeError("AssistantClient.start() must be awaited before creating a session.")

        model_name = model or self._settings.model
        model_client = self._build_openai_client(
            openai_model_name=model_name,
            api_key=self._settings.openai_api_key or "",
            base_url=self._settings.openai_base_url,
        )
        self._model_clients.append(model_client)

        executor = LocalCommandLineCodeExecutor(work_dir=Path(work_dir), timeout=self._settings.code_timeout)
        await executor.start()
        try:
            tools = [*build_github_tools(self._github), PythonCodeExecutionTool(executor)]

            logger.info("Creating assistant session with model '%s' in %s", model_name, work_dir)
            agent = AssistantAgent(
                name=AGENT_NAME,
                model_client=model_client,
                system_message=system_message,
                description="Analyzes GitHub pull requests and produces charts and reports.",
                tools=tools,
                reflect_on_tool_use=True,
                max_tool_iterations=self._settings.max_tool_iterations,
            )
        except Exception:
            await executor.stop()
            raise
        session = AssistantSession(agent=agent, executor=executor)
        self._sessions.append(session)
        return session

    async def stop(self) -> None:
        for session in self._sessions:
            try:
                await session.destroy()
            except Exception as exc:
                logger.warning("Failed to destroy session %s: %s", session.session_id, exc)
        self._sessions = []
        for model_client in self._model_clients:
            try:
                await model_client.close()
            except Exception as exc:
                logger.warning("Failed to close model client: %s", exc)
        self._model_clients = []
        if self._github is not None:
            self._github.close()
            self._github = None
        if self._started:
            logger.info("Assistant client stopped.")
        self._started = False

    @staticmethod
    def _build_openai_client(
        *,
        openai_model_name: str,
        api_key: str,
        base_url: str,
    ) -> ChatCompletionClient:
        model_info: ModelInfo = {
            "vision": False,
            "function_calling": True,
            "json_output": False,
            "structured_output": False,
            "family": "openai",
        }
        return OpenAIChatCompletionClient(
            model=openai_model_name,
            api_key=api_key,
            base_url=base_url,
            include_name_in_message=False,
            model_info=model_info,
        )
