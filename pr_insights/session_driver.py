"""
Drives an assistant session for the two PR insights entry points.

`run_batch_analysis` sends each selected analysis and waits for it to finish
before sending the next.  `run_dashboard` sends the initial analysis without
waiting and then forwards every line the user types until `exit`/`quit`.
Both tear the session and client down on every exit path and return the
process exit code.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

from .analysis_prompts import (
    FOLLOW_UP_SUGGESTIONS,
    INITIAL_DASHBOARD_PROMPT,
    SUMMARY_REPORT_PROMPT,
    analysis_system_prompt,
    dashboard_system_prompt,
    select_analyses,
)
from .event_relay import EventRelay, format_analysis_event, format_dashboard_event
from .output_reporter import report_output_files
from .run_config import DashboardConfig, RunConfig

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}
BANNER_WIDTH = 70

LineReader = Callable[[], Awaitable[Optional[str]]]


async def read_stdin_line() -> Optional[str]:
    """Read one line from stdin off the event loop; None on EOF."""

    try:
        return await asyncio.to_thread(input, "You: ")
    except EOFError:
        return None


async def run_batch_analysis(config: RunConfig, client: Any) -> int:
    print("🚀 Advanced PR Analysis Tool\n")
    print(f"📦 Repository: {config.repository}")
    print(f"📁 Output: {config.output_dir}\n")

    # the prompt and the executor must name the same absolute directory
    output_dir = config.output_dir.resolve()
    session = None
    relay: Optional[EventRelay] = None
    exit_code = 1
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        await client.start()
        print("✅ Connected to assistant\n")

        session = await client.create_session(
            system_message=analysis_system_prompt(
                repository=config.repository.full_name,
                output_dir=str(output_dir),
            ),
            work_dir=output_dir,
            model=config.model,
        )
        relay = EventRelay(session.events, formatter=format_analysis_event)
        relay.start()

        for task in select_analyses(config.analyses):
            _print_banner(f"🔍 Running: {task.name}")
            logger.info("Dispatching analysis '%s'", task.name)
            await session.send_and_wait(task.prompt)
            if config.task_delay > 0:
                await asyncio.sleep(config.task_delay)

        _print_banner("📝 Generating Summary Report")
        await session.send_and_wait(SUMMARY_REPORT_PROMPT)
        exit_code = 0
    except Exception as exc:
        _report_error(exc)
    finally:
        await _teardown(client, session, relay)

    if exit_code == 0:
        print("\n✅ Analysis complete!")
        print(f"📂 Reports available in: {config.output_dir}\n")
        report_output_files(output_dir)
    return exit_code


async def run_dashboard(config: DashboardConfig, client: Any, *, read_line: Optional[LineReader] = None) -> int:
    read_line = read_line or read_stdin_line
    print(f"\n📊 Analyzing: {config.repository}\n")

    session = None
    relay: Optional[EventRelay] = None
    exit_code = 1
    try:
        await client.start()
        session = await client.create_session(
            system_message=dashboard_system_prompt(
                repository=config.repository.full_name,
                work_dir=str(config.work_dir),
            ),
            work_dir=config.work_dir,
            model=config.model,
        )
        print("✅ Connected to assistant\n")
        relay = EventRelay(session.events, formatter=format_dashboard_event)
        relay.start()

        print("🔍 Analyzing pull requests...\n")
        session.send(INITIAL_DASHBOARD_PROMPT)

        if config.interactive:
            _print_suggestions()
            await _follow_up_loop(session, read_line)
            print("\n👋 Goodbye!\n")
        else:
            await session.wait_until_idle()
            print("\n✅ Analysis complete!\n")
        exit_code = 0
    except Exception as exc:
        _report_error(exc)
    finally:
        await _teardown(client, session, relay)
    return exit_code


async def _follow_up_loop(session: Any, read_line: LineReader) -> None:
    while True:
        line = await read_line()
        if line is None:
            logger.info("EOF received; leaving follow-up loop.")
            return
        text = line.strip()
        if text.lower() in EXIT_COMMANDS:
            logger.info("User requested exit.")
            return
        if text:
            session.send(text)


async def _teardown(client: Any, session: Any, relay: Optional[EventRelay]) -> None:
    if session is not None:
        try:
            await session.destroy()
        except Exception as exc:
            logger.warning("Failed to destroy session: %s", exc)
    if relay is not None:
        try:
            await relay.stop()
        except Exception as exc:
            logger.warning("Event relay failed: %s", exc)
    try:
        await client.stop()
    except Exception as exc:
        logger.warning("Failed to stop assistant client: %s", exc)


def _report_error(exc: BaseException) -> None:
    print(f"\n❌ Error: {exc}", file=sys.stderr)
    logger.debug("Session failed", exc_info=exc)


def _print_banner(title: str) -> None:
    print(f"\n{'=' * BANNER_WIDTH}")
    print(title)
    print("=" * BANNER_WIDTH)


def _print_suggestions() -> None:
    print("\n" + "=" * 60)
    print("💡 Ask follow-up questions (or type 'exit')")
    print("=" * 60)
    print("\nTry asking:")
    for suggestion in FOLLOW_UP_SUGGESTIONS:
        print(f'  • "{suggestion}"')
    print()
