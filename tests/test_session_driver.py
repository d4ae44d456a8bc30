import asyncio
from pathlib import Path

import pytest

from pr_insights import session_driver
from pr_insights.analysis_prompts import (
    ADVANCED_ANALYSES,
    ANALYSIS_NAMES,
    INITIAL_DASHBOARD_PROMPT,
    SUMMARY_REPORT_PROMPT,
)
from pr_insights.assistant_session import AssistantSession, SessionEvent, SessionEventKind
from pr_insights.run_config import DashboardConfig, Repository, RunConfig

PROMPT_TO_NAME = {task.prompt: task.name for task in ADVANCED_ANALYSES}
PROMPT_TO_NAME[SUMMARY_REPORT_PROMPT] = "summary"


class FakeSession:
    """Records prompts and asserts that waited turns never overlap."""

    def __init__(self, fail_on=None):
        self.events = asyncio.Queue()
        self.waited = []
        self.sent = []
        self.in_flight = 0
        self.fail_on = fail_on
        self.destroyed = False
        self.idle_waits = 0

    async def send_and_wait(self, prompt):
        assert self.in_flight == 0, "a turn was dispatched before the previous one finished"
        self.in_flight += 1
        try:
            await asyncio.sleep(0)
            if prompt == self.fail_on:
                raise RuntimeError("turn failed")
            self.waited.append(prompt)
            self.events.put_nowait(SessionEvent(SessionEventKind.ASSISTANT_MESSAGE, content=f"finished {PROMPT_TO_NAME.get(prompt, prompt)}"))
        finally:
            self.in_flight -= 1

    def send(self, prompt):
        self.sent.append(prompt)

    async def wait_until_idle(self):
        self.idle_waits += 1

    async def destroy(self):
        self.destroyed = True
        self.events.put_nowait(None)


class FakeClient:
    def __init__(self, session=None, fail_start=False):
        self.session = session or FakeSession()
        self.fail_start = fail_start
        self.started = False
        self.stopped = False
        self.session_kwargs = None

    async def start(self):
        if self.fail_start:
            raise EnvironmentError("OPENAI_API_KEY is not set.")
        self.started = True

    async def create_session(self, **kwargs):
        self.session_kwargs = kwargs
        return self.session

    async def stop(self):
        self.stopped = True


def batch_config(tmp_path, analyses=()):
    return RunConfig(
        repository=Repository.parse("octo/repo"),
        output_dir=tmp_path / "out",
        analyses=analyses,
        task_delay=0,
    )


def dispatched_names(session):
    return [PROMPT_TO_NAME[prompt] for prompt in session.waited]


def test_batch_runs_selected_subset_in_fixed_order(tmp_path, capsys) -> None:
    client = FakeClient()
    config = batch_config(tmp_path, analyses=("label-analysis", "velocity-trends"))
    exit_code = asyncio.run(session_driver.run_batch_analysis(config, client))
    assert exit_code == 0
    assert dispatched_names(client.session) == ["velocity-trends", "label-analysis", "summary"]
    out = capsys.readouterr().out
    assert "🔍 Running: velocity-trends" in out
    assert "Running: review-patterns" not in out
    assert "📊 finished label-analysis" in out


def test_batch_runs_all_analyses_by_default(tmp_path) -> None:
    client = FakeClient()
    exit_code = asyncio.run(session_driver.run_batch_analysis(batch_config(tmp_path), client))
    assert exit_code == 0
    assert dispatched_names(client.session) == list(ANALYSIS_NAMES) + ["summary"]


def test_batch_creates_output_dir_and_lists_files(tmp_path, capsys) -> None:
    class WritingSession(FakeSession):
        async def send_and_wait(self, prompt):
            await super().send_and_wait(prompt)
            if prompt == SUMMARY_REPORT_PROMPT:
                (tmp_path / "out" / "summary-report.md").write_bytes(b"#" * 2048)

    client = FakeClient(session=WritingSession())
    exit_code = asyncio.run(session_driver.run_batch_analysis(batch_config(tmp_path), client))
    assert exit_code == 0
    assert client.session_kwargs["work_dir"] == (tmp_path / "out").resolve()
    assert "octo/repo" in client.session_kwargs["system_message"]
    out = capsys.readouterr().out
    assert "✅ Analysis complete!" in out
    assert "summary-report.md (2.00 KB)" in out
    assert client.session.destroyed
    assert client.stopped


def test_batch_waits_between_analyses(tmp_path, monkeypatch) -> None:
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(session_driver.asyncio, "sleep", fake_sleep)
    config = RunConfig(
        repository=Repository.parse("octo/repo"),
        output_dir=tmp_path,
        analyses=("velocity-trends", "review-patterns"),
        task_delay=1.0,
    )
    client = FakeClient()
    asyncio.run(session_driver.run_batch_analysis(config, client))
    # FakeSession's own sleep(0) calls land here too
    assert delays.count(1.0) == 2


def test_batch_aborts_on_failed_analysis(tmp_path, capsys) -> None:
    failing = ADVANCED_ANALYSES[1].prompt
    client = FakeClient(session=FakeSession(fail_on=failing))
    exit_code = asyncio.run(session_driver.run_batch_analysis(batch_config(tmp_path), client))
    assert exit_code == 1
    assert dispatched_names(client.session) == ["velocity-trends"]
    captured = capsys.readouterr()
    assert "❌ Error: turn failed" in captured.err
    assert "Analysis complete" not in captured.out
    assert client.session.destroyed
    assert client.stopped


def test_batch_start_failure_closes_client(tmp_path, capsys) -> None:
    client = FakeClient(fail_start=True)
    exit_code = asyncio.run(session_driver.run_batch_analysis(batch_config(tmp_path), client))
    assert exit_code == 1
    assert client.session_kwargs is None
    assert client.stopped
    assert "OPENAI_API_KEY" in capsys.readouterr().err


def make_reader(lines):
    remaining = list(lines)

    async def read_line():
        if not remaining:
            return None
        return remaining.pop(0)

    return read_line, remaining


@pytest.mark.parametrize("command", ["exit", "EXIT", "Quit"])
def test_dashboard_exit_command_tears_down(tmp_path, capsys, command) -> None:
    client = FakeClient()
    config = DashboardConfig(repository=Repository.parse("octo/repo"), work_dir=tmp_path)
    read_line, remaining = make_reader(["", "Which PRs are oldest?", "  ", command, "never sent"])
    exit_code = asyncio.run(session_driver.run_dashboard(config, client, read_line=read_line))
    assert exit_code == 0
    assert client.session.sent == [INITIAL_DASHBOARD_PROMPT, "Which PRs are oldest?"]
    assert remaining == ["never sent"]
    assert client.session.destroyed
    assert client.stopped
    out = capsys.readouterr().out
    assert "Try asking:" in out
    assert "👋 Goodbye!" in out


def test_dashboard_eof_ends_loop(tmp_path) -> None:
    client = FakeClient()
    config = DashboardConfig(repository=Repository.parse("octo/repo"), work_dir=tmp_path)
    read_line, _ = make_reader(["Show me a timeline"])
    exit_code = asyncio.run(session_driver.run_dashboard(config, client, read_line=read_line))
    assert exit_code == 0
    assert client.session.sent[-1] == "Show me a timeline"
    assert client.session.destroyed


def test_dashboard_non_interactive_waits_for_initial_turn(tmp_path, capsys) -> None:
    client = FakeClient()
    config = DashboardConfig(repository=Repository.parse("octo/repo"), interactive=False, work_dir=tmp_path)

    async def unexpected_read():
        raise AssertionError("follow-up loop must not run")

    exit_code = asyncio.run(session_driver.run_dashboard(config, client, read_line=unexpected_read))
    assert exit_code == 0
    assert client.session.sent == [INITIAL_DASHBOARD_PROMPT]
    assert client.session.idle_waits == 1
    assert str(tmp_path) in client.session_kwargs["system_message"]
    assert "✅ Analysis complete!" in capsys.readouterr().out


def test_dashboard_error_exits_non_zero(tmp_path, capsys) -> None:
    client = FakeClient(fail_start=True)
    config = DashboardConfig(repository=Repository.parse("octo/repo"), work_dir=tmp_path)
    read_line, _ = make_reader([])
    exit_code = asyncio.run(session_driver.run_dashboard(config, client, read_line=read_line))
    assert exit_code == 1
    assert client.stopped
    assert "❌ Error:" in capsys.readouterr().err


def test_batch_prompt_names_the_resolved_work_dir(tmp_path, monkeypatch) -> None:
    """A relative --output reaches the prompt as the same absolute path the code runs in."""
    monkeypatch.chdir(tmp_path)
    client = FakeClient()
    config = RunConfig(
        repository=Repository.parse("octo/repo"),
        output_dir=Path("advanced-output"),
        analyses=("velocity-trends",),
        task_delay=0,
    )
    exit_code = asyncio.run(session_driver.run_batch_analysis(config, client))
    assert exit_code == 0
    work_dir = client.session_kwargs["work_dir"]
    assert work_dir.is_absolute()
    assert work_dir == (tmp_path / "advanced-output").resolve()
    assert f"Save all outputs to: {work_dir}\n" in client.session_kwargs["system_message"]


def test_batch_lists_files_written_under_relative_output(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    class WritingSession(FakeSession):
        async def send_and_wait(self, prompt):
            await super().send_and_wait(prompt)
            (client.session_kwargs["work_dir"] / "velocity-trends.png").write_bytes(b"x" * 1024)

    client = FakeClient(session=WritingSession())
    config = RunConfig(
        repository=Repository.parse("octo/repo"),
        output_dir=Path("./advanced-output"),
        analyses=("velocity-trends",),
        task_delay=0,
    )
    assert asyncio.run(session_driver.run_batch_analysis(config, client)) == 0
    assert "velocity-trends.png (1.00 KB)" in capsys.readouterr().out


class FailingAgent:
    name = "pr_insights"

    async def run_stream(self, *, task):
        raise RuntimeError("401 invalid api key")
        yield  # pragma: no cover


def test_dashboard_non_interactive_failed_turn_exits_non_zero(tmp_path, capsys) -> None:
    async def scenario():
        client = FakeClient(session=AssistantSession(agent=FailingAgent()))
        config = DashboardConfig(repository=Repository.parse("octo/repo"), interactive=False, work_dir=tmp_path)
        return await session_driver.run_dashboard(config, client), client

    exit_code, client = asyncio.run(scenario())
    assert exit_code == 1
    assert client.stopped
    captured = capsys.readouterr()
    assert "❌ Error: 401 invalid api key" in captured.err
    assert "Analysis complete" not in captured.out


def test_teardown_stops_client_when_relay_failed() -> None:
    def broken_formatter(event):
        raise OSError("stdout closed")

    async def scenario():
        session = FakeSession()
        client = FakeClient(session=session)
        relay = session_driver.EventRelay(session.events, formatter=broken_formatter)
        relay.start()
        session.events.put_nowait(SessionEvent(SessionEventKind.ASSISTANT_MESSAGE, content="hi"))
        await asyncio.sleep(0)
        await session_driver._teardown(client, session, relay)
        return client

    client = asyncio.run(scenario())
    assert client.session.destroyed
    assert client.stopped
