"""
PR Insights Dashboard - conversational GitHub PR analysis (exposed as `pr-insights`).

Sends one initial analysis of the repository's open pull requests, then keeps
forwarding follow-up questions to the same assistant session until the user
types `exit` or `quit`.  The repository comes from `--repo`, else from the
`origin` remote of the current git checkout, else from a prompt on stdin.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv

from .assistant_session import AssistantClient
from .cli import ArgumentParser, add_common_arguments, configure_logging, warn_unknown_arguments
from .run_config import AssistantSettings, ConfigurationError, DashboardConfig, Repository, detect_repository
from .session_driver import run_dashboard

logger = logging.getLogger(__name__)

EPILOG = (
    "Examples:\n"
    "  pr-insights\n"
    "  pr-insights --repo facebook/react\n"
    "  pr-insights --repo microsoft/vscode --non-interactive\n"
)


def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(
        prog="pr-insights",
        description="🔍 PR Insights Dashboard - AI-Powered GitHub PR Analysis",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--repo", type=str, default=None, help="Repository as owner/name (e.g., github/copilot-sdk).")
    parser.add_argument(
        "--non-interactive",
        dest="interactive",
        action="store_false",
        help="Exit after the initial analysis.",
    )
    add_common_arguments(parser)
    return parser


def prompt_for_repository(prompt: Optional[Callable[[str], str]] = None) -> str:
    try:
        return (prompt or input)("Enter GitHub repository (owner/repo): ").strip()
    except EOFError:
        return ""


def resolve_repository(
    repo_flag: Optional[str],
    *,
    cwd: Path,
    prompt: Optional[Callable[[str], str]] = None,
) -> Repository:
    """Resolve from the flag, then the git remote, then stdin."""

    if repo_flag:
        return Repository.parse(repo_flag)

    detected = detect_repository(cwd)
    if detected:
        print(f"📦 Auto-detected: {detected}")
        return Repository.parse(detected)

    answer = prompt_for_repository(prompt)
    if "/" not in answer:
        raise ConfigurationError("Invalid format. Expected: owner/repo")
    return Repository.parse(answer)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    print("🚀 PR Insights Dashboard\n")
    parser = build_parser()
    cwd = Path.cwd()
    try:
        args, unknown = parser.parse_known_args(argv)
        configure_logging(args.log_level)
        warn_unknown_arguments(unknown)
        repository = resolve_repository(args.repo, cwd=cwd)
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    settings = AssistantSettings.from_env()
    config = DashboardConfig(
        repository=repository,
        interactive=args.interactive,
        model=args.model,
        work_dir=cwd,
    )
    logger.info("Dashboard configuration: %s", config)
    return asyncio.run(run_dashboard(config, AssistantClient(settings)))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
