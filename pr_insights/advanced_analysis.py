"""
Advanced PR analysis command line tool (exposed as `pr-insights-advanced`).

Runs a fixed set of named analyses against one GitHub repository, one at a
time, then asks the assistant for a Markdown summary report.  Charts and the
report are written by the assistant into the output directory, which is
listed once the run completes.

Usage examples::

    pr-insights-advanced --repo github/copilot-sdk
    pr-insights-advanced --repo facebook/react --analysis velocity-trends,review-patterns
    pr-insights-advanced --repo microsoft/vscode --output ./vscode-reports
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .analysis_prompts import ANALYSIS_NAMES
from .assistant_session import AssistantClient
from .cli import ArgumentParser, add_common_arguments, configure_logging, warn_unknown_arguments
from .run_config import (
    DEFAULT_OUTPUT_DIR,
    AssistantSettings,
    ConfigurationError,
    Repository,
    RunConfig,
    parse_analysis_names,
)
from .session_driver import run_batch_analysis

logger = logging.getLogger(__name__)

EPILOG = (
    "Available analyses: " + ", ".join(ANALYSIS_NAMES) + "\n"
    "Default: all analyses\n\n"
    "Examples:\n"
    "  pr-insights-advanced --repo github/copilot-sdk\n"
    "  pr-insights-advanced --repo facebook/react --analysis velocity-trends,review-patterns\n"
    "  pr-insights-advanced --repo microsoft/vscode --output ./vscode-reports\n"
)


def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(
        prog="pr-insights-advanced",
        description="Advanced PR Analysis Tool",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--repo", type=str, default=None, help="GitHub repository as owner/repo (required).")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path(DEFAULT_OUTPUT_DIR),
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--analysis",
        type=str,
        default="",
        help="Specific analyses to run (comma-separated). Default: all analyses.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=os.environ.get("PR_INSIGHTS_TASK_DELAY", "1.0"),
        help="Seconds to wait between analyses (default from env PR_INSIGHTS_TASK_DELAY or 1.0).",
    )
    add_common_arguments(parser)
    return parser


def build_run_config(args: argparse.Namespace, settings: AssistantSettings) -> RunConfig:
    if not args.repo:
        raise ConfigurationError("--repo is required")
    repository = Repository.parse(args.repo)

    analyses = parse_analysis_names(args.analysis)
    unknown = [name for name in analyses if name not in ANALYSIS_NAMES]
    if unknown:
        raise ConfigurationError(
            f"Unknown analysis {', '.join(unknown)}. Available: {', '.join(ANALYSIS_NAMES)}"
        )
    if args.delay < 0:
        raise ConfigurationError("--delay must not be negative")

    return RunConfig(
        repository=repository,
        output_dir=args.output,
        analyses=analyses,
        task_delay=args.delay,
        model=args.model or settings.model,
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
        configure_logging(args.log_level)
        warn_unknown_arguments(unknown)
        settings = AssistantSettings.from_env()
        config = build_run_config(args, settings)
    except ConfigurationError as exc:
        print(f"❌ Error: {exc}\n", file=sys.stderr)
        print("Use --help for usage information")
        return 1

    logger.info("Run configuration: %s", config)
    return asyncio.run(run_batch_analysis(config, AssistantClient(settings)))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
