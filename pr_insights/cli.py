"""Argument parsing and logging helpers shared by the entry points."""

from __future__ import annotations

import argparse
import logging
import os
from typing import List

from .run_config import ConfigurationError

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser whose usage errors surface as `ConfigurationError`."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigurationError(message)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model name for the assistant (default from env PR_INSIGHTS_MODEL or gpt-5).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("PR_INSIGHTS_LOGLEVEL", "WARNING").upper(),
        help="Logging verbosity (default from env PR_INSIGHTS_LOGLEVEL or WARNING).",
    )


def configure_logging(level_name: str) -> None:
    level = getattr(logging, (level_name or "WARNING").upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger().setLevel(level)
    for name in ("autogen_core", "autogen_agentchat", "httpx", "openai"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def warn_unknown_arguments(unknown: List[str]) -> None:
    if unknown:
        logging.getLogger("pr_insights.cli").warning("Ignoring unrecognized arguments: %s", " ".join(unknown))
