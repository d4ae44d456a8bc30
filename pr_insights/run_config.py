"""
Configuration models shared by the PR insights entry points.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "./advanced-output"
DEFAULT_MODEL = "gpt-5"
DEFAULT_TASK_DELAY = 1.0

_REPOSITORY_PATTERN = re.compile(r"^([^/\s]+)/([^/\s]+)$")
_GITHUB_REMOTE_PATTERN = re.compile(r"github\.com[:/]([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")


class ConfigurationError(ValueError):
    """Raised when command-line or interactive input cannot form a run configuration."""


@dataclass(frozen=True, slots=True)
class Repository:
    """A GitHub repository identified as `owner/name`."""

    owner: str
    name: str

    @classmethod
    def parse(cls, text: str) -> "Repository":
        match = _REPOSITORY_PATTERN.match((text or "").strip())
        if not match:
            raise ConfigurationError(f"Invalid repository {text!r}. Expected: owner/repo")
        return cls(owner=match.group(1), name=match.group(2))

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Batch analysis settings, built once from the command line."""

    repository: Repository
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    analyses: Tuple[str, ...] = ()
    task_delay: float = DEFAULT_TASK_DELAY
    model: str = DEFAULT_MODEL


@dataclass(frozen=True, slots=True)
class DashboardConfig:
    """Interactive dashboard settings."""

    repository: Repository
    interactive: bool = True
    model: Optional[str] = None
    work_dir: Path = field(default_factory=Path.cwd)


@dataclass(frozen=True, slots=True)
class AssistantSettings:
    """Connection and runtime settings for the assistant backend, read from the environment."""

    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    model: str = DEFAULT_MODEL
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    code_timeout: int = 120
    max_tool_iterations: int = 10

    @classmethod
    def from_env(cls) -> "AssistantSettings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv("OPENAI_API_BASE_URL", "https://api.openai.com/v1"),
            model=os.getenv("PR_INSIGHTS_MODEL", DEFAULT_MODEL),
            github_token=os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN"),
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            code_timeout=_env_int("PR_INSIGHTS_CODE_TIMEOUT", 120),
            max_tool_iterations=max(1, _env_int("PR_INSIGHTS_MAX_TOOL_ITERATIONS", 10)),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %d.", name, raw, default)
        return default


def parse_analysis_names(text: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated `--analysis` value; blank entries are dropped."""

    if not text:
        return ()
    return tuple(part.strip() for part in text.split(",") if part.strip())


def repository_from_remote(url: str) -> Optional[str]:
    """Extract `owner/name` from a GitHub https or ssh remote URL."""

    match = _GITHUB_REMOTE_PATTERN.search(url.strip())
    if not match:
        return None
    return f"{match.group(1)}/{match.group(2)}"


def detect_repository(cwd: Optional[Path] = None) -> Optional[str]:
    """Read `origin` of the git checkout in `cwd`; None when anything fails."""

    try:
        completed = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("Repository auto-detection failed: %s", exc)
        return None
    return repository_from_remote(completed.stdout)
