"""
Centralized prompts sent to the PR insights assistant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class AnalysisTask:
    """A named analysis and the instruction sent to the assistant for it."""

    name: str
    prompt: str


ADVANCED_ANALYSES: Tuple[AnalysisTask, ...] = (
    AnalysisTask(
        name="velocity-trends",
        prompt=(
            "Analyze PR velocity trends over the last 6 months:\n"
            "- Average time to merge\n"
            "- PR throughput (PRs merged per week)\n"
            "- Identify any velocity changes\n"
            "- Create a line chart showing trends\n"
            "Save as velocity-trends.png"
        ),
    ),
    AnalysisTask(
        name="review-patterns",
        prompt=(
            "Analyze PR review patterns:\n"
            "- Average number of reviews per PR\n"
            "- Time to first review\n"
            "- Review approval rates\n"
            "- Top reviewers\n"
            "- Create visualizations for review metrics\n"
            "Save as review-patterns.png"
        ),
    ),
    AnalysisTask(
        name="contributor-insights",
        prompt=(
            "Analyze contributor patterns:\n"
            "- Distribution of PRs by author\n"
            "- New vs. returning contributors\n"
            "- Contribution frequency\n"
            "- Create a bar chart of top 10 contributors\n"
            "Save as contributor-insights.png"
        ),
    ),
    AnalysisTask(
        name="label-analysis",
        prompt=(
            "Analyze PR labels and categorization:\n"
            "- Most common labels\n"
            "- Label combinations\n"
            "- Average time to merge by label type\n"
            "- Create a pie chart and bar chart\n"
            "Save as label-analysis.png"
        ),
    ),
    AnalysisTask(
        name="size-complexity",
        prompt=(
            "Analyze PR size and complexity:\n"
            "- Distribution of PR sizes (lines changed)\n"
            "- Files modified per PR\n"
            "- Correlation between size and merge time\n"
            "- Create scatter plot and histogram\n"
            "Save as size-complexity.png"
        ),
    ),
)

ANALYSIS_NAMES: Tuple[str, ...] = tuple(task.name for task in ADVANCED_ANALYSES)

SUMMARY_REPORT_PROMPT: str = (
    "Based on all the analyses performed, create a comprehensive Markdown summary report:\n"
    "- Executive summary (3-4 key findings)\n"
    "- Detailed insights from each analysis\n"
    "- Trends and patterns observed\n"
    "- Top 3 recommendations for improving PR workflow\n"
    "- List of all generated visualizations\n"
    "\n"
    "Save as summary-report.md in the output directory."
)

INITIAL_DASHBOARD_PROMPT: str = (
    "Please analyze the open pull requests. Create a chart showing the PR age distribution "
    "(how long they've been open) and save it to the current directory. Also provide insights "
    "about contributors and any patterns you notice."
)

FOLLOW_UP_SUGGESTIONS: Tuple[str, ...] = (
    "Create a pie chart showing PRs by author",
    "Which PRs have been open the longest?",
    "Show me a timeline of when PRs were created",
    "Generate a chart comparing this month vs last month",
)


def select_analyses(names: Tuple[str, ...]) -> Tuple[AnalysisTask, ...]:
    """Return the fixed tasks whose name is in `names`, in fixed order; all when empty."""

    if not names:
        return ADVANCED_ANALYSES
    wanted = set(names)
    return tuple(task for task in ADVANCED_ANALYSES if task.name in wanted)


def analysis_system_prompt(*, repository: str, output_dir: str) -> str:
    """Return the system prompt for the batch analysis session."""

    return (
        f"You are an expert GitHub analytics consultant. Analyze {repository} with focus on:\n"
        "- Data-driven insights\n"
        "- Professional visualizations using matplotlib/seaborn\n"
        "- Statistical analysis (mean, median, percentiles)\n"
        "- Trend identification\n"
        "- Actionable recommendations\n"
        "\n"
        "Fetch pull-request data with the github_* tools and run Python with the code execution tool "
        "to compute statistics and render charts.\n"
        f"Save all outputs to: {output_dir}\n"
        "Use descriptive filenames and high-quality chart settings (dpi=300, figsize=(12,8))."
    )


def dashboard_system_prompt(*, repository: str, work_dir: str) -> str:
    """Return the system prompt for the interactive dashboard session."""

    return (
        f"You are analyzing pull requests for the GitHub repository: {repository}\n"
        "\n"
        f"The current working directory is: {work_dir}\n"
        "\n"
        "Instructions:\n"
        "- Use the github_* tools to fetch PR data\n"
        "- Use the code execution tool to run Python that generates charts\n"
        "- Save any generated images to the current working directory\n"
        "- Analyze PR age distribution, contributors, and patterns\n"
        "- Be concise in your responses\n"
        "- Provide actionable recommendations"
    )
