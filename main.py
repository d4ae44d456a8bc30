"""
Command line launcher for the PR Insights Dashboard.

Equivalent to the installed `pr-insights` script; run `python main.py --help`
for options.  The batch tool lives in `pr_insights.advanced_analysis`.
"""

import sys

from pr_insights.dashboard import main


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
