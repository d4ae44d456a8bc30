"""
PR insights package.

Two command line tools drive an AutoGen assistant session that fetches GitHub
pull-request data, renders charts with Python and writes summaries:

* `pr_insights.dashboard` - conversational dashboard with follow-up questions.
* `pr_insights.advanced_analysis` - batch run of the fixed analyses plus a
  summary report.

```python
from pr_insights import AssistantClient, AssistantSettings

client = AssistantClient(AssistantSettings.from_env())
```
"""

from .assistant_session import AssistantClient, AssistantSession, SessionEvent, SessionEventKind  # noqa: F401
from .run_config import AssistantSettings  # noqa: F401

__all__ = ["AssistantClient", "AssistantSession", "AssistantSettings", "SessionEvent", "SessionEventKind"]
