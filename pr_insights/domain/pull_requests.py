from typing import List, Optional, Dict, Any
from dataclasses import dataclass, asdict, field

@dataclass
class PullRequestSummary:
    number: int
    title: str
    author: str
    state: str
    draft: bool
    created_at: Optional[str]
    updated_at: Optional[str] = None
    merged_at: Optional[str] = None
    closed_at: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    additions: Optional[int] = None
    deletions: Optional[int] = None
    changed_files: Optional[int] = None
    comments: Optional[int] = None
    review_comments: Optional[int] = None
    url: Optional[str] = None

@dataclass
class ReviewSummary:
    reviewer: str
    state: str
    submitted_at: Optional[str] = None

def _login(user: Any) -> str:
    if isinstance(user, dict):
        return user.get("login") or "ghost"
    return "ghost"

def summarize_pull_request(raw: Dict[str, Any]) -> Dict[str, Any]:
    # list endpoint omits the size and comment counters, detail endpoint has them
    labels = [label.get("name", "") for label in raw.get("labels") or [] if isinstance(label, dict)]
    pr = PullRequestSummary(
        number=int(raw.get("number", 0)),
        title=raw.get("title") or "",
        author=_login(raw.get("user")),
        state="merged" if raw.get("merged_at") else (raw.get("state") or "unknown"),
        draft=bool(raw.get("draft", False)),
        created_at=raw.get("created_at"),
        updated_at=raw.get("updated_at"),
        merged_at=raw.get("merged_at"),
        closed_at=raw.get("closed_at"),
        labels=[name for name in labels if name],
        additions=raw.get("additions"),
        deletions=raw.get("deletions"),
        changed_files=raw.get("changed_files"),
        comments=raw.get("comments"),
        review_comments=raw.get("review_comments"),
        url=raw.get("html_url"),
    )
    return asdict(pr)

def summarize_review(raw: Dict[str, Any]) -> Dict[str, Any]:
    review = ReviewSummary(
        reviewer=_login(raw.get("user")),
        state=raw.get("state") or "UNKNOWN",
        submitted_at=raw.get("submitted_at"),
    )
    return asdict(review)
