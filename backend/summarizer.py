"""
Turns ranked discussion posts into a short digest plus a source list.
"""
import math
import time
from typing import Any, Dict, List, Optional, Sequence

from models import ScoredPost

DISCLAIMER = "Note: Community feedback from Reddit (opinions/experiences, not official)."

_HEADINGS = {
    "difficulty": "Here’s what students recently said about **{course}** (difficulty/workload):",
    "instructor": "Instructor chatter for **{course}** (who to take/avoid):",
    "exam": "Exam-related posts for **{course}**:",
    "tips": "Tips & resources mentioned for **{course}**:",
}
_DEFAULT_HEADING = "Community posts for **{course}**:"

MAX_SOURCES = 5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def relative_age(created_utc: float, now: Optional[float] = None) -> str:
    now = time.time() if now is None else now
    days = max(1, _round_half_up((now - created_utc) / 86400))
    if days < 7:
        return f"{days}d ago"
    weeks = _round_half_up(days / 7)
    if weeks < 8:
        return f"{weeks}w ago"
    months = _round_half_up(days / 30)
    if months < 18:
        return f"{months}mo ago"
    return f"{_round_half_up(days / 365)}y ago"


def summarize_posts(
    posts: Sequence[ScoredPost],
    course: str,
    topic: str,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    top = list(posts)[:MAX_SOURCES]
    heading = _HEADINGS.get(topic, _DEFAULT_HEADING).format(course=course)

    bullets: List[str] = []
    sources: List[Dict[str, Any]] = []
    for item in top:
        post = item.post
        when = relative_age(post.created_utc, now)
        bullets.append(f"• {post.title} — {when} ({post.forum_name}) — {post.url}")
        sources.append({
            "title": post.title,
            "url": post.url,
            "when": when,
            "forum": post.forum_name,
            "score": post.score,
        })

    answer = "\n".join([heading, *bullets, "", DISCLAIMER])
    return {"answer": answer, "sources": sources}
