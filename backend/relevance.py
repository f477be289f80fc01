"""
Relevance scoring for discussion posts.

score = 5 per generic topic keyword in the title
      + 10 if the title is exactly a course variant
      + max(0, 10 - days_old / 30)
"""
import time
from typing import Iterable, List, Optional, Sequence

from models import DiscussionPost, ScoredPost

TITLE_KEYWORDS = [
    "hard", "easy", "difficulty", "review", "tips", "advice", "final",
    "midterm", "prof", "professor", "teacher", "best", "avoid", "recommend",
]

SECONDS_PER_DAY = 24 * 60 * 60


def _fold(text: str) -> str:
    return (text or "").lower().replace("-", " ")


def title_mentions_course(title: str, variants: Sequence[str]) -> bool:
    folded = _fold(title)
    return any(_fold(v) in folded for v in variants if v)


def recency_points(created_utc: float, now: float) -> float:
    days_old = (now - created_utc) / SECONDS_PER_DAY
    return max(0.0, 10.0 - days_old / 30.0)


def score_post(post: DiscussionPost, variants: Sequence[str], now: Optional[float] = None) -> float:
    now = time.time() if now is None else now
    title = (post.title or "").lower()

    score = 0.0
    for keyword in TITLE_KEYWORDS:
        if keyword in title:
            score += 5

    if any(title == v.lower() for v in variants):
        score += 10

    score += recency_points(post.created_utc, now)
    return score


def rank_posts(
    posts: Iterable[DiscussionPost],
    variants: Sequence[str],
    now: Optional[float] = None,
) -> List[ScoredPost]:
    """Score and sort posts, highest first. Equal scores keep input order."""
    now = time.time() if now is None else now
    scored = [ScoredPost(post=p, relevance=score_post(p, variants, now)) for p in posts]
    scored.sort(key=lambda s: s.relevance, reverse=True)
    return scored
