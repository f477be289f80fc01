"""
Course discussion operations: ranked post search and a short digest answer
for a student's question.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from async_utils import MissingParameterError, with_deadline
from config import Settings
from course_query import (
    build_search_query,
    course_variants,
    infer_topic,
    normalize_course,
    since_days_to_timestamp,
)
from models import ScoredPost
from reddit_client import DiscussionSearch, search_discussions
from summarizer import summarize_posts

logger = logging.getLogger(__name__)

COMMUNITY_NOTE = (
    "Community results from Reddit. These reflect opinions/experiences, "
    "not official university guidance."
)

DEFAULT_WINDOW_DAYS = 540
MAX_SEARCH_LIMIT = 50
MAX_ANSWER_LIMIT = 20


async def _ranked_posts(
    client: DiscussionSearch,
    settings: Settings,
    course: str,
    topic: str,
    window_days: float,
    limit: int,
) -> List[ScoredPost]:
    query = build_search_query(course, topic)
    logger.debug("Searching %s for %s", settings.subreddits, query)
    return await with_deadline(
        search_discussions(
            client,
            settings.subreddits,
            query,
            course_variants(course),
            after_ts=since_days_to_timestamp(window_days),
            limit=limit,
            per_call_timeout=settings.forum_search_timeout,
        ),
        settings.search_timeout,
        "overall",
    )


def _require_course(course: Optional[str]) -> str:
    course = normalize_course(course or "")
    if not course:
        raise MissingParameterError("course")
    return course


async def search_course_posts(
    client: DiscussionSearch,
    settings: Settings,
    course: Optional[str],
    topic: Optional[str] = "difficulty",
    window_days: float = DEFAULT_WINDOW_DAYS,
    limit: int = 20,
) -> Dict[str, Any]:
    course = _require_course(course)
    topic = (topic or "difficulty").strip()
    limit = max(1, min(MAX_SEARCH_LIMIT, int(limit)))

    posts = await _ranked_posts(client, settings, course, topic, window_days, limit)
    return {
        "query": {
            "course": course,
            "topic": topic,
            "windowDays": window_days,
            "limit": limit,
            "subreddits": [f"r/{s}" for s in settings.subreddits],
        },
        "count": len(posts),
        "posts": [p.to_dict() for p in posts],
        "note": COMMUNITY_NOTE,
    }


async def answer_course_question(
    client: DiscussionSearch,
    settings: Settings,
    course: Optional[str],
    question: Optional[str] = "",
    window_days: float = DEFAULT_WINDOW_DAYS,
    limit: int = 8,
) -> Dict[str, Any]:
    course = _require_course(course)
    question = (question or "").strip()
    limit = max(1, min(MAX_ANSWER_LIMIT, int(limit)))
    topic = infer_topic(question)

    posts = await _ranked_posts(client, settings, course, topic, window_days, limit)
    summary = summarize_posts(posts, course, topic)
    return {
        "course": course,
        "topic": topic,
        "question": question,
        "count": len(posts),
        "answer": summary["answer"],
        "sources": summary["sources"],
        "note": COMMUNITY_NOTE,
    }
