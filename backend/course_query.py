"""
Search-expression building and question classification for course
discussion queries.
"""
import re
import time
from typing import Dict, List, Optional

TOPICS = ("difficulty", "instructor", "exam", "tips")

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "difficulty": ["hard", "difficulty", "workload", "easy", "tough", "drop rate", "curve"],
    "instructor": ["prof", "professor", "teacher", "instructor", "who to take", "best prof", "avoid"],
    "exam": ["final", "midterm", "exam", "test", "quiz", "format", "grading", "proctor"],
    "tips": ["tips", "advice", "study", "assignment", "lab", "labs", "resource", "textbook", "notes"],
}

# Checked in order; the first pattern that matches wins.
_TOPIC_PATTERNS = [
    ("instructor", re.compile(r"(best|who to take|avoid|teacher|prof|instructor)")),
    ("exam", re.compile(r"(final|midterm|exam|test|quiz|format|curve|grading)")),
    ("tips", re.compile(r"(tip|advice|study|assignment|lab|labs|resource|textbook|notes)")),
]


def infer_topic(question: Optional[str]) -> str:
    """Map a free-text question onto one of the four topics (default: difficulty)."""
    text = (question or "").lower()
    for topic, pattern in _TOPIC_PATTERNS:
        if pattern.search(text):
            return topic
    return "difficulty"


def normalize_course(course: str) -> str:
    return re.sub(r"\s+", " ", course or "").strip()


def course_variants(course: str) -> List[str]:
    """
    Spelling variants of a course id, e.g. for "COMP 232":
    COMP 232, COMP232, COMP-232, comp 232, comp232
    """
    exact = normalize_course(course)
    compact = re.sub(r"\s+", "", exact)
    dashed = re.sub(r"\s+", "-", exact, count=1)
    lower = exact.lower()
    lower_compact = re.sub(r"\s+", "", lower)
    return [exact, compact, dashed, lower, lower_compact]


def _quote(term: str) -> str:
    if re.search(r"[\s-]", term):
        return f'"{term}"'
    return term


def topic_clause(topic: str) -> str:
    keywords = TOPIC_KEYWORDS.get(topic)
    if not keywords:
        return ""
    return "(" + " OR ".join(_quote(k) for k in keywords) + ")"


def build_search_query(course: str, topic: str) -> str:
    """Combine the course-name disjunction with the topic keyword clause."""
    variants = "(" + " OR ".join(_quote(v) for v in course_variants(course)) + ")"
    return f"{variants} AND {topic_clause(topic)}"


def since_days_to_timestamp(days: float, now: Optional[float] = None) -> int:
    """Epoch seconds for ``days`` days before ``now``."""
    now = time.time() if now is None else now
    return int(now - days * 24 * 60 * 60)
