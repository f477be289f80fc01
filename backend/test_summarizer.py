"""Tests for summarizer.py - relative ages and digest rendering."""
import pytest

from conftest import DAY, NOW, make_post
from models import ScoredPost
from summarizer import DISCLAIMER, relative_age, summarize_posts


@pytest.mark.parametrize(
    "days, expected",
    [
        (0, "1d ago"),
        (3, "3d ago"),
        (6.4, "6d ago"),
        (7, "1w ago"),
        (20, "3w ago"),
        (52, "7w ago"),
        (56, "2mo ago"),
        (200, "7mo ago"),
        (515, "17mo ago"),
        (540, "1y ago"),
        (800, "2y ago"),
    ],
)
def test_relative_age(days, expected):
    assert relative_age(NOW - days * DAY, NOW) == expected


def _scored(n):
    return [ScoredPost(make_post(str(i), f"COMP 232 post {i}", days_old=i + 1), relevance=10 - i) for i in range(n)]


class TestSummarizePosts:
    def test_digest_layout(self):
        result = summarize_posts(_scored(2), "COMP 232", "exam", now=NOW)
        lines = result["answer"].split("\n")
        assert lines[0] == "Exam-related posts for **COMP 232**:"
        assert lines[1] == "• COMP 232 post 0 — 1d ago (r/Concordia) — https://www.reddit.com/r/Concordia/comments/0/"
        assert lines[-2] == ""
        assert lines[-1] == DISCLAIMER
        assert len(lines) == 5

    def test_top_five_only(self):
        result = summarize_posts(_scored(8), "COMP 232", "tips", now=NOW)
        assert len(result["sources"]) == 5
        assert result["answer"].count("• ") == 5

    def test_source_shape(self):
        source = summarize_posts(_scored(1), "COMP 232", "difficulty", now=NOW)["sources"][0]
        assert source == {
            "title": "COMP 232 post 0",
            "url": "https://www.reddit.com/r/Concordia/comments/0/",
            "when": "1d ago",
            "forum": "r/Concordia",
            "score": 1,
        }

    def test_unknown_topic_generic_heading(self):
        result = summarize_posts([], "COMP 232", "gossip", now=NOW)
        assert result["answer"].startswith("Community posts for **COMP 232**:")
        assert result["sources"] == []
