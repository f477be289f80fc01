"""
Shared fixtures: fake Reddit/page-fetch collaborators and ratings-site HTML.
"""
from __future__ import annotations

import asyncio
import json
from typing import Dict, List, Optional, Union

import pytest

from config import Settings
from models import DiscussionPost

NOW = 1_700_000_000.0
DAY = 24 * 60 * 60


def make_post(
    post_id: str,
    title: str,
    days_old: float = 1,
    forum: str = "r/Concordia",
    score: int = 1,
    now: float = NOW,
) -> DiscussionPost:
    return DiscussionPost(
        id=post_id,
        forum_name=forum,
        title=title,
        url=f"https://www.reddit.com/r/{forum[2:]}/comments/{post_id}/",
        score=score,
        comment_count=0,
        created_utc=now - days_old * DAY,
    )


class FakeDiscussionClient:
    """Per-forum canned results; an Exception value is raised, delays are slept."""

    def __init__(
        self,
        results: Dict[str, Union[List[DiscussionPost], Exception]],
        delays: Optional[Dict[str, float]] = None,
    ):
        self.results = results
        self.delays = delays or {}
        self.calls: List[Dict[str, object]] = []

    async def search(self, forum, query, sort="new", time_window="year", limit=25):
        self.calls.append({"forum": forum, "query": query, "sort": sort, "limit": limit})
        delay = self.delays.get(forum)
        if delay:
            await asyncio.sleep(delay)
        result = self.results.get(forum, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakePageFetcher:
    def __init__(self, pages: Dict[str, Union[str, Exception]], delay: float = 0.0):
        self.pages = pages
        self.delay = delay
        self.calls: List[str] = []

    async def fetch(self, url: str, timeout: float) -> str:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        page = self.pages.get(url)
        if page is None:
            raise RuntimeError(f"unexpected fetch {url}")
        if isinstance(page, Exception):
            raise page
        return page


RELAY_STORE = {
    "VGVhY2hlci0xMTE=": {
        "__typename": "Teacher",
        "id": "VGVhY2hlci0xMTE=",
        "legacyId": 111,
        "firstName": "Jane",
        "lastName": "Doe",
        "department": "Computer Science",
        "school": {"__ref": "U2Nob29sLTE4NDQz"},
        "avgRating": 4.6,
        "avgDifficulty": 3.2,
        "numRatings": 120,
        "wouldTakeAgainPercent": 85.5,
    },
    "U2Nob29sLTE4NDQz": {
        "__typename": "School",
        "id": "U2Nob29sLTE4NDQz",
        "legacyId": 18443,
        "name": "Concordia University",
    },
}

SEARCH_PAGE_HTML = """
<html><head>
<script>
  window.__RELAY_STORE__ = %s;
  window.process = {};
</script>
</head><body>
<div class="SearchResultsPage__StyledResultsWrapper">
  <a class="TeacherCard__StyledTeacherCard-syjs0d-0" href="/professor/111">
    <div class="CardNumRating__StyledCardNumRating">
      <div class="CardNumRating__CardNumRatingHeader">QUALITY</div>
      <div class="CardNumRating__CardNumRatingNumber">4.5</div>
      <div class="CardNumRating__CardNumRatingCount">120 ratings</div>
    </div>
    <div class="CardInfo__StyledCardInfo">
      <div class="CardName__StyledCardName">Jane Doe</div>
      <div class="CardSchool__StyledCardSchool">
        <div class="CardSchool__Department">Computer Science</div>
        <div class="CardSchool__School">Concordia University</div>
      </div>
      <div class="CardFeedback__StyledCardFeedback">
        <div class="CardFeedback__CardFeedbackItem"><div class="CardFeedback__CardFeedbackNumber">85%%</div> would take again</div>
        <div class="CardFeedback__CardFeedbackItem"><div class="CardFeedback__CardFeedbackNumber">3.2</div> level of difficulty</div>
      </div>
    </div>
  </a>
  <a class="TeacherCard__StyledTeacherCard-syjs0d-0" href="/professor/222">
    <div class="CardNumRating__StyledCardNumRating">
      <div class="CardNumRating__CardNumRatingHeader">QUALITY</div>
      <div class="CardNumRating__CardNumRatingNumber">3.9</div>
      <div class="CardNumRating__CardNumRatingCount">8 ratings</div>
    </div>
    <div class="CardInfo__StyledCardInfo">
      <div class="CardName__StyledCardName">Jane Doering</div>
      <div class="CardSchool__StyledCardSchool">
        <div class="CardSchool__Department">Physics</div>
        <div class="CardSchool__School">McGill University</div>
      </div>
      <div class="CardFeedback__StyledCardFeedback">
        <div class="CardFeedback__CardFeedbackItem"><div class="CardFeedback__CardFeedbackNumber">70%%</div> would take again</div>
        <div class="CardFeedback__CardFeedbackItem"><div class="CardFeedback__CardFeedbackNumber">2.5</div> level of difficulty</div>
      </div>
    </div>
  </a>
  <a class="TeacherCard__StyledTeacherCard-syjs0d-0" href="/professor/333">
    <div class="CardNumRating__StyledCardNumRating">
      <div class="CardNumRating__CardNumRatingHeader">QUALITY</div>
      <div class="CardNumRating__CardNumRatingNumber">0.0</div>
      <div class="CardNumRating__CardNumRatingCount">0 ratings</div>
    </div>
    <div class="CardInfo__StyledCardInfo">
      <div class="CardName__StyledCardName">John Smith</div>
      <div class="CardSchool__StyledCardSchool">
        <div class="CardSchool__Department">Mathematics</div>
        <div class="CardSchool__School">Concordia University</div>
      </div>
      <div class="CardFeedback__StyledCardFeedback">
        <div class="CardFeedback__CardFeedbackItem"><div class="CardFeedback__CardFeedbackNumber">N/A</div> would take again</div>
        <div class="CardFeedback__CardFeedbackItem"><div class="CardFeedback__CardFeedbackNumber">N/A</div> level of difficulty</div>
      </div>
    </div>
  </a>
</div>
<article>
  <a href="https://www.ratemyprofessors.com/professor/111">Jane Doe</a>
</article>
</body></html>
""" % json.dumps(RELAY_STORE)

PROFILE_333 = {
    "VGVhY2hlci0zMzM=": {
        "__typename": "Teacher",
        "id": "VGVhY2hlci0zMzM=",
        "legacyId": 333,
        "firstName": "John",
        "lastName": "Smith",
        "department": "Mathematics",
        "school": {"__ref": "U2Nob29sLTE4NDQz"},
        "avgRating": 3.9,
        "avgDifficulty": 2.1,
        "numRatings": 14,
        "wouldTakeAgainPercent": -1,
    },
    "U2Nob29sLTE4NDQz": RELAY_STORE["U2Nob29sLTE4NDQz"],
}

PROFILE_PAGE_HTML = """
<html><head>
<script>window.__RELAY_STORE__ = %s;window.process = {};</script>
</head><body>
<div class="NameTitle__Name-dowf0z-0"><span>John</span> <span class="NameTitle__LastNameWrapper">Smith</span></div>
<div class="NameTitle__Title">Professor in the <a class="TeacherDepartment__StyledDepartmentLink-fl79e8-0" href="/search/professors/18443?did=5"><b>Mathematics department</b></a>
 at <a href="/school/18443">Concordia University</a></div>
<div class="RatingValue__AvgRating"><div class="RatingValue__Numerator-qw8sqy-2">3.9</div><div>/ 5</div></div>
<div class="RatingValue__NumRatings-qw8sqy-0"><div>Overall Quality Based on <a href="#ratingsList">14 ratings</a></div></div>
<div class="FeedbackItem__StyledFeedbackItem"><div class="FeedbackItem__FeedbackNumber">N/A</div><div class="FeedbackItem__FeedbackDescription">Would take again</div></div>
<div class="FeedbackItem__StyledFeedbackItem"><div class="FeedbackItem__FeedbackNumber">2.1</div><div class="FeedbackItem__FeedbackDescription">Level of Difficulty</div></div>
</body></html>
""" % json.dumps(PROFILE_333)

EMPTY_SEARCH_HTML = """
<html><body>
<div class="SearchResultsPage__StyledResultsWrapper">
  <div data-testid="noResults">No professors with "Nobody Here" in their name</div>
</div>
</body></html>
"""


@pytest.fixture
def settings() -> Settings:
    return Settings(
        subreddits=["Concordia", "concordiauniversity"],
        forum_search_timeout=0.5,
        search_timeout=1.0,
        profile_fetch_timeout=0.5,
        lookup_timeout=1.0,
    )
