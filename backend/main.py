"""
Campus Pulse - FastAPI Backend
Course discussion search and professor rating lookup endpoints
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Optional

from async_utils import MissingParameterError, UpstreamError, UpstreamTimeoutError
from community_service import answer_course_question, search_course_posts
from config import Settings
from models import ProfileResult
from page_fetcher import HttpPageFetcher, PageFetcher
from professor_lookup import lookup_professor
from reddit_client import DiscussionSearch, RedditSearchClient
from result_cache import ResultCache, cache_stats

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("campus_pulse")

# Initialize components
reddit_client = RedditSearchClient(settings)
page_fetcher = HttpPageFetcher()
profile_cache: ResultCache[ProfileResult] = ResultCache(ttl_seconds=settings.profile_cache_ttl)


class PostOut(BaseModel):
    id: str
    forum_name: str
    title: str
    url: str
    score: int
    comment_count: int
    created_utc: float
    created_iso: str
    relevance: float


class SearchQueryOut(BaseModel):
    course: str
    topic: str
    windowDays: float
    limit: int
    subreddits: List[str]


class SearchResponse(BaseModel):
    query: SearchQueryOut
    count: int
    posts: List[PostOut]
    note: str


class SourceOut(BaseModel):
    title: str
    url: str
    when: str
    forum: str
    score: int


class AnswerResponse(BaseModel):
    course: str
    topic: str
    question: str
    count: int
    answer: str
    sources: List[SourceOut]
    note: str


class CandidateOut(BaseModel):
    name: Optional[str] = None
    institution: Optional[str] = None
    department: Optional[str] = None
    qualityScore: Optional[float] = None
    difficultyScore: Optional[float] = None
    wouldTakeAgainPct: Optional[float] = None
    ratingCount: Optional[int] = None
    profileUrl: str
    rawBlockText: str = ""


class ProfileLookupResponse(BaseModel):
    matchCount: int
    topCandidate: Optional[CandidateOut] = None
    otherCandidates: List[CandidateOut]
    institutionName: str
    includeAllInstitutions: bool


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await reddit_client.aclose()
    await page_fetcher.aclose()


app = FastAPI(title="Campus Pulse API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return settings


def get_discussion_client() -> DiscussionSearch:
    return reddit_client


def get_page_fetcher() -> PageFetcher:
    return page_fetcher


def get_profile_cache() -> ResultCache[ProfileResult]:
    return profile_cache


@app.get("/health")
def health_check():
    return {
        "ok": True,
        "time": datetime.now(timezone.utc).isoformat(),
        "profile_cache": cache_stats(profile_cache),
    }


@app.get("/api/reddit/search", response_model=SearchResponse)
async def reddit_search(
    course: Optional[str] = None,
    topic: str = "difficulty",
    window_days: float = Query(540, alias="windowDays", gt=0),
    limit: int = Query(20, ge=1),
    client: DiscussionSearch = Depends(get_discussion_client),
    cfg: Settings = Depends(get_settings),
):
    """Ranked community posts about a course, for one topic"""
    try:
        return await search_course_posts(client, cfg, course, topic, window_days, limit)
    except MissingParameterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamTimeoutError as e:
        logger.error("search error: %s", e)
        raise HTTPException(status_code=504, detail=f"Timeout talking to Reddit: {e}")


@app.get("/api/reddit/answer", response_model=AnswerResponse)
async def reddit_answer(
    course: Optional[str] = None,
    question: str = "",
    window_days: float = Query(540, alias="windowDays", gt=0),
    limit: int = Query(8, ge=1),
    client: DiscussionSearch = Depends(get_discussion_client),
    cfg: Settings = Depends(get_settings),
):
    """Short digest answering a question about a course"""
    try:
        return await answer_course_question(client, cfg, course, question, window_days, limit)
    except MissingParameterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamTimeoutError as e:
        logger.error("answer error: %s", e)
        raise HTTPException(status_code=504, detail=f"Timeout talking to Reddit: {e}")


@app.get("/api/rmp", response_model=ProfileLookupResponse)
async def rmp_lookup(
    name: Optional[str] = None,
    all_schools: str = Query("0", alias="all"),
    fetcher: PageFetcher = Depends(get_page_fetcher),
    cache: ResultCache[ProfileResult] = Depends(get_profile_cache),
    cfg: Settings = Depends(get_settings),
):
    """
    Professor ratings lookup.
    all=0 (default) restricts to the configured school, all=1 includes other schools.
    """
    include_all = all_schools.strip().lower() in ("1", "true")
    try:
        result = await lookup_professor(name, include_all, cache=cache, fetcher=fetcher, settings=cfg)
    except MissingParameterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamTimeoutError as e:
        logger.error("rmp error: %s", e)
        raise HTTPException(status_code=504, detail=f"RMP scrape timeout: {e}")
    except UpstreamError as e:
        logger.error("rmp error: %s", e)
        raise HTTPException(status_code=502, detail=f"RMP scrape failed: {e}")
    return result.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
