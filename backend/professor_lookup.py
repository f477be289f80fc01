"""
Professor lookup: cached search-page scrape, profile enrichment and
disambiguation for a professor name.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional
from urllib.parse import quote

from async_utils import MissingParameterError, with_deadline
from config import Settings
from models import ProfileCandidate, ProfileResult
from page_fetcher import PageFetcher
from professor_extractor import extract_candidates, extract_profile
from professor_matcher import build_result, filter_by_institution
from result_cache import ResultCache, profile_cache_key

logger = logging.getLogger(__name__)

ENRICH_LIMIT = 3
ENRICH_FIELDS = ("quality_score", "difficulty_score", "rating_count", "department")
# Profile-page values replace the search card's for these.
PROFILE_RATING_FIELDS = ("quality_score", "difficulty_score", "would_take_again_pct", "rating_count")


def search_url(settings: Settings, name: str) -> str:
    return f"{settings.rmp_base_url}/search/professors/{settings.rmp_school_id}?q={quote(name)}"


def needs_enrichment(candidate: ProfileCandidate) -> bool:
    return any(getattr(candidate, f) is None for f in ENRICH_FIELDS)


async def enrich_candidate(
    candidate: ProfileCandidate,
    fetcher: PageFetcher,
    settings: Settings,
) -> None:
    """
    Update ``candidate`` from its profile page.

    Rating figures on the profile page replace the search card's; descriptive
    fields (name, institution, department) are only filled when missing.
    """
    try:
        html = await fetcher.fetch(candidate.profile_url, settings.profile_fetch_timeout)
    except Exception as e:
        logger.warning("Profile fetch failed for %s: %s", candidate.profile_url, e)
        return

    extra = extract_profile(html, institution_hint=settings.rmp_school_name)
    for key, value in extra.items():
        if key in PROFILE_RATING_FIELDS or getattr(candidate, key) is None:
            setattr(candidate, key, value)


async def _lookup(
    name: str,
    include_all: bool,
    cache: ResultCache[ProfileResult],
    fetcher: PageFetcher,
    settings: Settings,
) -> ProfileResult:
    html = await fetcher.fetch(search_url(settings, name), settings.profile_fetch_timeout)
    candidates = extract_candidates(html, settings.rmp_base_url, institution_hint=settings.rmp_school_name)

    pool: List[ProfileCandidate]
    if include_all:
        pool = candidates
    else:
        pool = filter_by_institution(candidates, settings.rmp_school_name)
    logger.info("Professor search for %r: %d results, pool %d", name, len(candidates), len(pool))

    to_enrich = [c for c in pool[:ENRICH_LIMIT] if needs_enrichment(c)]
    if to_enrich:
        await asyncio.gather(*(enrich_candidate(c, fetcher, settings) for c in to_enrich))

    # pool is already filtered by institution
    result = build_result(pool, name, settings.rmp_school_name, include_all)
    cache.set(profile_cache_key(name, include_all), result)
    return result


async def lookup_professor(
    name: Optional[str],
    include_all: bool,
    *,
    cache: ResultCache[ProfileResult],
    fetcher: PageFetcher,
    settings: Settings,
) -> ProfileResult:
    """
    Look up a professor by name, restricted to the configured school unless
    ``include_all`` is set.

    Raises MissingParameterError for a blank name and UpstreamTimeoutError
    when the whole lookup exceeds ``settings.lookup_timeout``. A search page
    without any matching profiles gives a zero-match result.
    """
    name = (name or "").strip()
    if not name:
        raise MissingParameterError("professor name")

    cached = cache.get(profile_cache_key(name, include_all))
    if cached is not None:
        logger.debug("Professor cache hit for %r", name)
        return cached

    return await with_deadline(
        _lookup(name, include_all, cache, fetcher, settings),
        settings.lookup_timeout,
        "rmp:overall",
    )
