"""
Reddit search client and the concurrent per-forum discussion search.

RedditSearchClient talks to Reddit's OAuth API when app credentials are
configured and falls back to the public search.json listing otherwise.
search_discussions fans a query out over several subreddits, isolates
per-forum failures, and returns a filtered, ranked result list.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from async_utils import UpstreamError, with_deadline
from config import Settings
from models import DiscussionPost, ScoredPost
from relevance import rank_posts, title_mentions_course

logger = logging.getLogger(__name__)

PUBLIC_BASE_URL = "https://www.reddit.com"
OAUTH_BASE_URL = "https://oauth.reddit.com"
TOKEN_URL = "https://www.reddit.com/api/v1/access_token"


class DiscussionSearch(Protocol):
    async def search(
        self,
        forum: str,
        query: str,
        sort: str = "new",
        time_window: str = "year",
        limit: int = 25,
    ) -> List[DiscussionPost]:
        ...


def _create_client(user_agent: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": user_agent},
        timeout=httpx.Timeout(10.0, connect=5.0),
        follow_redirects=True,
    )


def _bare_forum(forum: str) -> str:
    forum = forum.strip()
    return forum[2:] if forum.lower().startswith("r/") else forum


def parse_listing(payload: Dict[str, Any], forum: str) -> List[DiscussionPost]:
    """Map a Reddit listing response onto DiscussionPost records."""
    posts: List[DiscussionPost] = []
    children = (payload.get("data") or {}).get("children") or []
    for child in children:
        data = child.get("data") or {}
        created = data.get("created_utc")
        if not data.get("id") or created is None:
            continue
        posts.append(
            DiscussionPost(
                id=str(data["id"]),
                forum_name=f"r/{forum}",
                title=data.get("title") or "",
                url=f"{PUBLIC_BASE_URL}{data.get('permalink', '')}",
                score=int(data.get("score") or 0),
                comment_count=int(data.get("num_comments") or 0),
                created_utc=float(created),
            )
        )
    return posts


class RedditSearchClient:
    """Subreddit search over httpx. Use as an async context manager or call aclose()."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = http_client or _create_client(settings.reddit_user_agent)
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def authenticated(self) -> bool:
        return bool(self.settings.reddit_client_id and self.settings.reddit_client_secret)

    async def __aenter__(self) -> "RedditSearchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _access_token(self) -> str:
        async with self._token_lock:
            # Refresh a minute early so a token never expires mid-request
            if self._token and time.time() < self._token_expires_at - 60:
                return self._token

            s = self.settings
            if s.reddit_username and s.reddit_password:
                data = {"grant_type": "password", "username": s.reddit_username, "password": s.reddit_password}
            else:
                data = {"grant_type": "client_credentials"}

            resp = await self._client.post(
                TOKEN_URL,
                data=data,
                auth=(s.reddit_client_id or "", s.reddit_client_secret or ""),
            )
            if resp.status_code != 200:
                raise UpstreamError(f"Reddit token request failed with HTTP {resp.status_code}")
            body = resp.json()
            token = body.get("access_token")
            if not token:
                raise UpstreamError(f"Reddit token response had no access_token: {body.get('error')}")
            self._token = token
            self._token_expires_at = time.time() + float(body.get("expires_in", 3600))
            return token

    async def search(
        self,
        forum: str,
        query: str,
        sort: str = "new",
        time_window: str = "year",
        limit: int = 25,
    ) -> List[DiscussionPost]:
        forum = _bare_forum(forum)
        params = {
            "q": query,
            "restrict_sr": "1",
            "sort": sort,
            "t": time_window,
            "limit": str(limit),
            "raw_json": "1",
        }
        if self.authenticated:
            token = await self._access_token()
            url = f"{OAUTH_BASE_URL}/r/{forum}/search"
            headers = {"Authorization": f"bearer {token}"}
        else:
            url = f"{PUBLIC_BASE_URL}/r/{forum}/search.json"
            headers = {}

        try:
            resp = await self._client.get(url, params=params, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamError(f"Reddit search failed for r/{forum}: {e}") from e
        return parse_listing(resp.json(), forum)


async def _search_one(
    client: DiscussionSearch,
    forum: str,
    query: str,
    limit: int,
    timeout: float,
) -> List[DiscussionPost]:
    try:
        return await with_deadline(
            client.search(forum, query, sort="new", time_window="year", limit=limit),
            timeout,
            f"search:{forum}",
        )
    except Exception as e:
        logger.warning("Forum search failed for %s: %s", forum, e)
        return []


async def search_discussions(
    client: DiscussionSearch,
    forums: Sequence[str],
    query: str,
    variants: Sequence[str],
    after_ts: float,
    limit: int,
    per_call_timeout: float = 4.0,
    now: Optional[float] = None,
) -> List[ScoredPost]:
    """
    Search every forum concurrently and return at most ``limit`` ranked posts.

    A forum that errors or times out contributes nothing; the others are
    still returned. Posts created before ``after_ts`` and posts whose title
    does not mention the course are dropped before ranking.
    """
    forums = list(dict.fromkeys(_bare_forum(f) for f in forums if f.strip()))
    nested = await asyncio.gather(
        *(_search_one(client, forum, query, limit, per_call_timeout) for forum in forums)
    )

    results = [post for batch in nested for post in batch]
    results = [p for p in results if p.created_utc >= after_ts]
    results = [p for p in results if title_mentions_course(p.title, variants)]
    logger.debug("Forum search kept %d posts across %d forums", len(results), len(forums))

    return rank_posts(results, variants, now=now)[: max(0, limit)]
