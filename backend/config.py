"""
Runtime configuration for Campus Pulse.

Values come from the environment (a local .env file is loaded first), with
defaults that match the Concordia deployment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _split_forums(raw: str) -> List[str]:
    """Parse 'r/Concordia, r/mcgill' into bare forum names."""
    forums = []
    for part in raw.split(","):
        name = part.strip()
        if name.lower().startswith("r/"):
            name = name[2:]
        if name:
            forums.append(name)
    return forums


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    subreddits: List[str] = field(default_factory=lambda: ["Concordia"])
    reddit_user_agent: str = "campus-pulse/0.1 (dev)"
    reddit_client_id: Optional[str] = None
    reddit_client_secret: Optional[str] = None
    reddit_username: Optional[str] = None
    reddit_password: Optional[str] = None

    rmp_base_url: str = "https://www.ratemyprofessors.com"
    rmp_school_id: str = "18443"
    rmp_school_name: str = "Concordia University"

    # seconds
    forum_search_timeout: float = 4.0
    search_timeout: float = 6.0
    profile_fetch_timeout: float = 10.0
    lookup_timeout: float = 20.0
    profile_cache_ttl: float = 24 * 60 * 60

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 4000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            subreddits=_split_forums(os.getenv("SUBREDDITS", "r/Concordia")),
            reddit_user_agent=os.getenv("REDDIT_USER_AGENT", "campus-pulse/0.1 (dev)"),
            reddit_client_id=os.getenv("REDDIT_CLIENT_ID") or None,
            reddit_client_secret=os.getenv("REDDIT_CLIENT_SECRET") or None,
            reddit_username=os.getenv("REDDIT_USERNAME") or None,
            reddit_password=os.getenv("REDDIT_PASSWORD") or None,
            rmp_base_url=os.getenv("RMP_BASE_URL", "https://www.ratemyprofessors.com").rstrip("/"),
            rmp_school_id=os.getenv("RMP_SCHOOL_ID", "18443"),
            rmp_school_name=os.getenv("RMP_SCHOOL_NAME", "Concordia University"),
            forum_search_timeout=_float_env("FORUM_SEARCH_TIMEOUT", 4.0),
            search_timeout=_float_env("SEARCH_TIMEOUT", 6.0),
            profile_fetch_timeout=_float_env("PROFILE_FETCH_TIMEOUT", 10.0),
            lookup_timeout=_float_env("LOOKUP_TIMEOUT", 20.0),
            profile_cache_ttl=_float_env("PROFILE_CACHE_TTL", 24 * 60 * 60),
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "4000")),
        )
