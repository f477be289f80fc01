"""
Records passed between the discussion and professor pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DiscussionPost:
    id: str
    forum_name: str  # e.g. "r/Concordia"
    title: str
    url: str
    score: int
    comment_count: int
    created_utc: float

    @property
    def created_iso(self) -> str:
        return datetime.fromtimestamp(self.created_utc, tz=timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_iso"] = self.created_iso
        return data


@dataclass(frozen=True)
class ScoredPost:
    post: DiscussionPost
    relevance: float

    def to_dict(self) -> Dict[str, Any]:
        data = self.post.to_dict()
        data["relevance"] = self.relevance
        return data


@dataclass
class ProfileCandidate:
    profile_url: str
    name: Optional[str] = None
    institution: Optional[str] = None
    department: Optional[str] = None
    quality_score: Optional[float] = None
    difficulty_score: Optional[float] = None
    would_take_again_pct: Optional[float] = None
    rating_count: Optional[int] = None
    raw_block_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "institution": self.institution,
            "department": self.department,
            "qualityScore": self.quality_score,
            "difficultyScore": self.difficulty_score,
            "wouldTakeAgainPct": self.would_take_again_pct,
            "ratingCount": self.rating_count,
            "profileUrl": self.profile_url,
            "rawBlockText": self.raw_block_text,
        }


# Field names the extraction strategies are allowed to fill.
PROFILE_FIELDS = (
    "name",
    "institution",
    "department",
    "quality_score",
    "difficulty_score",
    "would_take_again_pct",
    "rating_count",
)


@dataclass
class ProfileResult:
    institution_name: str
    include_all_institutions: bool
    top_candidate: Optional[ProfileCandidate] = None
    other_candidates: List[ProfileCandidate] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        if self.top_candidate is None:
            return 0
        return 1 + len(self.other_candidates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matchCount": self.match_count,
            "topCandidate": self.top_candidate.to_dict() if self.top_candidate else None,
            "otherCandidates": [c.to_dict() for c in self.other_candidates],
            "institutionName": self.institution_name,
            "includeAllInstitutions": self.include_all_institutions,
        }
