"""
Picks the best professor profile out of a page of candidates.
"""
from typing import List, Sequence

from models import ProfileCandidate, ProfileResult


def filter_by_institution(
    candidates: Sequence[ProfileCandidate],
    institution: str,
) -> List[ProfileCandidate]:
    """
    Keep candidates at ``institution`` (case-insensitive substring match).
    Falls back to every candidate when none match.
    """
    target = (institution or "").strip().lower()
    if not target:
        return list(candidates)
    matching = [c for c in candidates if c.institution and target in c.institution.lower()]
    return matching or list(candidates)


def match_score(candidate: ProfileCandidate, query: str) -> int:
    name = (candidate.name or "").lower()
    query = (query or "").strip().lower()

    score = 0
    if query:
        if name == query:
            score += 3
        if name.startswith(query):
            score += 2
        if query in name:
            score += 1

    count = candidate.rating_count or 0
    score += min(2, count // 10)
    if count > 0:
        score += 1
    return score


def rank_candidates(candidates: Sequence[ProfileCandidate], query: str) -> List[ProfileCandidate]:
    # sorted() is stable, so equal scores keep page order
    return sorted(candidates, key=lambda c: match_score(c, query), reverse=True)


def disambiguate(
    candidates: Sequence[ProfileCandidate],
    query: str,
    institution: str,
    include_all: bool,
) -> ProfileResult:
    pool = list(candidates) if include_all else filter_by_institution(candidates, institution)
    return build_result(pool, query, institution, include_all)


def build_result(
    pool: Sequence[ProfileCandidate],
    query: str,
    institution: str,
    include_all: bool,
) -> ProfileResult:
    """Rank an already-filtered pool into a ProfileResult."""
    ranked = rank_candidates(pool, query)
    if not ranked:
        return ProfileResult(institution_name=institution, include_all_institutions=include_all)
    return ProfileResult(
        institution_name=institution,
        include_all_institutions=include_all,
        top_candidate=ranked[0],
        other_candidates=ranked[1:],
    )
