"""
Professor profile extraction from RateMyProfessors HTML.

Every field is resolved through the same cascade of strategies:

1. embedded JSON (relay store / __NEXT_DATA__ / JSON script tags)
2. DOM heuristics (rating-widget class names, labelled values)
3. regexes over the normalized page text

Each strategy is a pure function of a ProfileDocument returning only the
fields it could resolve. merge_first_wins combines them so that a field set by
an earlier strategy is never overwritten by a later one.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from models import PROFILE_FIELDS, ProfileCandidate

logger = logging.getLogger(__name__)

MAX_JSON_DEPTH = 64

QUALITY_KEYS = ("avgRating", "overallRating", "averageRating", "avgQuality")
DIFFICULTY_KEYS = ("avgDifficulty", "averageDifficulty", "difficultyRating")
WOULD_TAKE_AGAIN_KEYS = ("wouldTakeAgainPercent", "wouldTakeAgainPercentRounded", "wouldTakeAgain")
RATING_COUNT_KEYS = ("numRatings", "ratingCount", "ratingsCount")
RATING_KEYS = frozenset(QUALITY_KEYS + DIFFICULTY_KEYS + WOULD_TAKE_AGAIN_KEYS + RATING_COUNT_KEYS)

ANCHOR_SELECTORS = [
    'a[href^="/professor/"]',
    '[data-testid*="search"] a[href*="/professor/"]',
    '[class*="Card"] a[href*="/professor/"]',
    'article a[href*="/professor/"]',
    'a[href*="/professor/"]',
]

KNOWN_DEPARTMENTS = [
    "Computer Science", "Mathematics", "Engineering", "Biology", "Chemistry",
    "Physics", "Statistics", "Business", "Finance", "Accounting", "Marketing",
    "Psychology", "Sociology", "Philosophy", "History", "Political Science",
    "Fine Arts", "Anthropology", "Film", "Social Sciences", "Social Science",
]


# ---------- Text and number helpers ----------

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def normalize_text(text: Optional[str]) -> str:
    s = (text or "").replace("\u00a0", " ")
    s = _ZERO_WIDTH.sub("", s)
    return re.sub(r"\s+", " ", s).strip()


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        m = _NUMBER.search(value)
        return float(m.group(0)) if m else None
    return None


def clean_rating(value: Any) -> Optional[float]:
    """Quality/difficulty on the 0-5 scale; anything else is unknown."""
    number = _to_float(value)
    if number is None or not 0 <= number <= 5:
        return None
    return number


def clean_percent(value: Any) -> Optional[float]:
    """0-100 percentage. Negative values are the source's 'no data' sentinel."""
    number = _to_float(value)
    if number is None or not 0 <= number <= 100:
        return None
    return number


def clean_count(value: Any) -> Optional[int]:
    number = _to_float(value)
    if number is None or number < 0:
        return None
    return int(number)


def clean_department(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    s = normalize_text(value)
    s = re.sub(r"^professor\s+in\s+the\s+", "", s, flags=re.I)
    s = re.sub(r"\s+department$", "", s, flags=re.I)
    return s or None


def _clean_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return normalize_text(value) or None


def _compact(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


# ---------- Document ----------

@dataclass
class ProfileDocument:
    """One page, or one search-result block scoped out of a page."""
    root: Tag
    text: str
    payloads: List[Any] = field(default_factory=list)
    institution_hint: Optional[str] = None
    # Set for search-result blocks: only JSON objects for this profile apply.
    profile_id: Optional[str] = None
    scoped: bool = False


_ASSIGNMENT = re.compile(r"window\.(__[A-Z0-9_]+__)\s*=\s*")


def embedded_json_payloads(soup: BeautifulSoup) -> List[Any]:
    payloads: List[Any] = []
    decoder = json.JSONDecoder()
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        if not text.strip():
            continue
        script_type = (script.get("type") or "").lower()
        if script.get("id") == "__NEXT_DATA__" or script_type in ("application/json", "application/ld+json"):
            try:
                payloads.append(json.loads(text))
            except ValueError:
                logger.debug("Skipping unparseable JSON script block")
            continue
        for m in _ASSIGNMENT.finditer(text):
            try:
                value, _ = decoder.raw_decode(text, m.end())
            except ValueError:
                logger.debug("Skipping unparseable %s assignment", m.group(1))
                continue
            payloads.append(value)
    return payloads


def parse_document(html: str, institution_hint: Optional[str] = None) -> ProfileDocument:
    soup = BeautifulSoup(html or "", "lxml")
    payloads = embedded_json_payloads(soup)
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return ProfileDocument(
        root=soup,
        text=normalize_text(soup.get_text(" ")),
        payloads=payloads,
        institution_hint=institution_hint,
    )


# ---------- Strategy 1: embedded JSON ----------

def iter_json_objects(root: Any, max_depth: int = MAX_JSON_DEPTH) -> Iterator[Dict[str, Any]]:
    """Depth-first, pre-order walk over nested dicts/lists without recursion."""
    stack: List[Tuple[Any, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            yield node
            children = list(node.values())
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth >= max_depth:
            continue
        for child in reversed(children):
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))


def _first_value(obj: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if obj.get(key) is not None:
            return obj[key]
    return None


def _matches_profile(obj: Dict[str, Any], profile_id: str) -> bool:
    return any(str(obj.get(key)) == profile_id for key in ("legacyId", "id") if obj.get(key) is not None)


def find_rating_object(
    payloads: Sequence[Any],
    profile_id: Optional[str] = None,
) -> Tuple[Optional[Dict[str, Any]], Any]:
    """
    Return (rating-shaped object, payload it came from).

    A ``Teacher`` node wins over any other rating-shaped object, since
    review nodes in the relay store also carry per-review ratings.
    """
    fallback: Tuple[Optional[Dict[str, Any]], Any] = (None, None)
    for payload in payloads:
        for obj in iter_json_objects(payload):
            if not RATING_KEYS.intersection(obj):
                continue
            if profile_id is not None and not _matches_profile(obj, profile_id):
                continue
            if obj.get("__typename") == "Teacher":
                return obj, payload
            if fallback[0] is None:
                fallback = (obj, payload)
    return fallback


def _resolve_ref(value: Any, payload: Any) -> Any:
    if isinstance(value, dict) and "__ref" in value and isinstance(payload, dict):
        return payload.get(value["__ref"])
    return value


def embedded_json_fields(doc: ProfileDocument) -> Dict[str, Any]:
    if doc.scoped and doc.profile_id is None:
        return {}
    obj, payload = find_rating_object(doc.payloads, doc.profile_id)
    if obj is None:
        return {}

    name = None
    first, last = _clean_str(obj.get("firstName")), _clean_str(obj.get("lastName"))
    if first or last:
        name = " ".join(p for p in (first, last) if p)
    elif isinstance(obj.get("name"), str):
        name = _clean_str(obj["name"])

    school = _resolve_ref(obj.get("school"), payload)
    institution = _clean_str(school.get("name")) if isinstance(school, dict) else _clean_str(school)

    return _compact({
        "name": name,
        "institution": institution,
        "department": clean_department(obj.get("department")),
        "quality_score": clean_rating(_first_value(obj, QUALITY_KEYS)),
        "difficulty_score": clean_rating(_first_value(obj, DIFFICULTY_KEYS)),
        "would_take_again_pct": clean_percent(_first_value(obj, WOULD_TAKE_AGAIN_KEYS)),
        "rating_count": clean_count(_first_value(obj, RATING_COUNT_KEYS)),
    })


# ---------- Strategy 2: DOM heuristics ----------

_CLASS_PATTERNS = {
    "name": re.compile(r"CardName__StyledCardName|NameTitle__Name"),
    "institution": re.compile(r"CardSchool__School"),
    "department": re.compile(r"CardSchool__Department|TeacherDepartment__StyledDepartmentLink"),
    "quality_score": re.compile(r"CardNumRating__CardNumRatingNumber|RatingValue__Numerator"),
    "rating_count": re.compile(r"CardNumRating__CardNumRatingCount|RatingValue__NumRatings"),
}

_RATING_IN_TEXT = re.compile(r"(?<![\d.])(\d(?:\.\d)?)(?![\d.%])")
_PERCENT_IN_TEXT = re.compile(r"(?<![\d.])(-?\d{1,3}(?:\.\d+)?)\s*%")


def _first_rating(text: str) -> Optional[float]:
    for m in _RATING_IN_TEXT.finditer(text):
        value = clean_rating(m.group(1))
        if value is not None:
            return value
    return None


def _first_percent(text: str) -> Optional[float]:
    m = _PERCENT_IN_TEXT.search(text)
    return clean_percent(m.group(1)) if m else None


_LABELS: Dict[str, Tuple[re.Pattern, Callable[[str], Any]]] = {
    "difficulty_score": (re.compile(r"level\s+of\s+difficulty", re.I), _first_rating),
    "would_take_again_pct": (re.compile(r"would\s+take\s+again", re.I), _first_percent),
}


def _find_by_class(scope: Tag, pattern: re.Pattern) -> Optional[Tag]:
    return scope.find(class_=lambda c: bool(c) and bool(pattern.search(c)))


def _labelled_value(scope: Tag, label: re.Pattern, parse: Callable[[str], Any]) -> Any:
    for node in scope.find_all(string=label):
        container = node.parent
        # The value sits in the label's own element or one level up.
        for _ in range(2):
            if container is None:
                break
            text = label.sub(" ", normalize_text(container.get_text(" ")))
            value = parse(text)
            if value is not None:
                return value
            container = container.parent
    return None


def dom_fields(doc: ProfileDocument) -> Dict[str, Any]:
    scope = doc.root
    found: Dict[str, Any] = {}

    for name, pattern in _CLASS_PATTERNS.items():
        el = _find_by_class(scope, pattern)
        if el is None:
            continue
        text = normalize_text(el.get_text(" "))
        if name == "quality_score":
            found[name] = _first_rating(text)
        elif name == "rating_count":
            found[name] = clean_count(text)
        elif name == "department":
            found[name] = clean_department(text)
        else:
            found[name] = text or None

    if found.get("institution") is None:
        school_link = scope.select_one('a[href*="/school/"]')
        if school_link is not None:
            found["institution"] = _clean_str(school_link.get_text(" "))

    for name, (label, parse) in _LABELS.items():
        found[name] = _labelled_value(scope, label, parse)

    return _compact(found)


# ---------- Strategy 3: free-text regexes ----------

_QUALITY_PATTERNS = [
    re.compile(r"QUALITY\s*(\d(?:\.\d)?)(?![\d%])", re.I),
    re.compile(r"Overall\s+Quality\s+Based\s+on\s+\d+\s+ratings?\s*(\d(?:\.\d)?)(?![\d%])", re.I),
    re.compile(r"(?<![\d.])(\d(?:\.\d)?)\s*/\s*5\b"),
    re.compile(r"(?<![\d.])(\d(?:\.\d)?)\s+out\s+of\s+5\b", re.I),
]
_DIFFICULTY_PATTERNS = [
    re.compile(r"level\s*of\s*difficulty\s*[:\s]*(\d(?:\.\d)?)(?![\d%])", re.I),
    re.compile(r"(?<![\d.])(\d(?:\.\d)?)\s*level\s*of\s*difficulty", re.I),
    re.compile(r"difficulty\s*[:\s]*(\d(?:\.\d)?)(?![\d%])", re.I),
]
_WOULD_TAKE_AGAIN_PATTERNS = [
    re.compile(r"(?<![\d.])(-?\d{1,3}(?:\.\d+)?)\s*%\s*would\s*take\s*again", re.I),
    re.compile(r"would\s*take\s*again\s*[:\s]+(-?\d{1,3}(?:\.\d+)?)\s*%", re.I),
]
_COUNT_PATTERNS = [
    re.compile(r"Based\s+on\s+(\d+)\s+ratings?", re.I),
    re.compile(r"(?<![\d.])(\d+)\s*ratings?\b", re.I),
]
_DEPARTMENT_PATTERNS = [
    re.compile(r"\bin\s+the\s+([A-Za-z &'-]+?)\s+department\b", re.I),
    re.compile(r"\b(" + "|".join(re.escape(d) for d in KNOWN_DEPARTMENTS) + r")\b", re.I),
]
_INSTITUTION_PATTERN = re.compile(
    r"\b(University\s+of(?:\s+[A-Z][\w'&-]+){1,2}|[A-Z][\w.'&-]+\s+University)\b"
)


def _first_match(patterns: Sequence[re.Pattern], text: str, clean: Callable[[Any], Any]) -> Any:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            value = clean(m.group(1))
            if value is not None:
                return value
    return None


def text_fields(doc: ProfileDocument) -> Dict[str, Any]:
    text = doc.text
    institution = None
    hint = doc.institution_hint
    if hint and hint.lower() in text.lower():
        institution = hint
    else:
        m = _INSTITUTION_PATTERN.search(text)
        institution = m.group(1) if m else None

    return _compact({
        "institution": institution,
        "department": _first_match(_DEPARTMENT_PATTERNS, text, clean_department),
        "quality_score": _first_match(_QUALITY_PATTERNS, text, clean_rating),
        "difficulty_score": _first_match(_DIFFICULTY_PATTERNS, text, clean_rating),
        "would_take_again_pct": _first_match(_WOULD_TAKE_AGAIN_PATTERNS, text, clean_percent),
        "rating_count": _first_match(_COUNT_PATTERNS, text, clean_count),
    })


# ---------- Cascade ----------

STRATEGIES: Tuple[Callable[[ProfileDocument], Dict[str, Any]], ...] = (
    embedded_json_fields,
    dom_fields,
    text_fields,
)


def merge_first_wins(*partials: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for partial in partials:
        for key in PROFILE_FIELDS:
            if merged.get(key) is None and partial.get(key) is not None:
                merged[key] = partial[key]
    return merged


def run_cascade(doc: ProfileDocument) -> Dict[str, Any]:
    return merge_first_wins(*(strategy(doc) for strategy in STRATEGIES))


def extract_profile(html: str, institution_hint: Optional[str] = None) -> Dict[str, Any]:
    """Extract whatever profile fields one profile page exposes."""
    return run_cascade(parse_document(html, institution_hint))


# ---------- Search results pages ----------

def guess_name(text: str) -> Optional[str]:
    s = normalize_text(text)
    s = re.sub(r"^QUALITY\s*[\d.]+\s*", "", s, flags=re.I)
    s = re.sub(r"^\d+\s*ratings?\s*", "", s, flags=re.I)
    s = re.sub(r"^[0-9.]+\s*", "", s)
    m = re.match(r"^[A-Za-z][A-Za-z.'-]+(?:\s+[A-Za-z][A-Za-z.'-]+){1,3}", s)
    if m:
        return m.group(0)
    return s or None


def _has_card_class(el: Tag) -> bool:
    return any("Card" in c for c in (el.get("class") or []))


_BLOCK_TESTS: List[Callable[[Tag], bool]] = [
    lambda el: el.name == "article",
    _has_card_class,
    lambda el: el.name == "section",
    lambda el: el.name == "div",
]


def block_for_anchor(anchor: Tag) -> Tag:
    """Closest structural container of a result anchor (the anchor itself counts)."""
    chain = [anchor] + [p for p in anchor.parents if isinstance(p, Tag) and p.name != "[document]"]
    for test in _BLOCK_TESTS:
        for el in chain:
            if test(el):
                return el
    return anchor


def _profile_id(href: str) -> Optional[str]:
    m = re.search(r"/professor/(?:show\.jsp\?tid=)?(\d+)", href)
    return m.group(1) if m else None


def extract_candidates(
    html: str,
    base_url: str,
    institution_hint: Optional[str] = None,
) -> List[ProfileCandidate]:
    """One candidate per distinct profile link on a search results page."""
    page = parse_document(html, institution_hint)
    seen = set()
    candidates: List[ProfileCandidate] = []

    for selector in ANCHOR_SELECTORS:
        for anchor in page.root.select(selector):
            href = (anchor.get("href") or "").strip()
            if "/professor/" not in href:
                continue
            url = urljoin(base_url.rstrip("/") + "/", href)
            if url in seen:
                continue
            seen.add(url)

            block = block_for_anchor(anchor)
            block_text = normalize_text(block.get_text(" "))
            doc = ProfileDocument(
                root=block,
                text=block_text,
                payloads=page.payloads,
                institution_hint=institution_hint,
                profile_id=_profile_id(href),
                scoped=True,
            )
            fields = run_cascade(doc)
            if not fields.get("name"):
                fields["name"] = guess_name(anchor.get_text(" ") or block_text)

            candidates.append(ProfileCandidate(profile_url=url, raw_block_text=block_text, **fields))

    logger.debug("Extracted %d candidates", len(candidates))
    return candidates
