"""
Search, filter, sort and autocomplete over an in-memory list of listings.

Every function here is pure: the input sequence is never modified and a new
list is returned.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .models import Listing
from .utils import matches_search, parse_price, parse_size

logger = logging.getLogger(__name__)

# Superlative keywords, longest first so "최저가" is consumed before "최저"
MIN_PRICE_KEYWORDS = (
    "제일 저렴한", "가장 저렴한", "가장 싼", "제일 싼", "가장싼", "제일싼",
    "cheapest", "최저가", "최소가", "lowest", "최저",
)
MAX_PRICE_KEYWORDS = (
    "most expensive", "가장 비싼", "제일 비싼", "가장비싼", "제일비싼",
    "highest", "최고가", "최대가",
)

# Fields a search term may hit
SEARCH_FIELDS = ("complex", "type", "size", "features", "unit", "price")

# Unit glyphs stripped from a term that failed to match as typed ("41평" -> "41")
UNIT_SUFFIXES = ("평", "동", "층", "호", "억", "만")

SORT_OPTIONS = ("price-asc", "price-desc", "size-asc", "size-desc", "recent")

ALL_TYPES = "전체"

_HANGUL = "가-힣"
_BOUNDARIES = [
    (re.compile(rf"([{_HANGUL}])(\d)"), r"\1 \2"),
    (re.compile(rf"([A-Za-z])([{_HANGUL}])"), r"\1 \2"),
    (re.compile(rf"([{_HANGUL}])([A-Za-z])"), r"\1 \2"),
]


def _keyword_pattern(keywords: Iterable[str]) -> "re.Pattern[str]":
    ordered = sorted(keywords, key=len, reverse=True)
    return re.compile("|".join(re.escape(k) for k in ordered), re.IGNORECASE)


_MIN_RE = _keyword_pattern(MIN_PRICE_KEYWORDS)
_MAX_RE = _keyword_pattern(MAX_PRICE_KEYWORDS)


@dataclass
class ParsedQuery:
    """A tokenized free-text query."""
    terms: List[str] = field(default_factory=list)
    want_min: bool = False
    want_max: bool = False


def _insert_spaces(text: str) -> str:
    """
    Split a compact query at script boundaries.

    "매매1단지41평" -> "매매 1단지 41평": a digit run stays with the Korean
    unit that follows it, Latin letters are split from Hangul both ways.
    """
    result = text
    for pattern, replacement in _BOUNDARIES:
        result = pattern.sub(replacement, result)
    return result


def tokenize_query(query: str) -> ParsedQuery:
    """
    Turn raw search input into AND terms plus cheapest/most-expensive flags.

    Superlative keywords are removed from the text before splitting, so
    "최저가 매매" gives terms ["매매"] with want_min set.
    """
    text = query or ""

    want_min = bool(_MIN_RE.search(text))
    if want_min:
        text = _MIN_RE.sub(" ", text)

    want_max = bool(_MAX_RE.search(text))
    if want_max:
        text = _MAX_RE.sub(" ", text)

    text = text.strip()
    if text and not re.search(r"\s", text):
        text = _insert_spaces(text)

    terms = [t for t in re.split(r"\s+", text) if t]
    return ParsedQuery(terms=terms, want_min=want_min, want_max=want_max)


def _strip_unit_suffix(term: str) -> Optional[str]:
    for suffix in UNIT_SUFFIXES:
        if term.endswith(suffix) and len(term) > len(suffix):
            return term[: -len(suffix)]
    return None


def term_matches_listing(listing: Listing, term: str) -> bool:
    """True if the term hits any searchable field, as typed or without its unit."""
    fields = [getattr(listing, name) for name in SEARCH_FIELDS]
    if any(matches_search(value, term) for value in fields):
        return True

    stripped = _strip_unit_suffix(term)
    if stripped is None:
        return False
    return any(matches_search(value, stripped) for value in fields)


def _narrow_to_price(listings: List[Listing], pick) -> List[Listing]:
    prices = [parse_price(x.price) for x in listings]
    target = pick(prices)
    return [x for x, p in zip(listings, prices) if p == target]


def search_listings(listings: Sequence[Listing], query: str) -> List[Listing]:
    """
    Filter listings by a free-text query.

    Every term must match at least one searchable field. Superlative keywords
    then narrow the result to the cheapest and/or most expensive listings;
    when both are asked for, the minimum is applied first and the maximum is
    taken over what remains.
    """
    if not query or not query.strip():
        return list(listings)

    parsed = tokenize_query(query)

    if parsed.terms:
        results = [
            x for x in listings
            if all(term_matches_listing(x, term) for term in parsed.terms)
        ]
    else:
        results = list(listings)

    if len(results) > 1:
        if parsed.want_min:
            results = _narrow_to_price(results, min)
        if parsed.want_max:
            results = _narrow_to_price(results, max)

    logger.debug(
        "search %r: terms=%s min=%s max=%s -> %d/%d",
        query, parsed.terms, parsed.want_min, parsed.want_max, len(results), len(listings)
    )
    return results


def sort_listings(listings: Sequence[Listing], sort_by: str) -> List[Listing]:
    """Return a stably sorted copy. "recent" (and any unknown key) keeps input order."""
    if sort_by == "price-asc":
        return sorted(listings, key=lambda x: parse_price(x.price))
    if sort_by == "price-desc":
        return sorted(listings, key=lambda x: parse_price(x.price), reverse=True)
    if sort_by == "size-asc":
        return sorted(listings, key=lambda x: parse_size(x.size))
    if sort_by == "size-desc":
        return sorted(listings, key=lambda x: parse_size(x.size), reverse=True)
    return list(listings)


def generate_suggestions(listings: Sequence[Listing], query: str, limit: int = 5) -> List[str]:
    """Distinct complex names and types matching the raw query, in listing order."""
    if not query or not query.strip():
        return []

    suggestions: List[str] = []
    for x in listings:
        for value in (x.complex, x.type):
            if value and value not in suggestions and matches_search(value, query):
                suggestions.append(value)
    return suggestions[:limit]


def filter_by_price_range(
    listings: Sequence[Listing],
    min_price: Optional[float] = None,
    max_price: Optional[float] = None
) -> List[Listing]:
    """Keep listings whose parsed price lies within the inclusive bounds."""
    results = []
    for x in listings:
        price = parse_price(x.price)
        if min_price is not None and price < min_price:
            continue
        if max_price is not None and price > max_price:
            continue
        results.append(x)
    return results


def filter_by_size_range(
    listings: Sequence[Listing],
    min_size: Optional[float] = None,
    max_size: Optional[float] = None
) -> List[Listing]:
    """Keep listings whose parsed size lies within the inclusive bounds."""
    results = []
    for x in listings:
        size = parse_size(x.size)
        if min_size is not None and size < min_size:
            continue
        if max_size is not None and size > max_size:
            continue
        results.append(x)
    return results


def filter_by_type(listings: Sequence[Listing], type_: Optional[str]) -> List[Listing]:
    if not type_ or type_ == ALL_TYPES:
        return list(listings)
    return [x for x in listings if x.type == type_]


# Size classes sold as A/B sub-types, and classes listed under either number
_SUBTYPED_SIZES = ("35", "56")
_EQUIVALENT_SIZES = ("47(48)", "48(47)", "47", "48")


def size_in_class(size: str, size_class: str) -> bool:
    """Board dropdown semantics: "35" also matches "35A"/"35B", 47 and 48 are one class."""
    if size_class in _SUBTYPED_SIZES:
        return size.startswith(size_class)
    if size_class in _EQUIVALENT_SIZES:
        return size in _EQUIVALENT_SIZES
    return size == size_class


def filter_by_facets(
    listings: Sequence[Listing],
    type_: Optional[str] = None,
    complex_: Optional[str] = None,
    size: Optional[str] = None
) -> List[Listing]:
    """Apply the board's dropdown filters: type, complex name and size class."""
    results = filter_by_type(listings, type_)
    if complex_:
        results = [x for x in results if complex_ in x.complex]
    if size:
        results = [x for x in results if size_in_class(x.size, size)]
    return results


def board_view(
    listings: Sequence[Listing],
    query: str = "",
    sort_by: str = "recent",
    type_: Optional[str] = None,
    complex_: Optional[str] = None,
    size: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_size: Optional[float] = None,
    max_size: Optional[float] = None
) -> List[Listing]:
    """Full board pipeline: dropdown facets, ranges, free-text search, then sort."""
    results = filter_by_facets(listings, type_=type_, complex_=complex_, size=size)
    results = filter_by_price_range(results, min_price, max_price)
    results = filter_by_size_range(results, min_size, max_size)
    results = search_listings(results, query)
    return sort_listings(results, sort_by)
