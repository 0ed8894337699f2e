"""
Yeoyeo listing board engine
"""
from .models import Listing
from .search import (
    ParsedQuery,
    SORT_OPTIONS,
    board_view,
    filter_by_facets,
    filter_by_price_range,
    filter_by_size_range,
    filter_by_type,
    generate_suggestions,
    search_listings,
    sort_listings,
    tokenize_query
)
from .history import JsonFileStorage, SearchHistory
from .sheets import (
    DEFAULT_LISTINGS,
    FALLBACK_CSV,
    SheetSchemaError,
    looks_like_csv,
    looks_like_html,
    parse_listings_csv
)
from .source import ListingBoard, ListingSource
from .utils import get_chosung, init_logger, matches_search, parse_price, parse_size

__version__ = "1.0.0"

__all__ = [
    "Listing",
    "ParsedQuery",
    "SORT_OPTIONS",
    "board_view",
    "filter_by_facets",
    "filter_by_price_range",
    "filter_by_size_range",
    "filter_by_type",
    "generate_suggestions",
    "search_listings",
    "sort_listings",
    "tokenize_query",
    "JsonFileStorage",
    "SearchHistory",
    "DEFAULT_LISTINGS",
    "FALLBACK_CSV",
    "SheetSchemaError",
    "looks_like_csv",
    "looks_like_html",
    "parse_listings_csv",
    "ListingBoard",
    "ListingSource",
    "get_chosung",
    "init_logger",
    "matches_search",
    "parse_price",
    "parse_size"
]
