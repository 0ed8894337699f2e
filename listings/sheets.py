"""
Spreadsheet CSV ingestion: the fixed column layout of the listings sheet,
row parsing, header validation and the hardcoded fallback data.
"""
import logging
from typing import Iterable, List, Sequence

from .models import Listing

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "unicity"
MIN_COLUMNS = 11

# The sheet starts with a blank column; positions below are fixed
COL_COMPLEX = 1
COL_UNIT = 2
COL_TYPE = 3
COL_PRICE = 4
COL_SIZE = 5
COL_SIZE_ALT = 6
COL_FEATURES = 9

SHEET_COLUMNS = [
    "", "단지명", "동", "종류", "가격", "평형", "공급평형",
    "층", "향", "매물특징", "비고", "완료",
]

# Header labels accepted at the positions the mapping depends on
HEADER_CONTRACT = {
    COL_COMPLEX: ("단지명", "단지", "complex"),
    COL_TYPE: ("종류", "거래유형", "유형", "type"),
    COL_PRICE: ("가격", "금액", "price"),
}

HTML_MARKERS = ("<!doctype", "<html")


class SheetSchemaError(ValueError):
    """Header row does not match the documented column layout."""


def looks_like_html(text: str) -> bool:
    """True if an upstream served a login/consent/error page instead of data."""
    lowered = (text or "").lower()
    return any(marker in lowered for marker in HTML_MARKERS)


def looks_like_csv(text: str) -> bool:
    """Plausible CSV: no HTML markers and at least two comma-separated lines."""
    if not text or looks_like_html(text):
        return False
    comma_lines = sum(1 for line in text.splitlines() if "," in line)
    return comma_lines >= 2


def parse_csv_line(line: str) -> List[str]:
    """
    Split one CSV line on commas, honoring double-quoted fields.

    A quote toggles quoted mode and is dropped; fields are trimmed.
    """
    result = []
    current = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    result.append("".join(current).strip())
    return result


def _normalize_label(label: str) -> str:
    return "".join(label.split()).lower()


def validate_header(header: Sequence[str]) -> None:
    """Raise SheetSchemaError if a labelled contract column carries an unexpected name."""
    for index, aliases in HEADER_CONTRACT.items():
        label = _normalize_label(header[index]) if index < len(header) else ""
        if not label:
            continue
        if label not in {_normalize_label(a) for a in aliases}:
            raise SheetSchemaError(
                f"Unexpected header at column {index}: {header[index]!r} "
                f"(expected one of {', '.join(aliases)})"
            )


def row_to_listing(values: Sequence[str]):
    """Map one parsed sheet row to a Listing, or None if it is unusable."""
    if len(values) < MIN_COLUMNS:
        return None

    size = values[COL_SIZE] or values[COL_SIZE_ALT]
    listing = Listing(
        complex=values[COL_COMPLEX],
        unit=values[COL_UNIT],
        type=values[COL_TYPE],
        price=values[COL_PRICE],
        size=size.replace("평", "").strip(),
        features=values[COL_FEATURES],
        category=DEFAULT_CATEGORY,
    )
    if not listing.complex or not listing.type:
        return None
    return listing


def parse_listings_csv(csv_text: str, validate: bool = True) -> List[Listing]:
    """
    Parse the listings sheet export.

    Row 0 is the header. Short rows and rows without a complex name or type
    are skipped; they never abort the batch.
    """
    lines = (csv_text or "").splitlines()
    if not lines:
        return []

    if validate:
        validate_header(parse_csv_line(lines[0]))

    listings = []
    skipped = 0
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue
        listing = row_to_listing(parse_csv_line(line))
        if listing is None:
            skipped += 1
            continue
        listings.append(listing)

    if skipped:
        logger.debug(f"Skipped {skipped} unusable sheet rows")
    return listings


def listing_to_row(listing: Listing) -> List[str]:
    """Lay a Listing out in the sheet's fixed column order."""
    row = [""] * len(SHEET_COLUMNS)
    row[COL_COMPLEX] = listing.complex
    row[COL_UNIT] = listing.unit
    row[COL_TYPE] = listing.type
    row[COL_PRICE] = listing.price
    row[COL_SIZE] = listing.size
    row[COL_FEATURES] = listing.features
    row[-1] = "FALSE"
    return row


def listing_rows(listings: Iterable[Listing]) -> List[List[str]]:
    return [listing_to_row(x) for x in listings]


DEFAULT_LISTINGS = (
    Listing(type="매매", complex="유니시티 4단지", size="35A", unit="405동 고층",
            price="8억 5,000", features="남향, 공원뷰, 풀옵션", category=DEFAULT_CATEGORY),
    Listing(type="매매", complex="유니시티 3단지", size="41", unit="301동 중층",
            price="10억 2,000", features="코너, 조망 우수, 올수리", category=DEFAULT_CATEGORY),
    Listing(type="전세", complex="유니시티 1단지", size="30", unit="110동 로얄층",
            price="5억 8,000", features="역세권, 채광 좋음", category=DEFAULT_CATEGORY),
    Listing(type="월세", complex="유니시티 어반브릭스", size="15", unit="1층 코너",
            price="5,000/250", features="유동인구 많음", category=DEFAULT_CATEGORY),
    Listing(type="매매", complex="힐스테이트 에비뉴", size="25", unit="A동 15층",
            price="3억 2,000", features="풀퍼니시드, 업무 최적", category=DEFAULT_CATEGORY),
)

FALLBACK_CSV = """,단지명,동,종류,가격,평형,공급평형,층,향,매물특징,비고,완료
,유니시티 4단지,405동 고층,매매,"8억 5,000",35A,,,,"남향, 공원뷰, 풀옵션",,FALSE
,유니시티 3단지,301동 중층,매매,"10억 2,000",41평,,,,"코너, 조망 우수, 올수리",,FALSE
,유니시티 1단지,110동 로얄층,전세,"5억 8,000",,30평,,,"역세권, 채광 좋음",,FALSE
,유니시티 어반브릭스,1층 코너,월세,"5,000/250",15평,,,,유동인구 많음,,FALSE
,힐스테이트 에비뉴,A동 15층,매매,"3억 2,000",25,,,,"풀퍼니시드, 업무 최적",,FALSE
"""


def default_listings() -> List[Listing]:
    return list(DEFAULT_LISTINGS)
