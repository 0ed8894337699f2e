"""
Utility functions for Korean text matching, price/size parsing, and logging.
"""
import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _level(name: Optional[str], default: int) -> int:
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else default


def init_logger(
    name: str = "listings",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "listings.log"
) -> logging.Logger:
    """
    Configure the package logger that every ``listings.*`` module reports through.

    Handlers from an earlier call are closed and replaced, so running the CLI
    twice in one process changes levels instead of duplicating output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [(logging.StreamHandler(), _level(console_level, logging.INFO))]
    if log_file:
        handlers.append((logging.FileHandler(log_file, encoding="utf-8"), _level(file_level, logging.DEBUG)))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler, level in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


# Hangul syllables block: U+AC00..U+D7A3, 588 syllables per leading consonant
HANGUL_BASE = 0xAC00
HANGUL_COUNT = 11172
CHOSUNG_SPAN = 588
CHOSUNG_LIST = [
    "ㄱ", "ㄲ", "ㄴ", "ㄷ", "ㄸ", "ㄹ", "ㅁ", "ㅂ", "ㅃ", "ㅅ",
    "ㅆ", "ㅇ", "ㅈ", "ㅉ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
]


def get_chosung(s: str) -> str:
    """
    Replace every Hangul syllable with its leading consonant.

    "유니시티" -> "ㅇㄴㅅㅌ". Non-syllable characters (including bare jamo,
    digits and Latin letters) pass through unchanged.
    """
    out = []
    for ch in s:
        code = ord(ch) - HANGUL_BASE
        if 0 <= code < HANGUL_COUNT:
            out.append(CHOSUNG_LIST[code // CHOSUNG_SPAN])
        else:
            out.append(ch)
    return "".join(out)


def matches_search(target: str, term: str) -> bool:
    """
    Check whether a search term matches a text field.

    Matches on a case-insensitive substring, or on the chosung skeleton so
    that consonant-only input like "ㅇㄴㅅㅌ" finds "유니시티".
    """
    if not term:
        return True

    target_l = (target or "").lower()
    term_l = term.lower()
    if term_l in target_l:
        return True

    return get_chosung(term_l) in get_chosung(target_l)


_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")


def to_float(text: Optional[str]) -> float:
    """Read the leading number of a string, 0.0 when there is none."""
    if not text:
        return 0.0
    m = _LEADING_NUMBER.match(text)
    if not m:
        return 0.0
    try:
        value = float(m.group(1))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_price(price_text: Optional[str]) -> float:
    """
    Parse a listing price into units of 100 million KRW.

    "8억 5,000" -> 8.5, "10억" -> 10.0, "5,000/250" -> 0.5 (monthly rent is
    priced by its deposit only). Unparseable input gives 0.0.
    """
    if not price_text:
        return 0.0

    main_price = price_text.split("/")[0]

    if "억" in main_price:
        eok, _, man = main_price.partition("억")
        whole = to_float(eok.strip().replace(",", ""))
        fraction = to_float(man.strip().replace(",", ""))
        total = whole + fraction / 10000
        return total if math.isfinite(total) else 0.0

    return to_float(main_price.strip().replace(",", "")) / 10000


def parse_size(size_text: Optional[str]) -> float:
    """Parse a floor-area class ("41평", "35A") into pyeong, 0.0 if unparseable."""
    if not size_text:
        return 0.0
    return to_float(re.sub(r"[^0-9.]", "", size_text))
