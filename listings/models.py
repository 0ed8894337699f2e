"""
Data models for the listing board.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping

from .utils import parse_price, parse_size


LISTING_FIELDS = ("type", "complex", "size", "unit", "price", "features", "category")


@dataclass(frozen=True)
class Listing:
    """One sale/lease offering as shown on the listing board.

    All fields are display strings. Comparable numbers are derived on demand
    through the tolerant parsers, so a malformed price or size reads as 0.
    """

    type: str = ""
    complex: str = ""
    size: str = ""
    unit: str = ""
    price: str = ""
    features: str = ""
    category: str = ""

    @property
    def price_value(self) -> float:
        """Price in units of 100 million KRW (deposit only for monthly rent)."""
        return parse_price(self.price)

    @property
    def size_value(self) -> float:
        """Floor-area class in pyeong."""
        return parse_size(self.size)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Listing":
        """Build a Listing from a loosely shaped mapping (backup JSON, API rows)."""
        values = {}
        for name in LISTING_FIELDS:
            raw = data.get(name)
            values[name] = "" if raw is None else str(raw)
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
