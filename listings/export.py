"""
Export utilities: listing tables and sheet-shaped CSV built with pandas.
"""
from typing import Any, List, Sequence

import pandas as pd

from .models import LISTING_FIELDS, Listing
from .sheets import SHEET_COLUMNS, listing_rows


def listings_to_frame(listings: Sequence[Listing]) -> pd.DataFrame:
    """Listings as a DataFrame with display strings plus parsed price/size."""
    rows = []
    for x in listings:
        row = x.to_dict()
        row["price_value"] = x.price_value
        row["size_value"] = x.size_value
        rows.append(row)
    return pd.DataFrame(rows, columns=list(LISTING_FIELDS) + ["price_value", "size_value"])


def save_output_rows(listings: Sequence[Listing], out_path: str, logger=None):
    """Save listings to CSV or Excel file."""
    df = listings_to_frame(listings)
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False, encoding="utf-8-sig")

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")


def values_to_csv(values: Sequence[Sequence[Any]]) -> str:
    """
    Render a 2-D cell array (header first) as CSV text.

    Short rows are padded to the header width; fields containing commas,
    quotes or newlines are quoted.
    """
    if not values or not values[0]:
        return ""

    width = len(values[0])
    rows: List[List[str]] = []
    for raw in values:
        row = ["" if cell is None else str(cell) for cell in raw]
        if len(row) < width:
            row += [""] * (width - len(row))
        rows.append(row)

    df = pd.DataFrame(rows).fillna("")
    return df.to_csv(index=False, header=False, lineterminator="\n")


def listings_to_sheet_csv(listings: Sequence[Listing]) -> str:
    """Render listings in the spreadsheet's fixed-column CSV layout."""
    return values_to_csv([SHEET_COLUMNS] + listing_rows(listings))
