"""
Utility functions for row cleaning, sorting and A1 range math
"""
import logging
import unicodedata
from typing import List, Optional, Sequence

from ..config.schema import Row
from .exceptions import MalformedTableError

logger = logging.getLogger(__name__)

COLUMNS_PER_ROW = 3

def clean_cell(text: Optional[str]) -> str:
    """
    Trim a cell's text and keep only its first line

    Examples:
    - "  USD " -> "USD"
    - "3.50\n(+0.2%)" -> "3.50"
    - None -> ""
    """
    if not text:
        return ""

    return str(text).strip().split('\n')[0].strip()

def rows_from_cells(raw_rows: Sequence[Sequence[Optional[str]]], url: Optional[str] = None) -> List[Row]:
    """
    Normalise raw per-row cell texts into fixed-width rows

    Every row must have at least three cells; extra cells are ignored.
    """
    if not raw_rows:
        raise MalformedTableError("Table has no rows", url=url)

    rows = []
    for i, cells in enumerate(raw_rows):
        if len(cells) < COLUMNS_PER_ROW:
            raise MalformedTableError(
                f"Row {i} has {len(cells)} cells, expected at least {COLUMNS_PER_ROW}",
                url=url
            )
        rows.append([clean_cell(cell) for cell in cells[:COLUMNS_PER_ROW]])

    return rows

def collation_key(text: str) -> str:
    """
    Sort key approximating locale-aware comparison

    Accents are folded and case is ignored, so "árbol" sorts next to "arbol"
    and "eur" next to "EUR".
    """
    decomposed = unicodedata.normalize('NFKD', text)
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()

def sort_rows(rows: Sequence[Row]) -> List[Row]:
    """Keep the header first and sort the remaining rows by their first column (stable)"""
    if not rows:
        return []

    header, data = rows[0], rows[1:]
    return [list(header)] + sorted((list(row) for row in data), key=lambda row: collation_key(row[0]))

def column_letter(count: int) -> str:
    """
    Convert a 1-based column number to its spreadsheet letter

    Examples:
    - 1 -> "A"
    - 26 -> "Z"
    - 27 -> "AA"
    - 703 -> "AAA"
    """
    if count < 1:
        raise ValueError(f"Column number must be positive, got {count}")

    letters = ''
    while count > 0:
        count, remainder = divmod(count - 1, 26)
        letters = chr(ord('A') + remainder) + letters

    return letters

def data_range(rows: Sequence[Row]) -> str:
    """A1 range covering every populated cell, e.g. "A1:C3" for 3 rows of 3 cells"""
    if not rows or not rows[0]:
        raise ValueError("Cannot compute a range for empty data")

    return f"A1:{column_letter(len(rows[0]))}{len(rows)}"

def sheet_range(title: str, rows: Sequence[Row]) -> str:
    """Range prefixed with the quoted sheet title, e.g. '2024-05-01'!A1:C3"""
    quoted = title.replace("'", "''")
    return f"'{quoted}'!{data_range(rows)}"
