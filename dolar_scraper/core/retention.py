"""
Retention policy: pick the sheet to purge once the spreadsheet is full
"""
import logging
from datetime import date
from typing import List, Optional

from ..config.enums import RetentionOrder
from ..config.schema import SheetInfo

logger = logging.getLogger(__name__)

def _title_date(title: str) -> Optional[date]:
    try:
        return date.fromisoformat(title.strip())
    except ValueError:
        return None

def choose_sheet_to_delete(sheets: List[SheetInfo], cap: int,
                           order: RetentionOrder = RetentionOrder.LISTING) -> Optional[SheetInfo]:
    """
    Return the one sheet to delete before adding a new one, or None

    LISTING trusts the backend order and takes the last listed sheet.
    TITLE_DATE takes the sheet whose title is the oldest ISO date; titles
    that are not dates are never chosen. If no title is a date it falls
    back to LISTING.
    """
    if not sheets or len(sheets) < cap:
        return None

    if order == RetentionOrder.TITLE_DATE:
        dated = [(_title_date(sheet.title), position, sheet) for position, sheet in enumerate(sheets)]
        dated = [entry for entry in dated if entry[0] is not None]
        if dated:
            # Ties go to the later listed sheet, as with LISTING
            oldest = min(dated, key=lambda entry: (entry[0], -entry[1]))
            return oldest[2]

        logger.warning("No sheet title is an ISO date, falling back to listing order")

    return sheets[-1]
