"""
Google Sheets exporter: dated tabs of exchange-rate rows
"""
import logging
from typing import List, Dict, Any, Sequence

from googleapiclient.errors import HttpError

from ..config.schema import Row, SheetInfo
from ..core.exceptions import SheetsError
from ..core.utils import sheet_range

logger = logging.getLogger(__name__)

SOLID_BORDER = {'style': 'SOLID', 'width': 1}

def build_format_requests(sheet_id: int, rows: Sequence[Row]) -> List[Dict[str, Any]]:
    """
    Batch-update requests that style a freshly written sheet

    Order matters: borders, bold header, centered value columns, grid
    trimmed to the data, then column autosize.
    """
    if not rows or not rows[0]:
        raise ValueError("Cannot format a sheet without data")

    row_count = len(rows)
    column_count = len(rows[0])

    return [
        # add borders
        {
            'updateBorders': {
                'range': {
                    'sheetId': sheet_id,
                    'startRowIndex': 0,
                    'endRowIndex': row_count,
                    'startColumnIndex': 0,
                    'endColumnIndex': column_count
                },
                'top': SOLID_BORDER,
                'bottom': SOLID_BORDER,
                'left': SOLID_BORDER,
                'right': SOLID_BORDER,
                'innerHorizontal': SOLID_BORDER,
                'innerVertical': SOLID_BORDER,
            }
        },
        # make first row bold
        {
            'repeatCell': {
                'range': {
                    'sheetId': sheet_id,
                    'startRowIndex': 0,
                    'endRowIndex': 1
                },
                'cell': {
                    'userEnteredFormat': {
                        'textFormat': {'bold': True}
                    }
                },
                'fields': 'userEnteredFormat(textFormat,horizontalAlignment)'
            }
        },
        # center the value columns on every row
        {
            'repeatCell': {
                'range': {
                    'sheetId': sheet_id,
                    'startColumnIndex': 1,
                    'endColumnIndex': column_count
                },
                'cell': {
                    'userEnteredFormat': {'horizontalAlignment': 'CENTER'}
                },
                'fields': 'userEnteredFormat(horizontalAlignment)'
            }
        },
        # cut unused columns and rows
        {
            'updateSheetProperties': {
                'properties': {
                    'sheetId': sheet_id,
                    'gridProperties': {
                        'rowCount': row_count,
                        'columnCount': column_count
                    }
                },
                'fields': 'gridProperties(rowCount,columnCount)'
            }
        },
        # autoresize columns
        {
            'autoResizeDimensions': {
                'dimensions': {
                    'sheetId': sheet_id,
                    'dimension': 'COLUMNS',
                    'startIndex': 0,
                    'endIndex': column_count
                }
            }
        },
    ]

class GoogleSheetsExporter:
    """Write exchange-rate tables into dated tabs of one spreadsheet"""

    def __init__(self, service, spreadsheet_id: str):
        self.service = service
        self.spreadsheet_id = spreadsheet_id

    @property
    def sheet_url(self) -> str:
        return f"https://docs.google.com/spreadsheets/d/{self.spreadsheet_id}/edit"

    def _batch_update(self, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self.service.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={'requests': requests}
        ).execute()

    def list_sheets(self) -> List[SheetInfo]:
        """Return every tab in the order the backend lists them"""
        try:
            metadata = self.service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields='sheets.properties'
            ).execute()

            sheets = []
            for sheet in metadata.get('sheets', []):
                properties = sheet['properties']
                sheets.append(SheetInfo(
                    sheet_id=properties['sheetId'],
                    title=properties.get('title', ''),
                    index=properties.get('index', 0)
                ))

            logger.info(f"Spreadsheet has {len(sheets)} sheets")
            return sheets

        except HttpError as e:
            logger.error(f"Failed to list sheets: {e}")
            raise
        except (KeyError, TypeError) as e:
            raise SheetsError(
                f"Unexpected spreadsheet metadata: {e}",
                spreadsheet_id=self.spreadsheet_id,
                operation='list_sheets'
            )

    def delete_sheet(self, sheet_id: int):
        """Permanently delete one tab"""
        try:
            self._batch_update([{'deleteSheet': {'sheetId': sheet_id}}])
            logger.info(f"Deleted sheet {sheet_id}")

        except HttpError as e:
            logger.error(f"Failed to delete sheet {sheet_id}: {e}")
            raise

    def add_sheet(self, title: str) -> SheetInfo:
        """Insert a new tab as the leftmost one and return its id"""
        try:
            result = self._batch_update([
                {
                    'addSheet': {
                        'properties': {
                            'title': title,
                            'index': 0
                        }
                    }
                }
            ])

        except HttpError as e:
            logger.error(f"Failed to add sheet {title!r}: {e}")
            raise

        try:
            properties = result['replies'][0]['addSheet']['properties']
            sheet = SheetInfo(sheet_id=properties['sheetId'], title=properties.get('title', title), index=0)
        except (KeyError, IndexError, TypeError) as e:
            raise SheetsError(
                f"Unexpected addSheet reply: {e}",
                spreadsheet_id=self.spreadsheet_id,
                operation='add_sheet'
            )

        logger.info(f"Added sheet {sheet.sheet_id} ({title!r})")
        return sheet

    def write_rows(self, title: str, rows: Sequence[Row]) -> Dict[str, Any]:
        """Write all rows as raw values in one update call"""
        try:
            range_name = sheet_range(title, rows)
            logger.debug(f"Writing rows to {range_name}: {rows}")

            result = self.service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption='RAW',
                body={'values': [list(row) for row in rows]}
            ).execute()

            logger.info(f"Written {len(rows)} rows to {range_name}")
            return result

        except HttpError as e:
            logger.error(f"Failed to write data: {e}")
            raise

    def format_sheet(self, sheet_id: int, rows: Sequence[Row]) -> Dict[str, Any]:
        """Apply borders, header and alignment styling, trim the grid, autosize"""
        try:
            result = self._batch_update(build_format_requests(sheet_id, rows))
            logger.info(f"Formatted sheet {sheet_id}")
            return result

        except HttpError as e:
            logger.error(f"Failed to format sheet {sheet_id}: {e}")
            raise
