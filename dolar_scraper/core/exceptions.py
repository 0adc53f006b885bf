"""
Custom exception classes for the scraper
"""
from typing import Optional, Dict, Any, List


class DolarScraperError(Exception):
    """Base exception for all scraper errors"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "UNKNOWN_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigurationError(DolarScraperError):
    """Raised when required settings are missing or contradictory"""

    def __init__(self, message: str, missing_keys: Optional[List[str]] = None):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details={"missing_keys": missing_keys or []}
        )


class AuthenticationError(DolarScraperError):
    """Raised when spreadsheet credentials cannot be built or are expired"""

    def __init__(self, message: str, scheme: Optional[str] = None):
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            details={"scheme": scheme}
        )


class ScrapeError(DolarScraperError):
    """Raised when the source table cannot be fetched or read"""

    def __init__(self, message: str, url: Optional[str] = None, code: str = "SCRAPE_ERROR"):
        super().__init__(
            message=message,
            code=code,
            details={"url": url}
        )


class TableNotFoundError(ScrapeError):
    """Raised when the page has no element matching the table selector"""

    def __init__(self, selector: str, url: Optional[str] = None):
        super().__init__(
            message=f"Table not found for selector {selector!r}",
            url=url,
            code="TABLE_NOT_FOUND"
        )
        self.details["selector"] = selector


class MalformedTableError(ScrapeError):
    """Raised when the table has no rows or a row has too few cells"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message=message, url=url, code="MALFORMED_TABLE")


class SheetsError(DolarScraperError):
    """Raised when a Google Sheets response does not have the expected shape"""

    def __init__(
        self,
        message: str,
        spreadsheet_id: Optional[str] = None,
        operation: Optional[str] = None
    ):
        super().__init__(
            message=message,
            code="SHEETS_ERROR",
            details={
                "spreadsheet_id": spreadsheet_id,
                "operation": operation
            }
        )
