"""
Data schema definitions for the exchange-rate sheet pipeline
"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from .enums import FetchStrategy, AuthScheme, RetentionOrder, Status

# One scraped table row: label, value A, value B
Row = List[str]

@dataclass
class SheetInfo:
    """A single tab inside the target spreadsheet"""
    sheet_id: int
    title: str
    index: int = 0

@dataclass
class BrowserSettings:
    """Headless browser options for the rendered fetch strategy"""
    headless: bool = True
    timeout: int = 30000
    args: List[str] = field(default_factory=lambda: [
        '--no-sandbox',
        '--disable-gpu',
        '--single-process',
        '--disable-setuid-sandbox',
    ])
    blocked_resource_types: List[str] = field(default_factory=lambda: ['image'])
    executable_path: Optional[str] = None

@dataclass
class Settings:
    """Everything one invocation needs, resolved from YAML defaults and environment"""

    # Targets
    spreadsheet_id: str
    crawl_url: str
    auth_scheme: AuthScheme

    # Service account credentials
    service_account_email: Optional[str] = None
    private_key: Optional[str] = None

    # OAuth2 credentials
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expiry_date: Optional[str] = None
    token_type: Optional[str] = None

    # Behaviour
    table_selector: str = '#ctl00_PlaceHolderMainContent_GridViewDolar'
    fetch_strategy: FetchStrategy = FetchStrategy.STATIC
    retention_cap: int = 200
    retention_order: RetentionOrder = RetentionOrder.LISTING
    http_timeout: int = 30
    user_agent: str = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    browser: BrowserSettings = field(default_factory=BrowserSettings)

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None

@dataclass
class RunResult:
    """Outcome of one pipeline invocation"""
    status: Status
    sheet_name: Optional[str] = None
    sheet_id: Optional[int] = None
    rows_written: int = 0
    deleted_sheet_id: Optional[int] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == Status.OK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging or a scheduler response"""
        return {
            'status': self.status.value,
            'sheet_name': self.sheet_name,
            'sheet_id': self.sheet_id,
            'rows_written': self.rows_written,
            'deleted_sheet_id': self.deleted_sheet_id,
            'error': self.error,
            'duration_seconds': round(self.duration_seconds, 3),
        }
