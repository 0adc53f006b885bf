import pytest

from dolar_scraper.config.enums import AuthScheme
from dolar_scraper.config.schema import Settings

from tests.fakes import FakeSheetsService


@pytest.fixture
def make_settings():
    def _make(**overrides):
        values = {
            "spreadsheet_id": "spreadsheet-123",
            "crawl_url": "https://example.com/dolar",
            "auth_scheme": AuthScheme.SERVICE_ACCOUNT,
            "service_account_email": "bot@example.iam.gserviceaccount.com",
            "private_key": "unused",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def fake_service():
    return FakeSheetsService()
