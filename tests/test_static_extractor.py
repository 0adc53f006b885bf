import asyncio

import pytest
import requests

from dolar_scraper.core.exceptions import TableNotFoundError
from dolar_scraper.extractors.static_html import StaticHtmlExtractor

PAGE = """
<html><body>
  <table id="other"><tr><td>skip</td><td>me</td><td>please</td></tr></table>
  <table id="ctl00_PlaceHolderMainContent_GridViewDolar">
    <tr><th> h1 </th><th>h2</th><th>h3</th></tr>
    <tr><td>a</td><td>x1
ignored</td><td> y1 </td></tr>
    <tr><td>b</td><td>x2</td><td>y2</td></tr>
  </table>
</body></html>
"""


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.headers = {}
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append((url, timeout))
        return self.response


def test_fetch_rows_extracts_first_line_of_trimmed_cells(make_settings):
    session = FakeSession(FakeResponse(PAGE))
    extractor = StaticHtmlExtractor(make_settings(), session=session)

    rows = asyncio.run(extractor.fetch_rows("https://example.com/dolar"))

    assert rows == [["h1", "h2", "h3"], ["a", "x1", "y1"], ["b", "x2", "y2"]]
    assert session.requested == [("https://example.com/dolar", 30)]
    assert "User-Agent" in session.headers


def test_tbody_rows_are_read_in_dom_order(make_settings):
    html = """
    <table id="rates">
      <thead><tr><th>name</th><th>buy</th><th>sell</th></tr></thead>
      <tbody>
        <tr><td>USD</td><td>1</td><td>2</td></tr>
        <tr><td>EUR<table><tr><td>n</td><td>e</td><td>st</td></tr></table></td><td>3</td><td>4</td></tr>
      </tbody>
    </table>
    """
    extractor = StaticHtmlExtractor(make_settings(table_selector="#rates"), session=FakeSession(FakeResponse(html)))

    raw = extractor.parse_table(html)

    assert [row[0].strip()[:3] for row in raw] == ["nam", "USD", "EUR"]
    assert len(raw) == 3


def test_missing_table_raises(make_settings):
    session = FakeSession(FakeResponse("<html><body><p>maintenance</p></body></html>"))
    extractor = StaticHtmlExtractor(make_settings(), session=session)

    with pytest.raises(TableNotFoundError):
        asyncio.run(extractor.fetch_rows("https://example.com/dolar"))


def test_http_error_propagates(make_settings):
    extractor = StaticHtmlExtractor(make_settings(), session=FakeSession(FakeResponse("", status_code=503)))

    with pytest.raises(requests.HTTPError):
        asyncio.run(extractor.fetch_rows("https://example.com/dolar"))
