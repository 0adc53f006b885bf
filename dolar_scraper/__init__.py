"""
Dolar Scraper

Scrapes an exchange-rate table (static HTML via BeautifulSoup, or rendered
with Playwright) into a new dated tab of a Google Sheets spreadsheet.
"""

__version__ = "1.0.0"
__author__ = "Dolar Scraper Team"
