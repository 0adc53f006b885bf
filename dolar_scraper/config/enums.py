"""
Strict enum definitions for scraper configuration and run outcomes
"""
from enum import Enum

class FetchStrategy(Enum):
    STATIC = "static"
    RENDERED = "rendered"

class AuthScheme(Enum):
    SERVICE_ACCOUNT = "service_account"
    OAUTH2 = "oauth2"

class RetentionOrder(Enum):
    LISTING = "listing"
    TITLE_DATE = "title_date"

class Status(Enum):
    OK = "OK"
    FAILED = "FAILED"
