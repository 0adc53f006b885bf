"""
Google Sheets authentication: service-account or pre-issued OAuth2 tokens
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser
from google.auth import exceptions as google_auth_exceptions
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account
from googleapiclient.discovery import build

from ..config.enums import AuthScheme
from ..config.schema import Settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']
TOKEN_URI = 'https://oauth2.googleapis.com/token'

def unescape_private_key(private_key: str) -> str:
    """Turn literal backslash-n sequences from an env var back into newlines"""
    return private_key.replace('\\n', '\n')

def parse_expiry(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a token expiry into a naive UTC datetime (what google-auth expects)

    Accepts epoch milliseconds ("1717171717000") or an ISO-8601 timestamp.
    """
    if value is None or str(value).strip() == '':
        return None

    value = str(value).strip()
    try:
        if value.isdigit():
            return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc).replace(tzinfo=None)

        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError) as e:
        raise AuthenticationError(f"Invalid token expiry {value!r}: {e}", scheme=AuthScheme.OAUTH2.value)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def service_account_credentials(settings: Settings) -> service_account.Credentials:
    """Sign with the service-account email and private key"""
    info = {
        'type': 'service_account',
        'client_email': settings.service_account_email,
        'private_key': unescape_private_key(settings.private_key or ''),
        'token_uri': TOKEN_URI,
    }
    try:
        credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, TypeError, google_auth_exceptions.GoogleAuthError) as e:
        logger.error(f"Failed to load service-account key: {e}")
        raise AuthenticationError(
            f"Invalid service-account key material: {e}",
            scheme=AuthScheme.SERVICE_ACCOUNT.value
        )

    logger.info(f"Authenticating as service account {settings.service_account_email}")
    return credentials

def oauth2_user_credentials(settings: Settings, now: Optional[datetime] = None) -> oauth2_credentials.Credentials:
    """
    Wrap a pre-obtained OAuth2 token pair

    No token URI is set, so google-auth cannot refresh: an expired access
    token fails the run.
    """
    expiry = parse_expiry(settings.expiry_date)
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)

    if expiry is not None and expiry <= now:
        raise AuthenticationError(
            f"OAuth2 access token expired at {expiry.isoformat()}Z",
            scheme=AuthScheme.OAUTH2.value
        )

    if settings.token_type and settings.token_type.lower() != 'bearer':
        logger.warning(f"Unexpected token type {settings.token_type!r}, sending as Bearer")

    credentials = oauth2_credentials.Credentials(
        token=settings.access_token,
        refresh_token=settings.refresh_token,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        scopes=SCOPES,
        expiry=expiry,
    )

    logger.info(f"Authenticating with OAuth2 client {settings.client_id}")
    return credentials

def build_credentials(settings: Settings, now: Optional[datetime] = None):
    """Build credentials for whichever scheme the settings name"""
    if settings.auth_scheme == AuthScheme.SERVICE_ACCOUNT:
        return service_account_credentials(settings)
    if settings.auth_scheme == AuthScheme.OAUTH2:
        return oauth2_user_credentials(settings, now=now)

    raise AuthenticationError(f"Unsupported auth scheme: {settings.auth_scheme}")

def build_sheets_service(credentials):
    """Build the Sheets v4 client for one invocation"""
    try:
        service = build('sheets', 'v4', credentials=credentials, cache_discovery=False)
        logger.info("Successfully built Google Sheets API client")
        return service

    except Exception as e:
        logger.error(f"Failed to build Google Sheets API client: {e}")
        raise
