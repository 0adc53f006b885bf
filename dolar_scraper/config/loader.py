"""
Settings loading: YAML defaults, environment overrides and secrets
"""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .enums import AuthScheme, FetchStrategy, RetentionOrder
from .schema import BrowserSettings, Settings
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

SERVICE_ACCOUNT_KEYS = ['GOOGLE_SERVICE_ACCOUNT_EMAIL', 'GOOGLE_PRIVATE_KEY']
OAUTH2_KEYS = [
    'GOOGLE_CLIENT_ID',
    'GOOGLE_CLIENT_SECRET',
    'GOOGLE_REDIRECT_URI',
    'GOOGLE_ACCESS_TOKEN',
    'GOOGLE_REFRESH_TOKEN',
    'GOOGLE_EXPIRY_DATE',
    'GOOGLE_TOKEN_TYPE',
]


def load_yaml_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the YAML settings file, returning an empty mapping when it is blank"""
    config_path = Path(path) if path else DEFAULT_SETTINGS_PATH
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        logger.debug(f"Loaded settings file {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load settings file {config_path}: {e}")
        raise


def load_local_env(env: Mapping[str, str]) -> bool:
    """Load a developer .env file when RUN_MODE=dev"""
    if env.get('RUN_MODE', '').lower() != 'dev':
        return False

    loaded = load_dotenv(override=False)
    logger.info(f"Development mode: .env {'loaded' if loaded else 'not found'}")
    return loaded


def _detect_auth_scheme(env: Mapping[str, str]) -> AuthScheme:
    has_service_account = any(env.get(key) for key in SERVICE_ACCOUNT_KEYS)
    has_oauth2 = any(env.get(key) for key in OAUTH2_KEYS)

    if has_service_account and has_oauth2:
        raise ConfigurationError(
            "Both service-account and OAuth2 credentials are set; configure exactly one scheme"
        )

    if has_service_account:
        missing = [key for key in SERVICE_ACCOUNT_KEYS if not env.get(key)]
        if missing:
            raise ConfigurationError("Incomplete service-account credentials", missing_keys=missing)
        return AuthScheme.SERVICE_ACCOUNT

    if has_oauth2:
        # Redirect URI, refresh token and token type are informational only
        required = ['GOOGLE_CLIENT_ID', 'GOOGLE_CLIENT_SECRET', 'GOOGLE_ACCESS_TOKEN']
        missing = [key for key in required if not env.get(key)]
        if missing:
            raise ConfigurationError("Incomplete OAuth2 credentials", missing_keys=missing)
        return AuthScheme.OAUTH2

    raise ConfigurationError(
        "No spreadsheet credentials configured",
        missing_keys=SERVICE_ACCOUNT_KEYS + OAUTH2_KEYS
    )


def _parse_enum(enum_class, value: str, name: str):
    try:
        return enum_class(str(value).lower())
    except ValueError:
        allowed = ', '.join(member.value for member in enum_class)
        raise ConfigurationError(f"Invalid {name} {value!r}; expected one of: {allowed}")


def _parse_log_level(value: str) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Invalid log level {value!r}; expected DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return level


def load_settings(env: Optional[Mapping[str, str]] = None,
                  settings_path: Optional[Path] = None) -> Settings:
    """
    Build the invocation settings.

    YAML supplies the defaults, the environment supplies targets, secrets
    and a few overrides. Pass ``env`` to read from a mapping instead of
    ``os.environ`` (the .env file is only honoured for the real environment).
    """
    if env is None:
        load_local_env(os.environ)
        env = os.environ

    config = load_yaml_settings(settings_path or env.get('DOLAR_SETTINGS_FILE') or None)
    general = config.get('settings', {}) or {}
    browser_config = config.get('browser', {}) or {}

    missing = [key for key in ('GOOGLE_SPREADSHEET_ID', 'CRAWL_URL') if not env.get(key)]
    if missing:
        raise ConfigurationError("Missing required environment variables", missing_keys=missing)

    auth_scheme = _detect_auth_scheme(env)

    defaults = BrowserSettings()
    browser = BrowserSettings(
        headless=browser_config.get('headless', defaults.headless),
        timeout=int(browser_config.get('timeout', defaults.timeout)),
        args=list(browser_config.get('args', defaults.args)),
        blocked_resource_types=list(
            browser_config.get('blocked_resource_types', defaults.blocked_resource_types)
        ),
        executable_path=env.get('BROWSER_EXECUTABLE_PATH') or browser_config.get('executable_path'),
    )

    settings = Settings(
        spreadsheet_id=env['GOOGLE_SPREADSHEET_ID'],
        crawl_url=env['CRAWL_URL'],
        auth_scheme=auth_scheme,
        service_account_email=env.get('GOOGLE_SERVICE_ACCOUNT_EMAIL'),
        private_key=env.get('GOOGLE_PRIVATE_KEY'),
        client_id=env.get('GOOGLE_CLIENT_ID'),
        client_secret=env.get('GOOGLE_CLIENT_SECRET'),
        redirect_uri=env.get('GOOGLE_REDIRECT_URI'),
        access_token=env.get('GOOGLE_ACCESS_TOKEN'),
        refresh_token=env.get('GOOGLE_REFRESH_TOKEN'),
        expiry_date=env.get('GOOGLE_EXPIRY_DATE'),
        token_type=env.get('GOOGLE_TOKEN_TYPE'),
        table_selector=general.get('table_selector', Settings.table_selector),
        fetch_strategy=_parse_enum(
            FetchStrategy,
            env.get('FETCH_STRATEGY') or general.get('fetch_strategy', FetchStrategy.STATIC.value),
            'fetch strategy'
        ),
        retention_cap=int(general.get('retention_cap', Settings.retention_cap)),
        retention_order=_parse_enum(
            RetentionOrder,
            general.get('retention_order', RetentionOrder.LISTING.value),
            'retention order'
        ),
        http_timeout=int(general.get('http_timeout', Settings.http_timeout)),
        user_agent=general.get('user_agent', Settings.user_agent),
        browser=browser,
        log_level=_parse_log_level(env.get('LOG_LEVEL') or general.get('log_level', Settings.log_level)),
        log_dir=general.get('log_dir'),
    )

    if settings.retention_cap < 1:
        raise ConfigurationError(f"retention_cap must be positive, got {settings.retention_cap}")

    logger.info(
        f"Settings loaded: strategy={settings.fetch_strategy.value}, "
        f"auth={settings.auth_scheme.value}, retention_cap={settings.retention_cap}"
    )
    return settings
