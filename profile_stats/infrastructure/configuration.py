"""Settings loaded from environment variables."""
import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional
from urllib.parse import urlparse
from dotenv import load_dotenv
from profile_stats.domain.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def load_environment() -> bool:
    """Load variables from .env, falling back to an ``env`` file."""
    loaded = load_dotenv('.env') or load_dotenv('env')
    if loaded:
        logger.warning("Variables used are being loaded from an env file")
    else:
        logger.info("No env file found, using environment variables")
    return loaded


def _split_list(raw: Optional[str]) -> FrozenSet[str]:
    if not raw:
        return frozenset()
    return frozenset(item.strip() for item in raw.split(",") if item.strip())


def _parse_bool(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_positive(name: str, raw: Optional[str], default, cast=int):
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_log_level(raw: Optional[str]) -> str:
    level = (raw or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"LOG_LEVEL is not a logging level: {raw!r}")
    return level


def _validate_base_url(raw: str) -> str:
    parsed = urlparse(raw)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"GITHUB_API_URL is not a valid http(s) URL: {raw!r}")
    return raw.rstrip("/")


@dataclass(frozen=True)
class Settings:
    """Everything the engine, client and renderer are configured with."""
    access_token: str = field(repr=False)
    github_actor: str
    api_url: str = DEFAULT_API_URL
    excluded_repos: FrozenSet[str] = frozenset()
    excluded_langs: FrozenSet[str] = frozenset()
    exclude_forked_repos: bool = False
    language_limit: int = 10
    max_concurrency: int = 10
    request_timeout: float = 30.0
    max_pages: int = 50
    graphql_retry_attempts: int = 3
    rest_retry_attempts: int = 5
    template_folder: str = "resources/templates"
    output_folder: str = "resources/generated"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated Settings

        Raises:
            ConfigurationError: When a required variable is missing or a value is malformed
        """
        env = os.environ if environ is None else environ

        access_token = env.get("ACCESS_TOKEN") or env.get("GITHUB_TOKEN")
        if not access_token:
            raise ConfigurationError("ACCESS_TOKEN (or GITHUB_TOKEN) environment variable is required")
        github_actor = env.get("GITHUB_ACTOR")
        if not github_actor:
            raise ConfigurationError("GITHUB_ACTOR environment variable is required")

        return cls(
            access_token=access_token,
            github_actor=github_actor,
            api_url=_validate_base_url(env.get("GITHUB_API_URL") or DEFAULT_API_URL),
            excluded_repos=_split_list(env.get("EXCLUDED")),
            excluded_langs=frozenset(lang.lower() for lang in _split_list(env.get("EXCLUDED_LANGS"))),
            exclude_forked_repos=_parse_bool("EXCLUDE_FORKED_REPOS", env.get("EXCLUDE_FORKED_REPOS"), False),
            language_limit=_parse_positive("LANGUAGE_LIMIT", env.get("LANGUAGE_LIMIT"), 10),
            max_concurrency=_parse_positive("MAX_CONCURRENCY", env.get("MAX_CONCURRENCY"), 10),
            request_timeout=_parse_positive("REQUEST_TIMEOUT", env.get("REQUEST_TIMEOUT"), 30.0, float),
            max_pages=_parse_positive("MAX_PAGES", env.get("MAX_PAGES"), 50),
            graphql_retry_attempts=_parse_positive(
                "GRAPHQL_RETRY_ATTEMPTS", env.get("GRAPHQL_RETRY_ATTEMPTS"), 3
            ),
            rest_retry_attempts=_parse_positive("REST_RETRY_ATTEMPTS", env.get("REST_RETRY_ATTEMPTS"), 5),
            template_folder=env.get("TEMPLATE_FOLDER") or "resources/templates",
            output_folder=env.get("OUTPUT_FOLDER") or "resources/generated",
            log_level=_parse_log_level(env.get("LOG_LEVEL"))
        )
