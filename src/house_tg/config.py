"""Runtime settings, read from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Final, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_FEED_URL: Final[str] = "https://api.rightmove.co.uk/api/rent/find"
DEFAULT_LISTING_URL_TEMPLATE: Final[str] = (
    "https://www.rightmove.co.uk/properties/{listing_id}"
)
DEFAULT_STARTUP_MESSAGE: Final[str] = "Application started"
DEFAULT_POLLING_INTERVAL: Final[int] = 300
MIN_POLLING_INTERVAL: Final[int] = 10

# REGION^219 is the whole of Bristol; sortType=6 lists the most recent first.
DEFAULT_FEED_PARAMS: Final[Dict[str, str]] = {
    "index": "1",
    "numberOfPropertiesRequested": "50",
    "locationIdentifier": "REGION^219",
    "apiApplication": "IPAD",
    "minBedrooms": "2",
    "maxBedrooms": "2",
    "dontShow": "houseShare",
    "maxPrice": "1500",
    "sortType": "6",
}

# env var -> feed query parameter
_FEED_PARAM_ENV: Final[Dict[str, str]] = {
    "LOCATION_IDENTIFIER": "locationIdentifier",
    "MIN_BEDROOMS": "minBedrooms",
    "MAX_BEDROOMS": "maxBedrooms",
    "MAX_PRICE": "maxPrice",
    "DONT_SHOW": "dontShow",
    "SORT_TYPE": "sortType",
}
_NUMERIC_FEED_PARAMS: Final = ("minBedrooms", "maxBedrooms", "maxPrice", "sortType")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(ValueError):
    """Raised when a setting is missing or malformed."""


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Everything the watcher needs to run, gathered in one place."""

    bot_token: str
    houses_db: Path = Path("houses.db")
    chats_db: Path = Path("chats.db")
    feed_url: str = DEFAULT_FEED_URL
    feed_params: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_FEED_PARAMS)
    )
    poll_interval: int = DEFAULT_POLLING_INTERVAL
    silent_first_run: bool = False
    listing_url_template: str = DEFAULT_LISTING_URL_TEMPLATE
    startup_message: str = DEFAULT_STARTUP_MESSAGE

    def __post_init__(self) -> None:
        if not self.bot_token:
            raise ConfigError("BOT_TOKEN is required")
        if self.poll_interval < MIN_POLLING_INTERVAL:
            raise ConfigError(
                f"poll interval must be at least {MIN_POLLING_INTERVAL}s, "
                f"got {self.poll_interval}"
            )
        if "{listing_id}" not in self.listing_url_template:
            raise ConfigError("LISTING_URL_TEMPLATE must contain {listing_id}")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = None,
    ) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from; defaults to ``os.environ`` after
                loading ``env_file``, or the nearest ``.env`` found from the
                working directory.
            env_file: Optional path to a dotenv file.

        Raises:
            ConfigError: If BOT_TOKEN is missing or a value is malformed.
        """
        if environ is None:
            load_dotenv(env_file or find_dotenv(usecwd=True))
            environ = os.environ

        feed_params = dict(DEFAULT_FEED_PARAMS)
        for env_name, param in _FEED_PARAM_ENV.items():
            raw = environ.get(env_name)
            if raw is None:
                continue
            if param in _NUMERIC_FEED_PARAMS:
                raw = str(_parse_int(env_name, raw))
            feed_params[param] = raw.strip()

        if int(feed_params["minBedrooms"]) > int(feed_params["maxBedrooms"]):
            raise ConfigError("MIN_BEDROOMS cannot be greater than MAX_BEDROOMS")

        kwargs: Dict[str, Any] = {
            "bot_token": environ.get("BOT_TOKEN", "").strip(),
            "feed_params": feed_params,
        }
        if "HOUSES_DB" in environ:
            kwargs["houses_db"] = Path(environ["HOUSES_DB"])
        if "CHATS_DB" in environ:
            kwargs["chats_db"] = Path(environ["CHATS_DB"])
        if "FEED_URL" in environ:
            kwargs["feed_url"] = environ["FEED_URL"].strip()
        if "POLL_INTERVAL" in environ:
            kwargs["poll_interval"] = _parse_int(
                "POLL_INTERVAL", environ["POLL_INTERVAL"]
            )
        if "SILENT_FIRST_RUN" in environ:
            kwargs["silent_first_run"] = _parse_bool(
                "SILENT_FIRST_RUN", environ["SILENT_FIRST_RUN"]
            )
        if "LISTING_URL_TEMPLATE" in environ:
            kwargs["listing_url_template"] = environ["LISTING_URL_TEMPLATE"]
        if "STARTUP_MESSAGE" in environ:
            kwargs["startup_message"] = environ["STARTUP_MESSAGE"]

        return cls(**kwargs)

    def with_overrides(self, **changes: Any) -> "Settings":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
