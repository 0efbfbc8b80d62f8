"""
Configuration management for the Tink gateway.

Settings are read once at startup and handed to the application as an
immutable object.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .errors import ConfigError

BASE_DIR: Path = Path(__file__).parent.parent

DEFAULT_API_URL = "https://api.tink.com"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000


class Settings(BaseModel):
    """Gateway configuration."""

    model_config = ConfigDict(frozen=True)

    # Tink OAuth application
    client_id: str
    client_secret: str
    api_url: str = DEFAULT_API_URL

    # Server
    title: str = "Tink Gateway"
    version: str = "1.0.0"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    # Paths
    base_dir: Path = BASE_DIR

    # Upstream calls have no timeout unless one is configured
    upstream_timeout: Optional[float] = None

    # Logging
    log_file: Optional[str] = None

    @property
    def static_dir(self) -> Path:
        return self.base_dir / "static"

    @property
    def index_file(self) -> Path:
        return self.base_dir / "index.html"


def _parse_number(environ: Mapping[str, str], key: str, cast):
    raw = environ.get(key)
    if raw is None or raw == "":
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f'Invalid value for "{key}": {raw!r}')


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    When no mapping is given, variables from a `.env` file in the
    repository root are loaded first (existing variables win) and
    os.environ is used.

    Raises:
        ConfigError: if TINK_CLIENT_ID or TINK_CLIENT_SECRET is missing,
            or a numeric option cannot be parsed.
    """
    if environ is None:
        load_dotenv(os.path.join(BASE_DIR, ".env"))
        environ = os.environ

    for key in ("TINK_CLIENT_ID", "TINK_CLIENT_SECRET"):
        if not environ.get(key):
            raise ConfigError(f'Missing "{key}"')

    values = {
        "client_id": environ["TINK_CLIENT_ID"],
        "client_secret": environ["TINK_CLIENT_SECRET"],
        "api_url": (environ.get("TINK_API_URL") or DEFAULT_API_URL).rstrip("/"),
        "host": environ.get("GATEWAY_HOST") or DEFAULT_HOST,
    }

    port = _parse_number(environ, "GATEWAY_PORT", int)
    if port is not None:
        values["port"] = port

    timeout = _parse_number(environ, "GATEWAY_UPSTREAM_TIMEOUT", float)
    if timeout is not None:
        values["upstream_timeout"] = timeout

    if environ.get("GATEWAY_LOG_FILE"):
        values["log_file"] = environ["GATEWAY_LOG_FILE"]

    if environ.get("GATEWAY_BASE_DIR"):
        values["base_dir"] = Path(environ["GATEWAY_BASE_DIR"])

    return Settings(**values)
