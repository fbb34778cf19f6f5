"""Connection settings, the optional YAML config file and logging setup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

import yaml

from .errors import ParseError

DEFAULT_PORT = 21
DEFAULT_USER = "anonymous"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


@dataclass(frozen=True)
class ConnectionTarget:
    """Where to connect and how to authenticate."""

    host: str
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = ""


@dataclass(slots=True)
class Config:
    """Runtime configuration loaded from an optional YAML file."""

    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = ""
    log_level: str = "INFO"

    def target_for(self, server: str) -> ConnectionTarget:
        """Build the connection target for ``server``.

        ``server`` is a bare host name or an ``ftp://`` URI. Port and
        credentials embedded in the URI take precedence over this config.
        """
        if "://" not in server:
            return ConnectionTarget(server, self.port, self.user, self.password)

        parts = urlsplit(server)
        if parts.scheme.lower() != "ftp":
            raise ParseError(f"Unsupported server scheme: {parts.scheme}")
        if not parts.hostname:
            raise ParseError(f"No host in server address: {server}")
        try:
            port = parts.port or self.port
        except ValueError as exc:
            raise ParseError(f"Invalid port in server address: {server}") from exc

        user, password = self.user, self.password
        if parts.username is not None:
            user = unquote(parts.username)
            password = unquote(parts.password or "")
        return ConnectionTarget(parts.hostname, port, user, password)


def load_config(config_path: Path) -> Config:
    """Load a YAML config file and apply defaults for missing keys."""
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("config file must be a mapping")

    def value(key, default):
        # "key:" with nothing after it loads as None
        found = data.get(key)
        return default if found is None else found

    return Config(
        port=int(value("port", DEFAULT_PORT)),
        user=str(value("user", DEFAULT_USER)),
        password=str(value("password", "")),
        log_level=str(value("log_level", "INFO")).upper(),
    )


def configure_logging(config: Config) -> None:
    """Send log records to stderr at the configured level."""
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
