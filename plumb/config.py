import json
import logging
import os
from dataclasses import dataclass

from plumb.commit import Identity
from plumb.errors import ConfigError
from plumb.store import META_DIR

DEFAULT_IDENTITY = Identity("plumb", "plumb@example.com", "+0000")
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class Config:
    meta_dir: str = META_DIR
    identity: Identity = DEFAULT_IDENTITY
    log_level: str = DEFAULT_LOG_LEVEL


def _read_config_file(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r") as file:
            data = json.load(file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data


def load_config(workdir: str = ".", environ=None) -> Config:
    """Defaults, then <meta>/config.json, then PLUMB_* environment variables."""
    environ = os.environ if environ is None else environ
    meta_dir = os.path.normpath(environ.get("PLUMB_DIR", META_DIR))
    if meta_dir in (".", "..") or os.path.dirname(meta_dir):
        raise ConfigError(f"PLUMB_DIR must be a single directory name, got {meta_dir!r}")

    data = _read_config_file(os.path.join(workdir, meta_dir, "config.json"))
    user = data.get("user", {})
    if not isinstance(user, dict):
        raise ConfigError("'user' in config.json must be an object")

    name = environ.get("PLUMB_AUTHOR_NAME", user.get("name", DEFAULT_IDENTITY.name))
    email = environ.get("PLUMB_AUTHOR_EMAIL", user.get("email", DEFAULT_IDENTITY.email))
    timezone = environ.get("PLUMB_TIMEZONE", user.get("timezone", DEFAULT_IDENTITY.timezone))
    try:
        identity = Identity(name, email, timezone)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    log_level = str(environ.get("PLUMB_LOG_LEVEL", data.get("log_level", DEFAULT_LOG_LEVEL))).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Unknown log level {log_level!r}")

    return Config(meta_dir=meta_dir, identity=identity, log_level=log_level)
