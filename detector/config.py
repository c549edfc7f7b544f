"""Load detector settings from YAML.

    watchlists:
      blacklisted_ips: [203.0.113.1, ...]
      suspicious_keywords: [breach, ...]
      suspicious_user_agents: [sqlmap, ...]
    dispatch:
      allow_local_ips: false

Every section is optional; missing lists fall back to the built-in
defaults.  Present-but-malformed sections raise ValueError.
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from detector.watchlists import (
    DEFAULT_BLACKLISTED_IPS,
    DEFAULT_SUSPICIOUS_KEYWORDS,
    DEFAULT_SUSPICIOUS_USER_AGENTS,
)

_WATCHLIST_FIELDS = {
    "blacklisted_ips": DEFAULT_BLACKLISTED_IPS,
    "suspicious_keywords": DEFAULT_SUSPICIOUS_KEYWORDS,
    "suspicious_user_agents": DEFAULT_SUSPICIOUS_USER_AGENTS,
}
_KNOWN_SECTIONS = ("watchlists", "dispatch")


@dataclass
class Settings:
    blacklisted_ips: list[str] = field(
        default_factory=lambda: list(DEFAULT_BLACKLISTED_IPS))
    suspicious_keywords: list[str] = field(
        default_factory=lambda: list(DEFAULT_SUSPICIOUS_KEYWORDS))
    suspicious_user_agents: list[str] = field(
        default_factory=lambda: list(DEFAULT_SUSPICIOUS_USER_AGENTS))
    allow_local_ips: bool = False


def load_settings(path: str | Path | None = None) -> Settings:
    """Parse and validate a settings file. None → built-in defaults."""
    if path is None:
        return Settings()
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        definition = yaml.safe_load(f) or {}
    return _validate(definition, path.name)


def _validate(definition, name: str) -> Settings:
    if not isinstance(definition, dict):
        raise ValueError(f"{name}: top level must be a mapping")
    for section in definition:
        if section not in _KNOWN_SECTIONS:
            raise ValueError(f"{name}: unknown section '{section}'")

    settings = Settings()

    watchlists = definition.get("watchlists") or {}
    if not isinstance(watchlists, dict):
        raise ValueError(f"{name}: 'watchlists' must be a mapping")
    for field_name in _WATCHLIST_FIELDS:
        if field_name not in watchlists:
            continue
        values = watchlists[field_name]
        if not isinstance(values, list) or not all(
            isinstance(v, str) and v.strip() for v in values
        ):
            raise ValueError(
                f"{name}: watchlists.{field_name} must be a list of non-empty strings"
            )
        setattr(settings, field_name, [v.strip() for v in values])

    dispatch = definition.get("dispatch") or {}
    if not isinstance(dispatch, dict):
        raise ValueError(f"{name}: 'dispatch' must be a mapping")
    if "allow_local_ips" in dispatch:
        if not isinstance(dispatch["allow_local_ips"], bool):
            raise ValueError(f"{name}: dispatch.allow_local_ips must be true or false")
        settings.allow_local_ips = dispatch["allow_local_ips"]

    return settings
