"""Configuration for the Forwarded middleware from environment and forwarded.yml"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .encoder import DEFAULT_HEADER_MAP, HeaderMap
from .resolver import TrustPredicate
from .trust import trust_all_of, trust_networks, trust_nobody, trust_secret

logger = logging.getLogger("forwarded.config")

# RFC 7230 token characters for header field names
HEADER_NAME_PATTERN = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")
DIRECTIVE_PATTERN = re.compile(r"^\w+$")


class ConfigError(ValueError):
    """Raised when Forwarded middleware configuration is invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid forwarded configuration: " + "; ".join(errors))


def validate_header_map(header_map: HeaderMap) -> tuple[bool, list[str]]:
    """
    Validate legacy header to directive pairs.

    Args:
        header_map: Ordered ``(header name, directive)`` pairs

    Returns:
        (is_valid, errors) tuple
    """
    errors = []
    seen: dict[str, str] = {}

    for index, pair in enumerate(header_map):
        if not isinstance(pair, (tuple, list)) or len(pair) != 2:
            errors.append(f"Entry {index}: expected (header, directive) pair, got {pair!r}")
            continue

        header, directive = pair
        if not isinstance(header, str) or not HEADER_NAME_PATTERN.match(header):
            errors.append(f"Entry {index}: invalid header name {header!r}")
            continue
        if not isinstance(directive, str) or not DIRECTIVE_PATTERN.match(directive):
            errors.append(f"Entry {index}: invalid directive name {directive!r}")
            continue

        if directive in seen:
            logger.debug("Header %s is a fallback for directive %s (after %s)", header, directive, seen[directive])
        else:
            seen[directive] = header

    return (len(errors) == 0, errors)


@dataclass
class ForwardedSettings:
    """
    Settings for the Forwarded middleware.

    Attributes:
        header_map: Ordered legacy header to directive pairs (compat encoder)
        trusted_proxies: IP addresses or CIDR ranges of trusted proxies
        trusted_secret: Shared secret proxies add to their hop
        secret_directive: Directive name carrying the shared secret
    """

    header_map: list[tuple[str, str]] = field(default_factory=lambda: list(DEFAULT_HEADER_MAP))
    trusted_proxies: list[str] = field(default_factory=list)
    trusted_secret: str | None = None
    secret_directive: str = "secret"

    def trust_predicate(self) -> TrustPredicate:
        """
        Build the trust predicate these settings describe.

        With both proxies and a secret configured a hop must satisfy both.
        With neither, no hop is trusted.
        """
        predicates = []
        if self.trusted_proxies:
            predicates.append(trust_networks(self.trusted_proxies))
        if self.trusted_secret:
            predicates.append(trust_secret(self.trusted_secret, self.secret_directive))

        if not predicates:
            logger.warning("No trusted proxies or secret configured; Forwarded headers will be ignored")
            return trust_nobody
        if len(predicates) == 1:
            return predicates[0]
        return trust_all_of(*predicates)


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value]


def _header_map_from_yaml(value: Any, errors: list[str]) -> list[tuple[str, str]]:
    if isinstance(value, dict):
        return [(str(header), str(directive)) for header, directive in value.items()]

    if isinstance(value, list):
        pairs = []
        for index, entry in enumerate(value):
            if isinstance(entry, dict) and "header" in entry and "directive" in entry:
                pairs.append((str(entry["header"]), str(entry["directive"])))
            else:
                errors.append(f"header_map entry {index}: expected {{header, directive}}, got {entry!r}")
        return pairs

    errors.append(f"header_map must be a list or mapping, got {type(value).__name__}")
    return []


def _load_yaml(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError([f"Failed to load {path}: {e}"]) from e

    if not isinstance(data, dict):
        raise ConfigError([f"{path}: top level must be a mapping"])
    return data


def load_settings(path: str | Path | None = None) -> ForwardedSettings:
    """
    Load settings from a YAML file and environment variables.

    Environment variables:
    - FORWARDED_CONFIG: Path to a YAML config file (used if path is None)
    - FORWARDED_TRUSTED_PROXIES: Comma separated IPs/CIDRs, overrides the file
    - FORWARDED_TRUSTED_SECRET: Shared secret, overrides the file

    Args:
        path: Optional path to a YAML config file

    Returns:
        ForwardedSettings

    Raises:
        ConfigError: If the configuration is invalid
    """
    if path is None:
        path = os.getenv("FORWARDED_CONFIG") or None

    data: dict = {}
    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            data = _load_yaml(config_path)
            logger.debug("Loaded forwarded config from %s", config_path)
        else:
            logger.warning("Forwarded config %s not found, using defaults", config_path)

    errors: list[str] = []
    settings = ForwardedSettings()

    if "header_map" in data:
        settings.header_map = _header_map_from_yaml(data["header_map"], errors)
    settings.trusted_proxies = _split_list(data.get("trusted_proxies"))
    settings.trusted_secret = data.get("trusted_secret") or None
    settings.secret_directive = data.get("secret_directive") or "secret"

    env_proxies = os.getenv("FORWARDED_TRUSTED_PROXIES", "").strip()
    if env_proxies:
        settings.trusted_proxies = _split_list(env_proxies)
    env_secret = os.getenv("FORWARDED_TRUSTED_SECRET", "").strip()
    if env_secret:
        settings.trusted_secret = env_secret

    _, map_errors = validate_header_map(settings.header_map)
    errors.extend(map_errors)

    if not DIRECTIVE_PATTERN.match(str(settings.secret_directive)):
        errors.append(f"Invalid secret_directive {settings.secret_directive!r}")

    for proxy in settings.trusted_proxies:
        try:
            trust_networks([proxy])
        except ValueError:
            errors.append(f"Invalid trusted proxy {proxy!r}")

    if errors:
        raise ConfigError(errors)

    return settings
