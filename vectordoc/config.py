"""
Client configuration.

Settings come from a TOML file, from environment variables, or both (the
environment wins). The file layout is:

    [config]
    version = 1

    [client]
    url = "https://vdb.example.com"
    username = "root"
    key = "..."
    timeout = 10.0
    read_consistency = "eventualConsistency"
    pool_size = 4
"""

import os
import tomllib
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

# tomli_w for writing TOML (tomllib is read-only)
try:
    import tomli_w
except ImportError:
    tomli_w = None  # type: ignore


CONFIG_FILENAME = "vectordoc.toml"
CONFIG_VERSION = 1

EVENTUAL_CONSISTENCY = "eventualConsistency"
STRONG_CONSISTENCY = "strongConsistency"
READ_CONSISTENCIES = (EVENTUAL_CONSISTENCY, STRONG_CONSISTENCY)

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")

# Environment variable -> (field, parser)
_ENV_VARS = {
    "VECTORDOC_URL": ("url", str),
    "VECTORDOC_USERNAME": ("username", str),
    "VECTORDOC_KEY": ("key", str),
    "VECTORDOC_TIMEOUT": ("timeout", float),
    "VECTORDOC_READ_CONSISTENCY": ("read_consistency", str),
    "VECTORDOC_POOL_SIZE": ("pool_size", int),
    "VECTORDOC_MAX_RETRIES": ("max_retries", int),
    "VECTORDOC_DEBUG": ("debug", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
}


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for a store."""
    url: str = ""
    username: str = "root"
    key: str = ""
    timeout: float = 10.0
    read_consistency: str = EVENTUAL_CONSISTENCY
    pool_size: int = 1
    max_retries: int = 3
    debug: bool = False

    def validate(self) -> None:
        """
        Check settings for consistency.

        Raises:
            ValueError: On an invalid setting
        """
        if not self.url:
            raise ValueError("Store URL is required (set VECTORDOC_URL or [client] url)")
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"Store URL must be http(s): {self.url!r}")
        # Refuse cleartext for remote hosts (the API key travels in a header)
        if parsed.scheme == "http" and (parsed.hostname or "") not in _LOCAL_HOSTS:
            raise ValueError(
                f"Store URL must use HTTPS (got {self.url}). "
                "Use HTTPS to protect API credentials, or use localhost for local development."
            )
        if self.read_consistency not in READ_CONSISTENCIES:
            raise ValueError(
                f"Unknown read consistency {self.read_consistency!r}; "
                f"expected one of {READ_CONSISTENCIES}"
            )
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be at least 1 (got {self.pool_size})")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive (got {self.timeout})")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1 (got {self.max_retries})")


def _from_section(section: dict[str, Any], base: ClientConfig) -> ClientConfig:
    known = {f.name for f in fields(ClientConfig)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"Unknown [client] settings: {sorted(unknown)}")
    return replace(base, **section)


def load_config(path: Path) -> ClientConfig:
    """
    Load configuration from a TOML file, or a directory holding one.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    path = Path(path)
    if path.is_dir():
        path = path / CONFIG_FILENAME
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    version = data.get("config", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    return _from_section(data.get("client", {}), ClientConfig())


def save_config(config: ClientConfig, path: Path) -> None:
    """
    Save configuration as TOML.

    Creates the parent directory if it doesn't exist.
    """
    if tomli_w is None:
        raise RuntimeError("tomli_w is required to save config. Install with: pip install tomli-w")

    path = Path(path)
    if path.is_dir():
        path = path / CONFIG_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "config": {"version": CONFIG_VERSION},
        "client": asdict(config),
    }
    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def config_from_env(base: Optional[ClientConfig] = None) -> ClientConfig:
    """Apply VECTORDOC_* environment variables on top of ``base``."""
    config = base or ClientConfig()
    overrides: dict[str, Any] = {}
    for var, (name, parse) in _ENV_VARS.items():
        value = os.environ.get(var)
        if value is None or value == "":
            continue
        try:
            overrides[name] = parse(value)
        except ValueError as e:
            raise ValueError(f"Invalid {var}={value!r}: {e}") from e
    return replace(config, **overrides)


def load_or_env(path: Optional[Path] = None) -> ClientConfig:
    """
    Resolve the effective configuration.

    Reads ``path`` (or VECTORDOC_CONFIG) if it exists, then applies
    environment overrides and validates the result.
    """
    if path is None and os.environ.get("VECTORDOC_CONFIG"):
        path = Path(os.environ["VECTORDOC_CONFIG"])
    config = ClientConfig()
    if path is not None and Path(path).exists():
        config = load_config(Path(path))
    config = config_from_env(config)
    config.validate()
    return config
