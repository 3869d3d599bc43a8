"""Configuration management for PhishShield."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Remote classification service
    api_url: str = "http://localhost:8000"
    request_timeout: float = 10.0

    # Message router deadlines (seconds)
    rpc_timeout: float = 30.0
    bulk_rpc_timeout: float = 300.0

    # Verdict cache
    cache_ttl_seconds: float = 300.0
    cache_max_size: int = 1000

    # Bulk link scanning
    bulk_scan_limit: int = 50

    # Health endpoint (optional)
    health_host: str = "127.0.0.1"
    health_port: int = 8765
    health_enabled: bool = False

    log_level: str = "INFO"

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("./data"))
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    def __post_init__(self):
        """Ensure paths exist."""
        self.data_dir = Path(self.data_dir)
        self.config_dir = Path(self.config_dir)
        self.api_url = (self.api_url or "").rstrip("/")
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self.data_dir / "phishshield.db"


_ENV_NAMES = {
    "api_url": "PHISHSHIELD_API_URL",
    "request_timeout": "PHISHSHIELD_REQUEST_TIMEOUT",
    "rpc_timeout": "PHISHSHIELD_RPC_TIMEOUT",
    "bulk_rpc_timeout": "PHISHSHIELD_BULK_RPC_TIMEOUT",
    "cache_ttl_seconds": "CACHE_TTL_SECONDS",
    "cache_max_size": "CACHE_MAX_SIZE",
    "bulk_scan_limit": "BULK_SCAN_LIMIT",
}


def _load_overrides(config_dir: Path) -> dict:
    """Load overrides from config/phishshield.yaml (optional)."""
    path = Path(config_dir or ".") / "phishshield.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse phishshield.yaml: %s", exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring phishshield.yaml: top level must be a mapping")
        return {}

    sections = {
        "api": ("api_url", "request_timeout", "rpc_timeout", "bulk_rpc_timeout"),
        "cache": ("cache_ttl_seconds", "cache_max_size"),
        "scan": ("bulk_scan_limit",),
    }
    overrides: dict = {}
    for section, keys in sections.items():
        cfg = data.get(section) or {}
        if not isinstance(cfg, dict):
            continue
        for key in keys:
            if key in cfg and cfg[key] is not None:
                overrides[key] = cfg[key]
    return overrides


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    overrides = _load_overrides(config_dir)

    values = dict(
        api_url=os.getenv("PHISHSHIELD_API_URL", "http://localhost:8000"),
        request_timeout=float(os.getenv("PHISHSHIELD_REQUEST_TIMEOUT", "10")),
        rpc_timeout=float(os.getenv("PHISHSHIELD_RPC_TIMEOUT", "30")),
        bulk_rpc_timeout=float(os.getenv("PHISHSHIELD_BULK_RPC_TIMEOUT", "300")),
        cache_ttl_seconds=float(os.getenv("CACHE_TTL_SECONDS", "300")),
        cache_max_size=int(os.getenv("CACHE_MAX_SIZE", "1000")),
        bulk_scan_limit=int(os.getenv("BULK_SCAN_LIMIT", "50")),
    )
    # YAML only fills in what the environment left unset
    for key, value in overrides.items():
        env_name = _ENV_NAMES[key]
        if os.getenv(env_name) is None:
            try:
                values[key] = type(values[key])(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring phishshield.yaml value for %s: %r", key, value)

    return Config(
        **values,
        health_host=os.getenv("HEALTH_HOST", "127.0.0.1"),
        health_port=int(os.getenv("HEALTH_PORT", "8765")),
        health_enabled=_env_bool("HEALTH_ENABLED", "false"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        data_dir=Path(os.getenv("DATA_DIR", "./data")),
        config_dir=config_dir,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []
    api_url = (config.api_url or "").lower()
    if not api_url.startswith(("http://", "https://")):
        errors.append("PHISHSHIELD_API_URL must be an http(s) URL")

    if config.request_timeout <= 0:
        errors.append("PHISHSHIELD_REQUEST_TIMEOUT must be positive")
    if config.rpc_timeout <= 0 or config.bulk_rpc_timeout <= 0:
        errors.append("RPC timeouts must be positive")
    if config.cache_ttl_seconds <= 0:
        errors.append("CACHE_TTL_SECONDS must be positive")
    if config.cache_max_size < 2:
        errors.append("CACHE_MAX_SIZE must be at least 2")
    if config.bulk_scan_limit <= 0:
        errors.append("BULK_SCAN_LIMIT must be positive")

    return errors
