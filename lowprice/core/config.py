"""
Configuration management for lowprice.

Loads settings from YAML config file and provides typed access.
Catalog API credentials are never stored in the YAML file; they come from
the environment (optionally via a .env file).
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of lowprice package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

CLIENT_ID_ENV = "NAVER_CLIENT_ID"
CLIENT_SECRET_ENV = "NAVER_CLIENT_SECRET"


@dataclass
class LowPriceConfig:
    """Configuration for the lowest-price search pipeline."""

    # Catalog API
    endpoint: str = "https://openapi.naver.com/v1/search/shop.json"
    timeout_ms: int = 3000              # Per page call
    page_size: int = 100                # Upstream maximum for `display`
    upstream_sort: str = "asc"          # Sort hint sent upstream by the controller

    # Pagination
    default_pages: int = 3
    max_pages: int = 10
    max_start: int = 1000               # Upstream rejects start offsets above this

    # Request defaults
    default_sort: str = "sim"
    default_exclude: List[str] = field(default_factory=lambda: ["used", "rental", "cbshop"])
    max_query_length: int = 100

    # Aggregation
    top_n: int = 10                     # Number of price bands returned
    max_items_per_group: int = 20

    # Client-side refinement
    iqr_multiplier: float = 2.0         # Wider than 1.5, product prices are right-skewed
    min_sample_size: int = 5
    histogram_buckets: int = 20

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "LowPriceConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        if not path.exists():
            return cls()

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        defaults = cls()
        catalog_config = data.get('catalog', {})
        pagination_config = data.get('pagination', {})
        request_config = data.get('request', {})
        results_config = data.get('results', {})
        refinement_config = data.get('refinement', {})

        return cls(
            endpoint=catalog_config.get('endpoint', defaults.endpoint),
            timeout_ms=int(catalog_config.get('timeout_ms', defaults.timeout_ms)),
            page_size=int(catalog_config.get('page_size', defaults.page_size)),
            upstream_sort=catalog_config.get('upstream_sort', defaults.upstream_sort),
            default_pages=int(pagination_config.get('default_pages', defaults.default_pages)),
            max_pages=int(pagination_config.get('max_pages', defaults.max_pages)),
            max_start=int(pagination_config.get('max_start', defaults.max_start)),
            default_sort=request_config.get('default_sort', defaults.default_sort),
            default_exclude=list(request_config.get('default_exclude', defaults.default_exclude)),
            max_query_length=int(request_config.get('max_query_length', defaults.max_query_length)),
            top_n=int(results_config.get('top_n', defaults.top_n)),
            max_items_per_group=int(results_config.get('max_items_per_group', defaults.max_items_per_group)),
            iqr_multiplier=float(refinement_config.get('iqr_multiplier', defaults.iqr_multiplier)),
            min_sample_size=int(refinement_config.get('min_sample_size', defaults.min_sample_size)),
            histogram_buckets=int(refinement_config.get('histogram_buckets', defaults.histogram_buckets)),
        )


def get_credentials() -> Tuple[Optional[str], Optional[str]]:
    """Return (client_id, client_secret) from the environment; empty values count as missing."""
    client_id = os.environ.get(CLIENT_ID_ENV) or None
    client_secret = os.environ.get(CLIENT_SECRET_ENV) or None
    return client_id, client_secret


def missing_credentials() -> List[str]:
    """Names of credential environment variables that are unset or empty."""
    return [name for name in (CLIENT_ID_ENV, CLIENT_SECRET_ENV) if not os.environ.get(name)]


# Global config instance
_config: Optional[LowPriceConfig] = None


def get_config() -> LowPriceConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = LowPriceConfig.from_yaml()
    return _config


def set_config(config: LowPriceConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
