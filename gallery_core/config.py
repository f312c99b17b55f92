"""Configuration constants and utilities for the gallery site."""
from __future__ import annotations
import os
import yaml
from pathlib import Path
from typing import Dict, Mapping, Optional
from enum import Enum

from .exceptions import ConfigError


# Defaults, overridable from YAML and then from the environment
PORT_HTTP = 8200
HOST = '0.0.0.0'
FILE_SYSTEM_ROOT = '/home/ubuntu/data/chezwatts.gallery/'
STATS_FILENAME = 'stats.csv'
STATS_LOG_FILENAME = 'stats_log.csv'
STATS_LOG_INTERVAL_HOURS = 24

# Static asset directories served straight from the site root
STATIC_DIRS = ['js', 'css', 'img']

IMAGE_EXTENSIONS = ['.jpg']
PREVIEW_IMAGE = 'preview.jpg'
ABOUT_BLURB = 'about.markdown'
BIO_BLURB = 'bio.markdown'
GALLERY_BLURB = 'blurb.markdown'

TEMPLATES_DIR = Path(__file__).resolve().parent / 'templates'


class SpecialPage(Enum):
    """Counter keys that do not correspond to a gallery."""
    INDEX = "index"
    BIO = "bio"
    TOTAL = "total"

    @classmethod
    def all_values(cls) -> list[str]:
        return [page.value for page in cls]


# Environment variable -> settings key
ENV_OVERRIDES = {
    'GALLERY_ROOT': 'root',
    'GALLERY_HOST': 'host',
    'GALLERY_PORT': 'port',
    'STATS_LOG_INTERVAL_HOURS': 'stats_log_interval_hours',
}


def load_config(cfg_path: Optional[Path]) -> Dict:
    if cfg_path is None or not cfg_path.exists():
        return {}
    with cfg_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse config {cfg_path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config {cfg_path} must be a mapping, got {type(data).__name__}")
    return data


def _positive_int(name: str, value) -> int:
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if out <= 0:
        raise ConfigError(f"{name} must be positive, got {out}")
    return out


class Settings:
    """Resolved site settings and the file-system layout derived from them.

    Layout under ``root``:
        content/about.markdown, content/bio.markdown
        content/galleries/<name>/*.jpg (+ preview.jpg, blurb.markdown)
        js/, css/, img/
        stats.csv, stats_log.csv
    """

    def __init__(self, root=FILE_SYSTEM_ROOT, host: str = HOST, port=PORT_HTTP,
                 stats_log_interval_hours=STATS_LOG_INTERVAL_HOURS,
                 templates_dir=None):
        self.root = Path(root)
        self.host = str(host)
        self.port = _positive_int('port', port)
        self.stats_log_interval_hours = _positive_int('stats_log_interval_hours', stats_log_interval_hours)
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR

    @property
    def content_root(self) -> Path:
        return self.root / 'content'

    @property
    def galleries_root(self) -> Path:
        return self.content_root / 'galleries'

    @property
    def stats_path(self) -> Path:
        return self.root / STATS_FILENAME

    @property
    def stats_log_path(self) -> Path:
        return self.root / STATS_LOG_FILENAME

    def static_dir(self, name: str) -> Path:
        return self.root / name

    @classmethod
    def from_sources(cls, cfg_path: Optional[Path] = None,
                     environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from defaults, then the YAML file, then the environment."""
        values = dict(load_config(cfg_path))
        unknown = set(values) - {'root', 'host', 'port', 'stats_log_interval_hours', 'templates_dir'}
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        env = os.environ if environ is None else environ
        for var, key in ENV_OVERRIDES.items():
            if env.get(var):
                values[key] = env[var]
        return cls(**values)

    def __repr__(self) -> str:
        return (f"Settings(root={str(self.root)!r}, host={self.host!r}, port={self.port}, "
                f"stats_log_interval_hours={self.stats_log_interval_hours})")
