"""Gallery site core: hit counting, stats log and gallery listings."""

from .hit_counter import HitCounter, PageHitCount, sanitise_page_name
from .stats_log import (
    StatsLogAppender,
    append_stats_row,
    read_stats_log,
    update_stats_log,
    write_stats_log,
)
from .gallery import gallery_exists, list_galleries, list_images, load_blurb
from .config import Settings

__all__ = [
    "HitCounter",
    "PageHitCount",
    "sanitise_page_name",
    "StatsLogAppender",
    "append_stats_row",
    "read_stats_log",
    "update_stats_log",
    "write_stats_log",
    "gallery_exists",
    "list_galleries",
    "list_images",
    "load_blurb",
    "Settings",
]
