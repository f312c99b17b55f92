"""Read-only views of the gallery directory tree."""
from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import List, NamedTuple
from urllib.parse import quote

from .config import IMAGE_EXTENSIONS, PREVIEW_IMAGE

logger = logging.getLogger(__name__)


class GalleryLink(NamedTuple):
    name: str
    preview_image: str


def _is_plain_name(name: str) -> bool:
    return bool(name) and name not in ('.', '..') and '/' not in name and '\\' not in name


def gallery_exists(galleries_root: Path, name: str) -> bool:
    """True only for an existing directory directly under ``galleries_root``."""
    if not _is_plain_name(name):
        return False
    root = Path(galleries_root)
    try:
        candidate = (root / name).resolve()
        if not candidate.is_relative_to(root.resolve()):
            logger.warning(f"Gallery {name!r} resolves outside {root}")
            return False
        return candidate.is_dir()
    except OSError as e:
        logger.warning(f"Could not check gallery {name!r}: {e}")
        return False


def list_galleries(galleries_root: Path) -> List[GalleryLink]:
    try:
        entries = sorted(Path(galleries_root).iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.error(f"Could not list galleries in {galleries_root}: {e}")
        return []

    result = []
    for entry in entries:
        if entry.is_dir():
            preview = f"/galleries/{quote(entry.name)}/{PREVIEW_IMAGE}"
            result.append(GalleryLink(entry.name, preview))
    return result


def list_images(galleries_root: Path, name: str) -> List[str]:
    """URLs of a gallery's images, excluding its preview image."""
    directory = Path(galleries_root) / name
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.error(f"Could not list images in {directory}: {e}")
        return []

    return [
        f"/galleries/{quote(name)}/{quote(entry.name)}"
        for entry in entries
        if entry.is_file()
        and entry.suffix.lower() in IMAGE_EXTENSIONS
        and entry.name != PREVIEW_IMAGE
    ]


def load_blurb(path: Path) -> List[str]:
    """Paragraphs of a blurb text file; an unreadable file gives no paragraphs."""
    try:
        text = Path(path).read_text(encoding='utf-8')
    except OSError as e:
        logger.info(f"No blurb at {path}: {e}")
        return []
    paragraphs = re.split(r'\n\s*\n', text.strip())
    return [' '.join(p.split()) for p in paragraphs if p.strip()]
