import sys
from pathlib import Path

import pytest

# Add project root to sys.path for local package imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def site_root(tmp_path):
    """Minimal site tree with two galleries, blurbs and static dirs."""
    content = tmp_path / "content"
    galleries = content / "galleries"
    for name in ("landscapes", "portraits"):
        (galleries / name).mkdir(parents=True)
        (galleries / name / "preview.jpg").write_bytes(b"preview")
    (galleries / "landscapes" / "a.jpg").write_bytes(b"jpeg")
    (galleries / "landscapes" / "B.JPG").write_bytes(b"jpeg")
    (galleries / "landscapes" / "notes.txt").write_text("not an image")
    (galleries / "landscapes" / "blurb.markdown").write_text("Hills and valleys.\n\nShot in spring.\n")
    (galleries / "stray.jpg").write_bytes(b"not a gallery")
    (content / "about.markdown").write_text("About this site.\n")
    (content / "bio.markdown").write_text("Photographer bio.\n")
    for static in ("js", "css", "img"):
        (tmp_path / static).mkdir()
    (tmp_path / "css" / "site.css").write_text("body { margin: 0; }")
    return tmp_path
