import sys
from pathlib import Path

import pytest

# Ensure the repo root is on sys.path for absolute imports.
REPO_ROOT = Path(__file__).resolve().parents[1]
repo_root_str = str(REPO_ROOT)
if repo_root_str not in sys.path:
    sys.path.insert(0, repo_root_str)

from folderise.config import parse_options  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.4\n%...\n"


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small site tree:

    root/
      intro.md, logo.png, .hidden, _draft.md
      a/ notes.md, manual.pdf, b/ deep.md, b/c/
      x/
    """
    root = tmp_path / "site"
    (root / "a" / "b" / "c").mkdir(parents=True)
    (root / "x").mkdir()
    (root / "_private").mkdir()
    (root / "intro.md").write_text("# Welcome\n\nHello there", encoding="utf-8")
    (root / "logo.png").write_bytes(PNG_BYTES)
    (root / ".hidden").write_text("secret", encoding="utf-8")
    (root / "_draft.md").write_text("draft", encoding="utf-8")
    (root / "a" / "notes.md").write_text("Some *notes*", encoding="utf-8")
    (root / "a" / "manual.pdf").write_bytes(PDF_BYTES)
    (root / "a" / "b" / "deep.md").write_text("Deep text", encoding="utf-8")
    return root


@pytest.fixture
def make_settings():
    def _make(folder: Path, **overrides):
        options = {"folder": str(folder), "title": "Test site", "watch": False, "refresh": False}
        options.update(overrides)
        return parse_options(options)

    return _make
