import os
import sys
from pathlib import Path

# Run Qt headless unless a platform is chosen explicitly
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtGui import QColor, QImage

# Add the project root to sys.path so epicmd / EpicPyside import without installing
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from epicmd.settings_models import RenderStyle  # noqa: E402


@pytest.fixture
def style():
    """Return the default render style."""
    return RenderStyle()


@pytest.fixture
def sample_image(qapp, tmp_path: Path):
    """Create a 200x100 PNG next to the markdown under test."""
    img = QImage(200, 100, QImage.Format_RGB32)
    img.fill(QColor("white"))
    img_path = tmp_path / "sample.png"
    assert img.save(str(img_path), "PNG")
    return img_path
