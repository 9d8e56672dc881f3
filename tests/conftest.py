import io

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def grid21():
    """21x21 grid with a dark top-left corner, light bottom-right, checkerboard elsewhere."""
    rows, cols = np.indices((21, 21))
    grid = (rows + cols) % 2 == 0
    grid[0, 0] = True
    grid[20, 20] = False
    return grid


@pytest.fixture
def make_logo():
    def _make(width, height, color=(255, 0, 0, 255)):
        return Image.new("RGBA", (width, height), color)
    return _make


@pytest.fixture
def logo_png_bytes(make_logo):
    buf = io.BytesIO()
    make_logo(64, 32).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def qr_canvas():
    """Opaque black 1015x1015 canvas, the size a 21-module code renders to at 1024px."""
    return Image.new("RGBA", (1015, 1015), (0, 0, 0, 255))
