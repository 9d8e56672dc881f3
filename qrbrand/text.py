"""Text band renderer: auto-fit a single line of text below the QR code.

The font is decoded once per process and shared read-only; each size is
instantiated lazily from the same in-memory font bytes.
"""

import functools
import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from qrbrand.compose import BLACK, WHITE, composite_at
from qrbrand.config import DEFAULT_FONT_PATH
from qrbrand.errors import DecodeFailure
from qrbrand.logging import audit, get_logger, trace

log = get_logger("text")

BAND_RATIO = 0.18
MIN_BAND_PX = 120
MARGIN_RATIO = 0.06
MIN_MARGIN_PX = 24
START_SIZE_RATIO = 0.35
MIN_START_PX = 18
MIN_FONT_PX = 14.0
SHRINK_FACTOR = 0.92


# ---------------------------------------------------------------------------
# Font capability
# ---------------------------------------------------------------------------

class FontFace:
    """A decoded TrueType face that can measure and rasterize one line of text."""

    def __init__(self, data: bytes, name: str = "font"):
        self._data = data
        self.name = name
        self._sizes: dict[float, ImageFont.FreeTypeFont] = {}
        # Fail now rather than halfway through a render
        self.at(MIN_FONT_PX)

    def at(self, size: float) -> ImageFont.FreeTypeFont:
        font = self._sizes.get(size)
        if font is None:
            try:
                font = ImageFont.truetype(io.BytesIO(self._data), size)
            except OSError as e:
                raise DecodeFailure(self.name, str(e)) from e
            self._sizes[size] = font
        return font

    def measure(self, text: str, size: float) -> float:
        """Advance width of ``text`` in pixels at ``size``, kerning included."""
        return self.at(size).getlength(single_line(text))

    def rasterize(self, text: str, size: float) -> tuple[Image.Image, tuple[int, int]]:
        """Render ``text`` to an 8-bit coverage mask.

        Returns the mask and its offset from the anchor point, which sits on
        the left edge of the line at the vertical middle of the face.
        """
        text = single_line(text)
        font = self.at(size)
        left, top, right, bottom = font.getbbox(text, anchor="lm")
        mask = Image.new("L", (max(right - left, 1), max(bottom - top, 1)), 0)
        ImageDraw.Draw(mask).text((-left, -top), text, fill=255, font=font, anchor="lm")
        return mask, (left, top)

    def __repr__(self):
        return f"FontFace({self.name!r})"


def load_font(path: str | Path | None = None) -> FontFace:
    """Load a font face, defaulting to the bundled DejaVu Sans.

    Cached per resolved path, so each face is decoded once per process
    however the path is spelled.

    Raises:
        DecodeFailure: the file is missing or is not a usable font.
    """
    font_path = Path(path).resolve() if path else DEFAULT_FONT_PATH
    return _load_font(font_path)


@functools.lru_cache(maxsize=None)
def _load_font(font_path: Path) -> FontFace:
    try:
        data = font_path.read_bytes()
    except OSError as e:
        raise DecodeFailure(f"font {font_path}", str(e)) from e
    face = FontFace(data, name=f"font {font_path}")
    audit("font.loaded", logger=log, path=str(font_path), bytes=len(data))
    return face


def single_line(text: str) -> str:
    """Collapse line breaks to spaces; the band holds exactly one line."""
    return " ".join(text.splitlines())


# ---------------------------------------------------------------------------
# Auto-fit
# ---------------------------------------------------------------------------

def band_height_for(base_height: int) -> int:
    return max(round(base_height * BAND_RATIO), MIN_BAND_PX)


def margin_for(base_width: int) -> int:
    return max(round(base_width * MARGIN_RATIO), MIN_MARGIN_PX)


def start_size_for(band_height: int) -> float:
    return float(max(round(band_height * START_SIZE_RATIO), MIN_START_PX))


def candidate_sizes(start: float, floor: float = MIN_FONT_PX, factor: float = SHRINK_FACTOR):
    """Yield ``start`` then successive ``*factor`` shrinks, clamped to end exactly at ``floor``."""
    size = float(start)
    yield size
    while size > floor:
        size = max(size * factor, floor)
        yield size


@trace
def fit_font_size(text: str, font: FontFace, max_width: float, start: float) -> float:
    """Largest candidate size at which ``text`` fits in ``max_width``.

    Walks ``candidate_sizes(start)`` and stops at the first fit. If nothing
    fits the floor size is returned and the text overflows.
    """
    size = start
    tried = 0
    for size in candidate_sizes(start):
        tried += 1
        if font.measure(text, size) <= max_width:
            break
    audit("text.fitted", logger=log,
          start=start, font_px=round(size, 2), steps=tried, max_w=max_width)
    return size


# ---------------------------------------------------------------------------
# Band rendering
# ---------------------------------------------------------------------------

@trace
def append_text_band(base: Image.Image, text: str, font: FontFace | None = None) -> Image.Image:
    """Return a new, taller image: ``base`` on top, ``text`` centered in a white band below."""
    font = font or load_font()
    text = single_line(text)
    width, height = base.size
    band_h = band_height_for(height)

    out = Image.new("RGBA", (width, height + band_h), WHITE)
    out.paste(base.convert("RGBA"), (0, 0))

    margin = margin_for(width)
    max_text_w = max(width - 2 * margin, 0)
    size = fit_font_size(text, font, max_text_w, start_size_for(band_h))
    text_w = font.measure(text, size)

    if text.strip():
        mask, (off_x, off_y) = font.rasterize(text, size)
        anchor_x = max((width - text_w) / 2, margin)
        anchor_y = height + band_h / 2
        ink = np.zeros((mask.height, mask.width, 4), dtype=np.uint8)
        ink[..., :3] = BLACK[:3]
        ink[..., 3] = np.asarray(mask)
        composite_at(out, Image.fromarray(ink), round(anchor_x + off_x), round(anchor_y + off_y))

    audit("text.band_appended", logger=log,
          text=text[:80], band=band_h, font_px=round(size, 2),
          text_w=round(text_w, 1), max_w=max_text_w,
          overflow=text_w > max_text_w)
    return out
