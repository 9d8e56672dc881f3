"""Compositing primitives: source-over blending, rectangle fill, aspect-fit resize."""

from dataclasses import dataclass

import numpy as np
from PIL import Image

from qrbrand.logging import get_logger, trace

log = get_logger("compose")

Pixel = tuple[int, int, int, int]

WHITE: Pixel = (255, 255, 255, 255)
BLACK: Pixel = (0, 0, 0, 255)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel space. May extend past the canvas."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, other: "Rect") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and self.right >= other.right
            and self.bottom >= other.bottom
        )

    def grow(self, margin: int) -> "Rect":
        return Rect(self.x - margin, self.y - margin, self.width + 2 * margin, self.height + 2 * margin)

    @classmethod
    def centered(cls, outer_w: int, outer_h: int, width: int, height: int) -> "Rect":
        """Rectangle of the given size centered in an outer_w x outer_h canvas."""
        return cls((outer_w - width) // 2, (outer_h - height) // 2, width, height)


# ---------------------------------------------------------------------------
# Source-over blending
# ---------------------------------------------------------------------------

def blend_over(dst: Pixel, src: Pixel) -> Pixel:
    """Composite one straight-alpha RGBA pixel over another.

    Each channel is ``src*a + dst*(1-a)`` in 8-bit fixed point with rounding,
    so ``a == 0`` returns ``dst`` and ``a == 255`` returns ``src`` exactly.
    """
    a = src[3]
    inv = 255 - a
    r = (src[0] * a + dst[0] * inv + 127) // 255
    g = (src[1] * a + dst[1] * inv + 127) // 255
    b = (src[2] * a + dst[2] * inv + 127) // 255
    alpha = (255 * a + dst[3] * inv + 127) // 255
    return (r, g, b, alpha)


def blend_arrays(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    """Vectorized ``blend_over`` for (h, w, 4) uint8 arrays of equal shape."""
    if dst.shape != src.shape:
        raise ValueError(f"shape mismatch: dst {dst.shape} vs src {src.shape}")
    d = dst.astype(np.uint32)
    s = src.astype(np.uint32)
    a = s[..., 3:4]
    inv = 255 - a
    out = np.empty_like(d)
    out[..., :3] = (s[..., :3] * a + d[..., :3] * inv + 127) // 255
    out[..., 3:4] = (255 * a + d[..., 3:4] * inv + 127) // 255
    return out.astype(np.uint8)


def composite_at(base: Image.Image, overlay: Image.Image, x: int, y: int) -> Image.Image:
    """Blend ``overlay`` onto ``base`` in place with its top-left at (x, y).

    Parts of the overlay outside the base are dropped.
    """
    rect = Rect(x, y, overlay.width, overlay.height)
    clip = _clip(rect, base.width, base.height)
    if clip is None:
        return base
    x0, y0, x1, y1 = clip

    region = np.asarray(base.crop((x0, y0, x1, y1)).convert("RGBA"))
    src = np.asarray(overlay.convert("RGBA"))[y0 - y:y1 - y, x0 - x:x1 - x]
    blended = Image.fromarray(blend_arrays(region, src))
    base.paste(blended, (x0, y0))
    return base


# ---------------------------------------------------------------------------
# Rectangles
# ---------------------------------------------------------------------------

def _clip(rect: Rect, width: int, height: int) -> tuple[int, int, int, int] | None:
    x0 = max(rect.x, 0)
    y0 = max(rect.y, 0)
    x1 = min(rect.right, width)
    y1 = min(rect.bottom, height)
    if x0 >= x1 or y0 >= y1:
        return None
    return x0, y0, x1, y1


def draw_rect(image: Image.Image, rect: Rect, color: Pixel) -> Image.Image:
    """Fill ``rect`` with a solid color, clipped to the image. Off-canvas is a no-op."""
    clip = _clip(rect, image.width, image.height)
    if clip is not None:
        image.paste(color, clip)
    return image


# ---------------------------------------------------------------------------
# Resizing
# ---------------------------------------------------------------------------

def fit_dimensions(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Largest size with the same aspect ratio that fits the box, never upscaled.

    The limiting axis lands on the box edge exactly; the other axis is floored.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"image has no pixels: {width}x{height}")
    if max_width <= 0 or max_height <= 0:
        raise ValueError(f"bounding box has no area: {max_width}x{max_height}")
    if width <= max_width and height <= max_height:
        return width, height
    # Integer cross-multiplication avoids float drift at the box edge
    if width * max_height >= height * max_width:
        return max_width, max(1, height * max_width // width)
    return max(1, width * max_height // height), max_height


@trace
def resize_fit(image: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Resize preserving aspect ratio so the result fits in max_width x max_height.

    Uses Lanczos resampling, which holds up well when shrinking photographic
    logos. Images already inside the box are returned as an unscaled copy.
    """
    new_w, new_h = fit_dimensions(image.width, image.height, max_width, max_height)
    if (new_w, new_h) == image.size:
        return image.copy()
    log.debug("resize_fit %dx%d -> %dx%d", image.width, image.height, new_w, new_h)
    return image.resize((new_w, new_h), Image.Resampling.LANCZOS)
