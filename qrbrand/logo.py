"""Logo loading and center overlay with an optional protective plate."""

import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from qrbrand.compose import WHITE, Rect, composite_at, draw_rect, resize_fit
from qrbrand.config import check_logo_scale
from qrbrand.errors import DecodeFailure
from qrbrand.logging import audit, get_logger, trace

log = get_logger("logo")


@dataclass(frozen=True)
class LogoPlacement:
    """Where the logo and its plate land on the base image."""

    logo: Rect
    plate: Rect | None = None


@trace
def load_logo(source: str | Path | bytes) -> Image.Image:
    """Decode a logo from a path or raw bytes into an RGBA image.

    PNG transparency is kept; JPEGs and other opaque formats get a solid
    alpha channel.

    Raises:
        DecodeFailure: the file is missing, unreadable, or not an image.
    """
    if isinstance(source, (bytes, bytearray)):
        label = f"logo image ({len(source)} bytes)"
        fp = io.BytesIO(source)
    else:
        label = f"logo image {source}"
        fp = source

    try:
        with Image.open(fp) as img:
            img.load()
            logo = img.convert("RGBA")
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeFailure(label, str(e)) from e

    if logo.width == 0 or logo.height == 0:
        raise DecodeFailure(label, "image has no pixels")
    audit("logo.loaded", logger=log, source=label, size=f"{logo.width}x{logo.height}")
    return logo


def plan_placement(
    base_size: tuple[int, int],
    logo_size: tuple[int, int],
    plate: bool,
    pad: float,
) -> LogoPlacement:
    """Center the logo, and if requested a square plate grown by ``pad`` around it.

    The plate side is ``max(lw, lh) + 2 * round(max(lw, lh) * pad)`` so it
    covers the logo rectangle plus the pad margin on every side.
    """
    base_w, base_h = base_size
    lw, lh = logo_size
    logo_rect = Rect.centered(base_w, base_h, lw, lh)
    if not plate:
        return LogoPlacement(logo=logo_rect)

    longest = max(lw, lh)
    pad_px = round(longest * pad)
    side = longest + 2 * pad_px
    plate_rect = Rect.centered(base_w, base_h, side, side)
    return LogoPlacement(logo=logo_rect, plate=plate_rect)


@trace
def overlay_logo(
    base: Image.Image,
    logo: Image.Image,
    scale: float = 0.20,
    plate: bool = True,
    pad: float = 0.18,
) -> Image.Image:
    """Paste ``logo`` into the center of ``base``, mutating ``base``.

    The logo is fit into a ``round(base_width * scale)`` square, keeping its
    aspect ratio, and blended with its own alpha. With ``plate`` a white
    square is drawn first so no dark module is half covered at the logo
    edge.

    Raises:
        InvalidScale: ``scale`` outside [0.05, 0.35]; checked before any pixel work.
    """
    check_logo_scale(scale)
    if pad < 0:
        raise ValueError(f"logo pad must be >= 0, got {pad}")

    target = max(1, round(base.width * scale))
    resized = resize_fit(logo, target, target)
    placement = plan_placement(base.size, resized.size, plate, pad)

    if placement.plate is not None:
        draw_rect(base, placement.plate, WHITE)

    composite_at(base, resized, placement.logo.x, placement.logo.y)

    audit("logo.overlaid", logger=log,
          box=f"{target}x{target}", logo=f"{resized.width}x{resized.height}",
          at=f"{placement.logo.x},{placement.logo.y}",
          plate=f"{placement.plate.width}px" if placement.plate else "none")
    return base
