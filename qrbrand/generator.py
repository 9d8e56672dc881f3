"""QR encoding and rasterization: URL -> module grid -> crisp RGBA canvas."""

from urllib.parse import urlsplit

import numpy as np
import qrcode
import qrcode.constants
from PIL import Image

from qrbrand.config import MIN_PIXELS_PER_MODULE
from qrbrand.errors import InvalidURL, SizeTooSmall
from qrbrand.logging import audit, get_logger, trace

log = get_logger("generator")

# Level H tolerates ~30% damage, enough for a center logo
ERROR_CORRECTION = qrcode.constants.ERROR_CORRECT_H

ModuleGrid = np.ndarray


def validate_url(url: str) -> str:
    """Return ``url`` unchanged if it has a scheme and a host, else raise InvalidURL."""
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        raise InvalidURL(url)
    return url.strip()


@trace
def encode_url(url: str) -> ModuleGrid:
    """Encode ``url`` as a read-only boolean module grid (True = dark).

    The grid has no quiet zone; the rasterizer adds it.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECTION,
        box_size=1,
        border=0,
    )
    qr.add_data(url)
    qr.make(fit=True)

    grid = as_grid(qr.modules)
    audit("qr.encoded", logger=log,
          data=url[:80], version=qr.version,
          size=f"{grid.shape[0]}x{grid.shape[1]}", ecc="H")
    return grid


def as_grid(modules) -> ModuleGrid:
    """Coerce a nested sequence of truthy values to a frozen square bool array."""
    grid = np.array(modules, dtype=bool)
    if grid.ndim != 2 or grid.shape[0] == 0 or grid.shape[0] != grid.shape[1]:
        raise ValueError(f"module grid must be a non-empty square matrix, got shape {grid.shape}")
    grid.setflags(write=False)
    return grid


def pixels_per_module(module_count: int, target_size: int, quiet_zone_modules: int) -> tuple[int, int]:
    """Return ``(total_modules, pixels_per_module)`` for a canvas request."""
    if quiet_zone_modules < 0:
        raise ValueError(f"quiet zone must be >= 0 modules, got {quiet_zone_modules}")
    total_modules = module_count + 2 * quiet_zone_modules
    return total_modules, target_size // total_modules


def check_size(module_count: int, target_size: int, quiet_zone_modules: int) -> int:
    """Raise SizeTooSmall unless every module gets at least two pixels.

    Returns the pixels-per-module value on success.
    """
    total_modules, ppm = pixels_per_module(module_count, target_size, quiet_zone_modules)
    if ppm < MIN_PIXELS_PER_MODULE:
        raise SizeTooSmall(target_size, total_modules, ppm)
    return ppm


@trace
def render_qr(grid, target_size: int, quiet_zone_modules: int = 4) -> Image.Image:
    """Rasterize a module grid onto an opaque white RGBA canvas.

    The side length is ``ppm * (module_count + 2 * quiet_zone_modules)`` where
    ``ppm = target_size // total_modules``, so it can come out a few pixels
    under ``target_size``. Module edges stay on whole pixels and the image
    holds only pure black and pure white.

    Raises:
        SizeTooSmall: if ``ppm`` would be below 2.
    """
    grid = as_grid(grid)
    module_count = grid.shape[0]
    ppm = check_size(module_count, target_size, quiet_zone_modules)

    # Pad the grid with light modules, then blow each module up to ppm x ppm
    bordered = np.pad(grid, quiet_zone_modules, mode="constant", constant_values=False)
    dark = np.repeat(np.repeat(bordered, ppm, axis=0), ppm, axis=1)

    canvas = np.full(dark.shape + (4,), 255, dtype=np.uint8)
    canvas[dark, :3] = 0
    img = Image.fromarray(canvas)

    audit("qr.rendered", logger=log,
          modules=module_count, quiet=quiet_zone_modules, ppm=ppm,
          requested=target_size, image_px=f"{img.width}x{img.height}")
    return img
