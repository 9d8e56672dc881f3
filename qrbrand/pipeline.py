"""End-to-end pipeline: URL -> QR canvas -> logo overlay -> text band -> PNG."""

from pathlib import Path

from PIL import Image

from qrbrand.config import RenderParams
from qrbrand.generator import check_size, encode_url, render_qr, validate_url
from qrbrand.logging import audit, get_logger, trace
from qrbrand.logo import overlay_logo
from qrbrand.text import FontFace, append_text_band, load_font

log = get_logger("pipeline")


@trace
def generate_branded_qr(
    url: str,
    params: RenderParams | None = None,
    logo: Image.Image | None = None,
    font: FontFace | None = None,
) -> Image.Image:
    """Render the finished RGBA image for ``url``.

    Every check (URL, parameters, pixels per module) runs before the canvas
    is allocated. Nothing is written to disk; see ``save_png``.
    """
    params = (params or RenderParams()).validate()
    url = validate_url(url)
    grid = encode_url(url)
    check_size(grid.shape[0], params.size, params.quiet_zone_modules)

    text = params.text_for(url)
    if text is not None and font is None:
        font = load_font()

    image = render_qr(grid, params.size, params.quiet_zone_modules)

    if logo is not None:
        image = overlay_logo(
            image, logo,
            scale=params.logo_scale,
            plate=params.logo_plate,
            pad=params.logo_pad,
        )

    if text is not None:
        image = append_text_band(image, text, font)

    audit("pipeline.rendered", logger=log,
          url=url[:80], logo=logo is not None, text=text is not None,
          image_px=f"{image.width}x{image.height}")
    return image


@trace
def save_png(image: Image.Image, path: str | Path) -> Path:
    """Write ``image`` as PNG, creating parent directories as needed."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    image.save(output, format="PNG")
    audit("output.saved", logger=log, path=str(output), size=f"{image.width}x{image.height}")
    return output
