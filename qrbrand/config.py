"""Rendering parameters and their validation."""

from dataclasses import dataclass
from pathlib import Path

from qrbrand.errors import InvalidScale

MIN_LOGO_SCALE = 0.05
MAX_LOGO_SCALE = 0.35
MIN_PIXELS_PER_MODULE = 2

DEFAULT_FONT_PATH = Path(__file__).resolve().parent / "assets" / "DejaVuSans.ttf"


@dataclass(frozen=True)
class RenderParams:
    """Settings for one pipeline run. Defaults match the CLI."""

    size: int = 1024
    quiet_zone_modules: int = 4
    logo_scale: float = 0.20
    logo_plate: bool = True
    logo_pad: float = 0.18
    show_url: bool = False
    alt_text: str | None = None

    def validate(self) -> "RenderParams":
        """Check the invariants that do not depend on the encoded grid.

        The pixels-per-module bound needs the module count and is checked by
        ``qrbrand.generator.check_size`` once the URL is encoded.
        """
        if self.size <= 0:
            raise ValueError(f"size must be positive, got {self.size}")
        if self.quiet_zone_modules < 0:
            raise ValueError(f"quiet zone must be >= 0 modules, got {self.quiet_zone_modules}")
        check_logo_scale(self.logo_scale)
        if self.logo_pad < 0:
            raise ValueError(f"logo pad must be >= 0, got {self.logo_pad}")
        if self.show_url and self.alt_text is not None:
            raise ValueError("show_url and alt_text are mutually exclusive")
        return self

    def text_for(self, url: str) -> str | None:
        """Text for the band below the code, or None when no band is wanted."""
        if self.alt_text is not None:
            return self.alt_text
        if self.show_url:
            return url
        return None


def check_logo_scale(scale: float) -> float:
    if not (MIN_LOGO_SCALE <= scale <= MAX_LOGO_SCALE):
        raise InvalidScale(scale, MIN_LOGO_SCALE, MAX_LOGO_SCALE)
    return scale
