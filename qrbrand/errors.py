"""Exception types raised by the qrbrand pipeline.

Every error is detected before large buffers are allocated and none of them
is retryable: the pipeline is deterministic, so the same inputs fail the
same way.
"""


class QRBrandError(Exception):
    """Base class for all qrbrand failures."""


class SizeTooSmall(QRBrandError, ValueError):
    """Requested canvas yields fewer than the minimum pixels per module."""

    def __init__(self, size: int, total_modules: int, pixels_per_module: int):
        self.size = size
        self.total_modules = total_modules
        self.pixels_per_module = pixels_per_module
        super().__init__(
            f"Requested size {size} too small for total modules {total_modules} "
            f"(ppm={pixels_per_module}). Increase --size."
        )


class InvalidScale(QRBrandError, ValueError):
    """Logo scale outside the range that keeps the code scannable."""

    def __init__(self, scale: float, low: float, high: float):
        self.scale = scale
        super().__init__(
            f"Logo scale {scale} should be between {low} and {high} for scan reliability"
        )


class InvalidURL(QRBrandError, ValueError):
    """URL is missing a scheme or host."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url} (did you include https:// ?)")


class DecodeFailure(QRBrandError):
    """An image or font could not be decoded.

    The underlying Pillow/FreeType exception is chained as ``__cause__``.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to decode {source}: {reason}")
