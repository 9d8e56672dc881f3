"""Scan verification: decode a rendered image with independent QR readers."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from qrbrand.logging import audit, get_logger, trace

log = get_logger("verify")


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def _flatten(image: Image.Image) -> Image.Image:
    """Drop alpha onto white; both readers want an opaque picture."""
    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        return background
    return image.convert("RGB")


def _finish(decoder: str, start: float, data: str | None, error: str | None = None) -> ScanResult:
    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=decoder, success=True,
              time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed, decoder=decoder)
    error = error or "No QR code detected"
    audit("scan.verified", logger=log, decoder=decoder, success=False,
          time_ms=round(elapsed, 1), error=error)
    return ScanResult(success=False, decode_time_ms=elapsed, decoder=decoder, error=error)


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan a QR code using pyzbar (wraps ZBar)."""
    start = time.perf_counter()
    try:
        results = pyzbar_decode(_flatten(image))
    except Exception as e:
        audit("scan.error", logger=log, decoder="pyzbar/zbar", error=str(e))
        return _finish("pyzbar/zbar", start, None, str(e))
    data = results[0].data.decode("utf-8", errors="replace") if results else None
    return _finish("pyzbar/zbar", start, data)


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan a QR code using OpenCV's built-in QR detector."""
    start = time.perf_counter()
    try:
        gray = cv2.cvtColor(np.array(_flatten(image)), cv2.COLOR_RGB2GRAY)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        audit("scan.error", logger=log, decoder="opencv", error=str(e))
        return _finish("opencv", start, None, str(e))
    return _finish("opencv", start, data or None)


@trace
def verify(image: Image.Image, expected_data: str | None = None) -> list[ScanResult]:
    """Run all available decoders on an image.

    Args:
        image: Rendered QR image (a text band below the code is fine).
        expected_data: If provided, a decode that returns anything else is a failure.

    Returns:
        List of ScanResults, one per decoder.
    """
    results = []
    for scanner in [scan_pyzbar, scan_opencv]:
        result = scanner(image)
        if result.success and expected_data and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results
