import pytest

pytest.importorskip("cv2")
pytest.importorskip("pyzbar.pyzbar")

from qrbrand.config import RenderParams  # noqa: E402
from qrbrand.pipeline import generate_branded_qr  # noqa: E402
from qrbrand.verify import scan_pyzbar, verify  # noqa: E402

URL = "https://github.com/softwarewrighter/speed-kings"


def test_plain_code_scans():
    img = generate_branded_qr(URL, RenderParams(size=600))
    result = scan_pyzbar(img)
    assert result.success
    assert result.decoded_data == URL
    assert result.decoder == "pyzbar/zbar"


def test_logo_with_plate_and_band_still_scans(make_logo):
    img = generate_branded_qr(
        URL,
        RenderParams(size=800, show_url=True),
        logo=make_logo(200, 200, (30, 30, 30, 255)),
    )
    results = verify(img, expected_data=URL)
    assert len(results) == 2
    assert any(r.success for r in results)


def test_mismatch_is_failure():
    img = generate_branded_qr(URL, RenderParams(size=600))
    results = verify(img, expected_data="https://example.com")
    for r in results:
        assert not r.success
    assert any(r.error and r.error.startswith("Data mismatch") for r in results)


def test_blank_image_fails(make_logo):
    result = scan_pyzbar(make_logo(200, 200, (255, 255, 255, 255)))
    assert not result.success
    assert result.error == "No QR code detected"
