import pytest
from PIL import Image

from qrbrand.config import RenderParams
from qrbrand.errors import InvalidScale, InvalidURL, SizeTooSmall
from qrbrand.generator import encode_url
from qrbrand.pipeline import generate_branded_qr, save_png

URL = "https://github.com/softwarewrighter/speed-kings"


def _expected_side(url, size=1024, quiet=4):
    total = encode_url(url).shape[0] + 2 * quiet
    return (size // total) * total


def test_plain_code():
    img = generate_branded_qr(URL)
    side = _expected_side(URL)
    assert img.size == (side, side)
    assert img.mode == "RGBA"
    assert len(img.getcolors(maxcolors=16)) == 2


def test_logo_and_url_band(make_logo):
    params = RenderParams(show_url=True)
    img = generate_branded_qr(URL, params, logo=make_logo(300, 300, (0, 128, 255, 255)))
    side = _expected_side(URL)
    band = max(round(side * 0.18), 120)
    assert img.size == (side, side + band)
    assert img.getpixel((side // 2, side // 2)) == (0, 128, 255, 255)


def test_alt_text_replaces_url():
    params = RenderParams(alt_text="Speed Kings")
    assert params.text_for(URL) == "Speed Kings"
    img = generate_branded_qr(URL, params)
    assert img.height > img.width


def test_no_text_by_default():
    assert RenderParams().text_for(URL) is None
    assert RenderParams(show_url=True).text_for(URL) == URL


def test_size_too_small_before_render():
    with pytest.raises(SizeTooSmall):
        generate_branded_qr(URL, RenderParams(size=50))


def test_invalid_scale_rejected_eagerly(make_logo):
    with pytest.raises(InvalidScale):
        generate_branded_qr(URL, RenderParams(logo_scale=0.5), logo=make_logo(10, 10))


def test_invalid_url():
    with pytest.raises(InvalidURL):
        generate_branded_qr("speed-kings")


@pytest.mark.parametrize("params", [
    RenderParams(quiet_zone_modules=-1),
    RenderParams(size=0),
    RenderParams(logo_pad=-0.1),
    RenderParams(show_url=True, alt_text="both"),
])
def test_params_validation(params):
    with pytest.raises(ValueError):
        params.validate()


def test_save_png_creates_directories(tmp_path):
    img = generate_branded_qr(URL, RenderParams(size=300))
    out = save_png(img, tmp_path / "nested" / "dir" / "qr.png")
    assert out.exists()
    with Image.open(out) as reread:
        assert reread.format == "PNG"
        assert reread.size == img.size
