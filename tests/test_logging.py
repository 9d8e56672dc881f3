import json
import logging

import pytest

from qrbrand.logging import AUDIT, ConsoleFormatter, audit, get_logger, setup_logging, trace


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "qrbrand.log"
    yield path
    root = logging.getLogger("qrbrand")
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)


def _entries(path):
    for handler in logging.getLogger("qrbrand").handlers:
        handler.flush()
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def test_get_logger_namespace():
    assert get_logger("text").name == "qrbrand.text"


def test_audit_writes_json_event(log_file):
    setup_logging(level="INFO", log_file=str(log_file))
    audit("qr.rendered", logger=get_logger("generator"), ppm=35, modules=21)
    entry = _entries(log_file)[-1]
    assert entry["event"] == "qr.rendered"
    assert entry["level"] == "AUDIT"
    assert entry["src"] == "qrbrand.generator"
    assert entry["ctx"] == {"ppm": 35, "modules": 21}


def test_trace_logs_done_and_error(log_file):
    setup_logging(level="DEBUG", log_file=str(log_file))

    @trace(logger_name="testing")
    def double(x):
        if x < 0:
            raise ValueError("negative")
        return x * 2

    assert double(4) == 8
    with pytest.raises(ValueError):
        double(-1)

    events = [e["event"] for e in _entries(log_file)]
    assert "double.enter" in events
    assert "double.done" in events
    assert "double.error" in events


def test_audit_level_filtering(log_file):
    setup_logging(level="ERROR", log_file=str(log_file))
    audit("should.not.appear")
    assert _entries(log_file) == []


def test_console_formatter_includes_context():
    log = get_logger("fmt")
    record = log.makeRecord(log.name, AUDIT, "", 0, "", (), None)
    record.event = "logo.overlaid"
    record.ctx = {"box": "203x203"}
    line = ConsoleFormatter().format(record)
    assert "logo.overlaid" in line
    assert "box=203x203" in line
    assert "[qrbrand.fmt]" in line


def test_plain_messages_and_image_arguments(log_file):
    from PIL import Image

    setup_logging(level="DEBUG", log_file=str(log_file))
    get_logger("plain").warning("disk %s is full", "/tmp")

    @trace(logger_name="testing")
    def width(img):
        return img.width

    assert width(Image.new("RGBA", (40, 30))) == 40

    entries = _entries(log_file)
    plain = next(e for e in entries if "msg" in e)
    assert plain["msg"] == "disk /tmp is full"
    assert plain["ts"].endswith("Z")
    enter = next(e for e in entries if e.get("event") == "width.enter")
    assert enter["ctx"]["args"] == ["<Image[40x30]>"]
    done = next(e for e in entries if e.get("event") == "width.done")
    assert done["ctx"] == {"result": "40"}
    assert done["duration_ms"] >= 0
