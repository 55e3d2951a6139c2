"""
Shared pytest fixtures for the Raise Lab quotation test suite.

Every test runs against an isolated data dir with no logo configured, so
PDFs never depend on what happens to be in the repo's data/ folder.
"""
import io
import base64
import logging
import os

import pytest
from PIL import Image


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect DATA_DIR / LOG_DIR to an isolated tmp directory."""
    data = str(tmp_path / "data")
    os.makedirs(data, exist_ok=True)
    monkeypatch.delenv("RAISEQUOTE_LOGO", raising=False)

    from raisequote.core import paths, logging_config
    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(logging_config, "LOG_DIR", os.path.join(data, "logs"))
    return data


# ── Image helpers ─────────────────────────────────────────────────────────────

def make_png(width, height, color=(200, 30, 30), mode="RGB") -> bytes:
    if mode == "RGBA":
        color = color + (128,)
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def data_uri(raw: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(raw).decode()


class FakeResponse:
    """Stand-in for requests.Response in monkeypatched requests.get."""
    def __init__(self, content=b"", status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def wide_png():
    return make_png(1600, 600)


@pytest.fixture
def tall_png():
    return make_png(300, 600, color=(30, 30, 200))


@pytest.fixture
def wide_image_file(tmp_path, wide_png):
    p = tmp_path / "wide.png"
    p.write_bytes(wide_png)
    return str(p)


# ── Sample data factories ─────────────────────────────────────────────────────

@pytest.fixture
def sample_quotation():
    return {
        "id": "q-1",
        "quotation_number": "RLE-2024-001",
        "customer_name": "Sri Venkateswara Pharma Pvt Ltd",
        "customer_address": "Plot 12, IDA Bollaram\nSangareddy, Telangana 502325",
        "created_at": "2024-01-01",
        "currency": "INR",
    }


@pytest.fixture
def sample_item():
    return {
        "id": 1,
        "name": "Antibiotic Zone Reader",
        "description": "Microprocessor based zone reader for antibiotic assay plates.",
        "price": 100000,
        "selectedAddons": [
            {"name": "Calibration Coin Set", "price": 25000},
            {"name": "Thermal Paper Roll", "price": "500"},
        ],
        "image_format": "wide",
        "features": [],
        "specs": [
            {"key": "Display", "value": "LCD 20x4"},
            {"key": "Power", "value": "230V AC, 50Hz"},
        ],
    }


@pytest.fixture
def sample_items(sample_item):
    second = {
        "id": 2,
        "name": "Dissolution Test Apparatus",
        "description": "Eight station dissolution tester.",
        "price": 450000,
        "image_format": "tall",
        "features": ["Eight stations", "Auto sampling port"],
    }
    return [sample_item, second]


# ── Flask test client ─────────────────────────────────────────────────────────

@pytest.fixture
def app(temp_data_dir):
    """Create Flask app configured for testing."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level

    from app import create_app
    flask_app = create_app()
    flask_app.config["TESTING"] = True
    yield flask_app

    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
