"""Tests for raisequote/forms/assets.py: image loading, normalization, prefetch."""
import io

import pytest
import requests
from PIL import Image

from conftest import FakeResponse, data_uri, make_png
from raisequote.forms.assets import (
    load_image_bytes, normalize_image, prefetch_assets, item_key,
)


def _decoded(resolved):
    return Image.open(io.BytesIO(resolved["data"]))


# ═══════════════════════════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════════════════════════

class TestLoadImageBytes:

    def test_local_file(self, wide_image_file, wide_png):
        assert load_image_bytes(wide_image_file) == wide_png

    def test_data_uri(self, tall_png):
        assert load_image_bytes(data_uri(tall_png)) == tall_png

    def test_non_base64_data_uri_rejected(self):
        with pytest.raises(ValueError):
            load_image_bytes("data:image/png,rawbytes")

    def test_http(self, monkeypatch, tall_png):
        seen = {}

        def fake_get(url, timeout=None):
            seen["url"], seen["timeout"] = url, timeout
            return FakeResponse(tall_png)
        monkeypatch.setattr(requests, "get", fake_get)
        assert load_image_bytes("https://cdn.example.com/a.png", timeout=3) == tall_png
        assert seen == {"url": "https://cdn.example.com/a.png", "timeout": 3}

    def test_http_error_status(self, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda url, timeout=None: FakeResponse(b"", 404))
        with pytest.raises(requests.HTTPError):
            load_image_bytes("https://cdn.example.com/missing.png")

    def test_empty_body(self, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda url, timeout=None: FakeResponse(b""))
        with pytest.raises(ValueError):
            load_image_bytes("https://cdn.example.com/empty.png")


# ═══════════════════════════════════════════════════════════════════════════════
# Normalization
# ═══════════════════════════════════════════════════════════════════════════════

class TestNormalizeImage:

    def test_wide_downscaled(self, wide_png):
        r = normalize_image(wide_png, max_width=800)
        assert (r["width"], r["height"]) == (1600, 600)
        assert r["is_wide"] is True
        assert _decoded(r).size == (800, 300)

    def test_small_not_upscaled(self, tall_png):
        r = normalize_image(tall_png, max_width=800)
        assert r["is_wide"] is False
        assert _decoded(r).size == (300, 600)

    def test_output_is_rgb_jpeg(self):
        r = normalize_image(make_png(100, 100, mode="RGBA"))
        img = _decoded(r)
        assert img.format == "JPEG"
        assert img.mode == "RGB"

    def test_transparent_flattened_on_white(self):
        r = normalize_image(make_png(50, 50, color=(0, 0, 0), mode="RGBA"))
        # black at half alpha over white lands mid-grey
        px = _decoded(r).getpixel((25, 25))
        assert all(100 < ch < 160 for ch in px)

    def test_square_is_not_wide(self):
        assert normalize_image(make_png(100, 100))["is_wide"] is False

    def test_not_an_image(self):
        with pytest.raises(OSError):
            normalize_image(b"definitely not an image")


# ═══════════════════════════════════════════════════════════════════════════════
# Prefetch
# ═══════════════════════════════════════════════════════════════════════════════

class TestPrefetch:

    def test_item_key(self):
        assert item_key({"id": 42}, 0) == "42"
        assert item_key({}, 3) == "3"

    def test_item_key_none_id_uses_index(self):
        assert item_key({"id": None}, 2) == "2"
        assert item_key({"id": 0}, 5) == "0"

    def test_none_ids_do_not_collide(self, wide_png, tall_png):
        items = [{"id": None, "image_url": data_uri(wide_png)},
                 {"id": None, "image_url": data_uri(tall_png)}]
        r = prefetch_assets(items)
        assert set(r["images"]) == {"0", "1"}
        assert r["images"]["0"]["is_wide"] is True
        assert r["images"]["1"]["is_wide"] is False

    def test_nothing_to_fetch(self):
        assert prefetch_assets([{"id": 1}], "") == {"logo": None, "images": {}, "failed": []}

    def test_all_images_resolved(self, wide_png, tall_png):
        items = [
            {"id": "a", "image_url": data_uri(wide_png)},
            {"id": "b"},
            {"id": "c", "image_url": data_uri(tall_png)},
        ]
        r = prefetch_assets(items, data_uri(make_png(200, 50)))
        assert set(r["images"]) == {"a", "c"}
        assert r["images"]["a"]["is_wide"] is True
        assert r["logo"]["width"] == 200
        assert r["failed"] == []

    def test_failures_reported_not_raised(self, monkeypatch, tall_png):
        def fake_get(url, timeout=None):
            if "down" in url:
                raise requests.Timeout("timed out")
            return FakeResponse(tall_png)
        monkeypatch.setattr(requests, "get", fake_get)
        items = [
            {"id": 1, "image_url": "https://cdn.example.com/ok.png"},
            {"id": 2, "image_url": "https://down.example.com/x.png"},
            {"id": 3, "image_url": data_uri(b"garbage")},
        ]
        r = prefetch_assets(items, "", max_workers=2)
        assert list(r["images"]) == ["1"]
        assert sorted(r["failed"]) == ["2", "3"]

    def test_logo_failure_not_in_failed(self):
        r = prefetch_assets([], "/nonexistent/logo.png")
        assert r["logo"] is None
        assert r["failed"] == []

    def test_falls_back_to_index_key(self, tall_png):
        r = prefetch_assets([{"image_url": data_uri(tall_png)}])
        assert "0" in r["images"]
