"""
Image prefetch for quotation PDFs.

Every image the layout needs (one per item that has one, plus the company
logo) is fetched and normalized before layout starts, so the layout engine
only ever sees fixed bitmaps with known pixel dimensions.

Resolved image dict:
    {"data": <JPEG bytes>, "width": px, "height": px, "is_wide": bool}

width/height are the source dimensions (aspect ratio); data is downscaled to
IMAGE_MAX_WIDTH and re-encoded as JPEG. A failed fetch is logged and simply
missing from the result.
"""

import base64
import io
import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait

import requests
from PIL import Image

from raisequote.core.paths import IMAGE_MAX_WIDTH, IMAGE_TIMEOUT, PREFETCH_WORKERS

log = logging.getLogger("raisequote.assets")

WIDE_RATIO = 1.3
JPEG_QUALITY = 85
_LOGO_KEY = "__logo__"


def load_image_bytes(ref: str, timeout: float = IMAGE_TIMEOUT) -> bytes:
    """Raw bytes for an http(s) URL, a data: URI or a local file path."""
    if ref.startswith(("http://", "https://")):
        resp = requests.get(ref, timeout=timeout)
        resp.raise_for_status()
        if not resp.content:
            raise ValueError(f"empty response body from {ref}")
        return resp.content
    if ref.startswith("data:"):
        header, _, payload = ref.partition(",")
        if ";base64" not in header:
            raise ValueError("only base64 data URIs are supported")
        return base64.b64decode(payload)
    with open(os.path.expanduser(ref), "rb") as f:
        return f.read()


def normalize_image(raw: bytes, max_width: int = IMAGE_MAX_WIDTH) -> dict:
    """Flatten to RGB on white, downscale past max_width, re-encode JPEG."""
    with Image.open(io.BytesIO(raw)) as img:
        img.load()
        width, height = img.size
        if width <= 0 or height <= 0:
            raise ValueError(f"degenerate image size {width}x{height}")

        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            out = Image.new("RGB", rgba.size, (255, 255, 255))
            out.paste(rgba, mask=rgba.split()[-1])
        else:
            out = img.convert("RGB")

    if width > max_width:
        scaled_h = max(1, round(height * max_width / width))
        out = out.resize((max_width, scaled_h), Image.Resampling.LANCZOS)

    buf = io.BytesIO()
    out.save(buf, format="JPEG", quality=JPEG_QUALITY)
    return {
        "data": buf.getvalue(),
        "width": width,
        "height": height,
        "is_wide": width > height * WIDE_RATIO,
    }


def item_key(item: dict, index: int) -> str:
    """Key an item image by its id, falling back to list position."""
    item_id = item.get("id")
    return str(index if item_id is None else item_id)


def resolve_image(ref: str) -> dict:
    return normalize_image(load_image_bytes(ref))


def prefetch_assets(items: list, logo_ref: str = "",
                    max_workers: int = PREFETCH_WORKERS) -> dict:
    """
    Fetch the logo and all item images concurrently and wait for every one.

    Returns {"logo": dict|None, "images": {item_id: dict}, "failed": [item_id]}.
    """
    jobs = {}
    if logo_ref:
        jobs[_LOGO_KEY] = logo_ref
    for idx, item in enumerate(items):
        ref = item.get("image_url")
        if ref:
            jobs[item_key(item, idx)] = str(ref)

    result = {"logo": None, "images": {}, "failed": []}
    if not jobs:
        return result

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(jobs)))) as pool:
        futures = {pool.submit(resolve_image, ref): key for key, ref in jobs.items()}
        wait(futures)

    for future, key in futures.items():
        try:
            resolved = future.result()
        except (requests.RequestException, OSError, ValueError, Image.DecompressionBombError) as e:
            # PIL.UnidentifiedImageError is an OSError
            if key == _LOGO_KEY:
                log.warning("Could not load quotation logo %s: %s", jobs[key][:80], e,
                            extra={"ref": jobs[key][:200]})
            else:
                log.warning("Could not load item image for %s: %s", key, e,
                            extra={"item_id": key, "ref": jobs[key][:200]})
                result["failed"].append(key)
            continue
        if key == _LOGO_KEY:
            result["logo"] = resolved
        else:
            result["images"][key] = resolved

    log.debug("Prefetched %d/%d images (logo=%s)", len(result["images"]),
              len(jobs) - (1 if logo_ref else 0), result["logo"] is not None)
    return result
