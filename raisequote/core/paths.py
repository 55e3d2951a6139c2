"""
raisequote/core/paths.py - Centralized Path & Runtime Configuration

Single source of truth for directories and tunables used by the quotation
composer. Every module imports from here instead of reading env vars itself.

Env vars:
  RAISEQUOTE_DATA_DIR          - data directory (logo, logs)
  RAISEQUOTE_LOGO              - logo reference (path, URL or data: URI)
  RAISEQUOTE_IMAGE_MAX_WIDTH   - downscale threshold for item images (px)
  RAISEQUOTE_IMAGE_TIMEOUT     - per-image fetch timeout (seconds)
  RAISEQUOTE_PREFETCH_WORKERS  - image prefetch thread pool size
  RAISEQUOTE_VALIDITY_DAYS     - default quotation validity
"""

import os
import logging

log = logging.getLogger("raisequote.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_GIT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


def _resolve_data_dir() -> str:
    """Explicit override if it exists, otherwise the repo data/ folder."""
    env_dir = os.environ.get("RAISEQUOTE_DATA_DIR", "")
    if env_dir and os.path.isdir(env_dir):
        return env_dir
    return _GIT_DATA_DIR


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("%s=%r is not an integer, using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("%s=%r is not a number, using %s", name, raw, default)
        return default


DATA_DIR = _resolve_data_dir()

# ── Core Directories ─────────────────────────────────────────────────────────
OUTPUT_DIR = os.path.join(PROJECT_ROOT, "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Tunables ─────────────────────────────────────────────────────────────────
IMAGE_MAX_WIDTH = _env_int("RAISEQUOTE_IMAGE_MAX_WIDTH", 800)
IMAGE_TIMEOUT = _env_float("RAISEQUOTE_IMAGE_TIMEOUT", 10.0)
PREFETCH_WORKERS = _env_int("RAISEQUOTE_PREFETCH_WORKERS", 8)
DEFAULT_VALIDITY_DAYS = _env_int("RAISEQUOTE_VALIDITY_DAYS", 30)


def find_logo() -> str:
    """Logo reference: RAISEQUOTE_LOGO, else data/quotation-logo.{jpg,jpeg,png}.

    Returns "" when nothing is configured; the header then renders without it.
    """
    env_logo = os.environ.get("RAISEQUOTE_LOGO", "")
    if env_logo:
        return env_logo
    for ext in ("jpg", "jpeg", "png"):
        p = os.path.join(DATA_DIR, f"quotation-logo.{ext}")
        if os.path.exists(p):
            return p
    return ""


def validate_paths() -> dict:
    """Runtime validation - call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "PROJECT_ROOT": (PROJECT_ROOT, True),
        "DATA_DIR": (DATA_DIR, True),
        "OUTPUT_DIR": (OUTPUT_DIR, False),
    }
    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path}")

    logo = find_logo()
    result["resolved"]["LOGO"] = logo
    if not logo:
        result["warnings"].append("No quotation logo configured, header renders without it")

    if os.path.isdir(DATA_DIR):
        test_file = os.path.join(DATA_DIR, ".write_test")
        try:
            with open(test_file, "w") as f:
                f.write("ok")
            os.remove(test_file)
        except OSError as e:
            result["warnings"].append(f"DATA_DIR not writable: {e}")

    return result
