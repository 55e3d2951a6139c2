"""
Logging for the quotation composer.
Call setup_logging() once at app startup; modules log through named loggers
(quote_gen, raisequote.assets, raisequote.api) and attach quotation context
with extra={...}.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

from raisequote.core.paths import LOG_DIR

# Context fields passed via extra= by the generator, prefetcher and routes.
EXTRA_FIELDS = ("quotation_number", "item_id", "ref", "pages", "items",
                "currency", "duration_ms", "route", "method")

LOG_FILE = "raisequote.log"
NOISY_LOGGERS = ("urllib3", "werkzeug", "PIL", "reportlab", "pdfminer")


def _context(record) -> dict:
    return {k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; quotation context merged at top level."""
    def format(self, record):
        entry = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "func": record.funcName,
            "line": record.lineno,
        }
        entry.update(_context(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Colored console lines, with the quotation number when one is attached."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        qn = getattr(record, "quotation_number", None)
        tag = f" [{qn}]" if qn else ""
        line = f"{color}{ts} [{record.levelname[0]}] {record.name}{tag}: {record.getMessage()}{self.RESET}"
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler():
    """Rotating JSON log in LOG_DIR, or None when the directory is not writable."""
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE), maxBytes=5_000_000, backupCount=5,
        )
    except OSError:
        return None
    fh.setFormatter(JSONFormatter())
    return fh


def setup_logging(level=None, json_logs=None):
    """
    Configure the root logger.

    Args:
        level: log level name (default: LOG_LEVEL env or INFO)
        json_logs: JSON console output (default: RAISEQUOTE_JSON_LOGS env)
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    level = str(level).upper()
    if json_logs is None:
        json_logs = os.environ.get("RAISEQUOTE_JSON_LOGS", "").lower() in ("1", "true", "yes")

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    fh = _file_handler()
    if fh:
        root.addHandler(fh)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("raisequote").info(
        "Logging initialized (level=%s, json=%s, file=%s)", level, json_logs, bool(fh))
