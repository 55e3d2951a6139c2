"""
Value formatting and input normalization for quotation PDFs.

Prices:   Rs. 1,25,000/-  (INR, Indian digit grouping)
          $ 125,000.5     (USD, western grouping)
Dates:    DD-MM-YYYY
"""

import json
import logging
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from raisequote.core.paths import DEFAULT_VALIDITY_DAYS

log = logging.getLogger("quote_gen")

CURRENCIES = {
    "INR": {"symbol": "Rs.", "suffix": "/-", "label": "INR"},
    "USD": {"symbol": "$",   "suffix": "",   "label": "USD"},
}
DEFAULT_CURRENCY = "INR"

_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d")
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")
_SHORT_OFFSET = re.compile(r"([+-]\d{2}):?(\d{2})?$")


# ═══════════════════════════════════════════════════════════════════════════════
# MONEY
# ═══════════════════════════════════════════════════════════════════════════════

def normalize_currency(currency: Optional[str]) -> str:
    code = str(currency or DEFAULT_CURRENCY).strip().upper()
    if code not in CURRENCIES:
        log.warning("Unknown currency %r, falling back to %s", currency, DEFAULT_CURRENCY)
        return DEFAULT_CURRENCY
    return code


def to_amount(value, field: str = "price") -> float:
    """Coerce a price-like value to float; garbage becomes 0.0."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        log.warning("Unparseable %s %r treated as 0", field, value)
        return 0.0


def _group_indian(digits: str) -> str:
    """12345678 -> 1,23,45,678"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def _group_western(digits: str) -> str:
    return f"{int(digits):,}"


def format_amount(value, currency: str = DEFAULT_CURRENCY) -> str:
    """Round to 2 decimals, drop trailing zeros, group thousands per currency."""
    try:
        amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        amount = Decimal("0.00")
    sign = "-" if amount < 0 else ""
    whole, _, frac = f"{abs(amount):.2f}".partition(".")
    frac = frac.rstrip("0")
    grouped = _group_indian(whole) if currency == "INR" else _group_western(whole)
    return f"{sign}{grouped}.{frac}" if frac else f"{sign}{grouped}"


def format_price(value, currency: str = DEFAULT_CURRENCY) -> str:
    cfg = CURRENCIES[normalize_currency(currency)]
    code = cfg["label"]
    return f"{cfg['symbol']} {format_amount(value, code)}{cfg['suffix']}"


def selected_addons(item: dict) -> list:
    addons = item.get("selectedAddons") or item.get("selected_addons") or []
    return [a for a in addons if isinstance(a, dict)]


def item_total(item: dict) -> float:
    """Unit price plus every selected add-on, rounded to cents."""
    total = to_amount(item.get("price"))
    for addon in selected_addons(item):
        total += to_amount(addon.get("price"), "add-on price")
    return round(total, 2)


# ═══════════════════════════════════════════════════════════════════════════════
# DATES
# ═══════════════════════════════════════════════════════════════════════════════

def _iso_normalize(s: str) -> str:
    """
    Reshape database timestamps for datetime.fromisoformat on Python < 3.11:
    'Z' suffix, fractions of any length ('.12' -> '.120000'), '+05' offsets.
    """
    s = s.replace("Z", "+00:00")
    s = _FRACTION.sub(lambda m: f"{m.group(1)}.{(m.group(2) + '000000')[:6]}", s)
    if "T" in s or " " in s:
        s = _SHORT_OFFSET.sub(lambda m: f"{m.group(1)}:{m.group(2) or '00'}", s)
    return s


def parse_date(value) -> Optional[datetime]:
    """Best-effort parse of ISO strings, common day-first strings, date/datetime."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    s = str(value).strip()
    try:
        return datetime.fromisoformat(_iso_normalize(s))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def _as_days(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        days = int(value)
    except (TypeError, ValueError):
        log.warning("Unparseable validity days %r ignored", value)
        return None
    return days if days >= 0 else None


def format_date(d: datetime) -> str:
    return d.strftime("%d-%m-%Y")


def created_date(quotation: dict) -> datetime:
    return parse_date(quotation.get("created_at")) or datetime.now()


def resolve_validity_date(quotation: dict, validity: Optional[dict] = None,
                          default_days: int = DEFAULT_VALIDITY_DAYS) -> datetime:
    """
    Validity precedence:
        1. override date (validity["validity_date"]) when parseable
        2. override day offset from the creation date
        3. quotation["validity_date"] when parseable
        4. quotation["validity_days"] offset
        5. creation date (or now) + default_days
    """
    validity = validity or {}
    created = created_date(quotation)

    raw_override = validity.get("validity_date", validity.get("validityDate"))
    override = parse_date(raw_override)
    if override:
        return override
    if raw_override:
        log.warning("Invalid validity override %r, falling back", raw_override)

    days = _as_days(validity.get("validity_days", validity.get("validityDays")))
    if days is not None:
        return created + timedelta(days=days)

    stored = parse_date(quotation.get("validity_date"))
    if stored:
        return stored

    days = _as_days(quotation.get("validity_days"))
    if days is not None:
        return created + timedelta(days=days)

    return created + timedelta(days=default_days)


# ═══════════════════════════════════════════════════════════════════════════════
# ITEM CONTENT
# ═══════════════════════════════════════════════════════════════════════════════

def normalize_specs(raw) -> list:
    """Specs as [(key, value)] - accepts a list of {key, value} or its JSON string."""
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Specs are not valid JSON, ignoring: %.60s", raw)
            return []
    specs = []
    for s in raw if isinstance(raw, list) else []:
        if not isinstance(s, dict):
            continue
        key = str(s.get("key") or "").strip()
        value = str(s.get("value") or "").strip()
        if key or value:
            specs.append((key, value))
    return specs
