from __future__ import annotations

import re
from typing import Optional, Tuple

from market_linker.engine.extractor import DatePrecision, ExtractedDate

EXACT = "exact"
MONTH_IN_QUARTER = "month_in_quarter"
MONTH_IN_YEAR = "month_in_year"
QUARTER_IN_YEAR = "quarter_in_year"
DAY_IN_MONTH = "day_in_month"
NONE = "none"

PERIOD_SCORES = {
    EXACT: 1.0,
    DAY_IN_MONTH: 0.8,
    MONTH_IN_QUARTER: 0.6,
    QUARTER_IN_YEAR: 0.55,
    MONTH_IN_YEAR: 0.45,
    NONE: 0.0,
}

_DAY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_RE = re.compile(r"^(\d{4})-Q([1-4])$")
_YEAR_RE = re.compile(r"^(\d{4})$")


def period_key(d: ExtractedDate) -> str:
    """Render an extracted date as YYYY-MM-DD, YYYY-MM, YYYY-Qn or YYYY."""
    if d.precision == DatePrecision.DAY and d.month and d.day:
        return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"
    if d.precision == DatePrecision.QUARTER and d.quarter:
        return f"{d.year:04d}-Q{d.quarter}"
    if d.precision in (DatePrecision.DAY, DatePrecision.MONTH) and d.month:
        return f"{d.year:04d}-{d.month:02d}"
    return f"{d.year:04d}"


def parse_period(key: str) -> Optional[Tuple[str, int, Optional[int], Optional[int]]]:
    """Return (kind, year, month_or_quarter, day) or None for an unparseable key."""
    m = _DAY_RE.match(key or "")
    if m:
        return "day", int(m.group(1)), int(m.group(2)), int(m.group(3))
    m = _MONTH_RE.match(key or "")
    if m:
        return "month", int(m.group(1)), int(m.group(2)), None
    m = _QUARTER_RE.match(key or "")
    if m:
        return "quarter", int(m.group(1)), int(m.group(2)), None
    m = _YEAR_RE.match(key or "")
    if m:
        return "year", int(m.group(1)), None, None
    return None


def period_compatibility(a: str, b: str) -> Tuple[str, float]:
    """Compare two period keys; different years never match."""
    if a == b:
        return EXACT, PERIOD_SCORES[EXACT]
    pa = parse_period(a)
    pb = parse_period(b)
    if pa is None or pb is None or pa[1] != pb[1]:
        return NONE, 0.0

    if _rank(pa[0]) > _rank(pb[0]):
        pa, pb = pb, pa
    fine_kind, _, fine_unit, _ = pa
    coarse_kind, _, coarse_unit, _ = pb

    if fine_kind == "day":
        if coarse_kind == "month" and fine_unit == coarse_unit:
            return DAY_IN_MONTH, PERIOD_SCORES[DAY_IN_MONTH]
        fine_kind = "month"
    if fine_kind == "month" and coarse_kind == "quarter":
        if fine_unit and (fine_unit - 1) // 3 + 1 == coarse_unit:
            return MONTH_IN_QUARTER, PERIOD_SCORES[MONTH_IN_QUARTER]
        return NONE, 0.0
    if fine_kind == "month" and coarse_kind == "year":
        return MONTH_IN_YEAR, PERIOD_SCORES[MONTH_IN_YEAR]
    if fine_kind == "quarter" and coarse_kind == "year":
        return QUARTER_IN_YEAR, PERIOD_SCORES[QUARTER_IN_YEAR]
    return NONE, 0.0


def compatible_keys(key: str) -> Tuple[str, ...]:
    """Coarser keys a period may be indexed against, nearest first."""
    parsed = parse_period(key)
    if parsed is None:
        return ()
    kind, year, unit, _ = parsed
    if kind == "day":
        return (f"{year:04d}-{unit:02d}", f"{year:04d}-Q{(unit - 1) // 3 + 1}", f"{year:04d}")
    if kind == "month":
        return (f"{year:04d}-Q{(unit - 1) // 3 + 1}", f"{year:04d}")
    if kind == "quarter":
        return (f"{year:04d}",)
    return ()


def finer_keys(key: str) -> Tuple[str, ...]:
    """Finer keys contained in a quarter or a year."""
    parsed = parse_period(key)
    if parsed is None:
        return ()
    kind, year, unit, _ = parsed
    if kind == "quarter":
        return tuple(f"{year:04d}-{m:02d}" for m in range(unit * 3 - 2, unit * 3 + 1))
    if kind == "year":
        months = tuple(f"{year:04d}-{m:02d}" for m in range(1, 13))
        quarters = tuple(f"{year:04d}-Q{q}" for q in range(1, 5))
        return quarters + months
    return ()


def _rank(kind: str) -> int:
    return {"day": 0, "month": 1, "quarter": 2, "year": 3}.get(kind, 4)
