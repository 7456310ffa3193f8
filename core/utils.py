# core/utils.py

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

import pandas as pd


def sanitize(data: dict, allowed: Optional[Iterable[str]] = None) -> dict:
    """
    Prepare a dict for a PostgREST write:
    - keys outside ``allowed`` are dropped
    - strings are stripped; empty strings become None
    - dates/datetimes become ISO strings, Decimals become strings
    Numeric-looking strings stay strings (mobile numbers keep their leading zero).
    """
    keep = set(allowed) if allowed is not None else None
    clean = {}

    for k, v in data.items():
        if keep is not None and k not in keep:
            continue

        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped if stripped else None
        elif isinstance(v, (datetime, date)):
            clean[k] = v.isoformat()
        elif isinstance(v, Decimal):
            clean[k] = str(v)
        else:
            clean[k] = v

    return clean


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """
    PostgREST timestamptz string -> aware datetime (naive values are taken as UTC).
    Postgres trims trailing zeros from the fraction, so '.12345' must parse too.
    """
    if value is None or not str(value).strip():
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = pd.Timestamp(str(value)).to_pydatetime()

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
