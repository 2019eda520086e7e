"""Timestamps and output file naming."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def merged_filename(now: datetime | None = None) -> str:
    """Return ``merged_<YYYYmmddHHMMSS>_<8 hex>.xlsx`` for a new merge output."""
    now = now or datetime.now(timezone.utc)
    return f"merged_{now.strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}.xlsx"
