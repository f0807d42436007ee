"""Backend-side formulas written into task rows."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

# Row-independent so appends and row rewrites can reuse the same text.
DAYS_OLD_FORMULA = (
    '=IF(INDIRECT("A"&ROW())="","",'
    'INT(NOW()-DATEVALUE(LEFT(INDIRECT("A"&ROW()),10))))'
)


def evaluate_days_old(timestamp: Any, today: Optional[date] = None) -> Any:
    """Evaluate DAYS_OLD_FORMULA for a Timestamp cell; "" when it cannot."""
    if timestamp is None or timestamp == "":
        return ""
    if isinstance(timestamp, datetime):
        created = timestamp.date()
    elif isinstance(timestamp, date):
        created = timestamp
    else:
        try:
            created = date.fromisoformat(str(timestamp).strip()[:10])
        except ValueError:
            return ""
    today = today or datetime.now(timezone.utc).date()
    return (today - created).days
