from collections.abc import Iterable
from datetime import datetime, timedelta

from opentribe.core.modules.rate_limit.models import RateLimitDecision
from opentribe.utils import as_utc


def check_rolling_window(
    attempts: Iterable[datetime], at: datetime, limit: int, period: timedelta
) -> RateLimitDecision:
    """Decide whether another attempt at `at` fits in the rolling window.

    `attempts` are previously accepted attempts. When the window is full,
    `retry_at` is the moment the oldest attempt that still blocks leaves it.
    """
    at = as_utc(at)
    window_start = at - period
    recent = sorted(a for a in (as_utc(a) for a in attempts) if a > window_start)
    if len(recent) < limit:
        return RateLimitDecision(allowed=True)
    return RateLimitDecision(allowed=False, retry_at=recent[len(recent) - limit] + period)
