from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone

from django.utils import timezone

EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)


@dataclass(frozen=True)
class Period:
    """Reconciliation window, open at ``start`` and closed at ``end``."""

    start: datetime
    end: datetime

    def contains(self, moment):
        return self.start < moment <= self.end


def resolve_period(last_payout=None, now=None):
    start = last_payout.paid_at if last_payout is not None else EPOCH
    end = now or timezone.now()
    return Period(start=start, end=end)
