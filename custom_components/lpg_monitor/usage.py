"""Gas usage tracking and refill predictions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from homeassistant.util import dt as dt_util

from .const import CRITICAL_GAS_THRESHOLD, LOW_GAS_THRESHOLD


def gas_level_status(level: float | None) -> str | None:
    """Classify a level as ok, low or critical."""
    if level is None:
        return None
    if level <= CRITICAL_GAS_THRESHOLD:
        return "critical"
    if level <= LOW_GAS_THRESHOLD:
        return "low"
    return "ok"


@dataclass
class UsageTracker:
    """Track gas usage in percentage points per local day."""

    usage_days: int
    max_history_days: int
    _daily_totals: dict[str, float] = field(default_factory=dict)

    def record(
        self,
        usage: float,
        timestamp: datetime,
        *,
        prune_at: datetime | None = None,
    ) -> None:
        """Add usage to the day of *timestamp* and drop expired days."""
        day_key = dt_util.as_local(timestamp).date().isoformat()
        self._daily_totals[day_key] = self._daily_totals.get(day_key, 0.0) + usage

        cutoff = dt_util.as_local(prune_at or timestamp).date() - timedelta(
            days=self.max_history_days
        )
        self._daily_totals = {
            day: total
            for day, total in self._daily_totals.items()
            if date.fromisoformat(day) > cutoff
        }

    def clear(self) -> None:
        self._daily_totals = {}

    def set_daily_totals(self, daily_totals: dict[str, float]) -> None:
        self._daily_totals = dict(daily_totals)

    def get_daily_totals(self) -> dict[str, float]:
        return dict(self._daily_totals)

    def _window(self, now: datetime, offset: int = 0) -> list[tuple[date, float]]:
        """Return (day, total) pairs in the window ending *offset* windows ago."""
        today = dt_util.as_local(now).date()
        end = today - timedelta(days=self.usage_days * offset)
        start = end - timedelta(days=self.usage_days)
        return [
            (day, total)
            for day, total in (
                (date.fromisoformat(key), value)
                for key, value in self._daily_totals.items()
            )
            if start < day <= end
        ]

    def get_daily_usage(self, now: datetime) -> float:
        """Average usage per day over the configured window."""
        recent = self._window(now)
        if not recent:
            return 0.0

        oldest_day = min(day for day, _ in recent)
        oldest_dt = dt_util.as_local(datetime.combine(oldest_day, datetime.min.time()))
        days_in_period = (dt_util.as_local(now) - oldest_dt).total_seconds() / 86400
        days_in_period = max(days_in_period, 0.1)

        return sum(total for _, total in recent) / days_in_period

    def get_days_remaining(self, now: datetime, level: float | None) -> int | None:
        """Estimate whole days until the cylinder is empty."""
        if level is None:
            return None
        if level <= 0:
            return 0

        daily_usage = self.get_daily_usage(now)
        if daily_usage <= 0:
            return None

        return int(level / daily_usage)

    def get_predicted_empty_date(
        self, now: datetime, level: float | None
    ) -> datetime | None:
        """Predict when the cylinder runs out at the current usage rate."""
        days = self.get_days_remaining(now, level)
        if days is None:
            return None
        return dt_util.as_local(now) + timedelta(days=days)

    def get_usage_trend(self, now: datetime) -> float | None:
        """Percent change of usage in the current window against the previous one."""
        previous = sum(total for _, total in self._window(now, offset=1))
        if previous <= 0:
            return None

        current = sum(total for _, total in self._window(now))
        return (current - previous) / previous * 100.0
