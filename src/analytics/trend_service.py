"""
Trend Service

Computes rolling averages, period-over-period change and
gap-filled chart series from the daily record history.

DESIGN: All values are derived on demand from the record store.
Nothing computed here is persisted.
"""

import random
from datetime import date, timedelta
from typing import Callable, List, Optional

from models.footprint import ActivityInput
from models.tracking import DailyRecord, TrendSummary, ChartSeriesPoint, empty_breakdown
from storage.record_store import RecordStore


def _mean(records: List[DailyRecord]) -> float:
    if not records:
        return 0.0
    return sum(r.total_emissions_kg for r in records) / len(records)


def _percent_change(current: float, previous: float) -> float:
    """Change from previous to current in percent; 0 when previous is not positive."""
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def display_label(day: date) -> str:
    """Short month/day label, e.g. 'Mar 5'."""
    return f"{day.strftime('%b')} {day.day}"


class TrendAggregator:
    """
    Rolling-window statistics over the record history.

    Windows are positional slices of the newest-first record list,
    not calendar ranges: the "last 7" are the 7 most recent records
    whatever their dates.
    """

    WEEK_DAYS = 7
    MONTH_DAYS = 30
    SERIES_WINDOWS = (WEEK_DAYS, MONTH_DAYS)

    def __init__(
        self,
        record_store: RecordStore,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize Trend Aggregator.

        Args:
            record_store: Source of daily records
            clock: Returns the current local date (injectable for tests)
        """
        self.store = record_store
        self.clock = clock

    def summarize(self) -> TrendSummary:
        """
        Compute weekly/monthly averages and their change.

        When the previous period has no records the current average is
        used as its own baseline, so the change is 0 rather than undefined.
        """
        records = self.store.get_all()

        if not records:
            return TrendSummary(records=[])

        last_week = records[: self.WEEK_DAYS]
        last_month = records[: self.MONTH_DAYS]
        previous_week = records[self.WEEK_DAYS: self.WEEK_DAYS * 2]
        previous_month = records[self.MONTH_DAYS: self.MONTH_DAYS * 2]

        weekly_average = _mean(last_week)
        monthly_average = _mean(last_month)

        previous_weekly = _mean(previous_week) if previous_week else weekly_average
        previous_monthly = _mean(previous_month) if previous_month else monthly_average

        return TrendSummary(
            records=records,
            weekly_average=weekly_average,
            monthly_average=monthly_average,
            weekly_change=_percent_change(weekly_average, previous_weekly),
            monthly_change=_percent_change(monthly_average, previous_monthly),
        )

    def build_series(self, window_days: int = WEEK_DAYS) -> List[ChartSeriesPoint]:
        """
        One point per calendar day for the window ending today.

        Args:
            window_days: 7 or 30

        Returns:
            Exactly window_days points in ascending date order. Days
            without a record are zero-filled, never interpolated.

        Raises:
            ValueError: If window_days is not a supported window
        """
        if window_days not in self.SERIES_WINDOWS:
            raise ValueError(f"Unsupported window: {window_days} (expected 7 or 30)")

        by_date = {r.date: r for r in self.store.get_all()}
        today = self.clock()

        points = []
        for offset in range(window_days - 1, -1, -1):
            day = today - timedelta(days=offset)
            day_key = day.isoformat()
            record = by_date.get(day_key)

            points.append(ChartSeriesPoint(
                date=day_key,
                display_date=display_label(day),
                total_emissions_kg=record.total_emissions_kg if record else 0.0,
                breakdown=dict(record.breakdown) if record else empty_breakdown(),
            ))

        return points

    def series_for_period(self, period: str) -> List[ChartSeriesPoint]:
        """Chart series for 'week' or 'month'."""
        windows = {"week": self.WEEK_DAYS, "month": self.MONTH_DAYS}
        if period not in windows:
            raise ValueError(f"Unsupported period: {period} (expected 'week' or 'month')")
        return self.build_series(windows[period])

    def generate_sample_records(
        self,
        days: int = MONTH_DAYS,
        seed: Optional[int] = None,
    ) -> List[DailyRecord]:
        """
        Replace the history with realistic demo data ending today.

        Totals are 4-8 kg with +/-1 kg noise (floored at 1 kg); the
        breakdown splits roughly 30-50% transport, 20-35% electricity,
        15-30% food and 5-15% plastic.
        """
        rng = random.Random(seed)
        today = self.clock()
        records = []

        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)

            base = 4 + rng.random() * 4
            variation = (rng.random() - 0.5) * 2
            total = max(1.0, base + variation)

            breakdown = {
                "transportation": round(total * (0.3 + rng.random() * 0.2), 2),
                "electricity": round(total * (0.2 + rng.random() * 0.15), 2),
                "food": round(total * (0.15 + rng.random() * 0.15), 2),
                "plastic": round(total * (0.05 + rng.random() * 0.1), 2),
            }

            records.append(DailyRecord(
                date=day.isoformat(),
                total_emissions_kg=round(total, 2),
                breakdown=breakdown,
                activities=ActivityInput(
                    car_distance_km=round(rng.random() * 50, 1),
                    electricity_kwh=round(rng.random() * 20, 1),
                    meat_grams=round(rng.random() * 200),
                    plastic_items=rng.randrange(10),
                ),
            ))

        return self.store.replace_all(records)
