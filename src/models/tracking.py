"""
Tracking Data Models

Daily emission records and the trend/chart structures derived
from them. Only DailyRecord is persisted; the rest are recomputed
on demand.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from .footprint import ActivityInput, BREAKDOWN_KEYS


def empty_breakdown() -> Dict[str, float]:
    """Zero-filled category breakdown."""
    return {key: 0.0 for key in BREAKDOWN_KEYS}


@dataclass
class DailyRecord:
    """
    Emissions committed for one calendar day.

    Identity is the ISO date string (YYYY-MM-DD); the store keeps
    at most one record per date.
    """
    date: str
    total_emissions_kg: float
    breakdown: Dict[str, float] = field(default_factory=empty_breakdown)
    activities: Optional[ActivityInput] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "date": self.date,
            "total_emissions_kg": self.total_emissions_kg,
            "breakdown": dict(self.breakdown),
            "activities": self.activities.to_dict() if self.activities else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyRecord":
        """Create from dictionary. Raises KeyError/TypeError/ValueError on bad shape."""
        breakdown = empty_breakdown()
        breakdown.update({k: float(v) for k, v in data.get("breakdown", {}).items()})
        activities = data.get("activities")
        return cls(
            date=str(data["date"]),
            total_emissions_kg=float(data["total_emissions_kg"]),
            breakdown=breakdown,
            activities=ActivityInput.from_dict(activities) if activities else None,
        )


@dataclass
class TrendSummary:
    """
    Rolling averages and period-over-period change.

    Changes are percentages; 0 when there is no earlier period to
    compare against.
    """
    records: List[DailyRecord]  # newest first
    weekly_average: float = 0.0
    monthly_average: float = 0.0
    weekly_change: float = 0.0
    monthly_change: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "records": [r.to_dict() for r in self.records],
            "weekly_average": round(self.weekly_average, 2),
            "monthly_average": round(self.monthly_average, 2),
            "weekly_change": round(self.weekly_change, 1),
            "monthly_change": round(self.monthly_change, 1),
        }


@dataclass
class ChartSeriesPoint:
    """One calendar day in a chart series (zero-filled when no record)."""
    date: str
    display_date: str
    total_emissions_kg: float
    breakdown: Dict[str, float]

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "display_date": self.display_date,
            "total_emissions_kg": self.total_emissions_kg,
            "breakdown": dict(self.breakdown),
        }
