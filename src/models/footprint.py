"""
Footprint Models

Defines activity input, emission categories and per-category
emission results produced by the emission calculator.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class EmissionCategory(Enum):
    """
    Emission categories in fixed display order.
    Iteration order of this enum IS the display order.
    """
    TRANSPORTATION = "Transportation"
    ELECTRICITY = "Electricity"
    FOOD = "Food"
    PLASTIC = "Plastic"

    @property
    def breakdown_key(self) -> str:
        """Key used in DailyRecord breakdown dictionaries."""
        return self.value.lower()

    @property
    def color(self) -> str:
        return _PRESENTATION[self][0]

    @property
    def icon(self) -> str:
        return _PRESENTATION[self][1]


_PRESENTATION = {
    EmissionCategory.TRANSPORTATION: ("#10B981", "Car"),
    EmissionCategory.ELECTRICITY: ("#F59E0B", "Zap"),
    EmissionCategory.FOOD: ("#3B82F6", "Beef"),
    EmissionCategory.PLASTIC: ("#6B7280", "Recycle"),
}

BREAKDOWN_KEYS = [category.breakdown_key for category in EmissionCategory]


def _non_negative(value: Any) -> float:
    """Coerce a raw quantity to a finite, non-negative float (else 0.0)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


@dataclass
class ActivityInput:
    """
    Daily activity quantities entered by the user.

    Values are not validated on construction; use sanitized()
    before doing arithmetic with them.
    """
    car_distance_km: float = 0.0
    electricity_kwh: float = 0.0
    meat_grams: float = 0.0
    plastic_items: float = 0.0

    def sanitized(self) -> "ActivityInput":
        """Return a copy with negative or non-numeric values set to 0."""
        return ActivityInput(
            car_distance_km=_non_negative(self.car_distance_km),
            electricity_kwh=_non_negative(self.electricity_kwh),
            meat_grams=_non_negative(self.meat_grams),
            plastic_items=_non_negative(self.plastic_items),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "car_distance_km": self.car_distance_km,
            "electricity_kwh": self.electricity_kwh,
            "meat_grams": self.meat_grams,
            "plastic_items": self.plastic_items,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityInput":
        """Create from dictionary."""
        return cls(
            car_distance_km=data.get("car_distance_km", 0.0),
            electricity_kwh=data.get("electricity_kwh", 0.0),
            meat_grams=data.get("meat_grams", 0.0),
            plastic_items=data.get("plastic_items", 0.0),
        )


@dataclass
class EmissionCategoryResult:
    """Emissions attributed to one category for one calculation."""
    category: EmissionCategory
    amount_kg: float
    share_percent: float

    @property
    def color(self) -> str:
        return self.category.color

    @property
    def icon(self) -> str:
        return self.category.icon

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "category": self.category.value,
            "amount_kg": self.amount_kg,
            "share_percent": self.share_percent,
            "color": self.color,
            "icon": self.icon,
        }


@dataclass
class Suggestion:
    """Canned improvement suggestion for the highest-impact category."""
    category: str
    message: str
    icon: str

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "message": self.message,
            "icon": self.icon,
        }
