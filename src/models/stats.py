"""
User Stats Models

Streak counters and badge state. One UserStatsSnapshot exists per
installation; the streak engine is its only writer.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass
class BadgeState:
    """
    A badge and whether it has been earned.

    unlocked is one-way: once True it is never reset, and
    unlocked_date keeps the date of the first unlock.
    """
    badge_id: str
    name: str
    description: str
    icon: str
    color: str
    unlocked: bool = False
    unlocked_date: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "badge_id": self.badge_id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "color": self.color,
            "unlocked": self.unlocked,
            "unlocked_date": self.unlocked_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BadgeState":
        """Create from dictionary."""
        return cls(
            badge_id=data["badge_id"],
            name=data["name"],
            description=data["description"],
            icon=data["icon"],
            color=data["color"],
            unlocked=bool(data.get("unlocked", False)),
            unlocked_date=data.get("unlocked_date"),
        )


@dataclass
class UserStatsSnapshot:
    """Persisted streak/badge state."""
    current_streak: int = 0
    longest_streak: int = 0
    total_calculations: int = 0
    last_calculation_date: Optional[str] = None  # ISO date
    badges: List[BadgeState] = field(default_factory=list)

    @property
    def unlocked_badges(self) -> List[BadgeState]:
        return [b for b in self.badges if b.unlocked]

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_calculations": self.total_calculations,
            "last_calculation_date": self.last_calculation_date,
            "badges": [b.to_dict() for b in self.badges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserStatsSnapshot":
        """Create from dictionary. Raises KeyError/TypeError/ValueError on bad shape."""
        return cls(
            current_streak=int(data["current_streak"]),
            longest_streak=int(data["longest_streak"]),
            total_calculations=int(data["total_calculations"]),
            last_calculation_date=data.get("last_calculation_date"),
            badges=[BadgeState.from_dict(b) for b in data.get("badges", [])],
        )


@dataclass
class StatsUpdate:
    """Result of one streak engine update."""
    stats: UserStatsSnapshot
    new_badges: List[BadgeState]

    def to_dict(self) -> dict:
        return {
            "stats": self.stats.to_dict(),
            "new_badges": [b.to_dict() for b in self.new_badges],
        }
