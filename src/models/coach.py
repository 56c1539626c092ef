"""
Coach Models

Daily tips, AI recommendations and the user's AI settings.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Literal

TipCategory = Literal["transportation", "energy", "food", "waste", "general"]


@dataclass
class DailyTip:
    """Tip of the day. is_ai marks tips rewritten by the text provider."""
    tip_id: str
    content: str
    category: TipCategory
    date: str
    is_ai: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "tip_id": self.tip_id,
            "content": self.content,
            "category": self.category,
            "date": self.date,
            "is_ai": self.is_ai,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyTip":
        """Create from dictionary."""
        return cls(
            tip_id=data["tip_id"],
            content=data["content"],
            category=data["category"],
            date=data["date"],
            is_ai=bool(data.get("is_ai", False)),
        )


@dataclass
class AIRecommendation:
    """
    Personalized recommendation produced by the text provider.

    footprint_data records the input it was generated from:
    total, highest_category and breakdown.
    """
    recommendation_id: str
    content: str
    category: str
    timestamp: str
    is_personalized: bool = True
    footprint_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "recommendation_id": self.recommendation_id,
            "content": self.content,
            "category": self.category,
            "timestamp": self.timestamp,
            "is_personalized": self.is_personalized,
            "footprint_data": self.footprint_data,
        }


@dataclass
class AISettings:
    """User-controlled settings for the optional text provider."""
    api_key: str = ""
    enabled: bool = False
    personalized_tips: bool = True

    @property
    def is_configured(self) -> bool:
        """Provider may be called at all."""
        return self.enabled and bool(self.api_key)

    def to_dict(self) -> dict:
        return {
            "api_key": self.api_key,
            "enabled": self.enabled,
            "personalized_tips": self.personalized_tips,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AISettings":
        return cls(
            api_key=str(data.get("api_key") or ""),
            enabled=bool(data.get("enabled", False)),
            personalized_tips=bool(data.get("personalized_tips", True)),
        )

    def redacted(self) -> dict:
        """Dictionary safe to return over the API (key masked)."""
        masked = f"...{self.api_key[-4:]}" if len(self.api_key) > 4 else ("set" if self.api_key else "")
        return {
            "api_key": masked,
            "enabled": self.enabled,
            "personalized_tips": self.personalized_tips,
        }
