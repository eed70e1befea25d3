"""Suggestion outcome counters persisted by the learning store."""

from dataclasses import asdict, dataclass, field
from datetime import datetime

NEUTRAL_INTEREST = 0.5


def _ratio(clicks: int, dismissals: int) -> float:
    responses = clicks + dismissals
    if responses == 0:
        return NEUTRAL_INTEREST
    return clicks / responses


@dataclass
class CategoryStats:
    suggested: int = 0
    dismissed: int = 0
    clicked: int = 0

    @property
    def responses(self) -> int:
        return self.dismissed + self.clicked

    @property
    def interest_level(self) -> float:
        return _ratio(self.clicked, self.dismissed)


@dataclass
class LearningData:
    total_suggestions: int = 0
    dismissed_count: int = 0
    clicked_count: int = 0
    dismissed_categories: dict[str, int] = field(default_factory=dict)
    categories: dict[str, CategoryStats] = field(default_factory=dict)
    last_suggestion_at: datetime | None = None

    @property
    def interest_level(self) -> float:
        return _ratio(self.clicked_count, self.dismissed_count)

    def category(self, name: str) -> CategoryStats:
        return self.categories.get(name, CategoryStats())

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_suggestion_at"] = (
            self.last_suggestion_at.isoformat() if self.last_suggestion_at else None
        )
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> "LearningData":
        last = raw.get("last_suggestion_at")
        return cls(
            total_suggestions=int(raw.get("total_suggestions", 0)),
            dismissed_count=int(raw.get("dismissed_count", 0)),
            clicked_count=int(raw.get("clicked_count", 0)),
            dismissed_categories={k: int(v) for k, v in (raw.get("dismissed_categories") or {}).items()},
            categories={
                name: CategoryStats(**stats) for name, stats in (raw.get("categories") or {}).items()
            },
            last_suggestion_at=datetime.fromisoformat(last) if last else None,
        )
