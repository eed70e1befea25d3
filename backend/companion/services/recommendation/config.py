"""Scoring configuration: single source for weights and thresholds."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScoringWeights:
    """Weights for combining signals. Must sum to 1.0."""
    distance: float = 0.25
    time: float = 0.20
    weather: float = 0.15
    preference: float = 0.25
    novelty: float = 0.15

    def as_dict(self) -> dict[str, float]:
        return {
            "distance": self.distance,
            "time": self.time,
            "weather": self.weather,
            "preference": self.preference,
            "novelty": self.novelty,
        }


@dataclass(frozen=True)
class DistanceCurve:
    neutral: float = 0.5            # location unknown
    immediate_m: float = 100.0      # full score inside this radius
    max_m: float = 5000.0           # zero score beyond this
    half_life_m: float = 1000.0     # exponential decay half-life
    walking_speed_m_per_min: float = 80.0
    earth_radius_m: float = 6_371_000.0


@dataclass(frozen=True)
class ReasonThresholds:
    """A signal must reach this value to be offered as a why-now reason."""
    min_signal: float = 0.7
    generic_text: str = "Part of today's plan"


@dataclass(frozen=True)
class TimeFitScores:
    appropriate: float = 1.0
    marginal: float = 0.6
    inappropriate: float = 0.2
    unlisted: float = 0.5
    keyword_override: float = 1.0
    late_night: float = 0.9
    daylight_only_at_night: float = 0.1


@dataclass(frozen=True)
class WeatherFitScores:
    neutral: float = 0.5
    perfect_bonus: float = 0.3
    poor_penalty: float = 0.3
    cold_below_c: float = 10.0
    hot_above_c: float = 30.0
    golden_hour_min_minutes: int = 15
    golden_hour_max_minutes: int = 45


@dataclass(frozen=True)
class NoveltyScores:
    completed: float = 0.0
    skipped: float = 0.2
    over_suggested_penalty: float = 0.3


@dataclass(frozen=True)
class OpeningHours:
    """Generic opening window used when an activity has no hours of its own."""
    opens_hour: int = 7
    closes_hour: int = 22
    closing_soon_minutes: int = 60


@dataclass(frozen=True)
class RecommendationLimits:
    default_count: int = 3
    minimum_score: float = 0.3
    serendipity_exclude_top: int = 3
    craving_default_limit: int = 5


@dataclass(frozen=True)
class ScoringConfig:
    """Top-level config aggregating all sub-configs."""
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    distance: DistanceCurve = field(default_factory=DistanceCurve)
    reasons: ReasonThresholds = field(default_factory=ReasonThresholds)
    time_fit: TimeFitScores = field(default_factory=TimeFitScores)
    weather_fit: WeatherFitScores = field(default_factory=WeatherFitScores)
    novelty: NoveltyScores = field(default_factory=NoveltyScores)
    opening_hours: OpeningHours = field(default_factory=OpeningHours)
    limits: RecommendationLimits = field(default_factory=RecommendationLimits)


# Time periods by hour (start inclusive, end exclusive); night wraps midnight
TIME_PERIODS: dict[str, tuple[int, int]] = {
    "early_morning": (5, 8),
    "morning": (8, 12),
    "lunch": (12, 14),
    "afternoon": (14, 17),
    "evening": (17, 21),
    "night": (21, 5),
}

# Category -> period appropriateness
CATEGORY_TIME_RULES: dict[str, dict[str, set[str]]] = {
    "food_drink": {
        "appropriate": {"morning", "lunch", "evening"},
        "marginal": {"early_morning", "afternoon", "night"},
        "inappropriate": set(),
    },
    "culture": {
        "appropriate": {"morning", "afternoon"},
        "marginal": {"lunch", "evening"},
        "inappropriate": {"early_morning", "night"},
    },
    "nature": {
        "appropriate": {"early_morning", "morning", "afternoon"},
        "marginal": {"lunch", "evening"},
        "inappropriate": {"night"},
    },
    "nightlife": {
        "appropriate": {"evening", "night"},
        "marginal": set(),
        "inappropriate": {"early_morning", "morning", "lunch", "afternoon"},
    },
    "shopping": {
        "appropriate": {"morning", "afternoon"},
        "marginal": {"lunch", "evening"},
        "inappropriate": {"early_morning", "night"},
    },
    "activities": {
        "appropriate": {"morning", "afternoon"},
        "marginal": {"early_morning", "lunch", "evening"},
        "inappropriate": {"night"},
    },
    "wellness": {
        "appropriate": {"morning", "afternoon", "evening"},
        "marginal": {"early_morning", "lunch"},
        "inappropriate": {"night"},
    },
}

NIGHTLIFE_KEYWORDS = ("bar", "club", "pub", "nightclub", "lounge", "cocktail", "jazz", "live music")
LATE_NIGHT_KEYWORDS = ("late night", "24 hour", "24h", "night market", "kebab", "diner")
DAYLIGHT_ONLY_KEYWORDS = ("museum", "gallery", "castle", "church", "cathedral", "palace", "park", "garden", "zoo")
EARLY_OPEN_KEYWORDS = ("cafe", "coffee", "bakery", "market", "breakfast", "sunrise")

OUTDOOR_CATEGORIES = ("nature", "activities")
INDOOR_CATEGORIES = ("culture", "shopping", "wellness")
OUTDOOR_TYPES = ("park", "garden", "beach", "viewpoint", "hiking", "outdoor", "terrace", "rooftop", "scenic", "trail")
INDOOR_TYPES = ("museum", "gallery", "theater", "cinema", "mall", "covered", "indoor", "spa")
GOLDEN_HOUR_TYPES = ("viewpoint", "scenic", "sunset", "lookout")


# Singleton: import this everywhere
scoring_config = ScoringConfig()
