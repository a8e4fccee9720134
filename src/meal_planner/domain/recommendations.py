"""Recommendation result models."""

from dataclasses import dataclass, field

from meal_planner.domain.recipes import Recipe


@dataclass(frozen=True)
class MealRecommendation:
    """A recipe suggested for the current weather context."""

    recipe: Recipe
    reason: str
    confidence: float
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MealSuggestion:
    """A recipe scored by the point-based weather matcher (0-100)."""

    recipe: Recipe
    score: int
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecommendationExplanation:
    """Debug view of how a weather context was turned into suggestions."""

    tags: list[str]
    summary: str
    temperature: float
    conditions: list[str]
    time_factors: list[str]
    recommendations: list[MealRecommendation] = field(default_factory=list)
