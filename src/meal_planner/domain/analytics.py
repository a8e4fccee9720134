"""Derived analytics models; computed per request and never persisted."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from meal_planner.domain.meal_plans import MealType
from meal_planner.domain.recipes import Recipe
from meal_planner.domain.weather import Season


class Trend(StrEnum):
    """Direction of a metric over time."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class RecipeFrequency:
    """How often a recipe was planned."""

    recipe_id: str
    recipe_name: str
    count: int
    last_planned: date | None = None
    average_days_between: float | None = None


@dataclass(frozen=True)
class CuisineDistribution:
    cuisine: str
    count: int
    percentage: float


@dataclass(frozen=True)
class MealTypeDistribution:
    meal_type: MealType
    count: int
    percentage: float
    average_calories: float | None = None


@dataclass(frozen=True)
class WeeklyStats:
    """Planning statistics for one week (``week`` is the week-start date)."""

    week: str
    total_meals: int
    unique_recipes: int
    average_meals_per_day: float
    completion_rate: float


@dataclass(frozen=True)
class NutritionalTrends:
    average_calories: float = 0
    average_protein: float = 0
    average_carbs: float = 0
    average_fat: float = 0
    calories_trend: Trend = Trend.STABLE
    compliance_rate: float = 0


@dataclass(frozen=True)
class SeasonalPattern:
    season: Season
    popular_recipes: list[str] = field(default_factory=list)
    cuisine_preferences: list[str] = field(default_factory=list)
    average_calories: float = 0


@dataclass(frozen=True)
class DashboardOverview:
    total_meals_planned: int = 0
    unique_recipes_used: int = 0
    average_meals_per_week: float = 0
    planning_streak: int = 0
    most_active_day: str = "Monday"


@dataclass(frozen=True)
class RecipeStats:
    most_planned: list[RecipeFrequency] = field(default_factory=list)
    least_used: list[RecipeFrequency] = field(default_factory=list)
    needs_rotation: list[RecipeFrequency] = field(default_factory=list)


@dataclass(frozen=True)
class WasteReduction:
    completion_rate: float = 0
    most_wasted: list[str] = field(default_factory=list)
    improvement_tips: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnalyticsDashboard:
    """Full analytics dashboard for a user and date range."""

    overview: DashboardOverview
    recipe_stats: RecipeStats
    cuisine_distribution: list[CuisineDistribution]
    meal_type_distribution: list[MealTypeDistribution]
    weekly_trends: list[WeeklyStats]
    nutritional_trends: NutritionalTrends
    seasonal_patterns: list[SeasonalPattern]
    waste_reduction: WasteReduction


@dataclass(frozen=True)
class RotationSuggestion:
    recipe: Recipe
    reason: str
    last_used: date | None


@dataclass(frozen=True)
class CuisineSuggestion:
    cuisine: str
    reason: str
    recipes: list[Recipe]


@dataclass(frozen=True)
class PersonalizedRecommendations:
    """Recommendations derived from the trailing planning window."""

    rotation_suggestions: list[RotationSuggestion]
    cuisine_suggestions: list[CuisineSuggestion]
    nutritional_suggestions: list[str]
    variety_score: int
    seasonal_suggestions: list[Recipe]
    cost_optimizations: list[str]
