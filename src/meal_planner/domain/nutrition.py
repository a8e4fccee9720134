"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NutritionData:
    """Calories and nutrients for a meal or day; absent values count as 0."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float = 0
    sugar: float = 0
    sodium: float = 0


@dataclass(frozen=True)
class NutritionSummary(NutritionData):
    """Totals over several meals with the number of meals that had data."""

    meals_count: int = 0


@dataclass(frozen=True)
class NutrientProgress:
    current: float
    target: float
    percentage: int


@dataclass(frozen=True)
class NutritionProgress:
    """Progress toward each goal target."""

    calories: NutrientProgress
    protein: NutrientProgress
    carbs: NutrientProgress
    fat: NutrientProgress
    fiber: NutrientProgress
