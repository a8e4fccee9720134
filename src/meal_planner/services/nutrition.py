"""Nutrition calculations for planned meals and goals."""

from collections.abc import Iterable, Sequence

from meal_planner.domain.meal_plans import NutritionGoal, PlannedMeal
from meal_planner.domain.nutrition import (
    NutrientProgress,
    NutritionData,
    NutritionProgress,
    NutritionSummary,
)
from meal_planner.domain.recipes import NutritionFacts
from meal_planner.safe_math import (
    MacroRatios,
    cap_progress,
    normalize_macro_percentages,
    round_to_dp,
    safe_average,
    safe_percentage,
)

PRESET_GOALS: dict[str, dict[str, float]] = {
    "weight-loss": {
        "target_calories": 1800,
        "target_protein": 135,
        "target_carbs": 180,
        "target_fat": 60,
        "target_fiber": 25,
    },
    "muscle-gain": {
        "target_calories": 2500,
        "target_protein": 188,
        "target_carbs": 313,
        "target_fat": 56,
        "target_fiber": 30,
    },
    "maintenance": {
        "target_calories": 2000,
        "target_protein": 100,
        "target_carbs": 250,
        "target_fat": 67,
        "target_fiber": 28,
    },
}


def calculate_meal_nutrition(
    nutrition: NutritionFacts | None, servings: float = 1
) -> NutritionData:
    """Scale per-serving recipe nutrition by the servings eaten."""
    if nutrition is None:
        return NutritionData()
    return NutritionData(
        calories=_whole(nutrition.calories, servings),
        protein=_tenths(nutrition.protein_g, servings),
        carbs=_tenths(nutrition.carbs_g, servings),
        fat=_tenths(nutrition.fat_g, servings),
        fiber=_tenths(nutrition.fiber_g, servings),
        sugar=_tenths(nutrition.sugar_g, servings),
        sodium=_whole(nutrition.sodium_mg, servings),
    )


def calculate_total_nutrition(meals: Sequence[PlannedMeal]) -> NutritionSummary:
    """Sum nutrition over meals; custom meals without a recipe contribute 0."""
    per_meal = [_meal_nutrition(meal) for meal in meals]
    return NutritionSummary(
        calories=round_to_dp(sum(item.calories for item in per_meal), 0),
        protein=round_to_dp(sum(item.protein for item in per_meal), 1),
        carbs=round_to_dp(sum(item.carbs for item in per_meal), 1),
        fat=round_to_dp(sum(item.fat for item in per_meal), 1),
        fiber=round_to_dp(sum(item.fiber for item in per_meal), 1),
        sugar=round_to_dp(sum(item.sugar for item in per_meal), 1),
        sodium=round_to_dp(sum(item.sodium for item in per_meal), 0),
        meals_count=sum(1 for meal in meals if _has_calories(meal)),
    )


def calculate_nutrition_progress(
    current: NutritionData, goal: NutritionGoal, cap: bool = False
) -> NutritionProgress:
    """Percentage progress toward each target; ``cap`` limits to 100%."""

    def progress(value: float, target: float | None) -> NutrientProgress:
        resolved = target or 0
        if cap:
            percentage = cap_progress(value, resolved, 100)
        else:
            percentage = safe_percentage(value, resolved)
        return NutrientProgress(
            current=value,
            target=resolved,
            percentage=int(round_to_dp(percentage, 0)),
        )

    return NutritionProgress(
        calories=progress(current.calories, goal.target_calories),
        protein=progress(current.protein, goal.target_protein),
        carbs=progress(current.carbs, goal.target_carbs),
        fat=progress(current.fat, goal.target_fat),
        fiber=progress(current.fiber, goal.target_fiber),
    )


def calculate_macro_ratios(nutrition: NutritionData) -> MacroRatios:
    """Share of calories from protein, carbs and fat (sums to 100)."""
    return normalize_macro_percentages(
        nutrition.protein, nutrition.carbs, nutrition.fat, nutrition.calories
    )


def calculate_weekly_average(days: Sequence[NutritionSummary]) -> NutritionSummary:
    """Per-day average of daily summaries."""
    if not days:
        return NutritionSummary()
    return NutritionSummary(
        calories=round_to_dp(safe_average(day.calories for day in days), 0),
        protein=round_to_dp(safe_average(day.protein for day in days), 1),
        carbs=round_to_dp(safe_average(day.carbs for day in days), 1),
        fat=round_to_dp(safe_average(day.fat for day in days), 1),
        fiber=round_to_dp(safe_average(day.fiber for day in days), 1),
        sugar=round_to_dp(safe_average(day.sugar for day in days), 1),
        sodium=round_to_dp(safe_average(day.sodium for day in days), 0),
        meals_count=int(round_to_dp(safe_average(day.meals_count for day in days), 0)),
    )


def calculate_per_meal_average(meals: Iterable[PlannedMeal]) -> NutritionData:
    """Average nutrition over meals that have calorie data."""
    per_meal = [_meal_nutrition(meal) for meal in meals if _has_calories(meal)]
    if not per_meal:
        return NutritionData()
    return NutritionData(
        calories=round_to_dp(safe_average(item.calories for item in per_meal), 0),
        protein=round_to_dp(safe_average(item.protein for item in per_meal), 1),
        carbs=round_to_dp(safe_average(item.carbs for item in per_meal), 1),
        fat=round_to_dp(safe_average(item.fat for item in per_meal), 1),
        fiber=round_to_dp(safe_average(item.fiber for item in per_meal), 1),
        sugar=round_to_dp(safe_average(item.sugar for item in per_meal), 1),
        sodium=round_to_dp(safe_average(item.sodium for item in per_meal), 0),
    )


def get_preset_goal(preset: str, user_id: str = "") -> NutritionGoal:
    """Return a preset goal; unknown presets fall back to maintenance."""
    targets = PRESET_GOALS.get(preset, PRESET_GOALS["maintenance"])
    return NutritionGoal(user_id=user_id, **targets)


def has_nutrition_data(nutrition: NutritionFacts | None) -> bool:
    """True when any of calories or the main macros was recorded (even as 0)."""
    if nutrition is None:
        return False
    return any(
        value is not None
        for value in (
            nutrition.calories,
            nutrition.protein_g,
            nutrition.carbs_g,
            nutrition.fat_g,
        )
    )


def _meal_nutrition(meal: PlannedMeal) -> NutritionData:
    facts = meal.recipe.nutrition if meal.recipe else None
    return calculate_meal_nutrition(facts, meal.servings)


def _has_calories(meal: PlannedMeal) -> bool:
    calories = meal.recipe.nutrition.calories if meal.recipe else None
    return calories is not None and calories > 0


def _whole(value: float | None, servings: float) -> float:
    return round_to_dp((value or 0) * servings, 0)


def _tenths(value: float | None, servings: float) -> float:
    return round_to_dp((value or 0) * servings, 1)
