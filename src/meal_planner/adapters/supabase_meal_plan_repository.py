"""Supabase repository for meal plans, recipes and nutrition goals."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from meal_planner.domain.meal_plans import (
    MealPlan,
    MealType,
    NutritionGoal,
    PlannedMeal,
)
from meal_planner.domain.recipes import (
    Course,
    Difficulty,
    NutritionFacts,
    Recipe,
    parse_tags,
)
from meal_planner.services.analytics import AnalyticsRepository
from meal_planner.services.meal_recommendations import RecipeRepository

_PLANNED_MEAL_COLUMNS = (
    "id, meal_plan_id, date, meal_type, servings, is_completed, custom_meal_name, "
    "scheduled_time, weather_snapshot, recipe:recipes(*)"
)


@dataclass
class SupabaseMealPlanRepository(AnalyticsRepository, RecipeRepository):
    """Supabase implementation for meal planning history."""

    client: Client

    def list_meal_plans(self, user_id: str, start: date, end: date) -> list[MealPlan]:
        """Return plans inside the range with their meals."""
        response = (
            self.client.table("meal_plans")
            .select(
                "id, user_id, name, start_date, end_date, is_active, "
                f"planned_meals({_PLANNED_MEAL_COLUMNS})"
            )
            .eq("user_id", user_id)
            .gte("start_date", start.isoformat())
            .lte("end_date", end.isoformat())
            .order("start_date", desc=False)
            .execute()
        )
        return [_parse_plan(row) for row in response.data or []]

    def list_planned_meals(
        self, user_id: str, start: date | None = None, end: date | None = None
    ) -> list[PlannedMeal]:
        """Return the user's planned meals, filtered by their plan's dates."""
        query = (
            self.client.table("planned_meals")
            .select(f"{_PLANNED_MEAL_COLUMNS}, meal_plans!inner(user_id)")
            .eq("meal_plans.user_id", user_id)
        )
        if start is not None:
            query = query.gte("meal_plans.start_date", start.isoformat())
        if end is not None:
            query = query.lte("meal_plans.end_date", end.isoformat())
        response = query.order("date", desc=False).execute()
        return [_parse_planned_meal(row) for row in response.data or []]

    def list_recipes(self, user_id: str, limit: int | None = None) -> list[Recipe]:
        """Return the user's recipes, newest first."""
        query = (
            self.client.table("recipes")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        response = query.execute()
        return [_parse_recipe(row) for row in response.data or []]

    def get_active_nutrition_goal(self, user_id: str) -> NutritionGoal | None:
        """Return the active nutrition goal, if any."""
        response = (
            self.client.table("nutrition_goals")
            .select(
                "user_id, target_calories, target_protein, target_carbs, "
                "target_fat, target_fiber, is_active"
            )
            .eq("user_id", user_id)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return NutritionGoal(
            user_id=str(row["user_id"]),
            target_calories=float(row.get("target_calories") or 0),
            target_protein=_optional_float(row.get("target_protein")),
            target_carbs=_optional_float(row.get("target_carbs")),
            target_fat=_optional_float(row.get("target_fat")),
            target_fiber=_optional_float(row.get("target_fiber")),
            is_active=bool(row.get("is_active", True)),
        )


def _parse_plan(row: dict[str, object]) -> MealPlan:
    meals = sorted(
        (_parse_planned_meal(meal) for meal in row.get("planned_meals") or []),
        key=lambda meal: (meal.date, meal.meal_type.order),
    )
    return MealPlan(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        name=str(row.get("name") or ""),
        start_date=_parse_date(row["start_date"]),
        end_date=_parse_date(row["end_date"]),
        is_active=bool(row.get("is_active", False)),
        meals=tuple(meals),
    )


def _parse_planned_meal(row: dict[str, object]) -> PlannedMeal:
    recipe_row = row.get("recipe")
    return PlannedMeal(
        id=str(row["id"]),
        meal_plan_id=str(row["meal_plan_id"]),
        date=_parse_date(row["date"]),
        meal_type=MealType.parse(row.get("meal_type")),
        servings=float(row.get("servings") or 1),
        is_completed=bool(row.get("is_completed", False)),
        recipe=_parse_recipe(recipe_row) if isinstance(recipe_row, dict) else None,
        custom_meal_name=row.get("custom_meal_name"),
        scheduled_time=row.get("scheduled_time"),
        weather_snapshot=row.get("weather_snapshot"),
    )


def _parse_recipe(row: dict[str, object]) -> Recipe:
    created_at = row.get("created_at")
    return Recipe(
        id=str(row["id"]),
        user_id=str(row["user_id"]) if row.get("user_id") else None,
        title=str(row.get("title") or ""),
        ingredients=str(row.get("ingredients") or ""),
        instructions=str(row.get("instructions") or ""),
        tags=parse_tags(row.get("tags")),
        prep_time=_optional_int(row.get("prep_time")),
        cook_time=_optional_int(row.get("cook_time")),
        servings=_optional_int(row.get("servings")),
        nutrition=NutritionFacts(
            calories=_optional_float(row.get("calories")),
            protein_g=_optional_float(row.get("protein_g")),
            carbs_g=_optional_float(row.get("carbs_g")),
            fat_g=_optional_float(row.get("fat_g")),
            fiber_g=_optional_float(row.get("fiber_g")),
            sugar_g=_optional_float(row.get("sugar_g")),
            sodium_mg=_optional_float(row.get("sodium_mg")),
        ),
        course=Course.parse(row.get("course")),
        cuisine=row.get("cuisine") or None,
        difficulty=Difficulty.parse(row.get("difficulty")),
        summary=row.get("summary"),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


def _parse_date(raw: object) -> date:
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


def _optional_float(raw: object) -> float | None:
    if raw is None:
        return None
    return float(raw)


def _optional_int(raw: object) -> int | None:
    if raw is None:
        return None
    return int(raw)
