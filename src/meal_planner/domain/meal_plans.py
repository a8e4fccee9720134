"""Meal plan domain models."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from meal_planner.domain.recipes import Recipe


class MealType(StrEnum):
    """Slot a planned meal occupies in a day."""

    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"

    @classmethod
    def parse(cls, raw: object) -> "MealType":
        """Parse a stored meal type; raises ValueError for unknown values."""
        if isinstance(raw, str):
            try:
                return cls(raw.strip().upper())
            except ValueError:
                pass
        raise ValueError(f"Unknown meal type: {raw!r}")

    @property
    def order(self) -> int:
        """Position of the meal type within a day."""
        return MEAL_TYPE_ORDER.index(self)


MEAL_TYPE_ORDER = (
    MealType.BREAKFAST,
    MealType.LUNCH,
    MealType.DINNER,
    MealType.SNACK,
)


@dataclass(frozen=True)
class PlannedMeal:
    """A meal scheduled in a plan; ``recipe`` is None for custom meals."""

    id: str
    meal_plan_id: str
    date: date
    meal_type: MealType
    servings: float = 1
    is_completed: bool = False
    recipe: Recipe | None = None
    custom_meal_name: str | None = None
    scheduled_time: str | None = None
    weather_snapshot: dict[str, object] | None = None

    @property
    def recipe_id(self) -> str | None:
        """Identifier of the referenced recipe, if any."""
        return self.recipe.id if self.recipe else None


@dataclass(frozen=True)
class MealPlan:
    """A dated collection of planned meals."""

    id: str
    user_id: str
    start_date: date
    end_date: date
    name: str = ""
    is_active: bool = False
    meals: tuple[PlannedMeal, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class NutritionGoal:
    """A user's nutrition targets used as an analytics baseline."""

    user_id: str
    target_calories: float
    target_protein: float | None = None
    target_carbs: float | None = None
    target_fat: float | None = None
    target_fiber: float | None = None
    is_active: bool = True
