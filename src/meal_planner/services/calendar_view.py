"""Date bucketing helpers for the meal calendar."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from meal_planner.domain.meal_plans import MealType, PlannedMeal

COOKING_PROMPT_MINUTES = 120
_WINDOW_DAYS = 3

# (start hour, end hour, meal types in priority order)
_FEATURED_PRIORITY: tuple[tuple[int, int, tuple[MealType, ...]], ...] = (
    (5, 11, (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)),
    (11, 16, (MealType.LUNCH, MealType.DINNER)),
    (16, 24, (MealType.DINNER,)),
)


@dataclass(frozen=True)
class MealCountdown:
    """Time remaining until a scheduled meal."""

    text: str
    is_past: bool
    show_cooking_prompt: bool
    minutes: int


def get_week_boundaries(day: date) -> tuple[date, date]:
    """Return the Sunday and Saturday of the week containing ``day``."""
    week_start = day - timedelta(days=(day.weekday() + 1) % 7)
    return week_start, week_start + timedelta(days=6)


def get_past_days(today: date, week_start: date) -> list[date]:
    """Up to three days before ``today``, not earlier than ``week_start``."""
    days = _date_range(week_start, today - timedelta(days=1))
    return days[-_WINDOW_DAYS:]


def get_future_days(today: date, week_end: date) -> list[date]:
    """Up to three days after ``today``, not later than ``week_end``."""
    days = _date_range(today + timedelta(days=1), week_end)
    return days[:_WINDOW_DAYS]


def get_meals_for_day(day: date, meals: Iterable[PlannedMeal]) -> list[PlannedMeal]:
    return [meal for meal in meals if meal.date == day]


def has_meals_for_day(day: date, meals: Iterable[PlannedMeal]) -> bool:
    return any(meal.date == day for meal in meals)


def count_meals_in_range(days: Iterable[date], meals: Sequence[PlannedMeal]) -> int:
    return sum(len(get_meals_for_day(day, meals)) for day in days)


def get_featured_meal(
    meals: Sequence[PlannedMeal], now: datetime | None = None
) -> PlannedMeal | None:
    """Pick the meal to highlight for the current hour.

    Mornings prefer breakfast, afternoons lunch and evenings dinner, each
    falling through to later meals and finally to the first meal of the day.
    """
    if not meals:
        return None
    hour = (now or datetime.now()).hour
    for start, end, priority in _FEATURED_PRIORITY:
        if start <= hour < end:
            for meal_type in priority:
                for meal in meals:
                    if meal.meal_type == meal_type:
                        return meal
            break
    return meals[0]


def get_other_meals(
    meals: Sequence[PlannedMeal], featured: PlannedMeal | None
) -> list[PlannedMeal]:
    if featured is None:
        return list(meals)
    return [meal for meal in meals if meal.id != featured.id]


def get_time_until_meal(
    scheduled_time: str | None, now: datetime | None = None
) -> MealCountdown:
    """Countdown to an ``HH:MM`` meal time today."""
    parsed = _parse_clock(scheduled_time)
    if parsed is None:
        return MealCountdown(
            text="", is_past=False, show_cooking_prompt=False, minutes=0
        )

    moment = now or datetime.now()
    meal_time = moment.replace(
        hour=parsed[0], minute=parsed[1], second=0, microsecond=0
    )
    seconds = (meal_time - moment).total_seconds()
    minutes = int(seconds / 60)
    if seconds < 0:
        return MealCountdown(
            text="Past meal time",
            is_past=True,
            show_cooking_prompt=False,
            minutes=minutes,
        )

    hours, remainder = divmod(minutes, 60)
    if hours == 0:
        text = f"{minutes}min"
    elif remainder:
        text = f"{hours}h {remainder}min"
    else:
        text = f"{hours}h"
    return MealCountdown(
        text=text,
        is_past=False,
        show_cooking_prompt=0 < minutes <= COOKING_PROMPT_MINUTES,
        minutes=minutes,
    )


def format_meal_times(
    prep_time: int | None = None, cook_time: int | None = None
) -> str:
    """Render prep and cook minutes, e.g. ``15min prep • 30min cook``."""
    parts = []
    if prep_time:
        parts.append(f"{prep_time}min prep")
    if cook_time:
        parts.append(f"{cook_time}min cook")
    return " • ".join(parts)


def get_time_of_day_greeting(now: datetime | None = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        return "Good morning"
    if hour < 18:
        return "Good afternoon"
    return "Good evening"


def get_meal_type_label(meal_type: MealType) -> str:
    return meal_type.value.capitalize()


def _date_range(start: date, end: date) -> list[date]:
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def _parse_clock(raw: str | None) -> tuple[int, int] | None:
    if not raw:
        return None
    hours, _, minutes = raw.partition(":")
    if not hours.isdigit() or not minutes[:2].isdigit():
        return None
    hour, minute = int(hours), int(minutes[:2])
    if hour > 23 or minute > 59:
        return None
    return hour, minute
