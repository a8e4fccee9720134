"""Point-based matching of recipes to forecast conditions."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from meal_planner.domain.meal_plans import MealType
from meal_planner.domain.recipes import Course, Recipe
from meal_planner.domain.recommendations import MealSuggestion
from meal_planner.domain.weather import Season

MINIMUM_SCORE = 15

# (lower bound in °F, preferred meal terms, reason), checked in order
_TEMPERATURE_BANDS: tuple[tuple[float, tuple[str, ...], str], ...] = (
    (
        85,
        ("salad", "cold", "light", "no-cook", "smoothie", "gazpacho"),
        "Perfect for hot weather - light and refreshing",
    ),
    (
        75,
        ("grill", "fresh", "salad", "summer", "bbq", "chilled"),
        "Great for warm weather",
    ),
    (
        65,
        ("grill", "fresh", "pasta", "stir-fry", "roasted"),
        "Ideal for mild temperatures",
    ),
    (
        50,
        ("soup", "comfort", "bake", "roasted", "casserole"),
        "Warming and comforting for cool weather",
    ),
    (
        32,
        ("soup", "stew", "hearty", "bake", "comfort", "warm"),
        "Perfect for cold weather - hearty and warming",
    ),
    (
        float("-inf"),
        ("stew", "hearty", "soup", "casserole", "chili", "pot-roast"),
        "Extra warming for very cold weather",
    ),
)

CONDITION_PREFERENCES: dict[str, tuple[str, ...]] = {
    "sunny": ("grill", "bbq", "fresh", "salad", "summer", "outdoor"),
    "partly cloudy": ("grill", "pasta", "stir-fry", "roasted"),
    "cloudy": ("comfort", "bake", "pasta", "casserole"),
    "rainy": ("soup", "stew", "comfort", "warm", "cozy", "chili"),
    "drizzle": ("soup", "pasta", "comfort", "warm"),
    "stormy": ("stew", "soup", "comfort", "hearty", "slow-cooker"),
    "snowy": ("stew", "soup", "hearty", "comfort", "chili", "casserole"),
    "fog": ("soup", "comfort", "warm"),
    "windy": ("indoor", "bake", "casserole", "one-pot"),
}

_CONDITION_REASONS = {
    "rainy": "Cozy comfort food for rainy weather",
    "stormy": "Cozy comfort food for rainy weather",
    "sunny": "Perfect for a sunny day",
    "snowy": "Hearty meal for snowy weather",
    "cloudy": "Comforting for overcast skies",
}

SEASONAL_INGREDIENTS: dict[Season, tuple[str, ...]] = {
    Season.SPRING: (
        "asparagus",
        "peas",
        "artichoke",
        "strawberry",
        "lettuce",
        "radish",
        "greens",
    ),
    Season.SUMMER: (
        "tomato",
        "corn",
        "zucchini",
        "cucumber",
        "berries",
        "peach",
        "watermelon",
    ),
    Season.FALL: (
        "squash",
        "pumpkin",
        "apple",
        "sweet potato",
        "brussels sprouts",
        "cranberry",
    ),
    Season.WINTER: (
        "root vegetables",
        "kale",
        "cabbage",
        "citrus",
        "potato",
        "onion",
        "carrot",
    ),
}

MEAL_TYPE_COURSES: dict[MealType, tuple[Course, ...]] = {
    MealType.BREAKFAST: (Course.BREAKFAST, Course.APPETIZER),
    MealType.LUNCH: (Course.APPETIZER, Course.MAIN, Course.SIDE),
    MealType.DINNER: (Course.MAIN, Course.SIDE),
    MealType.SNACK: (Course.APPETIZER, Course.SIDE, Course.DESSERT),
}


@dataclass(frozen=True)
class WeatherConditions:
    """Forecast summary used for matching (temperature in °F)."""

    temperature: float
    condition: str
    precipitation: float
    season: Season
    humidity: float | None = None


def get_current_season(day: date | None = None) -> Season:
    """Return the calendar season for a date (defaults to today)."""
    return Season.for_month((day or date.today()).month)


def normalize_condition(condition: str) -> str:
    """Reduce a free-text condition to one of the known condition keys."""
    lower = condition.lower()
    if "rain" in lower or "shower" in lower:
        return "rainy"
    if "storm" in lower or "thunder" in lower:
        return "stormy"
    if "snow" in lower or "flurr" in lower:
        return "snowy"
    if "drizzle" in lower:
        return "drizzle"
    if "sun" in lower or "clear" in lower:
        return "sunny"
    if "cloud" in lower and "partly" in lower:
        return "partly cloudy"
    if "cloud" in lower or "overcast" in lower:
        return "cloudy"
    if "fog" in lower or "mist" in lower:
        return "fog"
    if "wind" in lower:
        return "windy"
    return "partly cloudy"


def temperature_score(recipe: Recipe, temperature: float) -> tuple[int, list[str]]:
    """Up to 40 points, 15 per matching term for the temperature band."""
    terms, reason = _temperature_band(temperature)
    matches = _count_matches(recipe, terms)
    if not matches:
        return 0, []
    return min(40, matches * 15), [reason]


def condition_score(recipe: Recipe, condition: str) -> tuple[int, list[str]]:
    """Up to 30 points, 12 per matching term for the normalized condition."""
    normalized = normalize_condition(condition)
    matches = _count_matches(recipe, CONDITION_PREFERENCES.get(normalized, ()))
    if not matches:
        return 0, []
    reason = _CONDITION_REASONS.get(normalized)
    return min(30, matches * 12), [reason] if reason else []


def seasonal_score(recipe: Recipe, season: Season) -> tuple[int, list[str]]:
    """Up to 20 points, 8 per seasonal ingredient found."""
    ingredients = recipe.ingredients.lower()
    matches = sum(
        1 for item in SEASONAL_INGREDIENTS.get(season, ()) if item in ingredients
    )
    if not matches:
        return 0, []
    return min(20, matches * 8), [f"Features seasonal {season.value} ingredients"]


def meal_type_score(
    recipe: Recipe, meal_type: MealType | None
) -> tuple[int, list[str]]:
    """10 points when the recipe course suits the meal type."""
    if meal_type is None or recipe.course is None:
        return 0, []
    if recipe.course in MEAL_TYPE_COURSES[meal_type]:
        return 10, [f"Great for {meal_type.value.lower()}"]
    return 0, []


def get_suggested_meals(
    recipes: Iterable[Recipe],
    conditions: WeatherConditions,
    meal_type: MealType | None = None,
    limit: int = 5,
) -> list[MealSuggestion]:
    """Score recipes against conditions and return the best ``limit`` matches."""
    suggestions = []
    for recipe in recipes:
        parts = (
            temperature_score(recipe, conditions.temperature),
            condition_score(recipe, conditions.condition),
            seasonal_score(recipe, conditions.season),
            meal_type_score(recipe, meal_type),
        )
        total = sum(score for score, _ in parts)
        if total < MINIMUM_SCORE:
            continue
        reasons = [reason for _, part_reasons in parts for reason in part_reasons]
        suggestions.append(MealSuggestion(recipe=recipe, score=total, reasons=reasons))

    suggestions.sort(key=lambda suggestion: suggestion.score, reverse=True)
    return suggestions[:limit]


def _temperature_band(temperature: float) -> tuple[tuple[str, ...], str]:
    for lower_bound, terms, reason in _TEMPERATURE_BANDS:
        if temperature >= lower_bound:
            return terms, reason
    return _TEMPERATURE_BANDS[-1][1], _TEMPERATURE_BANDS[-1][2]


def _count_matches(recipe: Recipe, terms: Iterable[str]) -> int:
    tags = " ".join(sorted(recipe.tags))
    text = f"{recipe.title} {recipe.summary or ''} {tags}".lower()
    return sum(1 for term in terms if term in text)
