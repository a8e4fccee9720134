"""Weather-driven meal tags, recipe confidence and recommendations."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from meal_planner.domain.recipes import Recipe
from meal_planner.domain.recommendations import (
    MealRecommendation,
    RecommendationExplanation,
)
from meal_planner.domain.weather import TimeOfDay, WeatherContext

_logger = logging.getLogger(__name__)

HOT_FEELS_LIKE = 85
WARM_FEELS_LIKE = 70
COOL_FEELS_LIKE = 55
RAINY_PRECIPITATION = 40
HEAVY_RAIN_PRECIPITATION = 60
HIGH_HUMIDITY = 70
WINDY_MPH = 20
POOR_AIR_AQI = 100
GOOD_VISIBILITY_MILES = 5
GOLDEN_HOUR_MINUTES = (90, 150)
FRIDAY = 4
SUNDAY = 6

OUTDOOR_TAGS = frozenset({"grill", "bbq"})
COOLING_TERMS = ("salad", "cold", "chilled", "gazpacho", "ceviche", "no-cook")
WARMING_TERMS = ("soup", "stew", "bake", "roast", "hot", "warm", "comfort")
SUMMER_INGREDIENTS = ("tomato", "cucumber", "basil", "corn", "peach", "berry")
WINTER_INGREDIENTS = ("root vegetable", "squash", "potato", "onion", "garlic")

_MONTH_TAGS: dict[int, tuple[str, ...]] = {
    1: ("citrus", "root-vegetables"),
    2: ("citrus", "root-vegetables"),
    3: ("greens",),
    4: ("greens",),
    5: ("greens",),
    6: ("berries",),
    7: ("berries",),
    8: ("berries",),
    9: ("squash",),
    10: ("squash",),
    11: ("holiday",),
    12: ("holiday", "citrus"),
}


class RecipeRepository(Protocol):
    """Read access to a user's recipes."""

    def list_recipes(self, user_id: str, limit: int | None = None) -> list[Recipe]:
        """Return the user's recipes."""


def pick_meal_tags(ctx: WeatherContext) -> list[str]:
    """Map a weather context to an ordered, de-duplicated list of meal tags."""
    weather = ctx.weather
    sun = ctx.sun
    tags: list[str] = [ctx.season.value]

    windy = weather.wind_speed >= WINDY_MPH
    poor_air = weather.aqi >= POOR_AIR_AQI
    heavy_rain = weather.precipitation >= HEAVY_RAIN_PRECIPITATION
    golden_hour = (
        GOLDEN_HOUR_MINUTES[0] <= sun.minutes_to_sunset <= GOLDEN_HOUR_MINUTES[1]
    )
    after_dark = not sun.is_daytime or sun.minutes_to_sunset <= 0

    feels_like = weather.feels_like
    if feels_like >= HOT_FEELS_LIKE:
        if golden_hour and weather.wind_speed < 15 and weather.aqi < 80:
            tags += ["grill", "summer", "light", "fresh"]
        else:
            tags += ["no-cook", "chilled", "salad", "fresh"]
    elif feels_like >= WARM_FEELS_LIKE:
        if golden_hour and not windy and not poor_air:
            tags += ["grill", "fresh"]
        elif weather.visibility >= GOOD_VISIBILITY_MILES:
            tags += ["light", "fresh", "seasonal"]
    elif feels_like >= COOL_FEELS_LIKE:
        if (
            weather.precipitation >= RAINY_PRECIPITATION
            or weather.humidity >= HIGH_HUMIDITY
        ):
            tags += ["soup", "comfort", "warm"]
        else:
            tags += ["seasonal", "hearty"]
    else:
        tags += ["soup", "stew", "bake", "comfort", "warm", "hearty"]

    # Hazards always win over temperature comfort.
    if heavy_rain:
        tags = [tag for tag in tags if tag not in OUTDOOR_TAGS]
        tags += ["soup", "stew", "bake", "comfort", "indoor"]
    if windy or poor_air:
        tags = [tag for tag in tags if tag not in OUTDOOR_TAGS]
        tags += ["sheet-pan", "air-fryer", "stovetop", "indoor"]
    hazard = heavy_rain or windy or poor_air

    if ctx.time_of_day == TimeOfDay.MORNING:
        tags += ["fresh", "light"]
    elif ctx.time_of_day == TimeOfDay.EVENING and not after_dark:
        if feels_like >= WARM_FEELS_LIKE and not hazard:
            tags.append("grill")
    elif ctx.time_of_day == TimeOfDay.NIGHT or after_dark:
        tags += ["comfort", "warm"]

    if ctx.is_weeknight:
        tags += ["30-min", "quick", "one-pot", "weeknight"]
    elif ctx.weekday == FRIDAY:
        tags.append("crowd-pleaser")
    elif ctx.weekday == SUNDAY:
        tags += ["batch-cook", "leftovers"]

    tags += _MONTH_TAGS.get(ctx.month, ())
    return list(dict.fromkeys(tags))


def matching_tags(recipe: Recipe, tags: Iterable[str]) -> list[str]:
    """Return recommended tags that overlap a recipe tag by substring."""
    return [
        tag
        for tag in tags
        if any(tag in recipe_tag or recipe_tag in tag for recipe_tag in recipe.tags)
    ]


def calculate_confidence(
    recipe: Recipe, tags: Sequence[str], ctx: WeatherContext
) -> float:
    """Score how well a recipe fits the recommended tags and context (<= 1.0)."""
    confidence = 0.5
    confidence += len(matching_tags(recipe, tags)) * 0.15

    if ctx.is_weeknight and recipe.prep_time is not None and recipe.prep_time <= 30:
        confidence += 0.2

    searchable = _searchable_text(recipe)
    feels_like = ctx.weather.feels_like
    if feels_like >= HOT_FEELS_LIKE:
        if any(term in searchable for term in COOLING_TERMS):
            confidence += 0.25
    elif feels_like <= COOL_FEELS_LIKE:
        if any(term in searchable for term in WARMING_TERMS):
            confidence += 0.25

    ingredients = recipe.ingredients.lower()
    if 6 <= ctx.month <= 9:
        if any(item in ingredients for item in SUMMER_INGREDIENTS):
            confidence += 0.1
    elif ctx.month <= 3 or ctx.month == 12:
        if any(item in ingredients for item in WINTER_INGREDIENTS):
            confidence += 0.1

    return min(1.0, confidence)


def rank_recipes(
    recipes: Iterable[Recipe], tags: Sequence[str], ctx: WeatherContext, limit: int
) -> list[Recipe]:
    """Sort recipes by descending confidence, keeping input order for ties."""
    scored = [(recipe, calculate_confidence(recipe, tags, ctx)) for recipe in recipes]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [recipe for recipe, _ in scored[:limit]]


def generate_recommendation_reason(ctx: WeatherContext, tags: Sequence[str]) -> str:
    """Explain a recommendation from the most notable weather and time factors."""
    weather = ctx.weather
    reasons: list[str] = []

    if weather.feels_like >= HOT_FEELS_LIKE:
        reasons.append(f"{_num(weather.feels_like)}°F feels-like temperature")
    elif weather.feels_like <= COOL_FEELS_LIKE:
        reasons.append(f"chilly {_num(weather.feels_like)}°F weather")
    if weather.precipitation >= RAINY_PRECIPITATION:
        reasons.append(f"{_num(weather.precipitation)}% chance of rain")
    if weather.wind_speed >= WINDY_MPH:
        reasons.append(f"{_num(weather.wind_speed)} mph winds")
    if weather.aqi >= POOR_AIR_AQI:
        reasons.append(f"poor air quality (AQI {_num(weather.aqi)})")

    minutes_to_sunset = ctx.sun.minutes_to_sunset
    if 0 < minutes_to_sunset <= GOLDEN_HOUR_MINUTES[1]:
        hours, minutes = divmod(minutes_to_sunset, 60)
        remaining = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"
        reasons.append(f"{remaining} until sunset")
    if ctx.is_weeknight:
        reasons.append("weeknight schedule")

    if not reasons:
        return f"Perfect {_num(weather.temperature)}°F weather for cooking"
    return f"Because of {', '.join(reasons)}"


def get_weather_summary(ctx: WeatherContext) -> str:
    """One-line description of today's cooking conditions."""
    weather = ctx.weather
    if weather.feels_like >= HOT_FEELS_LIKE and ctx.sun.minutes_to_sunset >= 90:
        return "Perfect grilling weather ahead!"
    if weather.feels_like >= HOT_FEELS_LIKE:
        return "Too hot for the kitchen - time for no-cook meals"
    if weather.precipitation >= RAINY_PRECIPITATION:
        return "Rainy day comfort food weather"
    if weather.feels_like <= COOL_FEELS_LIKE:
        return "Chilly weather calls for warming dishes"
    if ctx.is_weeknight:
        return "Quick weeknight meal weather"
    return "Great cooking weather today"


@dataclass
class MealRecommendationService:
    """Ranks a user's recipes against the current weather context."""

    repository: RecipeRepository

    async def get_meal_recommendations(  # noqa: PLR0913
        self,
        ctx: WeatherContext,
        user_id: str,
        count: int = 3,
        max_prep_time: int | None = None,
        exclude_ingredients: Sequence[str] = (),
    ) -> list[MealRecommendation]:
        """Return up to ``count`` recommendations with reasons and confidence."""
        tags = pick_meal_tags(ctx)
        try:
            recipes = await asyncio.to_thread(self.repository.list_recipes, user_id)
        except Exception:
            _logger.exception("Failed to load recipes for recommendations")
            return []

        candidates = rank_recipes(recipes, tags, ctx, limit=count * 3)
        if max_prep_time:
            candidates = [
                recipe
                for recipe in candidates
                if recipe.prep_time is None or recipe.prep_time <= max_prep_time
            ]
        excluded = [item.lower() for item in exclude_ingredients if item]
        if excluded:
            candidates = [
                recipe
                for recipe in candidates
                if not any(item in recipe.ingredients.lower() for item in excluded)
            ]

        reason = generate_recommendation_reason(ctx, tags)
        return [
            MealRecommendation(
                recipe=recipe,
                reason=reason,
                confidence=calculate_confidence(recipe, tags, ctx),
                tags=matching_tags(recipe, tags),
            )
            for recipe in candidates[:count]
        ]

    async def explain(
        self, ctx: WeatherContext, user_id: str
    ) -> RecommendationExplanation:
        """Return recommendations together with the factors behind them."""
        weather = ctx.weather
        conditions = []
        if weather.feels_like >= HOT_FEELS_LIKE:
            conditions.append("hot")
        if weather.feels_like <= COOL_FEELS_LIKE:
            conditions.append("cold")
        if weather.precipitation >= RAINY_PRECIPITATION:
            conditions.append("rainy")
        if weather.wind_speed >= WINDY_MPH:
            conditions.append("windy")
        if weather.aqi >= POOR_AIR_AQI:
            conditions.append("poor air quality")

        time_factors = []
        if ctx.is_weeknight:
            time_factors.append("weeknight")
        if ctx.sun.minutes_to_sunset >= GOLDEN_HOUR_MINUTES[0]:
            time_factors.append("golden hour")
        time_factors.append(ctx.time_of_day.value)

        return RecommendationExplanation(
            tags=pick_meal_tags(ctx),
            summary=get_weather_summary(ctx),
            temperature=weather.feels_like,
            conditions=conditions,
            time_factors=time_factors,
            recommendations=await self.get_meal_recommendations(ctx, user_id),
        )


def _searchable_text(recipe: Recipe) -> str:
    course = recipe.course.value if recipe.course else ""
    return " ".join((recipe.title, recipe.ingredients, course)).lower()


def _num(value: float) -> str:
    return f"{value:g}"
