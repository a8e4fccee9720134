"""Analytics over a user's meal planning history."""

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol, TypeVar

from meal_planner.domain.analytics import (
    AnalyticsDashboard,
    CuisineDistribution,
    CuisineSuggestion,
    DashboardOverview,
    MealTypeDistribution,
    NutritionalTrends,
    PersonalizedRecommendations,
    RecipeFrequency,
    RecipeStats,
    RotationSuggestion,
    SeasonalPattern,
    Trend,
    WasteReduction,
    WeeklyStats,
)
from meal_planner.domain.meal_plans import (
    MEAL_TYPE_ORDER,
    MealPlan,
    MealType,
    NutritionGoal,
    PlannedMeal,
)
from meal_planner.domain.recipes import Recipe
from meal_planner.domain.weather import Season
from meal_planner.safe_math import (
    has_minimum_sample_size,
    round_to_dp,
    safe_average,
    safe_div,
    safe_percentage,
    safe_weeks_from_days,
)

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

DASHBOARD_WEEKS = 12
RECOMMENDATION_WEEKS = 8
ROTATION_AFTER = timedelta(weeks=3)
DEFAULT_RECIPE_SERVINGS = 4
TREND_THRESHOLD = 0.05
GOAL_TOLERANCE = 0.1
SEASON_ORDER = (Season.WINTER, Season.SPRING, Season.SUMMER, Season.FALL)
DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
SEASONAL_KEYWORDS: dict[Season, tuple[str, ...]] = {
    Season.WINTER: ("soup", "stew", "roast", "comfort", "warm"),
    Season.SPRING: ("fresh", "salad", "light", "green", "asparagus"),
    Season.SUMMER: ("grill", "bbq", "cold", "refreshing", "tomato", "corn"),
    Season.FALL: ("pumpkin", "apple", "harvest", "squash", "warm"),
}
# Static advice: no per-recipe cost data exists to model spending.
COST_OPTIMIZATION_TIPS = (
    "Batch cook meals to reduce ingredient waste",
    "Plan meals that share common ingredients",
    "Consider seasonal produce for better prices",
)


class AnalyticsRepository(Protocol):
    """Read access to meal planning history.

    Date filters apply to the parent plan: a plan is in range when it starts
    on or after ``start`` and ends on or before ``end``.
    """

    def list_meal_plans(self, user_id: str, start: date, end: date) -> list[MealPlan]:
        """Return plans (with their meals) inside the range."""

    def list_planned_meals(
        self, user_id: str, start: date | None = None, end: date | None = None
    ) -> list[PlannedMeal]:
        """Return planned meals with their recipes; open bounds are unfiltered."""

    def list_recipes(self, user_id: str, limit: int | None = None) -> list[Recipe]:
        """Return the user's recipes, newest first."""

    def get_active_nutrition_goal(self, user_id: str) -> NutritionGoal | None:
        """Return the active nutrition goal, if any."""


@dataclass
class AnalyticsService:
    """Builds dashboards and recommendations from an analytics repository."""

    repository: AnalyticsRepository

    async def get_dashboard(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
        today: date | None = None,
    ) -> AnalyticsDashboard:
        """Return the dashboard; failed sections fall back to empty values."""
        today = today or date.today()
        end = end or today
        start = start or end - timedelta(weeks=DASHBOARD_WEEKS)

        (
            overview,
            recipe_stats,
            cuisines,
            meal_types,
            weekly,
            nutrition,
            seasonal,
            waste,
        ) = await asyncio.gather(
            _section(
                "overview",
                self._overview(user_id, start, end, today),
                DashboardOverview(),
            ),
            _section(
                "recipe_stats",
                self._recipe_stats(user_id, start, end, today),
                RecipeStats(),
            ),
            _section("cuisine_distribution", self._cuisines(user_id, start, end), []),
            _section(
                "meal_type_distribution", self._meal_types(user_id, start, end), []
            ),
            _section("weekly_trends", self._weekly(user_id, start, end), []),
            _section(
                "nutritional_trends",
                self._nutrition(user_id, start, end),
                NutritionalTrends(),
            ),
            _section("seasonal_patterns", self._seasonal(user_id), []),
            _section(
                "waste_reduction", self._waste(user_id, start, end), WasteReduction()
            ),
        )
        return AnalyticsDashboard(
            overview=overview,
            recipe_stats=recipe_stats,
            cuisine_distribution=cuisines,
            meal_type_distribution=meal_types,
            weekly_trends=weekly,
            nutritional_trends=nutrition,
            seasonal_patterns=seasonal,
            waste_reduction=waste,
        )

    async def get_recommendations(
        self, user_id: str, today: date | None = None
    ) -> PersonalizedRecommendations:
        """Return suggestions from the trailing eight weeks of planning."""
        today = today or date.today()
        start = today - timedelta(weeks=RECOMMENDATION_WEEKS)

        meals, recipes, goal = await asyncio.gather(
            _section(
                "recent_meals",
                asyncio.to_thread(self.repository.list_planned_meals, user_id, start),
                [],
            ),
            _section(
                "recipes",
                asyncio.to_thread(self.repository.list_recipes, user_id),
                [],
            ),
            _section(
                "nutrition_goal",
                asyncio.to_thread(self.repository.get_active_nutrition_goal, user_id),
                None,
            ),
        )
        trends = compute_nutritional_trends(meals, goal)
        return PersonalizedRecommendations(
            rotation_suggestions=compute_rotation_suggestions(recipes, meals, today),
            cuisine_suggestions=compute_cuisine_suggestions(recipes, meals),
            nutritional_suggestions=compute_nutritional_suggestions(
                trends, has_goal=goal is not None
            ),
            variety_score=compute_variety_score(meals),
            seasonal_suggestions=compute_seasonal_suggestions(
                recipes, Season.for_month(today.month)
            ),
            cost_optimizations=list(COST_OPTIMIZATION_TIPS),
        )

    async def _overview(
        self, user_id: str, start: date, end: date, today: date
    ) -> DashboardOverview:
        plans = await asyncio.to_thread(
            self.repository.list_meal_plans, user_id, start, end
        )
        return compute_overview(plans, start, end, today)

    async def _recipe_stats(
        self, user_id: str, start: date, end: date, today: date
    ) -> RecipeStats:
        meals, recipes = await asyncio.gather(
            asyncio.to_thread(self.repository.list_planned_meals, user_id, start, end),
            asyncio.to_thread(self.repository.list_recipes, user_id),
        )
        return compute_recipe_stats(meals, recipes, today)

    async def _cuisines(
        self, user_id: str, start: date, end: date
    ) -> list[CuisineDistribution]:
        meals = await self._meals(user_id, start, end)
        return compute_cuisine_distribution(meals)

    async def _meal_types(
        self, user_id: str, start: date, end: date
    ) -> list[MealTypeDistribution]:
        meals = await self._meals(user_id, start, end)
        return compute_meal_type_distribution(meals)

    async def _weekly(self, user_id: str, start: date, end: date) -> list[WeeklyStats]:
        meals = await self._meals(user_id, start, end)
        return compute_weekly_trends(meals)

    async def _nutrition(
        self, user_id: str, start: date, end: date
    ) -> NutritionalTrends:
        meals, goal = await asyncio.gather(
            self._meals(user_id, start, end),
            asyncio.to_thread(self.repository.get_active_nutrition_goal, user_id),
        )
        return compute_nutritional_trends(meals, goal)

    async def _seasonal(self, user_id: str) -> list[SeasonalPattern]:
        meals = await asyncio.to_thread(self.repository.list_planned_meals, user_id)
        return compute_seasonal_patterns(meals)

    async def _waste(self, user_id: str, start: date, end: date) -> WasteReduction:
        meals = await self._meals(user_id, start, end)
        return compute_waste_reduction(meals)

    async def _meals(self, user_id: str, start: date, end: date) -> list[PlannedMeal]:
        return await asyncio.to_thread(
            self.repository.list_planned_meals, user_id, start, end
        )


async def _section(name: str, pending: Awaitable[_T], default: _T) -> _T:
    """Await one analytics section, degrading to ``default`` on failure."""
    try:
        return await pending
    except Exception:
        _logger.exception("Analytics section %s failed", name)
        return default


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def serving_scale(meal: PlannedMeal) -> float:
    """Fraction of the recipe yield eaten for a planned meal."""
    recipe_servings = meal.recipe.servings if meal.recipe else None
    return safe_div(meal.servings, recipe_servings or DEFAULT_RECIPE_SERVINGS)


def compute_overview(
    plans: Sequence[MealPlan], start: date, end: date, today: date
) -> DashboardOverview:
    """Totals, weekly average, planning streak and busiest weekday."""
    meals = [meal for plan in plans for meal in plan.meals]
    recipe_ids = {meal.recipe_id for meal in meals if meal.recipe_id}

    planned_weeks = {week_start(plan.start_date) for plan in plans}
    streak = 0
    current = week_start(today)
    while current in planned_weeks:
        streak += 1
        current -= timedelta(weeks=1)

    day_counts = Counter(DAY_NAMES[meal.date.weekday()] for meal in meals)
    most_active_day = day_counts.most_common(1)[0][0] if day_counts else "Monday"

    weeks = safe_weeks_from_days((end - start).days)
    return DashboardOverview(
        total_meals_planned=len(meals),
        unique_recipes_used=len(recipe_ids),
        average_meals_per_week=_round(safe_div(len(meals), weeks)),
        planning_streak=streak,
        most_active_day=most_active_day,
    )


def compute_recipe_frequencies(meals: Iterable[PlannedMeal]) -> list[RecipeFrequency]:
    """Per-recipe usage counts with last date and mean gap between uses."""
    names: dict[str, str] = {}
    dates: dict[str, list[date]] = {}
    for meal in sorted(meals, key=lambda item: item.date, reverse=True):
        if meal.recipe is None:
            continue
        names.setdefault(meal.recipe.id, meal.recipe.title)
        dates.setdefault(meal.recipe.id, []).append(meal.date)

    frequencies = []
    for recipe_id, used_on in dates.items():
        ordered = sorted(used_on)
        gaps = [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]
        frequencies.append(
            RecipeFrequency(
                recipe_id=recipe_id,
                recipe_name=names[recipe_id],
                count=len(ordered),
                last_planned=ordered[-1],
                average_days_between=round_to_dp(safe_average(gaps), 1),
            )
        )
    return frequencies


def compute_recipe_stats(
    meals: Sequence[PlannedMeal], recipes: Sequence[Recipe], today: date
) -> RecipeStats:
    """Most planned, least used and overdue-for-rotation recipes."""
    frequencies = compute_recipe_frequencies(meals)
    by_id = {frequency.recipe_id: frequency for frequency in frequencies}

    most_planned = sorted(frequencies, key=lambda item: item.count, reverse=True)[:10]

    least_used = []
    for recipe in recipes:
        frequency = by_id.get(recipe.id)
        if frequency is not None and frequency.count >= 2:
            continue
        least_used.append(
            RecipeFrequency(
                recipe_id=recipe.id,
                recipe_name=recipe.title,
                count=frequency.count if frequency else 0,
                last_planned=frequency.last_planned if frequency else None,
            )
        )

    cutoff = today - ROTATION_AFTER
    needs_rotation = sorted(
        (
            frequency
            for frequency in frequencies
            if frequency.count > 2
            and frequency.last_planned is not None
            and frequency.last_planned < cutoff
        ),
        key=lambda item: item.last_planned or date.min,
    )
    return RecipeStats(
        most_planned=most_planned,
        least_used=least_used[:10],
        needs_rotation=needs_rotation[:10],
    )


def compute_cuisine_distribution(
    meals: Iterable[PlannedMeal],
) -> list[CuisineDistribution]:
    """Share of planned recipes per cuisine, most common first."""
    counts = Counter(
        meal.recipe.cuisine for meal in meals if meal.recipe and meal.recipe.cuisine
    )
    total = sum(counts.values())
    return [
        CuisineDistribution(
            cuisine=cuisine,
            count=count,
            percentage=_round(safe_percentage(count, total)),
        )
        for cuisine, count in counts.most_common()
    ]


def compute_meal_type_distribution(
    meals: Sequence[PlannedMeal],
) -> list[MealTypeDistribution]:
    """Share of meals per meal type, in breakfast-to-snack order."""
    counts = Counter(meal.meal_type for meal in meals)
    calories: dict[MealType, list[float]] = {}
    for meal in meals:
        recipe_calories = meal.recipe.nutrition.calories if meal.recipe else None
        if recipe_calories is not None:
            calories.setdefault(meal.meal_type, []).append(
                recipe_calories * serving_scale(meal)
            )

    distribution = []
    for meal_type in MEAL_TYPE_ORDER:
        if not counts[meal_type]:
            continue
        type_calories = calories.get(meal_type)
        distribution.append(
            MealTypeDistribution(
                meal_type=meal_type,
                count=counts[meal_type],
                percentage=_round(safe_percentage(counts[meal_type], len(meals))),
                average_calories=_round(safe_average(type_calories))
                if type_calories
                else None,
            )
        )
    return distribution


def compute_weekly_trends(meals: Iterable[PlannedMeal]) -> list[WeeklyStats]:
    """Per-week totals for the most recent twelve weeks, oldest first."""
    weeks: dict[date, list[PlannedMeal]] = {}
    for meal in meals:
        weeks.setdefault(week_start(meal.date), []).append(meal)

    stats = []
    for start in sorted(weeks)[-DASHBOARD_WEEKS:]:
        week_meals = weeks[start]
        days = {meal.date for meal in week_meals}
        completed = sum(1 for meal in week_meals if meal.is_completed)
        stats.append(
            WeeklyStats(
                week=start.isoformat(),
                total_meals=len(week_meals),
                unique_recipes=len(
                    {meal.recipe_id for meal in week_meals if meal.recipe_id}
                ),
                average_meals_per_day=round_to_dp(
                    safe_div(len(week_meals), len(days)), 1
                ),
                completion_rate=_round(safe_percentage(completed, len(week_meals))),
            )
        )
    return stats


def daily_nutrition_totals(
    meals: Iterable[PlannedMeal],
) -> list[dict[str, float]]:
    """Serving-scaled calories and macros per day, in date order."""
    totals: dict[date, dict[str, float]] = {}
    for meal in sorted(meals, key=lambda item: item.date):
        if meal.recipe is None:
            continue
        day = totals.setdefault(
            meal.date, {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fat": 0.0}
        )
        scale = serving_scale(meal)
        nutrition = meal.recipe.nutrition
        for key, value in (
            ("calories", nutrition.calories),
            ("protein", nutrition.protein_g),
            ("carbs", nutrition.carbs_g),
            ("fat", nutrition.fat_g),
        ):
            if value is not None:
                day[key] += value * scale
    return list(totals.values())


def compute_nutritional_trends(
    meals: Iterable[PlannedMeal], goal: NutritionGoal | None
) -> NutritionalTrends:
    """Daily averages, gated calorie trend and goal compliance."""
    days = daily_nutrition_totals(meals)
    calories = [day["calories"] for day in days]

    trend = Trend.STABLE
    if has_minimum_sample_size(len(days), 4):
        midpoint = len(days) // 2
        first_half = safe_average(calories[:midpoint])
        second_half = safe_average(calories[midpoint:])
        if second_half > first_half * (1 + TREND_THRESHOLD):
            trend = Trend.UP
        elif second_half < first_half * (1 - TREND_THRESHOLD):
            trend = Trend.DOWN

    compliance = 0
    if goal is not None:
        within_goal = sum(
            1
            for value in calories
            if safe_div(abs(value - goal.target_calories), goal.target_calories, 1.0)
            < GOAL_TOLERANCE
        )
        compliance = _round(safe_percentage(within_goal, len(days)))

    return NutritionalTrends(
        average_calories=_round(safe_average(calories)),
        average_protein=_round(safe_average(day["protein"] for day in days)),
        average_carbs=_round(safe_average(day["carbs"] for day in days)),
        average_fat=_round(safe_average(day["fat"] for day in days)),
        calories_trend=trend,
        compliance_rate=compliance,
    )


def compute_seasonal_patterns(meals: Iterable[PlannedMeal]) -> list[SeasonalPattern]:
    """Popular recipes, cuisines and calories per calendar season."""
    recipes: dict[Season, Counter[str]] = {
        season: Counter() for season in SEASON_ORDER
    }
    cuisines: dict[Season, Counter[str]] = {
        season: Counter() for season in SEASON_ORDER
    }
    calories: dict[Season, list[float]] = {season: [] for season in SEASON_ORDER}
    for meal in meals:
        if meal.recipe is None:
            continue
        season = Season.for_month(meal.date.month)
        recipes[season][meal.recipe.title] += 1
        if meal.recipe.cuisine:
            cuisines[season][meal.recipe.cuisine] += 1
        if meal.recipe.nutrition.calories is not None:
            calories[season].append(meal.recipe.nutrition.calories)

    return [
        SeasonalPattern(
            season=season,
            popular_recipes=[title for title, _ in recipes[season].most_common(5)],
            cuisine_preferences=[name for name, _ in cuisines[season].most_common(3)],
            average_calories=_round(safe_average(calories[season])),
        )
        for season in SEASON_ORDER
    ]


def compute_waste_reduction(meals: Sequence[PlannedMeal]) -> WasteReduction:
    """Completion rate, frequently skipped recipes and tips."""
    if not meals:
        return WasteReduction()
    completed = sum(1 for meal in meals if meal.is_completed)
    completion_rate = _round(safe_percentage(completed, len(meals)))

    planned: Counter[str] = Counter()
    done: Counter[str] = Counter()
    names: dict[str, str] = {}
    for meal in meals:
        if meal.recipe is None:
            continue
        names[meal.recipe.id] = meal.recipe.title
        planned[meal.recipe.id] += 1
        if meal.is_completed:
            done[meal.recipe.id] += 1
    wasted = sorted(
        (recipe_id for recipe_id, count in planned.items() if count >= 3),
        key=lambda recipe_id: 1 - done[recipe_id] / planned[recipe_id],
        reverse=True,
    )
    most_wasted = [names[recipe_id] for recipe_id in wasted[:5]]

    tips = []
    if completion_rate < 70:
        tips.append("Consider planning fewer meals per week to reduce waste")
    if completion_rate < 50:
        tips.append("Try using meal templates for consistency")
    if most_wasted:
        tips.append(
            f"Consider removing or modifying recipes like {most_wasted[0]} "
            "that often go unmade"
        )
    if completion_rate > 90:
        tips.append("Great job! Your meal completion rate is excellent!")

    day_totals: Counter[int] = Counter()
    day_done: Counter[int] = Counter()
    for meal in meals:
        day_totals[meal.date.weekday()] += 1
        if meal.is_completed:
            day_done[meal.date.weekday()] += 1
    worst_day, worst_rate = None, 1.0
    for weekday, total in day_totals.items():
        rate = day_done[weekday] / total
        if rate < worst_rate:
            worst_day, worst_rate = weekday, rate
    if worst_day is not None and worst_rate < 0.6:
        tips.append(
            f"{DAY_NAMES[worst_day]}s have low completion rates - "
            "consider simpler meals or takeout"
        )

    return WasteReduction(
        completion_rate=completion_rate,
        most_wasted=most_wasted,
        improvement_tips=tips,
    )


def compute_rotation_suggestions(
    recipes: Sequence[Recipe], meals: Iterable[PlannedMeal], today: date
) -> list[RotationSuggestion]:
    """Up to five recent recipes that are untried or unused for three weeks."""
    last_used: dict[str, date] = {}
    for meal in meals:
        if meal.recipe_id and meal.date > last_used.get(meal.recipe_id, date.min):
            last_used[meal.recipe_id] = meal.date

    cutoff = today - ROTATION_AFTER
    suggestions = []
    for recipe in recipes[:50]:
        used_on = last_used.get(recipe.id)
        if used_on is None:
            reason = "You haven't tried this recipe yet"
        elif used_on < cutoff:
            reason = f"You haven't made this in {(today - used_on).days // 7} weeks"
        else:
            continue
        suggestions.append(
            RotationSuggestion(recipe=recipe, reason=reason, last_used=used_on)
        )
        if len(suggestions) >= 5:
            break
    return suggestions


def compute_cuisine_suggestions(
    recipes: Sequence[Recipe], meals: Iterable[PlannedMeal]
) -> list[CuisineSuggestion]:
    """Up to three cuisines the user owns recipes for but rarely plans."""
    counts = Counter(
        meal.recipe.cuisine for meal in meals if meal.recipe and meal.recipe.cuisine
    )
    cuisines = list(
        dict.fromkeys(recipe.cuisine for recipe in recipes if recipe.cuisine)
    )

    suggestions = []
    for cuisine in cuisines:
        count = counts[cuisine]
        if count >= 3:
            continue
        reason = (
            f"Try adding more {cuisine} recipes for variety"
            if count == 0
            else f"You've only had {cuisine} {count} times recently"
        )
        samples = [recipe for recipe in recipes if recipe.cuisine == cuisine][:3]
        suggestions.append(
            CuisineSuggestion(cuisine=cuisine, reason=reason, recipes=samples)
        )
        if len(suggestions) >= 3:
            break
    return suggestions


def compute_nutritional_suggestions(
    trends: NutritionalTrends, has_goal: bool
) -> list[str]:
    """Fixed advice rules over the nutritional trends."""
    suggestions = []
    if trends.average_calories > 2500:
        suggestions.append(
            "Consider adding more low-calorie recipes to balance your intake"
        )
    if trends.average_protein < 50:
        suggestions.append(
            "Try adding more protein-rich meals to meet your daily needs"
        )
    if trends.calories_trend == Trend.UP:
        suggestions.append(
            "Your calorie intake has been trending upward - consider lighter options"
        )
    if has_goal and trends.compliance_rate < 50:
        suggestions.append("Adjust your nutrition goals to be more achievable")
    if trends.average_carbs > 300:
        suggestions.append(
            "Consider reducing carbohydrate intake with more veggie-based meals"
        )
    return suggestions


def compute_variety_score(meals: Iterable[PlannedMeal]) -> int:
    """0-100 score rewarding distinct recipes relative to meals planned."""
    recipe_ids = [meal.recipe_id for meal in meals if meal.recipe_id]
    if not recipe_ids:
        return 0
    ratio = safe_div(len(set(recipe_ids)), len(recipe_ids))
    return min(100, _round(ratio * 150))


def compute_seasonal_suggestions(
    recipes: Iterable[Recipe], season: Season
) -> list[Recipe]:
    """Up to five recipes tagged with or mentioning the season's keywords."""
    keywords = SEASONAL_KEYWORDS[season]
    matches = []
    for recipe in recipes:
        text = f"{recipe.title} {recipe.ingredients}".lower()
        tagged = any(season.value in tag for tag in recipe.tags)
        if tagged or any(keyword in text for keyword in keywords):
            matches.append(recipe)
        if len(matches) >= 5:
            break
    return matches


def _round(value: float) -> int:
    return int(round_to_dp(value, 0))
