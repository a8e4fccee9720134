import asyncio
from datetime import date, timedelta

from meal_planner.domain.analytics import (
    DashboardOverview,
    NutritionalTrends,
    Trend,
    WasteReduction,
)
from meal_planner.domain.meal_plans import (
    MealPlan,
    MealType,
    NutritionGoal,
    PlannedMeal,
)
from meal_planner.domain.recipes import NutritionFacts
from meal_planner.domain.weather import Season
from meal_planner.services.analytics import (
    COST_OPTIMIZATION_TIPS,
    AnalyticsService,
    compute_cuisine_distribution,
    compute_cuisine_suggestions,
    compute_meal_type_distribution,
    compute_nutritional_suggestions,
    compute_nutritional_trends,
    compute_overview,
    compute_recipe_stats,
    compute_rotation_suggestions,
    compute_seasonal_suggestions,
    compute_variety_score,
    compute_waste_reduction,
    compute_weekly_trends,
)
from tests.conftest import (
    InMemoryAnalyticsRepository,
    make_meal,
    make_recipe,
    sample_recipes,
)

# Wednesday
TODAY = date(2024, 6, 12)
SOUP, SALAD, STEAK = sample_recipes()


def _plan(plan_id: str, start: date, *meals: PlannedMeal) -> MealPlan:
    return MealPlan(
        id=plan_id,
        user_id="user-1",
        start_date=start,
        end_date=start + timedelta(days=6),
        meals=tuple(meals),
    )


def _daily_meal(meal_id: str, day: date, calories: float) -> PlannedMeal:
    recipe = make_recipe(
        f"r-{meal_id}",
        "Meal",
        servings=1,
        nutrition=NutritionFacts(
            calories=calories, protein_g=60, carbs_g=100, fat_g=40
        ),
    )
    return make_meal(meal_id, day, recipe)


def test_overview_counts_streak_and_busiest_day() -> None:
    plans = [
        _plan(
            "p1",
            date(2024, 6, 10),
            make_meal("m1", date(2024, 6, 10), SOUP),
            make_meal("m2", date(2024, 6, 11), SALAD),
        ),
        _plan("p2", date(2024, 6, 3), make_meal("m3", date(2024, 6, 4), SOUP)),
        _plan("p3", date(2024, 5, 20), make_meal("m4", date(2024, 5, 21), STEAK)),
    ]

    overview = compute_overview(plans, date(2024, 5, 20), date(2024, 6, 16), TODAY)

    assert overview.total_meals_planned == 4
    assert overview.unique_recipes_used == 3
    assert overview.average_meals_per_week == 1
    assert overview.planning_streak == 2
    assert overview.most_active_day == "Tuesday"


def test_overview_without_plans() -> None:
    overview = compute_overview([], date(2024, 5, 20), date(2024, 6, 16), TODAY)

    assert overview == DashboardOverview()


def test_recipe_stats() -> None:
    meals = [
        make_meal("m1", date(2024, 5, 1), SOUP),
        make_meal("m2", date(2024, 5, 8), SOUP),
        make_meal("m3", date(2024, 5, 15), SOUP),
        make_meal("m4", date(2024, 6, 10), SALAD),
    ]

    stats = compute_recipe_stats(meals, sample_recipes(), TODAY)

    assert [(item.recipe_id, item.count) for item in stats.most_planned] == [
        ("soup", 3),
        ("salad", 1),
    ]
    assert stats.most_planned[0].average_days_between == 7.0
    assert stats.most_planned[0].last_planned == date(2024, 5, 15)
    assert [(item.recipe_id, item.count) for item in stats.least_used] == [
        ("salad", 1),
        ("steak", 0),
    ]
    assert [item.recipe_id for item in stats.needs_rotation] == ["soup"]


def test_cuisine_distribution() -> None:
    meals = [
        make_meal("m1", date(2024, 6, 1), SOUP),
        make_meal("m2", date(2024, 6, 2), SOUP),
        make_meal("m3", date(2024, 6, 3), SOUP),
        make_meal("m4", date(2024, 6, 4), SALAD),
    ]

    distribution = compute_cuisine_distribution(meals)

    assert [(item.cuisine, item.count, item.percentage) for item in distribution] == [
        ("Italian", 3, 75),
        ("Greek", 1, 25),
    ]


def test_meal_type_distribution_scales_calories_by_servings() -> None:
    meals = [
        make_meal("m1", date(2024, 6, 1), SALAD, meal_type=MealType.BREAKFAST),
        make_meal("m2", date(2024, 6, 1), SOUP, servings=2),
        make_meal("m3", date(2024, 6, 2)),
    ]

    distribution = compute_meal_type_distribution(meals)

    assert [
        (item.meal_type, item.count, item.percentage, item.average_calories)
        for item in distribution
    ] == [
        (MealType.BREAKFAST, 1, 33, 38),
        (MealType.DINNER, 2, 67, 150),
    ]


def test_weekly_trends() -> None:
    meals = [
        make_meal("m1", date(2024, 6, 10), SOUP, is_completed=True),
        make_meal("m2", date(2024, 6, 11), SALAD),
        make_meal("m3", date(2024, 6, 11), is_completed=True),
        make_meal("m4", date(2024, 6, 3), SOUP),
    ]

    weeks = compute_weekly_trends(meals)

    assert [week.week for week in weeks] == ["2024-06-03", "2024-06-10"]
    latest = weeks[1]
    assert latest.total_meals == 3
    assert latest.unique_recipes == 2
    assert latest.average_meals_per_day == 1.5
    assert latest.completion_rate == 67


def test_nutritional_trend_needs_four_days() -> None:
    meals = [
        _daily_meal("a", date(2024, 6, 1), 1000),
        _daily_meal("b", date(2024, 6, 2), 1000),
        _daily_meal("c", date(2024, 6, 3), 2000),
    ]
    goal = NutritionGoal(user_id="user-1", target_calories=2000)

    short = compute_nutritional_trends(meals, goal)
    full = compute_nutritional_trends(
        [*meals, _daily_meal("d", date(2024, 6, 4), 2000)], goal
    )

    assert short.calories_trend == Trend.STABLE
    assert full.calories_trend == Trend.UP
    assert full.average_calories == 1500
    assert full.average_protein == 60
    assert full.compliance_rate == 50


def test_nutritional_trends_without_meals() -> None:
    assert compute_nutritional_trends([], None) == NutritionalTrends()


def test_waste_reduction_tips() -> None:
    meals = [
        make_meal("m1", date(2024, 6, 3), SOUP),
        make_meal("m2", date(2024, 6, 10), SOUP),
        make_meal("m3", date(2024, 6, 17), SOUP),
        make_meal("m4", date(2024, 6, 11), SALAD, is_completed=True),
    ]

    waste = compute_waste_reduction(meals)

    assert waste.completion_rate == 25
    assert waste.most_wasted == ["Tomato Soup"]
    assert waste.improvement_tips == [
        "Consider planning fewer meals per week to reduce waste",
        "Try using meal templates for consistency",
        "Consider removing or modifying recipes like Tomato Soup that often go unmade",
        "Mondays have low completion rates - consider simpler meals or takeout",
    ]


def test_waste_reduction_praises_high_completion() -> None:
    meals = [
        make_meal("m1", date(2024, 6, 3), SOUP, is_completed=True),
        make_meal("m2", date(2024, 6, 4), SALAD, is_completed=True),
    ]

    waste = compute_waste_reduction(meals)

    assert waste.completion_rate == 100
    assert waste.improvement_tips == [
        "Great job! Your meal completion rate is excellent!"
    ]
    assert compute_waste_reduction([]) == WasteReduction()


def test_rotation_suggestions() -> None:
    meals = [
        make_meal("m1", date(2024, 5, 1), SOUP),
        make_meal("m2", date(2024, 6, 10), SALAD),
    ]

    suggestions = compute_rotation_suggestions(sample_recipes(), meals, TODAY)

    assert [(item.recipe.id, item.reason) for item in suggestions] == [
        ("soup", "You haven't made this in 6 weeks"),
        ("steak", "You haven't tried this recipe yet"),
    ]
    assert suggestions[0].last_used == date(2024, 5, 1)


def test_rotation_suggestions_are_capped() -> None:
    recipes = [make_recipe(f"r{index}", f"Recipe {index}") for index in range(8)]

    assert len(compute_rotation_suggestions(recipes, [], TODAY)) == 5


def test_cuisine_suggestions() -> None:
    often_italian = [
        make_meal(f"m{index}", date(2024, 6, index + 1), SOUP) for index in range(3)
    ]

    suggestions = compute_cuisine_suggestions(
        sample_recipes(), [*often_italian, make_meal("m9", TODAY, SALAD)]
    )

    assert [(item.cuisine, item.reason) for item in suggestions] == [
        ("Greek", "You've only had Greek 1 times recently"),
        ("American", "Try adding more American recipes for variety"),
    ]
    assert suggestions[0].recipes == [SALAD]


def test_variety_score_bounds() -> None:
    varied = [
        make_meal("m1", TODAY, SOUP),
        make_meal("m2", TODAY, SOUP),
        make_meal("m3", TODAY, SALAD),
    ]
    repetitive = [make_meal(f"m{index}", TODAY, SOUP) for index in range(4)]

    assert compute_variety_score(varied) == 100
    assert compute_variety_score(repetitive) == 38
    assert compute_variety_score([]) == 0
    assert compute_variety_score([make_meal("custom", TODAY)]) == 0


def test_seasonal_suggestions() -> None:
    suggestions = compute_seasonal_suggestions(sample_recipes(), Season.SUMMER)

    assert [recipe.id for recipe in suggestions] == ["soup", "steak"]


def test_nutritional_suggestions() -> None:
    trends = NutritionalTrends(
        average_calories=2600,
        average_protein=40,
        average_carbs=350,
        calories_trend=Trend.UP,
        compliance_rate=20,
    )

    assert len(compute_nutritional_suggestions(trends, has_goal=True)) == 5
    assert len(compute_nutritional_suggestions(trends, has_goal=False)) == 4


def test_dashboard_degrades_failed_sections() -> None:
    repository = InMemoryAnalyticsRepository(
        plans=[_plan("p1", date(2024, 6, 10), make_meal("m1", TODAY, SOUP))],
        meals=[make_meal("m1", TODAY, SOUP, is_completed=True)],
        recipes=sample_recipes(),
        failing={"list_meal_plans", "get_active_nutrition_goal"},
    )

    dashboard = asyncio.run(
        AnalyticsService(repository).get_dashboard("user-1", today=TODAY)
    )

    assert dashboard.overview == DashboardOverview()
    assert dashboard.nutritional_trends == NutritionalTrends()
    assert [item.cuisine for item in dashboard.cuisine_distribution] == ["Italian"]
    assert dashboard.waste_reduction.completion_rate == 100
    assert [pattern.season for pattern in dashboard.seasonal_patterns] == [
        Season.WINTER,
        Season.SPRING,
        Season.SUMMER,
        Season.FALL,
    ]
    assert dashboard.seasonal_patterns[2].popular_recipes == ["Tomato Soup"]


def test_dashboard_overview_from_plans() -> None:
    repository = InMemoryAnalyticsRepository(
        plans=[_plan("p1", date(2024, 6, 10), make_meal("m1", TODAY, SOUP))],
        recipes=sample_recipes(),
    )

    dashboard = asyncio.run(
        AnalyticsService(repository).get_dashboard(
            "user-1", end=date(2024, 6, 16), today=TODAY
        )
    )

    assert dashboard.overview.total_meals_planned == 1
    assert dashboard.overview.planning_streak == 1
    assert dashboard.overview.most_active_day == "Wednesday"


def test_recommendations() -> None:
    repository = InMemoryAnalyticsRepository(
        meals=[
            make_meal("m1", date(2024, 6, 10), SOUP),
            make_meal("m2", date(2024, 6, 3), SOUP),
        ],
        recipes=sample_recipes(),
    )

    recommendations = asyncio.run(
        AnalyticsService(repository).get_recommendations("user-1", today=TODAY)
    )

    assert [item.recipe.id for item in recommendations.rotation_suggestions] == [
        "salad",
        "steak",
    ]
    assert recommendations.variety_score == 75
    assert recommendations.nutritional_suggestions == [
        "Try adding more protein-rich meals to meet your daily needs"
    ]
    assert [recipe.id for recipe in recommendations.seasonal_suggestions] == [
        "soup",
        "steak",
    ]
    assert recommendations.cost_optimizations == list(COST_OPTIMIZATION_TIPS)


def test_recommendations_survive_missing_recipes() -> None:
    repository = InMemoryAnalyticsRepository(
        meals=[make_meal("m1", date(2024, 6, 10), SOUP)],
        failing={"list_recipes"},
    )

    recommendations = asyncio.run(
        AnalyticsService(repository).get_recommendations("user-1", today=TODAY)
    )

    assert recommendations.rotation_suggestions == []
    assert recommendations.variety_score == 100
