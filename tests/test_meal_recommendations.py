import asyncio

import pytest

from meal_planner.domain.weather import TimeOfDay, WeatherContext
from meal_planner.services.meal_recommendations import (
    MealRecommendationService,
    calculate_confidence,
    generate_recommendation_reason,
    get_weather_summary,
    pick_meal_tags,
)
from tests.conftest import (
    InMemoryAnalyticsRepository,
    make_context,
    make_recipe,
    sample_recipes,
)


def _hot_golden_hour(**overrides: object) -> WeatherContext:
    values: dict[str, object] = {
        "feels_like": 88,
        "minutes_to_sunset": 120,
        "time_of_day": TimeOfDay.EVENING,
        "weekday": 5,
        "month": 7,
    }
    values.update(overrides)
    return make_context(**values)  # type: ignore[arg-type]


def _rainy_cold_weeknight() -> WeatherContext:
    return make_context(
        feels_like=42,
        precipitation=45,
        minutes_to_sunset=-60,
        is_daytime=False,
        time_of_day=TimeOfDay.NIGHT,
        weekday=1,
        month=1,
    )


def test_hot_golden_hour_suggests_grilling() -> None:
    assert pick_meal_tags(_hot_golden_hour()) == [
        "summer",
        "grill",
        "light",
        "fresh",
        "berries",
    ]


def test_heavy_rain_overrides_grilling() -> None:
    tags = pick_meal_tags(_hot_golden_hour(precipitation=75))

    assert tags == [
        "summer",
        "light",
        "fresh",
        "soup",
        "stew",
        "bake",
        "comfort",
        "indoor",
        "berries",
    ]


def test_wind_moves_cooking_indoors() -> None:
    tags = pick_meal_tags(_hot_golden_hour(feels_like=75, wind_speed=25))

    assert "grill" not in tags
    assert "bbq" not in tags
    assert {"sheet-pan", "air-fryer", "stovetop", "indoor"} <= set(tags)


def test_poor_air_quality_moves_cooking_indoors() -> None:
    tags = pick_meal_tags(_hot_golden_hour(aqi=150))

    assert "grill" not in tags
    assert "no-cook" in tags
    assert "indoor" in tags


def test_rainy_cold_weeknight_tags() -> None:
    assert pick_meal_tags(_rainy_cold_weeknight()) == [
        "winter",
        "soup",
        "stew",
        "bake",
        "comfort",
        "warm",
        "hearty",
        "30-min",
        "quick",
        "one-pot",
        "weeknight",
        "citrus",
        "root-vegetables",
    ]


def test_cool_humid_day_prefers_soup() -> None:
    tags = pick_meal_tags(make_context(feels_like=60, humidity=75))

    assert tags[:4] == ["spring", "soup", "comfort", "warm"]


def test_day_of_week_tags() -> None:
    friday = pick_meal_tags(make_context(weekday=4))
    sunday = pick_meal_tags(make_context(weekday=6))

    assert "crowd-pleaser" in friday
    assert "weeknight" not in friday
    assert {"batch-cook", "leftovers"} <= set(sunday)


def test_morning_adds_light_tags() -> None:
    tags = pick_meal_tags(make_context(feels_like=60, time_of_day=TimeOfDay.MORNING))

    assert tags[-3:] == ["fresh", "light", "greens"]


def test_tags_are_unique() -> None:
    for ctx in (_hot_golden_hour(precipitation=75), _rainy_cold_weeknight()):
        tags = pick_meal_tags(ctx)
        assert len(tags) == len(set(tags))


def test_confidence_is_capped() -> None:
    ctx = _rainy_cold_weeknight()
    soup = sample_recipes()[0]

    assert calculate_confidence(soup, pick_meal_tags(ctx), ctx) == 1.0


def test_confidence_counts_matching_tags() -> None:
    ctx = _hot_golden_hour()
    steak = sample_recipes()[2]

    assert calculate_confidence(steak, pick_meal_tags(ctx), ctx) == pytest.approx(
        0.65
    )


def test_confidence_rewards_seasonal_ingredients() -> None:
    ctx = make_context(month=8)
    plain = make_recipe("plain", "Rice Bowl", ingredients="rice")
    seasonal = make_recipe("corn", "Rice Bowl", ingredients="rice\ncorn")

    assert calculate_confidence(plain, [], ctx) == pytest.approx(0.5)
    assert calculate_confidence(seasonal, [], ctx) == pytest.approx(0.6)


def test_reason_and_summary() -> None:
    rainy = _rainy_cold_weeknight()
    assert generate_recommendation_reason(rainy, pick_meal_tags(rainy)) == (
        "Because of chilly 42°F weather, 45% chance of rain, weeknight schedule"
    )
    assert get_weather_summary(rainy) == "Rainy day comfort food weather"

    mild = make_context()
    assert generate_recommendation_reason(mild, pick_meal_tags(mild)) == (
        "Perfect 72°F weather for cooking"
    )
    assert get_weather_summary(mild) == "Great cooking weather today"
    assert get_weather_summary(_hot_golden_hour()) == "Perfect grilling weather ahead!"


def test_sunset_countdown_in_reason() -> None:
    ctx = _hot_golden_hour()

    reason = generate_recommendation_reason(ctx, pick_meal_tags(ctx))

    assert reason == "Because of 88°F feels-like temperature, 2h 0m until sunset"


def test_service_ranks_recipes() -> None:
    service = MealRecommendationService(
        InMemoryAnalyticsRepository(recipes=sample_recipes())
    )

    recommendations = asyncio.run(
        service.get_meal_recommendations(_rainy_cold_weeknight(), "user-1", count=2)
    )

    assert [item.recipe.id for item in recommendations] == ["soup", "salad"]
    assert recommendations[0].confidence == 1.0
    assert recommendations[0].tags == ["soup", "comfort", "warm"]
    assert recommendations[0].reason.startswith("Because of chilly 42°F weather")


def test_service_applies_filters() -> None:
    service = MealRecommendationService(
        InMemoryAnalyticsRepository(recipes=sample_recipes())
    )
    ctx = _rainy_cold_weeknight()

    quick = asyncio.run(
        service.get_meal_recommendations(ctx, "user-1", max_prep_time=15)
    )
    no_onion = asyncio.run(
        service.get_meal_recommendations(
            ctx, "user-1", exclude_ingredients=["Onion"]
        )
    )

    assert [item.recipe.id for item in quick] == ["salad"]
    assert [item.recipe.id for item in no_onion] == ["salad", "steak"]


def test_service_returns_empty_when_repository_fails() -> None:
    service = MealRecommendationService(
        InMemoryAnalyticsRepository(failing={"list_recipes"})
    )

    recommendations = asyncio.run(
        service.get_meal_recommendations(make_context(), "user-1")
    )

    assert recommendations == []


def test_explain_lists_factors() -> None:
    service = MealRecommendationService(
        InMemoryAnalyticsRepository(recipes=sample_recipes())
    )

    explanation = asyncio.run(service.explain(_rainy_cold_weeknight(), "user-1"))

    assert explanation.conditions == ["cold", "rainy"]
    assert explanation.time_factors == ["weeknight", "night"]
    assert explanation.summary == "Rainy day comfort food weather"
    assert explanation.temperature == 42
    assert [item.recipe.id for item in explanation.recommendations] == [
        "soup",
        "salad",
        "steak",
    ]
