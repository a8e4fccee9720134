"""Tests for container wiring."""

import asyncio

from meal_planner.adapters.openweather_client import HttpxOpenWeatherClient
from meal_planner.config import Settings
from meal_planner.containers import build_container


def test_build_container_without_provider_keys(settings: Settings) -> None:
    container = build_container(
        settings.model_copy(
            update={"openweather_api_key": None, "openai_api_key": None}
        )
    )

    assert container.weather_service.provider is None
    assert container.assistant_service.client is None
    assert container.recipe_generation_service.client is None
    asyncio.run(container.close_resources())


def test_build_container_creates_clients(settings: Settings) -> None:
    container = build_container(
        settings.model_copy(
            update={
                "openweather_api_key": "weather-key",
                "openai_api_key": "openai-key",
            }
        )
    )

    assert isinstance(container.weather_service.provider, HttpxOpenWeatherClient)
    assert container.assistant_service.client is not None
    assert container.recipe_generation_service.timeout_seconds == 30.0
    asyncio.run(container.close_resources())
