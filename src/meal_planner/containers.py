"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_planner.adapters.openai_completion_client import OpenAICompletionClient
from meal_planner.adapters.openweather_client import HttpxOpenWeatherClient
from meal_planner.adapters.supabase_meal_plan_repository import (
    SupabaseMealPlanRepository,
)
from meal_planner.adapters.supabase_weather_cache_repository import (
    SupabaseWeatherCacheRepository,
)
from meal_planner.config import Settings
from meal_planner.services.analytics import AnalyticsService
from meal_planner.services.assistant import CookingAssistantService
from meal_planner.services.cache import InMemoryCache
from meal_planner.services.meal_recommendations import MealRecommendationService
from meal_planner.services.rate_limit import FixedWindowRateLimiter
from meal_planner.services.recipe_generation import RecipeGenerationService
from meal_planner.services.weather import WeatherService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    weather_service: WeatherService
    recommendation_service: MealRecommendationService
    analytics_service: AnalyticsService
    assistant_service: CookingAssistantService
    recipe_generation_service: RecipeGenerationService
    rate_limiter: FixedWindowRateLimiter
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    Weather and completion clients are only created when their API keys are
    configured; without them the services fall back to mock data and canned
    answers.
    """
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_plan_repository = SupabaseMealPlanRepository(supabase_client)
    weather_cache_repository = SupabaseWeatherCacheRepository(supabase_client)

    weather_client = None
    if resolved_settings.openweather_api_key:
        weather_client = HttpxOpenWeatherClient.create(
            api_key=resolved_settings.openweather_api_key,
            base_url=resolved_settings.openweather_base_url,
        )
    completion_client = None
    if resolved_settings.openai_api_key:
        completion_client = OpenAICompletionClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            store=resolved_settings.openai_store,
        )

    weather_service = WeatherService(
        provider=weather_client,
        cache_repository=weather_cache_repository,
        cache=InMemoryCache(),
        timeout_seconds=resolved_settings.provider_timeout_seconds,
        default_latitude=resolved_settings.default_latitude,
        default_longitude=resolved_settings.default_longitude,
    )
    recommendation_service = MealRecommendationService(meal_plan_repository)
    analytics_service = AnalyticsService(meal_plan_repository)
    assistant_service = CookingAssistantService(
        client=completion_client,
        timeout_seconds=resolved_settings.completion_timeout_seconds,
    )
    recipe_generation_service = RecipeGenerationService(
        client=completion_client,
        timeout_seconds=resolved_settings.completion_timeout_seconds * 2,
    )

    async def close_resources() -> None:
        if weather_client is not None:
            await weather_client.close()
        if completion_client is not None:
            await completion_client.close()

    return AppContainer(
        settings=resolved_settings,
        weather_service=weather_service,
        recommendation_service=recommendation_service,
        analytics_service=analytics_service,
        assistant_service=assistant_service,
        recipe_generation_service=recipe_generation_service,
        rate_limiter=FixedWindowRateLimiter(),
        close_resources=close_resources,
    )
