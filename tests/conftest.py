"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from meal_planner.config import Settings
from meal_planner.containers import AppContainer
from meal_planner.domain.meal_plans import (
    MealPlan,
    MealType,
    NutritionGoal,
    PlannedMeal,
)
from meal_planner.domain.recipes import Course, NutritionFacts, Recipe
from meal_planner.domain.weather import (
    DailyForecast,
    LocationData,
    Season,
    SunData,
    TimeOfDay,
    WeatherContext,
    WeatherData,
)
from meal_planner.services.analytics import AnalyticsRepository, AnalyticsService
from meal_planner.services.assistant import (
    CookingAssistantService,
    TextCompletionClient,
)
from meal_planner.services.cache import InMemoryCache
from meal_planner.services.meal_recommendations import MealRecommendationService
from meal_planner.services.rate_limit import FixedWindowRateLimiter
from meal_planner.services.recipe_generation import RecipeGenerationService
from meal_planner.services.weather import (
    WeatherCacheRepository,
    WeatherProvider,
    WeatherService,
)


def make_recipe(recipe_id: str = "r1", title: str = "Recipe", **kwargs) -> Recipe:
    """Build a recipe with sensible defaults."""
    tags = kwargs.pop("tags", ())
    return Recipe(id=recipe_id, title=title, tags=frozenset(tags), **kwargs)


def make_meal(  # noqa: PLR0913
    meal_id: str,
    day: date,
    recipe: Recipe | None = None,
    meal_type: MealType = MealType.DINNER,
    servings: float = 1,
    is_completed: bool = False,
    scheduled_time: str | None = None,
) -> PlannedMeal:
    return PlannedMeal(
        id=meal_id,
        meal_plan_id="plan-1",
        date=day,
        meal_type=meal_type,
        servings=servings,
        is_completed=is_completed,
        recipe=recipe,
        scheduled_time=scheduled_time,
    )


def make_context(  # noqa: PLR0913
    feels_like: float = 72,
    precipitation: float = 10,
    wind_speed: float = 5,
    aqi: float = 40,
    humidity: float = 40,
    minutes_to_sunset: int = 300,
    is_daytime: bool = True,
    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON,
    weekday: int = 5,
    month: int = 5,
) -> WeatherContext:
    """Build a weather context with mild, dry weekend defaults."""
    now = datetime(2024, month, 10, 14, 0, tzinfo=UTC)
    return WeatherContext(
        weather=WeatherData(
            feels_like=feels_like,
            temperature=feels_like,
            humidity=humidity,
            precipitation=precipitation,
            wind_speed=wind_speed,
            aqi=aqi,
            uv_index=5,
            visibility=10,
            description="clear sky",
        ),
        sun=SunData(
            sunrise=now.replace(hour=6),
            sunset=now.replace(hour=20),
            minutes_to_sunset=minutes_to_sunset,
            minutes_to_sunrise=-480,
            is_daytime=is_daytime,
        ),
        location=LocationData(
            latitude=40.71,
            longitude=-74.01,
            city="New York",
            region="NY",
            country="US",
            timezone="America/New_York",
        ),
        is_weeknight=weekday <= 3,
        time_of_day=time_of_day,
        season=Season.for_month(month),
        month=month,
        weekday=weekday,
    )


@dataclass
class InMemoryAnalyticsRepository(AnalyticsRepository):
    """In-memory planning history for tests."""

    plans: list[MealPlan] = field(default_factory=list)
    meals: list[PlannedMeal] = field(default_factory=list)
    recipes: list[Recipe] = field(default_factory=list)
    goal: NutritionGoal | None = None
    failing: set[str] = field(default_factory=set)

    def list_meal_plans(self, user_id: str, start: date, end: date) -> list[MealPlan]:
        self._maybe_fail("list_meal_plans")
        return [
            plan
            for plan in self.plans
            if plan.start_date >= start and plan.end_date <= end
        ]

    def list_planned_meals(
        self, user_id: str, start: date | None = None, end: date | None = None
    ) -> list[PlannedMeal]:
        self._maybe_fail("list_planned_meals")
        return [
            meal
            for meal in self.meals
            if (start is None or meal.date >= start)
            and (end is None or meal.date <= end)
        ]

    def list_recipes(self, user_id: str, limit: int | None = None) -> list[Recipe]:
        self._maybe_fail("list_recipes")
        return self.recipes[:limit] if limit is not None else list(self.recipes)

    def get_active_nutrition_goal(self, user_id: str) -> NutritionGoal | None:
        self._maybe_fail("get_active_nutrition_goal")
        return self.goal

    def _maybe_fail(self, name: str) -> None:
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")


@dataclass
class InMemoryWeatherCacheRepository(WeatherCacheRepository):
    """In-memory forecast cache keyed by date."""

    rows: dict[date, DailyForecast] = field(default_factory=dict)
    reads: int = 0

    def list_forecasts(
        self, start: date, end: date, fetched_after: datetime
    ) -> list[DailyForecast]:
        self.reads += 1
        return [
            forecast
            for day, forecast in sorted(self.rows.items())
            if start <= day <= end
            and forecast.fetched_at is not None
            and forecast.fetched_at >= fetched_after
        ]

    def upsert_forecast(
        self, forecast: DailyForecast, latitude: float, longitude: float
    ) -> None:
        self.rows[forecast.date] = forecast


@dataclass
class FakeWeatherProvider(WeatherProvider):
    """Weather provider returning canned OpenWeather-style payloads."""

    current: dict[str, object] | None = None
    forecast: dict[str, object] | None = None
    air_quality: dict[str, object] | None = None
    location: list[dict[str, object]] | None = None
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def fetch_current(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        return self._respond("current", self.current)

    async def fetch_forecast(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        return self._respond("forecast", self.forecast)

    async def fetch_air_quality(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        return self._respond("air_quality", self.air_quality)

    async def fetch_location(
        self, latitude: float, longitude: float
    ) -> list[dict[str, object]]:
        return self._respond("location", self.location)

    def _respond(self, name: str, payload):  # type: ignore[no-untyped-def]
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        if payload is None:
            raise RuntimeError(f"no {name} payload")
        return payload


@dataclass
class FakeCompletionClient(TextCompletionClient):
    """Completion client with scripted answers or errors."""

    answers: list[object] = field(default_factory=list)
    json_payload: dict[str, object] | None = None
    prompts: list[tuple[str, str | None]] = field(default_factory=list)

    async def complete(self, prompt: str, system: str | None = None) -> str:
        self.prompts.append((prompt, system))
        answer = self.answers.pop(0) if self.answers else "Fake answer."
        if isinstance(answer, Exception):
            raise answer
        return str(answer)

    async def complete_json(
        self, prompt: str, schema: dict[str, object], name: str
    ) -> dict[str, object]:
        self.prompts.append((prompt, name))
        if self.json_payload is None:
            raise RuntimeError("no structured payload")
        return self.json_payload


class FakeStatusError(Exception):
    """Exception carrying an HTTP status code like SDK errors do."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"status {status_code}")
        self.status_code = status_code


def sample_recipes() -> list[Recipe]:
    return [
        make_recipe(
            "soup",
            "Tomato Soup",
            ingredients="tomato\nonion\ngarlic",
            tags=("soup", "comfort", "warm"),
            prep_time=20,
            cuisine="Italian",
            course=Course.MAIN,
            nutrition=NutritionFacts(calories=300, protein_g=10, carbs_g=40, fat_g=8),
        ),
        make_recipe(
            "salad",
            "Summer Salad",
            ingredients="cucumber\nberry",
            tags=("salad", "fresh", "light"),
            prep_time=10,
            cuisine="Greek",
            course=Course.SIDE,
            nutrition=NutritionFacts(calories=150, protein_g=4, carbs_g=12, fat_g=9),
        ),
        make_recipe(
            "steak",
            "Grilled Steak",
            ingredients="beef\nsalt",
            tags=("grill", "bbq"),
            prep_time=45,
            cuisine="American",
            course=Course.MAIN,
            nutrition=NutritionFacts(calories=650, protein_g=50, carbs_g=0, fat_g=45),
        ),
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def analytics_repository() -> InMemoryAnalyticsRepository:
    return InMemoryAnalyticsRepository(recipes=sample_recipes())


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def container(
    settings: Settings,
    analytics_repository: InMemoryAnalyticsRepository,
    completion_client: FakeCompletionClient,
) -> AppContainer:
    weather_service = WeatherService(
        provider=None,
        cache_repository=InMemoryWeatherCacheRepository(),
        cache=InMemoryCache(),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        weather_service=weather_service,
        recommendation_service=MealRecommendationService(analytics_repository),
        analytics_service=AnalyticsService(analytics_repository),
        assistant_service=CookingAssistantService(
            client=completion_client, retry_attempts=0
        ),
        recipe_generation_service=RecipeGenerationService(client=completion_client),
        rate_limiter=FixedWindowRateLimiter(),
        close_resources=close_resources,
    )
