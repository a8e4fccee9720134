"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from meal_planner.api.models import AssistantRequest, RecipeGenerationRequest
from meal_planner.api.serializers import to_json
from meal_planner.app_logging import configure_logging
from meal_planner.containers import AppContainer
from meal_planner.domain.errors import ConfigurationError, RateLimitExceededError
from meal_planner.domain.meal_plans import MealType
from meal_planner.services.meal_recommendations import get_weather_summary
from meal_planner.services.rate_limit import RATE_LIMITS, get_rate_limit_identifier
from meal_planner.services.weather_matcher import (
    WeatherConditions,
    get_current_season,
    get_suggested_meals,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(RateLimitExceededError)
    async def rate_limited(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        logger.info("Rate limit exceeded: path=%s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": str(exc), "retryAfter": exc.retry_after_seconds},
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(ConfigurationError)
    async def not_configured(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.warning("Feature not configured: path=%s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/analytics/dashboard")
    async def analytics_dashboard(
        request: Request,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> dict[str, object]:
        """Return the planning analytics dashboard."""
        state_container: AppContainer = request.app.state.container
        dashboard = await state_container.analytics_service.get_dashboard(
            user_id, start=start, end=end
        )
        return to_json(dashboard)

    @app.get("/analytics/recommendations")
    async def analytics_recommendations(
        request: Request, user_id: str
    ) -> dict[str, object]:
        """Return personalized planning suggestions."""
        state_container: AppContainer = request.app.state.container
        recommendations = await state_container.analytics_service.get_recommendations(
            user_id
        )
        return to_json(recommendations)

    @app.get("/weather/context")
    async def weather_context(
        request: Request, lat: float | None = None, lon: float | None = None
    ) -> dict[str, object]:
        """Return the weather context used for recommendations."""
        state_container: AppContainer = request.app.state.container
        ctx = await state_container.weather_service.get_weather_context(lat, lon)
        return to_json(ctx)

    @app.get("/weather/forecast")
    async def weather_forecast(
        request: Request,
        lat: float | None = None,
        lon: float | None = None,
        days: int = Query(default=7, ge=1, le=7),
    ) -> dict[str, object]:
        """Return daily forecasts for the coming days."""
        state_container: AppContainer = request.app.state.container
        weather_service = state_container.weather_service
        forecasts = await weather_service.get_forecast(
            lat if lat is not None else weather_service.default_latitude,
            lon if lon is not None else weather_service.default_longitude,
            days=days,
        )
        return {"forecast": to_json(forecasts)}

    @app.get("/recommendations/meals")
    async def meal_recommendations(  # noqa: PLR0913
        request: Request,
        user_id: str,
        lat: float | None = None,
        lon: float | None = None,
        count: int = Query(default=3, ge=1, le=10),
        max_prep_time: int | None = Query(default=None, ge=1),
    ) -> dict[str, object]:
        """Return weather-aware meal recommendations."""
        state_container: AppContainer = request.app.state.container
        ctx = await state_container.weather_service.get_weather_context(lat, lon)
        recommendations = (
            await state_container.recommendation_service.get_meal_recommendations(
                ctx, user_id, count=count, max_prep_time=max_prep_time
            )
        )
        return {
            "weatherSummary": get_weather_summary(ctx),
            "weather": to_json(ctx),
            "recommendations": to_json(recommendations),
        }

    @app.get("/recommendations/explain")
    async def explain_recommendations(
        request: Request,
        user_id: str,
        lat: float | None = None,
        lon: float | None = None,
    ) -> dict[str, object]:
        """Return recommendations with the weather factors behind them."""
        state_container: AppContainer = request.app.state.container
        ctx = await state_container.weather_service.get_weather_context(lat, lon)
        explanation = await state_container.recommendation_service.explain(
            ctx, user_id
        )
        return to_json(explanation)

    @app.get("/recommendations/forecast")
    async def forecast_suggestions(  # noqa: PLR0913
        request: Request,
        user_id: str,
        lat: float | None = None,
        lon: float | None = None,
        meal_type: str | None = None,
        limit: int = Query(default=5, ge=1, le=20),
    ) -> dict[str, object]:
        """Score the user's recipes against today's forecast."""
        try:
            resolved_meal_type = MealType.parse(meal_type) if meal_type else None
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        state_container: AppContainer = request.app.state.container
        weather_service = state_container.weather_service
        forecasts = await weather_service.get_forecast(
            lat if lat is not None else weather_service.default_latitude,
            lon if lon is not None else weather_service.default_longitude,
            days=1,
        )
        today = forecasts[0]
        conditions = WeatherConditions(
            temperature=today.current,
            condition=today.condition,
            precipitation=today.precipitation,
            season=get_current_season(today.date),
            humidity=today.humidity,
        )
        repository = state_container.recommendation_service.repository
        recipes = await asyncio.to_thread(repository.list_recipes, user_id)
        suggestions = get_suggested_meals(
            recipes, conditions, meal_type=resolved_meal_type, limit=limit
        )
        return {
            "forecast": to_json(today),
            "suggestions": to_json(suggestions),
        }

    @app.post("/assistant")
    async def assistant(
        payload: AssistantRequest, request: Request
    ) -> dict[str, object]:
        """Handle a cooking assistant command."""
        state_container: AppContainer = request.app.state.container
        state_container.rate_limiter.enforce(
            get_rate_limit_identifier(payload.user_id, _client_ip(request)),
            RATE_LIMITS["ai_assistant"],
        )
        reply = await state_container.assistant_service.handle_command(
            payload.command,
            recipe=payload.recipe.to_recipe() if payload.recipe else None,
            unit_system=payload.unit_system,
            current_step=payload.current_step,
        )
        return to_json(reply)

    @app.post("/recipes/generate")
    async def generate_recipe(
        payload: RecipeGenerationRequest, request: Request
    ) -> dict[str, object]:
        """Generate a recipe from a free-text request."""
        state_container: AppContainer = request.app.state.container
        state_container.rate_limiter.enforce(
            get_rate_limit_identifier(payload.user_id, _client_ip(request)),
            RATE_LIMITS["ai_recipe_generation"],
        )
        result = await state_container.recipe_generation_service.generate(
            payload.prompt
        )
        return to_json(result)

    return app


def _client_ip(request: Request) -> str | None:
    """Prefer the first forwarded address, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
