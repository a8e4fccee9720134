"""Supabase repository for cached daily forecasts."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from meal_planner.domain.weather import DailyForecast
from meal_planner.services.weather import WeatherCacheRepository


@dataclass
class SupabaseWeatherCacheRepository(WeatherCacheRepository):
    """Supabase implementation for the forecast cache (one row per date)."""

    client: Client

    def list_forecasts(
        self, start: date, end: date, fetched_after: datetime
    ) -> list[DailyForecast]:
        """Return fresh cached forecasts in the date range."""
        response = (
            self.client.table("weather_cache")
            .select(
                "date, temperature_high, temperature_low, temperature_current, "
                "condition, description, precipitation, humidity, wind_speed, "
                "icon, fetched_at"
            )
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .gte("fetched_at", fetched_after.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [_parse_forecast(row) for row in response.data or []]

    def upsert_forecast(
        self, forecast: DailyForecast, latitude: float, longitude: float
    ) -> None:
        """Insert or replace the cached forecast for its date."""
        fetched_at = forecast.fetched_at or datetime.now().astimezone()
        self.client.table("weather_cache").upsert(
            {
                "date": forecast.date.isoformat(),
                "latitude": latitude,
                "longitude": longitude,
                "temperature_high": forecast.high,
                "temperature_low": forecast.low,
                "temperature_current": forecast.current,
                "condition": forecast.condition,
                "description": forecast.description,
                "precipitation": forecast.precipitation,
                "humidity": forecast.humidity,
                "wind_speed": forecast.wind_speed,
                "icon": forecast.icon,
                "fetched_at": fetched_at.isoformat(),
            },
            on_conflict="date",
        ).execute()


def _parse_forecast(row: dict[str, object]) -> DailyForecast:
    fetched_at = row.get("fetched_at")
    current = row.get("temperature_current")
    return DailyForecast(
        date=date.fromisoformat(str(row["date"])[:10]),
        high=float(row["temperature_high"]),
        low=float(row["temperature_low"]),
        current=float(current if current is not None else row["temperature_high"]),
        condition=str(row.get("condition") or ""),
        precipitation=int(row.get("precipitation") or 0),
        description=row.get("description"),
        humidity=_optional_int(row.get("humidity")),
        wind_speed=_optional_float(row.get("wind_speed")),
        icon=row.get("icon"),
        fetched_at=datetime.fromisoformat(str(fetched_at)) if fetched_at else None,
    )


def _optional_float(raw: object) -> float | None:
    if raw is None:
        return None
    return float(raw)


def _optional_int(raw: object) -> int | None:
    if raw is None:
        return None
    return int(raw)
