"""Weather context and forecast service with provider fallback."""

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from typing import Protocol, TypeVar

from meal_planner.conversions import (
    DEFAULT_AQI,
    kelvin_to_fahrenheit,
    meters_per_second_to_mph,
    meters_to_miles,
    owm_aqi_to_us_scale,
)
from meal_planner.domain.errors import ProviderError
from meal_planner.domain.weather import (
    DailyForecast,
    ForecastEntry,
    LocationData,
    Season,
    SunData,
    TimeOfDay,
    WeatherContext,
    WeatherData,
)
from meal_planner.safe_math import safe_average
from meal_planner.services.cache import Cache

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

DEFAULT_LATITUDE = 40.7128
DEFAULT_LONGITUDE = -74.0060
FORECAST_CACHE_TTL = timedelta(hours=1)
_DEFAULT_UV_INDEX = 5
_MOCK_FORECAST_CONDITIONS = ("Clear", "Clouds", "Rain", "Sunny", "Partly Cloudy")
_MOCK_FORECAST_ICONS = ("01d", "02d", "03d", "09d", "10d")


class WeatherProvider(Protocol):
    """Interface for a remote weather data provider (raw payloads)."""

    async def fetch_current(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        """Return current conditions, including sunrise and sunset."""

    async def fetch_forecast(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        """Return sub-daily forecast entries."""

    async def fetch_air_quality(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        """Return the air pollution index."""

    async def fetch_location(
        self, latitude: float, longitude: float
    ) -> list[dict[str, object]]:
        """Return reverse geocoding matches for the coordinates."""


class WeatherCacheRepository(Protocol):
    """Persistence interface for cached daily forecasts."""

    def list_forecasts(
        self, start: date, end: date, fetched_after: datetime
    ) -> list[DailyForecast]:
        """Return cached forecasts in the date range fetched after a cutoff."""

    def upsert_forecast(
        self, forecast: DailyForecast, latitude: float, longitude: float
    ) -> None:
        """Insert or replace the cached forecast for its date."""


@dataclass
class WeatherService:
    """Builds weather contexts and daily forecasts, degrading to mocks."""

    provider: WeatherProvider | None
    cache_repository: WeatherCacheRepository | None
    cache: Cache
    timeout_seconds: float = 5.0
    context_ttl_seconds: int = 900
    default_latitude: float = DEFAULT_LATITUDE
    default_longitude: float = DEFAULT_LONGITUDE

    async def get_weather_context(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
        now: datetime | None = None,
    ) -> WeatherContext:
        """Return the weather context for a location at the given moment."""
        lat = self.default_latitude if latitude is None else latitude
        lon = self.default_longitude if longitude is None else longitude
        moment = now or datetime.now().astimezone()
        if moment.tzinfo is None:
            moment = moment.astimezone()
        cache_key = f"weather:context:{lat:.2f}:{lon:.2f}:{moment:%Y%m%d%H}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, WeatherContext):
            return cached

        current, location, aqi = await asyncio.gather(
            self._fetch(
                "current",
                lambda provider: provider.fetch_current(lat, lon),
                lambda payload: _parse_current(payload, moment),
            ),
            self._fetch(
                "location",
                lambda provider: provider.fetch_location(lat, lon),
                lambda payload: _parse_location(payload, lat, lon),
            ),
            self._fetch(
                "air_quality",
                lambda provider: provider.fetch_air_quality(lat, lon),
                _parse_air_quality,
            ),
        )
        if current is None:
            weather, sun = mock_weather_data(moment.hour), mock_sun_data(moment)
        else:
            weather, sun = current
        weather = replace(weather, aqi=DEFAULT_AQI if aqi is None else aqi)

        context = build_weather_context(
            weather=weather,
            sun=sun,
            location=location or mock_location(lat, lon),
            now=moment,
        )
        self.cache.set(cache_key, context, ttl_seconds=self.context_ttl_seconds)
        return context

    async def get_forecast(
        self,
        latitude: float,
        longitude: float,
        days: int = 7,
        now: datetime | None = None,
    ) -> list[DailyForecast]:
        """Return up to ``days`` daily forecasts, cached for one hour."""
        moment = now or datetime.now(tz=UTC)
        today = moment.astimezone(UTC).date()
        last_day = today + timedelta(days=days - 1)
        cached = await self._read_cached(today, last_day, moment)
        if cached:
            return cached[:days]

        forecasts = await self._fetch(
            "forecast",
            lambda provider: provider.fetch_forecast(latitude, longitude),
            lambda payload: aggregate_daily_forecasts(
                parse_forecast_entries(payload), fetched_at=moment
            ),
        )
        if not forecasts:
            return mock_forecast(days, today)

        await self._write_cached(forecasts, latitude, longitude)
        return forecasts[:days]

    async def _fetch(
        self,
        action: str,
        fetch: Callable[[WeatherProvider], Awaitable[object]],
        parse: Callable[[object], _T],
    ) -> _T | None:
        """Call the provider with a timeout; any failure yields None."""
        if self.provider is None:
            return None
        try:
            payload = await asyncio.wait_for(
                fetch(self.provider), timeout=self.timeout_seconds
            )
            return parse(payload)
        except Exception as exc:
            _logger.warning(
                "Weather %s failed (status=%s), using fallback: %r",
                action,
                _status_code_from_exception(exc),
                exc,
            )
            return None

    async def _read_cached(
        self, start: date, end: date, now: datetime
    ) -> list[DailyForecast]:
        if self.cache_repository is None:
            return []
        try:
            return await asyncio.to_thread(
                self.cache_repository.list_forecasts,
                start,
                end,
                now - FORECAST_CACHE_TTL,
            )
        except Exception:
            _logger.warning("Weather cache read failed", exc_info=True)
            return []

    async def _write_cached(
        self, forecasts: Iterable[DailyForecast], latitude: float, longitude: float
    ) -> None:
        if self.cache_repository is None:
            return
        for forecast in forecasts:
            try:
                await asyncio.to_thread(
                    self.cache_repository.upsert_forecast,
                    forecast,
                    latitude,
                    longitude,
                )
            except Exception:
                _logger.warning(
                    "Weather cache write failed for %s", forecast.date, exc_info=True
                )


def build_weather_context(
    *,
    weather: WeatherData,
    sun: SunData,
    location: LocationData,
    now: datetime,
) -> WeatherContext:
    """Assemble a context and its derived fields."""
    return WeatherContext(
        weather=weather,
        sun=sun,
        location=location,
        is_weeknight=now.weekday() <= 3,
        time_of_day=get_time_of_day(now, sun.sunrise, sun.sunset),
        season=Season.for_month(now.month),
        month=now.month,
        weekday=now.weekday(),
    )


def get_time_of_day(now: datetime, sunrise: datetime, sunset: datetime) -> TimeOfDay:
    """Classify ``now``; anything outside sunrise..sunset is night."""
    if not sunrise < now < sunset:
        return TimeOfDay.NIGHT
    if now.hour < 12:
        return TimeOfDay.MORNING
    if now.hour < 17:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def aggregate_daily_forecasts(
    entries: Iterable[ForecastEntry], fetched_at: datetime | None = None
) -> list[DailyForecast]:
    """Collapse sub-daily entries into one forecast per UTC date."""
    by_day: dict[date, list[ForecastEntry]] = {}
    for entry in entries:
        day = entry.timestamp.astimezone(UTC).date()
        by_day.setdefault(day, []).append(entry)

    forecasts = []
    for day, day_entries in by_day.items():
        temps = [entry.temperature_k for entry in day_entries]
        # most_common keeps insertion order for ties
        conditions = Counter(entry.condition for entry in day_entries)
        condition = conditions.most_common(1)[0][0]
        first = day_entries[0]
        forecasts.append(
            DailyForecast(
                date=day,
                high=kelvin_to_fahrenheit(max(temps)),
                low=kelvin_to_fahrenheit(min(temps)),
                current=kelvin_to_fahrenheit(safe_average(temps)),
                condition=condition,
                description=first.description,
                precipitation=round(
                    safe_average(entry.pop for entry in day_entries) * 100
                ),
                humidity=round(safe_average(entry.humidity for entry in day_entries)),
                wind_speed=meters_per_second_to_mph(
                    safe_average(entry.wind_speed_mps for entry in day_entries)
                ),
                icon=first.icon,
                fetched_at=fetched_at,
            )
        )
    return forecasts


def parse_forecast_entries(payload: object) -> list[ForecastEntry]:
    """Parse the provider's sub-daily forecast list."""
    if not isinstance(payload, dict):
        raise ProviderError("Forecast payload is not an object")
    entries = []
    for item in payload.get("list") or []:
        main = item.get("main") or {}
        weather = (item.get("weather") or [{}])[0]
        entries.append(
            ForecastEntry(
                timestamp=datetime.fromtimestamp(int(item["dt"]), tz=UTC),
                temperature_k=float(main["temp"]),
                humidity=float(main.get("humidity", 0)),
                wind_speed_mps=float((item.get("wind") or {}).get("speed", 0)),
                condition=str(weather.get("main", "Clear")),
                description=str(weather.get("description", "")),
                icon=weather.get("icon"),
                pop=float(item.get("pop") or 0),
            )
        )
    return entries


def estimate_rain_probability(
    cloud_cover: float, humidity: float, rain_1h: float | None = None
) -> int:
    """Estimate precipitation chance (%) from clouds, humidity and recent rain."""
    if rain_1h is not None and rain_1h > 0:
        return int(min(95, cloud_cover + 20))
    if humidity > 80:
        humidity_bonus = 15
    elif humidity > 60:
        humidity_bonus = 5
    else:
        humidity_bonus = 0
    return min(100, round(cloud_cover * 0.6 + humidity_bonus))


def mock_weather_data(hour: int) -> WeatherData:
    """Deterministic conditions for a local hour, used when providers fail."""
    is_hot = 11 <= hour <= 16
    is_evening = 17 <= hour <= 20
    if is_hot:
        return WeatherData(
            feels_like=82,
            temperature=78,
            humidity=60,
            precipitation=15,
            wind_speed=12,
            aqi=DEFAULT_AQI,
            uv_index=8,
            visibility=10,
            description="Clear",
            icon="01d",
        )
    if is_evening:
        return WeatherData(
            feels_like=68,
            temperature=65,
            humidity=45,
            precipitation=5,
            wind_speed=8,
            aqi=DEFAULT_AQI,
            uv_index=3,
            visibility=10,
            description="Partly cloudy",
            icon="02d",
        )
    return WeatherData(
        feels_like=55,
        temperature=52,
        humidity=60,
        precipitation=15,
        wind_speed=12,
        aqi=DEFAULT_AQI,
        uv_index=3,
        visibility=10,
        description="Overcast",
        icon="03d",
    )


def mock_sun_data(now: datetime) -> SunData:
    """Sunrise at 06:30 and sunset at 19:30 on the day of ``now``."""
    sunrise = now.replace(hour=6, minute=30, second=0, microsecond=0)
    sunset = now.replace(hour=19, minute=30, second=0, microsecond=0)
    return _sun_data(sunrise, sunset, now)


def mock_location(latitude: float, longitude: float) -> LocationData:
    return LocationData(
        latitude=latitude,
        longitude=longitude,
        city="Unknown",
        region="Unknown",
        country="US",
        timezone="America/Los_Angeles",
    )


def mock_forecast(days: int, start: date) -> list[DailyForecast]:
    """Deterministic forecast rows, one per day starting at ``start``."""
    forecasts = []
    for offset in range(max(days, 0)):
        condition = _MOCK_FORECAST_CONDITIONS[offset % len(_MOCK_FORECAST_CONDITIONS)]
        base = 65 + (offset * 7) % 20
        forecasts.append(
            DailyForecast(
                date=start + timedelta(days=offset),
                high=base + 7,
                low=base - 7,
                current=base,
                condition=condition,
                description=condition.lower(),
                precipitation=(offset * 13) % 50,
                humidity=40 + (offset * 11) % 40,
                wind_speed=5 + (offset * 3) % 15,
                icon=_MOCK_FORECAST_ICONS[offset % len(_MOCK_FORECAST_ICONS)],
            )
        )
    return forecasts


def _parse_current(payload: object, now: datetime) -> tuple[WeatherData, SunData]:
    if not isinstance(payload, dict):
        raise ProviderError("Current weather payload is not an object")
    main = payload["main"]
    weather = (payload.get("weather") or [{}])[0]
    clouds = (payload.get("clouds") or {}).get("all", 0)
    rain_1h = (payload.get("rain") or {}).get("1h")
    data = WeatherData(
        feels_like=kelvin_to_fahrenheit(float(main["feels_like"])),
        temperature=kelvin_to_fahrenheit(float(main["temp"])),
        humidity=float(main.get("humidity", 0)),
        precipitation=estimate_rain_probability(
            float(clouds), float(main.get("humidity", 0)), rain_1h
        ),
        wind_speed=meters_per_second_to_mph(
            float((payload.get("wind") or {}).get("speed", 0))
        ),
        aqi=DEFAULT_AQI,
        uv_index=_DEFAULT_UV_INDEX,
        visibility=round(meters_to_miles(float(payload.get("visibility", 0)))),
        description=str(weather.get("description", "")),
        icon=weather.get("icon"),
    )
    sys_block = payload["sys"]
    sunrise = datetime.fromtimestamp(int(sys_block["sunrise"]), tz=UTC)
    sunset = datetime.fromtimestamp(int(sys_block["sunset"]), tz=UTC)
    return data, _sun_data(sunrise, sunset, now)


def _parse_location(payload: object, latitude: float, longitude: float) -> LocationData:
    if not isinstance(payload, list) or not payload:
        raise ProviderError("No location data found")
    match = payload[0]
    return LocationData(
        latitude=latitude,
        longitude=longitude,
        city=match.get("name") or "Unknown",
        region=match.get("state") or "Unknown",
        country=match.get("country") or "US",
        timezone="America/Los_Angeles",
    )


def _parse_air_quality(payload: object) -> int:
    if not isinstance(payload, dict):
        raise ProviderError("Air quality payload is not an object")
    readings = payload.get("list") or []
    if not readings:
        return DEFAULT_AQI
    return owm_aqi_to_us_scale(int(readings[0]["main"]["aqi"]))


def _sun_data(sunrise: datetime, sunset: datetime, now: datetime) -> SunData:
    return SunData(
        sunrise=sunrise,
        sunset=sunset,
        minutes_to_sunset=_minutes_until(sunset, now),
        minutes_to_sunrise=_minutes_until(sunrise, now),
        is_daytime=sunrise < now < sunset,
    )


def _minutes_until(target: datetime, now: datetime) -> int:
    return round((target - now).total_seconds() / 60)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
