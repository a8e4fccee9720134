"""Weather domain models."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum


class Season(StrEnum):
    """Calendar-fixed season (northern hemisphere month ranges)."""

    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"

    @classmethod
    def for_month(cls, month: int) -> "Season":
        """Return the season for a calendar month (1-12)."""
        if month in (3, 4, 5):
            return cls.SPRING
        if month in (6, 7, 8):
            return cls.SUMMER
        if month in (9, 10, 11):
            return cls.FALL
        return cls.WINTER


class TimeOfDay(StrEnum):
    """Coarse time-of-day bucket."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


@dataclass(frozen=True)
class WeatherData:
    """Current conditions in imperial units."""

    feels_like: float
    temperature: float
    humidity: float
    precipitation: float
    wind_speed: float
    aqi: float
    uv_index: float
    visibility: float
    description: str
    icon: str | None = None


@dataclass(frozen=True)
class SunData:
    """Sunrise/sunset timing relative to the time of the request."""

    sunrise: datetime
    sunset: datetime
    minutes_to_sunset: int
    minutes_to_sunrise: int
    is_daytime: bool


@dataclass(frozen=True)
class LocationData:
    """Resolved location for a coordinate pair."""

    latitude: float
    longitude: float
    city: str
    region: str
    country: str
    timezone: str


@dataclass(frozen=True)
class WeatherContext:
    """Immutable snapshot used to drive meal recommendations.

    ``weekday`` follows ``date.weekday()`` (Monday is 0).
    """

    weather: WeatherData
    sun: SunData
    location: LocationData
    is_weeknight: bool
    time_of_day: TimeOfDay
    season: Season
    month: int
    weekday: int


@dataclass(frozen=True)
class ForecastEntry:
    """Sub-daily forecast row as returned by the provider (SI units)."""

    timestamp: datetime
    temperature_k: float
    humidity: float
    wind_speed_mps: float
    condition: str
    description: str
    icon: str | None
    pop: float


@dataclass(frozen=True)
class DailyForecast:
    """Day-level forecast aggregate in imperial units."""

    date: date
    high: float
    low: float
    current: float
    condition: str
    precipitation: int
    description: str | None = None
    humidity: int | None = None
    wind_speed: float | None = None
    icon: str | None = None
    fetched_at: datetime | None = None
