"""OpenWeatherMap API client."""

from dataclasses import dataclass

import httpx

from meal_planner.services.weather import WeatherProvider

DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5"


@dataclass
class HttpxOpenWeatherClient(WeatherProvider):
    """HTTPX-backed OpenWeatherMap client (standard units, Kelvin)."""

    api_key: str
    base_url: str
    geo_base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str, base_url: str = DEFAULT_BASE_URL
    ) -> "HttpxOpenWeatherClient":
        """Create a client with a managed httpx session."""
        base_url = base_url.rstrip("/")
        host, _, _ = base_url.partition("/data/")
        return cls(
            api_key=api_key,
            base_url=base_url,
            geo_base_url=f"{host}/geo/1.0",
            http_client=httpx.AsyncClient(),
        )

    async def fetch_current(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        """Fetch current conditions."""
        return await self._get(f"{self.base_url}/weather", latitude, longitude)

    async def fetch_forecast(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        """Fetch the 5 day / 3 hour forecast."""
        return await self._get(f"{self.base_url}/forecast", latitude, longitude)

    async def fetch_air_quality(
        self, latitude: float, longitude: float
    ) -> dict[str, object]:
        """Fetch the current air pollution index."""
        return await self._get(f"{self.base_url}/air_pollution", latitude, longitude)

    async def fetch_location(
        self, latitude: float, longitude: float
    ) -> list[dict[str, object]]:
        """Reverse geocode coordinates to a city."""
        return await self._get(
            f"{self.geo_base_url}/reverse", latitude, longitude, limit=1
        )

    async def _get(
        self, url: str, latitude: float, longitude: float, **params: object
    ):
        response = await self.http_client.get(
            url,
            params={"lat": latitude, "lon": longitude, "appid": self.api_key, **params},
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
