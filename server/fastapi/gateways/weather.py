"""
Weather Gateway

Current conditions for a coordinate pair from the OpenWeather API.
Requires environment variable: OPENWEATHER_API_KEY
"""

import logging
import httpx

from errors import UpstreamError
from models import WeatherSnapshot

logger = logging.getLogger(__name__)


class WeatherGateway:
    def __init__(self, http_client: httpx.AsyncClient, api_key: str | None, base_url: str):
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = base_url

    async def get_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Fetch current weather in metric units.

        Any provider failure (transport, non-2xx status, unexpected body)
        raises UpstreamError with a generic message.
        """
        try:
            response = await self.http_client.get(
                self.base_url,
                params={
                    "lat": latitude,
                    "lon": longitude,
                    "appid": self.api_key,
                    "units": "metric",
                },
            )
            response.raise_for_status()

            data = response.json()
            main = data["main"]
            wind = data["wind"]

            return WeatherSnapshot(
                temperature=main["temp"],
                humidity=main["humidity"],
                windSpeed=wind["speed"],
                windDegree=wind["deg"],
            )
        except Exception as e:
            logger.exception("Weather API error for (%s, %s): %s", latitude, longitude, e)
            raise UpstreamError("Failed to fetch weather data") from e
