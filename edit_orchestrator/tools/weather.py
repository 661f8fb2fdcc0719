"""
Weather and clothing lookups for the scripted multi-round demo.

The model is asked what to wear somewhere; it first calls get_weather
with coordinates, maps the temperature to a condition and then calls
get_clothing. Temperatures come from the Open-Meteo forecast API.
"""

import logging
from typing import Optional

import httpx
from pydantic import Field

from ..orchestration.tool_defs import WEATHER_TOOL_SPECS, WeatherCondition
from .registry import ToolArguments, ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

CLOTHING = {
    "warm": "T-shirt and shorts",
    "chilly": "Sweater and jeans",
    "cold": "Heavy coat and gloves",
    "freezing": "Thermal underwear and a parka",
    "hot": "Tank top and shorts",
}


class WeatherArgs(ToolArguments):
    failure_message = "Weather lookup failed. Please provide a valid latitude and longitude."

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ClothingArgs(ToolArguments):
    failure_message = (
        "Clothing lookup failed. Please provide one of warm, chilly, cold, freezing or hot."
    )

    weather_condition: WeatherCondition


def get_clothing(weather_condition: str) -> str:
    """Clothing advice for a weather condition, "Unknown" otherwise."""
    return CLOTHING.get(weather_condition, "Unknown")


class WeatherService:
    """Current-temperature lookups against the Open-Meteo API."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        forecast_url: str = DEFAULT_FORECAST_URL,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self.forecast_url = forecast_url

    async def get_weather(self, latitude: float, longitude: float) -> float:
        """
        Fetch the current temperature (°C) at the given coordinates.

        Raises:
            httpx.HTTPError: On network failures or non-2xx responses.
            KeyError: If the response lacks current.temperature_2m.
        """
        response = await self._client.get(
            self.forecast_url,
            params={
                "latitude": latitude,
                "longitude": longitude,
                "current": "temperature_2m,wind_speed_10m",
            },
        )
        response.raise_for_status()
        data = response.json()
        temperature = data["current"]["temperature_2m"]
        logger.debug(f"Temperature at ({latitude}, {longitude}): {temperature}")
        return temperature

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def handle_get_weather(self, args: WeatherArgs) -> str:
        temperature = await self.get_weather(args.latitude, args.longitude)
        return str(temperature)

    async def handle_get_clothing(self, args: ClothingArgs) -> str:
        return get_clothing(args.weather_condition)


def build_weather_registry(service: WeatherService) -> ToolRegistry:
    """Register the weather demo tools bound to ``service``."""
    handlers = {
        "get_weather": (WeatherArgs, service.handle_get_weather),
        "get_clothing": (ClothingArgs, service.handle_get_clothing),
    }
    registry = ToolRegistry()
    for spec in WEATHER_TOOL_SPECS:
        args_model, handler = handlers[spec.name]
        registry.register(
            name=spec.name,
            description=spec.description,
            args_model=args_model,
            handler=handler,
        )
    return registry
