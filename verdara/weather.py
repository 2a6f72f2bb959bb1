"""
Weather lookups for the dashboard widget.

Two ways in, mirroring the widget: by coordinates (the browser's
geolocation) or by a city name typed into the search box. A city search
goes through the Open-Meteo geocoding API first and then asks the forecast
API for the first hit. Both endpoints are free and keyless.

Results are cached in memory per query key for ``VERDARA_WEATHER_TTL``
seconds, and at most ``CACHE_LIMIT`` keys are kept. Failures raise
``WeatherError``; there is no retry.
"""

from __future__ import annotations

import json
import logging
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Dict, Optional, Tuple

from pydantic import BaseModel

from . import config


logger = logging.getLogger(__name__)

USER_AGENT = "VerdaraWeather/1.0"
CACHE_LIMIT = 256

# WMO weather interpretation codes
WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Dense drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Rain showers",
    81: "Heavy rain showers",
    82: "Violent rain showers",
    85: "Snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with heavy hail",
}


class WeatherError(Exception):
    """A weather or geocoding lookup failed."""


class CurrentWeather(BaseModel):
    location_name: Optional[str] = None
    latitude: float
    longitude: float
    temperature: float
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    weather_code: Optional[int] = None
    conditions: str = "Unknown"


_cache: Dict[str, Tuple[float, CurrentWeather]] = {}
_cache_lock = threading.Lock()
_now = time.monotonic


def _http_get_json(url: str) -> dict:
    request = urllib.request.Request(
        url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"}
    )
    try:
        with urllib.request.urlopen(request, timeout=config.HTTP_TIMEOUT) as response:
            if response.status != 200:
                raise WeatherError(f"{url} returned status {response.status}")
            return json.loads(response.read().decode("utf-8", errors="ignore"))
    except WeatherError:
        raise
    except (urllib.error.URLError, OSError, ValueError) as exc:
        logger.error("Weather request to %s failed: %s", url, exc)
        raise WeatherError(str(exc)) from exc


def describe(code: Optional[int]) -> str:
    if code is None:
        return "Unknown"
    return WEATHER_CODES.get(code, "Unknown")


def get_weather_by_coordinates(
    latitude: float, longitude: float, location_name: Optional[str] = None
) -> CurrentWeather:
    cache_key = f"coords:{latitude:.3f},{longitude:.3f}"
    with _cache_lock:
        hit = _cache.get(cache_key)
        if hit is not None and _now() - hit[0] < config.WEATHER_TTL:
            cached = hit[1]
            if location_name and cached.location_name != location_name:
                return cached.model_copy(update={"location_name": location_name})
            return cached

    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": "temperature_2m,relative_humidity_2m,wind_speed_10m,weather_code",
        "temperature_unit": "fahrenheit",
        "wind_speed_unit": "mph",
    }
    data = _http_get_json(f"{config.WEATHER_URL}?{urllib.parse.urlencode(params)}")
    current = data.get("current") or {}
    if "temperature_2m" not in current:
        raise WeatherError("forecast response has no current temperature")

    code = current.get("weather_code")
    weather = CurrentWeather(
        location_name=location_name,
        latitude=latitude,
        longitude=longitude,
        temperature=float(current["temperature_2m"]),
        humidity=current.get("relative_humidity_2m"),
        wind_speed=current.get("wind_speed_10m"),
        weather_code=code,
        conditions=describe(code),
    )
    with _cache_lock:
        _store(cache_key, weather)
    logger.info("Fetched weather for (%s, %s)", latitude, longitude)
    return weather


def _store(cache_key: str, weather: CurrentWeather) -> None:
    now = _now()
    _cache.pop(cache_key, None)
    expired = [k for k, (fetched_at, _) in _cache.items() if now - fetched_at >= config.WEATHER_TTL]
    for key in expired:
        del _cache[key]
    # Oldest first; dicts keep insertion order.
    while len(_cache) >= CACHE_LIMIT:
        del _cache[next(iter(_cache))]
    _cache[cache_key] = (now, weather)


def geocode_city(city: str) -> dict:
    """Return the first geocoding hit for ``city``."""
    name = city.strip()
    if not name:
        raise WeatherError("city name is empty")
    params = {"name": name, "count": 1, "language": "en", "format": "json"}
    data = _http_get_json(f"{config.GEOCODING_URL}?{urllib.parse.urlencode(params)}")
    results = data.get("results") or []
    if not results:
        raise WeatherError(f"no location found for {name!r}")
    return results[0]


def get_weather_by_city(city: str) -> CurrentWeather:
    place = geocode_city(city)
    label = ", ".join(p for p in (place.get("name"), place.get("admin1")) if p)
    return get_weather_by_coordinates(
        float(place["latitude"]), float(place["longitude"]), location_name=label or city
    )


def clear_cache() -> None:
    with _cache_lock:
        _cache.clear()
