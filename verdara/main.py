# verdara/main.py
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from . import ai, config, diagnostics, weather
from .arbora import arbora_router
from .catalog import catalog_router
from .models import ChatReply, ChatRequest


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Verdara",
    description=(
        "Outdoor-recreation catalog service: trails, hunting areas, public "
        "lands and campgrounds, Arbora scheduling, weather and the "
        "Evergreen assistant."
    ),
    version="1.0.0",
)

app.include_router(catalog_router)
app.include_router(arbora_router)
app.include_router(diagnostics.router)
diagnostics.install_error_boundary(app)


@app.get("/")
def health_check():
    return {"status": "ok", "message": "Verdara API live"}


@app.get("/api/weather", response_model=weather.CurrentWeather)
def weather_api(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
    city: Optional[str] = Query(default=None),
):
    """Current conditions by coordinates or, failing those, by city name."""
    try:
        if lat is not None and lon is not None:
            return weather.get_weather_by_coordinates(lat, lon)
        if city:
            return weather.get_weather_by_city(city)
    except weather.WeatherError as e:
        raise HTTPException(status_code=502, detail=str(e))
    raise HTTPException(status_code=400, detail="Provide lat and lon, or city.")


@app.post("/api/assistant/chat", response_model=ChatReply)
def assistant_chat_api(req: ChatRequest):
    return ai.chat(req)
