# src/services/weather_service.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

logger = logging.getLogger(__name__)

BASE_URL = "https://api.openweathermap.org/data/2.5"


class WeatherServiceError(RuntimeError):
    """OpenWeatherMap answered with an error."""


@dataclass(frozen=True)
class DailyForecast:
    date: str  # YYYY-MM-DD
    formatted_date: str  # e.g. "Sat, Jun 01"
    min_temp: Optional[float]
    max_temp: Optional[float]
    description: str


@dataclass(frozen=True)
class CityForecast:
    city_name: str
    units: str
    days: List[DailyForecast] = field(default_factory=list)


def summarize_forecast(entries: List[Dict[str, Any]], max_days: int = 5) -> List[DailyForecast]:
    """
    Collapse 3-hour forecast entries into per-day min/max temperature and the
    most frequent description.
    """
    rows = []
    for e in entries:
        dt_txt = str(e.get("dt_txt") or "")
        if not dt_txt:
            continue
        weather = e.get("weather") or [{}]
        rows.append(
            {
                "day": dt_txt.split(" ")[0],
                "temp": (e.get("main") or {}).get("temp"),
                "description": (weather[0] or {}).get("description"),
            }
        )

    if not rows:
        return []

    df = pd.DataFrame(rows)
    df["temp"] = pd.to_numeric(df["temp"], errors="coerce")

    days: List[DailyForecast] = []
    for day, g in df.groupby("day", sort=True):
        if len(days) >= max_days:
            break
        desc_counts = g["description"].dropna().value_counts()
        temps = g["temp"].dropna()
        try:
            formatted = date.fromisoformat(str(day)).strftime("%a, %b %d")
        except ValueError:
            formatted = str(day)
        days.append(
            DailyForecast(
                date=str(day),
                formatted_date=formatted,
                min_temp=float(temps.min()) if not temps.empty else None,
                max_temp=float(temps.max()) if not temps.empty else None,
                description=str(desc_counts.index[0]) if not desc_counts.empty else "",
            )
        )
    return days


class WeatherService:
    """
    5-day forecast lookup (OpenWeatherMap /forecast).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        units: str = "imperial",
        timeout_s: int = 15,
    ):
        self.api_key = (api_key or os.getenv("OPENWEATHER_API_KEY", "")).strip()
        self.units = units
        self.timeout_s = timeout_s

    def _fetch_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        r = requests.get(url, params=params, timeout=self.timeout_s)
        if not r.ok:
            message = f"Weather API error: {r.status_code}"
            try:
                data = r.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("message"):
                message += f" - {data['message']}"
            raise WeatherServiceError(message)
        return r.json()

    def get_city_forecast(self, city_name: str) -> CityForecast:
        if not city_name:
            raise ValueError("Missing city name for weather lookup")
        if not self.api_key:
            raise ValueError(
                "Missing OpenWeatherMap API key. Set OPENWEATHER_API_KEY in your environment/.env"
            )

        data = self._fetch_json(
            f"{BASE_URL}/forecast",
            {"q": city_name, "units": self.units, "appid": self.api_key},
        )

        city = data.get("city") or {}
        name = ", ".join(p for p in (city.get("name"), city.get("country")) if p) or city_name
        days = summarize_forecast(data.get("list") or [])
        logger.debug("Forecast for %s: %d days", name, len(days))

        return CityForecast(city_name=name, units=self.units, days=days)
