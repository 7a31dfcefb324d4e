"""Open-Meteo API client constants and shared configuration.

API docs: https://open-meteo.com/en/docs
"""

from datetime import timedelta

OPEN_METEO_API = "https://api.open-meteo.com/v1/forecast"

# Current-conditions variables we request from Open-Meteo
CURRENT_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation_probability",
    "weather_code",
    "wind_speed_10m",
    "wind_direction_10m",
    "is_day",
]

WEATHER_TTL = timedelta(minutes=30)
