"""
Constants used in night analysis and weather aggregation.
"""

# Forecast horizon (Open-Meteo accuracy degrades quickly after a week)
WEATHER_FORECAST_DAYS = 7

# Lunar thresholds (illumination percent, unrounded)
NEW_MOON_MAX_ILLUMINATION = 10.0
FULL_MOON_MIN_ILLUMINATION = 90.0

# Moon-free evening windows (hours relative to sunset)
EARLY_MOONSET_MAX_HOURS = 1.0
LATE_MOONRISE_MIN_HOURS = 4.0

# Weather gate (all strict upper bounds)
MAX_CLOUD_COVER_PERCENT = 30.0
MAX_PRECIPITATION_PROBABILITY_PERCENT = 20.0
MAX_WIND_SPEED_KMH = 25.0  # Always km/h

# Weather description bands (average cloud cover percent)
CLEAR_MAX_CLOUD_COVER = 20.0
PARTLY_CLOUDY_MAX_CLOUD_COVER = 50.0
MOSTLY_CLOUDY_MAX_CLOUD_COVER = 80.0

# Night window for weather bucketing (local hours)
NIGHT_START_HOUR = 20  # 8 PM, counts toward the same date
NIGHT_END_HOUR = 2  # 2 AM inclusive, counts toward the previous date

# Coordinate limits
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
