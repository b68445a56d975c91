from __future__ import annotations
import os
from typing import List


APP_NAME = os.getenv("APP_NAME", "Kundli Match — Compatibility REST")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() in {"1","true","yes","on"}

CORS_ALLOW_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]
TRUSTED_HOSTS: List[str] = [h.strip() for h in os.getenv("TRUSTED_HOSTS", "*").split(",") if h.strip()]
GZIP_MIN_SIZE = int(os.getenv("GZIP_MIN_SIZE", "1000"))
REQUEST_LOGGING = os.getenv("REQUEST_LOGGING", "basic").lower()  # "off" | "basic" | "full"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Ephemeris
EPHE_PATH = os.getenv("EPHE_PATH", "")
HOUSE_SYSTEM = os.getenv("HOUSE_SYSTEM", "P")[:1] or "P"  # 'P' Placidus, 'E' Equal, 'W' Whole sign ...
ZODIAC_MODE = os.getenv("ZODIAC_MODE", "tropical").lower()  # "tropical" | "sidereal"
AYANAMSHA = os.getenv("AYANAMSHA", "Lahiri")

# Geocoding (OpenStreetMap Nominatim via geopy)
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "kundli-match/1.0")
GEOCODER_TIMEOUT = float(os.getenv("GEOCODER_TIMEOUT", "10"))
