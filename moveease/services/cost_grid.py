# moveease/services/cost_grid.py
"""Synthetic moving-cost table over a fixed set of U.S. cities, used by the cost map."""
import math
from typing import List

from ..schemas import CostGridRow
from .estimator import round_dollars

EARTH_RADIUS_KM = 6371

HOME_SIZE_MULTIPLIERS = {"studio": 0.6, "1bedroom": 0.8, "2bedroom": 1.0, "3bedroom": 1.3}
DEFAULT_HOME_SIZE_MULTIPLIER = 1.5
DIY_SHARE = 0.6
FULL_SERVICE_SHARE = 1.7
MIN_POPULARITY = 20

DEFAULT_ORIGIN = "New York, NY"

# (label, code, (longitude, latitude), base hybrid cost, popularity)
CITY_CATALOG = [
    ("New York, NY", "NY", (-74.0060, 40.7128), 2500, 85),
    ("Los Angeles, CA", "CA", (-118.2437, 34.0522), 2800, 90),
    ("Chicago, IL", "IL", (-87.6298, 41.8781), 2200, 75),
    ("Houston, TX", "TX", (-95.3698, 29.7604), 2100, 80),
    ("Phoenix, AZ", "AZ", (-112.0740, 33.4484), 2000, 70),
    ("Philadelphia, PA", "PA", (-75.1652, 39.9526), 2300, 65),
    ("San Antonio, TX", "TX2", (-98.4936, 29.4241), 2050, 60),
    ("San Diego, CA", "CA2", (-117.1611, 32.7157), 2700, 75),
    ("Dallas, TX", "TX3", (-96.7970, 32.7767), 2150, 70),
    ("San Jose, CA", "CA3", (-121.8863, 37.3382), 3000, 65),
    ("Austin, TX", "TX4", (-97.7431, 30.2672), 2200, 85),
    ("Jacksonville, FL", "FL", (-81.6557, 30.3322), 2150, 60),
    ("Columbus, OH", "OH", (-82.9988, 39.9612), 1900, 55),
    ("Indianapolis, IN", "IN", (-86.1581, 39.7684), 1850, 50),
    ("Charlotte, NC", "NC", (-80.8431, 35.2271), 2050, 65),
    ("Seattle, WA", "WA", (-122.3321, 47.6062), 2700, 75),
    ("Denver, CO", "CO", (-104.9903, 39.7392), 2400, 75),
    ("Washington, DC", "DC", (-77.0369, 38.9072), 2600, 70),
    ("Boston, MA", "MA", (-71.0589, 42.3601), 2700, 65),
    ("Nashville, TN", "TN", (-86.7816, 36.1627), 2050, 70),
    ("Atlanta, GA", "GA", (-84.3880, 33.7490), 2150, 80),
    ("Miami, FL", "FL2", (-80.1918, 25.7617), 2300, 85),
    ("Portland, OR", "OR", (-122.6765, 45.5231), 2350, 65),
    ("Detroit, MI", "MI", (-83.0458, 42.3314), 1900, 50),
    ("Minneapolis, MN", "MN", (-93.2650, 44.9778), 2000, 55),
    ("Las Vegas, NV", "NV", (-115.1398, 36.1699), 2200, 70),
    ("New Orleans, LA", "LA", (-90.0715, 29.9511), 2100, 60),
    ("Cincinnati, OH", "OH2", (-84.5120, 39.1031), 1850, 45),
    ("Kansas City, MO", "MO", (-94.5786, 39.0997), 1900, 50),
    ("Salt Lake City, UT", "UT", (-111.8910, 40.7608), 2050, 55),
]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _city(label: str) -> str:
    return (label or "").split(",")[0].strip().lower()


def match_origin(origin: str):
    """Catalog entry whose city name contains the city part of ``origin``; first entry otherwise."""
    city = _city(origin)
    for entry in CITY_CATALOG:
        if city in _city(entry[0]):
            return entry
    return CITY_CATALOG[0]


def decayed_popularity(popularity: int, distance_km: float) -> int:
    return max(MIN_POPULARITY, round_dollars(popularity - distance_km / 500))


def cost_grid(origin: str = DEFAULT_ORIGIN, home_size: str = "2bedroom") -> List[CostGridRow]:
    _, _, (origin_lon, origin_lat), _, _ = match_origin(origin)
    multiplier = HOME_SIZE_MULTIPLIERS.get(home_size, DEFAULT_HOME_SIZE_MULTIPLIER)

    rows = []
    for label, code, (lon, lat), base_cost, popularity in CITY_CATALOG:
        distance_km = haversine_km(origin_lat, origin_lon, lat, lon)
        base = round_dollars(base_cost * multiplier)
        hybrid = round_dollars(base * (1 + distance_km / 1000))
        rows.append(
            CostGridRow(
                state=label,
                code=code,
                coordinates=(lon, lat),
                diy_cost=round_dollars(hybrid * DIY_SHARE),
                hybrid_cost=hybrid,
                full_service_cost=round_dollars(hybrid * FULL_SERVICE_SHARE),
                popularity=decayed_popularity(popularity, distance_km),
            )
        )
    return rows
