"""
Haversine Algorithm - Calculate distance between two geographical points
Used to find donors nearest to the location requesting blood
"""

import logging
import math
from collections import namedtuple

EARTH_RADIUS_KM = 6371

logger = logging.getLogger(__name__)

# approximate=True means the point came from the city fallback table
Location = namedtuple('Location', ['latitude', 'longitude', 'approximate'])

# Approximate city centres, used when a record has no stored coordinates
CITY_COORDINATES = {
    'mumbai': (19.0760, 72.8777),
    'delhi': (28.7041, 77.1025),
    'bangalore': (12.9716, 77.5946),
    'chennai': (13.0827, 80.2707),
    'kolkata': (22.5726, 88.3639),
    'hyderabad': (17.3850, 78.4867),
    'pune': (18.5204, 73.8567),
    'ahmedabad': (23.0225, 72.5714),
    'jaipur': (26.9124, 75.7873),
    'surat': (21.1702, 72.8311),
    'lucknow': (26.8467, 80.9462),
    'kanpur': (26.4499, 80.3319),
    'nagpur': (21.1458, 79.0882),
    'indore': (22.7196, 75.8577),
    'bhopal': (23.2599, 77.4126),
    'visakhapatnam': (17.6868, 83.2185),
    'pimpri-chinchwad': (18.6298, 73.7997),
    'patna': (25.5941, 85.1376),
    'vadodara': (22.3072, 73.1812),
    'ghaziabad': (28.6692, 77.4538),
}

DEFAULT_CITY = 'mumbai'


def _clamp(value, lower, upper):
    return max(lower, min(upper, value))


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.
    Actual travel distance may be 20-50% longer depending on roads.

    Args:
        lat1, lon1: Latitude and longitude of point 1 (request location)
        lat2, lon2: Latitude and longitude of point 2 (donor)

    Returns:
        Distance in kilometers
    """
    lat1, lat2 = _clamp(lat1, -90.0, 90.0), _clamp(lat2, -90.0, 90.0)
    lon1, lon2 = _clamp(lon1, -180.0, 180.0), _clamp(lon2, -180.0, 180.0)

    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_KM


def city_to_coordinates(city):
    """
    Look up approximate coordinates for a city name.

    This is a fixed table, not a geocoding service. Unknown cities resolve
    to Mumbai with approximate=True, which yields plausible but wrong
    distances; callers can use the marker to exclude such records.

    Args:
        city: City name, case and surrounding whitespace are ignored

    Returns:
        Location(latitude, longitude, approximate)
    """
    key = (city or '').strip().lower()

    if key in CITY_COORDINATES:
        latitude, longitude = CITY_COORDINATES[key]
        return Location(latitude, longitude, False)

    logger.warning(f"Unknown city {city!r}, falling back to {DEFAULT_CITY} coordinates")
    latitude, longitude = CITY_COORDINATES[DEFAULT_CITY]
    return Location(latitude, longitude, True)


def resolve_location(latitude, longitude, city):
    """
    Prefer stored coordinates, otherwise fall back to the city table
    """
    if latitude is not None and longitude is not None:
        return Location(float(latitude), float(longitude), False)

    return city_to_coordinates(city)
