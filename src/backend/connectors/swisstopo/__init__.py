"""Swisstopo geocoding connector (network lives here; rules only see the Geocoder protocol)."""

from .client import SwisstopoGeocoder
from .config import SwisstopoConfig, get_swisstopo_config

__all__ = ["SwisstopoGeocoder", "SwisstopoConfig", "get_swisstopo_config"]
