#Marks routing as a package.
#Re-exports the clean public APIs (haversine distance, Nominatim geocoding)
#so other modules import from routing without knowing internal file names.
#No business logic.

from .geodesic import LatLon, coerce_location, haversine_km, distance_between
from .nominatim_client import NominatimClient, GeocodingError, geocode

__all__ = [
           "LatLon",
           "coerce_location",
           "haversine_km",
           "distance_between",
           "NominatimClient",
           "GeocodingError",
           "geocode",
           ]
