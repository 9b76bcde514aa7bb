#Purpose: The Nominatim (OpenStreetMap) geocoding "adapter/client".
#Sole responsibility: turn city/state/country text into (lat, lng) via HTTP.
#Encapsulates Nominatim-specific details:
#query string construction ("city, state, country")
#the User-Agent header Nominatim's usage policy requires
#timeouts/error handling
#parsing response JSON into our internal (lat, lng) shape
#Used upstream when disasters, tasks and volunteer profiles are created.
#The ranking engine never calls it.

from dotenv import load_dotenv
import logging
import os
from typing import Optional
import requests

from .geodesic import LatLon

# Read Nominatim settings from environment
# Example in .env:
# NOMINATIM_BASE_URL=https://nominatim.openstreetmap.org
load_dotenv()
BASE_URL = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "DisasterVolunteerApp/1.0")

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """Raised when a place cannot be turned into coordinates."""
    pass


class NominatimClient:
    """
    Nominatim Adapter / Client

    Sole responsibility:
    - Talk to Nominatim /search via HTTP
    - Return the first hit as an internal (lat, lng) pair
    """
    def __init__(self, base_url: Optional[str] = None, user_agent: Optional[str] = None, timeout: int = 5):
        self.base_url = (base_url or BASE_URL).rstrip("/")
        self.user_agent = user_agent or USER_AGENT
        self.timeout = timeout #seconds to wait for Nominatim before giving up

    @staticmethod
    def build_query(city: Optional[str], state: Optional[str], country: Optional[str]) -> str:
        """Join the non-empty location parts as 'city, state, country'."""
        return ", ".join(part.strip() for part in (city, state, country) if part and part.strip())

    def geocode(self, city: Optional[str] = None, state: Optional[str] = None, country: Optional[str] = None) -> LatLon:
        """
        Calls the Nominatim /search endpoint and returns (lat, lng) of the best match.

        Raises:
            GeocodingError: no location parts given, HTTP failure, or no result.
        """
        query = self.build_query(city, state, country)
        if not query:
            raise GeocodingError("Location information is required")

        try:
            response = requests.get(
                f"{self.base_url}/search",
                params={
                    "q": query,
                    "format": "json",
                    "limit": 1,
                },
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Geocoding request for %r failed: %s", query, exc)
            raise GeocodingError("Geocoding request failed") from exc

        if not response.ok:
            logger.error("Geocoding request for %r returned HTTP %s", query, response.status_code)
            raise GeocodingError("Geocoding request failed")

        data = response.json()
        if not data:
            raise GeocodingError(f"Location not found: {query}")

        #Nominatim returns lat/lon as strings
        best = data[0]
        return (float(best["lat"]), float(best["lon"]))


def geocode(city: Optional[str], state: Optional[str], country: Optional[str]) -> LatLon:
    """Module-level shortcut using a default client."""
    return NominatimClient().geocode(city, state, country)
