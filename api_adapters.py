# Contains the adapter classes for communicating with the external geocoding
# and routing APIs.

import logging
import os
from abc import ABC, abstractmethod

import requests
from dotenv import load_dotenv

from api_structures import Coordinates, RouteInfo, RouteProfile
from errors import NoRouteError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

# --- API Configuration ---
# Endpoints can be overridden from the environment (or a .env file).
load_dotenv()
EIRCODE_API_URL = os.getenv(
    "EIRCODE_API_URL", "https://api.vision-net.ie/eircode/v1/search")
NOMINATIM_URL = os.getenv(
    "NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
OSRM_BASE_URL = os.getenv("OSRM_BASE_URL", "https://routing.openstreetmap.de")
GEOCODER_USER_AGENT = os.getenv(
    "GEOCODER_USER_AGENT", "commute-carbon/0.1 (commute footprint and job map)")
DEFAULT_TIMEOUT_SECONDS = "10"


def read_timeout() -> float:
    """Reads HTTP_TIMEOUT_SECONDS, failing loudly on a value that isn't a positive number."""
    raw = os.getenv("HTTP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    try:
        timeout = float(raw)
    except ValueError:
        timeout = 0.0
    if timeout <= 0:
        raise ValueError(
            f"FATAL ERROR: HTTP_TIMEOUT_SECONDS must be a positive number of seconds, got '{raw}'.")
    return timeout


class AddressResolver(ABC):
    """
    Abstract Base Class for the geocoding backends.
    Callers only ever see resolve(), whatever the backend's payload looks like.
    """
    name = "geocoder"

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else read_timeout()

    @abstractmethod
    def resolve(self, query: str) -> Coordinates:
        """Converts an address or postal code into our standard Coordinates object.

        Raises ServiceError when the service can't be reached or answers with a
        non-success status, NotFoundError when it answers without a location.
        """
        pass


class EircodeAdapter(AddressResolver):
    """Postal-code lookup returning a single nested Address object."""
    name = "eircode"

    def __init__(self, url: str = EIRCODE_API_URL, timeout: float | None = None):
        super().__init__(timeout)
        self.url = url

    def resolve(self, query: str) -> Coordinates:
        logger.debug("[Eircode] Geocoding '%s'", query)
        try:
            response = requests.get(
                self.url, params={'eircode': query}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("[Eircode] Lookup failed for '%s': %s", query, e)
            raise ServiceError("Failed to fetch coordinates") from e

        address = data.get('Address') if isinstance(data, dict) else None
        if not address or not address.get('Latitude') or not address.get('Longitude'):
            raise NotFoundError("Invalid eircode or no coordinates found")
        try:
            # *** NORMALIZATION to our standard Coordinates object ***
            return Coordinates(lon=float(address['Longitude']), lat=float(address['Latitude']))
        except (TypeError, ValueError) as e:
            raise NotFoundError("Invalid eircode or no coordinates found") from e


class NominatimAdapter(AddressResolver):
    """Free-text lookup returning a ranked list of candidates; the first one wins."""
    name = "nominatim"

    def __init__(self, url: str = NOMINATIM_URL, timeout: float | None = None,
                 country: str = "Ireland"):
        super().__init__(timeout)
        self.url = url
        self.country = country

    def resolve(self, query: str) -> Coordinates:
        logger.debug("[Nominatim] Geocoding '%s'", query)
        params = {
            'format': 'json',
            'country': self.country,
            'q': query,
        }
        headers = {'User-Agent': GEOCODER_USER_AGENT}
        try:
            response = requests.get(
                self.url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("[Nominatim] Lookup failed for '%s': %s", query, e)
            raise ServiceError("Failed to fetch coordinates") from e

        if not isinstance(data, list) or not data:
            raise NotFoundError(f"No location found for '{query}'")
        try:
            best = data[0]
            # *** NORMALIZATION to our standard Coordinates object ***
            return Coordinates(lon=float(best['lon']), lat=float(best['lat']))
        except (KeyError, TypeError, ValueError) as e:
            raise NotFoundError(f"No location found for '{query}'") from e


GEOCODERS = {
    EircodeAdapter.name: EircodeAdapter,
    NominatimAdapter.name: NominatimAdapter,
}


def make_resolver(name: str) -> AddressResolver:
    """Builds the geocoding backend selected by configuration."""
    try:
        adapter_class = GEOCODERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown geocoder '{name}'. Choose one of: {', '.join(GEOCODERS)}.") from None
    return adapter_class()


class RouteDistanceEstimator(ABC):
    """Abstract Base Class for the routing backends."""

    @abstractmethod
    def estimate(self, start_coords: Coordinates, end_coords: Coordinates,
                 profile: RouteProfile) -> float:
        """Returns the length in meters of the best route between two points.

        Raises ServiceError on a failed request and NoRouteError when the
        service answers without a route.
        """
        pass


class OsrmAdapter(RouteDistanceEstimator):
    """The adapter for the public OSRM routing servers."""
    ROUTE_PATH = "/routed-{profile}/route/v1/{profile}/{start};{end}"

    def __init__(self, base_url: str = OSRM_BASE_URL, timeout: float | None = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if timeout is not None else read_timeout()

    def route_url(self, start_coords: Coordinates, end_coords: Coordinates,
                  profile: RouteProfile) -> str:
        profile = RouteProfile(profile)
        return self.base_url + self.ROUTE_PATH.format(
            profile=profile.value,
            start=start_coords.as_lon_lat(),
            end=end_coords.as_lon_lat())

    def get_route(self, start_coords: Coordinates, end_coords: Coordinates,
                  profile: RouteProfile) -> RouteInfo:
        url = self.route_url(start_coords, end_coords, profile)
        # Only the best route's length is needed.
        params = {
            'overview': 'false',
            'alternatives': 'false',
            'steps': 'false',
        }
        logger.debug("[OSRM] Requesting route %s", url)
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("[OSRM] Route request failed: %s", e)
            raise ServiceError("Failed to fetch route data") from e

        if not isinstance(data, dict) or data.get('code') != 'Ok' or not data.get('routes'):
            raise NoRouteError("No route found")
        try:
            # *** NORMALIZATION to our standard RouteInfo object ***
            return RouteInfo(distance_m=float(data['routes'][0]['distance']))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise NoRouteError("No route found") from e

    def estimate(self, start_coords: Coordinates, end_coords: Coordinates,
                 profile: RouteProfile) -> float:
        return self.get_route(start_coords, end_coords, profile).distance_m
