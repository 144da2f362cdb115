"""
Route Service

Resolves the district names a delivery passes through, using
OpenRouteService directions and reverse geocoding with Nominatim as the
geocoding fallback.

Lookups are best-effort: every call carries a timeout capped by what is left
of the lookup's time budget, and any failure yields the names found so far
(possibly an empty list). Replies that parse as JSON but have the wrong shape
count as failures too. Nothing here raises to the caller.
"""

from typing import Optional, Dict, List
import logging
import time
import requests
from flask import current_app

logger = logging.getLogger(__name__)

# Raised while picking apart a reply that is valid JSON of the wrong shape
MALFORMED_REPLY_ERRORS = (ValueError, AttributeError, TypeError, KeyError, IndexError)
LOOKUP_ERRORS = (requests.exceptions.RequestException,) + MALFORMED_REPLY_ERRORS


def _is_point(value) -> bool:
    """A [lon, lat] pair of numbers; a trailing elevation is allowed"""
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        return False
    return all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value[:2])


def _first_text(mapping, *keys) -> Optional[str]:
    for key in keys:
        value = mapping.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class RouteService:
    """Service class for route-district lookups"""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'FreshGoods/1.0'
        })

    @property
    def api_key(self) -> str:
        return current_app.config.get('ORS_API_KEY', '')

    @property
    def timeout(self) -> float:
        return current_app.config.get('ROUTE_LOOKUP_TIMEOUT', 5)

    def get_route_points(self, start: Dict[str, float], end: Dict[str, float]) -> List[List[float]]:
        """
        Get the [lon, lat] geometry of the driving route between two points.

        Raises:
            requests.exceptions.RequestException: on transport or HTTP failure
            ValueError: on a response without a usable route geometry
        """
        response = self.session.post(
            current_app.config['ORS_DIRECTIONS_URL'],
            json={'coordinates': [[start['longitude'], start['latitude']],
                                  [end['longitude'], end['latitude']]]},
            headers={'Authorization': self.api_key, 'Content-Type': 'application/json'},
            timeout=self.timeout
        )
        response.raise_for_status()
        try:
            coordinates = response.json()['features'][0]['geometry']['coordinates']
        except MALFORMED_REPLY_ERRORS as e:
            raise ValueError(f"Malformed directions response: {str(e)}")
        if not isinstance(coordinates, list) or not coordinates or not all(map(_is_point, coordinates)):
            raise ValueError("Directions geometry is not a list of [lon, lat] pairs")
        return coordinates

    def _reverse_ors(self, lat: float, lon: float, timeout: float) -> Optional[str]:
        try:
            response = self.session.get(
                current_app.config['ORS_REVERSE_URL'],
                params={'api_key': self.api_key, 'point.lat': lat, 'point.lon': lon, 'size': 1},
                timeout=timeout
            )
            response.raise_for_status()
            features = response.json().get('features') or []
            if not features:
                return None
            properties = features[0].get('properties') or {}
            return _first_text(properties, 'locality', 'county', 'region')
        except LOOKUP_ERRORS as e:
            logger.debug(f"ORS reverse geocoding failed at {lat},{lon}: {str(e)}")
            return None

    def _reverse_nominatim(self, lat: float, lon: float, timeout: float) -> Optional[str]:
        try:
            response = self.session.get(
                current_app.config['NOMINATIM_REVERSE_URL'],
                params={'format': 'json', 'lat': lat, 'lon': lon, 'zoom': 10, 'addressdetails': 1},
                timeout=timeout
            )
            response.raise_for_status()
            address = response.json().get('address') or {}
            return _first_text(address, 'county', 'state', 'region', 'city')
        except LOOKUP_ERRORS as e:
            logger.warning(f"Both reverse geocoders failed at {lat},{lon}: {str(e)}")
            return None

    def _call_timeout(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self.timeout
        return min(self.timeout, deadline - time.monotonic())

    def reverse_geocode(self, lat: float, lon: float, deadline: Optional[float] = None) -> Optional[str]:
        """
        District-level name for a point, or None.

        With a monotonic `deadline` no call waits past it, and the fallback
        geocoder is skipped once it has passed.
        """
        for lookup in (self._reverse_ors, self._reverse_nominatim):
            timeout = self._call_timeout(deadline)
            if timeout <= 0:
                return None
            name = lookup(lat, lon, timeout)
            if name:
                return name
        return None

    def get_districts_between(self, start: Dict[str, float], end: Dict[str, float]) -> List[str]:
        """
        Get the distinct district names along the route, in travel order.

        Args:
            start: {'latitude', 'longitude'} of the pickup
            end: {'latitude', 'longitude'} of the drop-off

        Returns:
            List of names; empty when no point could be geocoded
        """
        budget = current_app.config.get('ROUTE_LOOKUP_BUDGET', 20)
        every = max(1, current_app.config.get('ROUTE_SAMPLE_EVERY', 10))
        deadline = time.monotonic() + budget

        try:
            points = self.get_route_points(start, end)[::every]
        except (requests.exceptions.RequestException, ValueError) as e:
            # Straight line: geocode just the two endpoints
            logger.error(f"Route directions lookup failed, using endpoints only: {str(e)}")
            points = [[start['longitude'], start['latitude']], [end['longitude'], end['latitude']]]

        names = []
        for point in points:
            if time.monotonic() >= deadline:
                logger.warning(f"Route lookup budget of {budget}s exhausted after {len(names)} districts")
                break
            name = self.reverse_geocode(point[1], point[0], deadline)
            if name and name not in names:
                names.append(name)

        logger.info(f"Resolved {len(names)} route districts")
        return names
