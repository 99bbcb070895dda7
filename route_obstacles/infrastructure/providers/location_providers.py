import json
import logging
import math
import os
import time
from typing import Callable, Optional

from route_obstacles.domain.errors import AcquisitionError, PermissionDeniedError
from route_obstacles.domain.models.obstacle import Position
from route_obstacles.domain.providers.location_provider import LocationProvider
from route_obstacles.domain.providers.permissions import Permission, PermissionBroker

logger = logging.getLogger(__name__)


def _validated(latitude, longitude) -> Position:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise AcquisitionError(f"Invalid coordinates: {latitude!r}, {longitude!r}") from e

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise AcquisitionError(f"Invalid coordinates: {lat}, {lon}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise AcquisitionError(f"Coordinates out of range: {lat}, {lon}")
    return Position(lat, lon)


class StaticLocationProvider(LocationProvider):
    """
    Reports a fixed, configured position (a workstation at a known site).
    """

    def __init__(self, position: Position, permissions: PermissionBroker):
        self._position = _validated(position.latitude, position.longitude)
        self._permissions = permissions

    def current_position(self) -> Position:
        if not self._permissions.request(Permission.LOCATION):
            raise PermissionDeniedError("Location permission denied")
        return self._position


class FixFileLocationProvider(LocationProvider):
    """
    Reads the latest GPS fix published by a location daemon.

    The fix file is a JSON object with ``latitude``, ``longitude`` and an
    optional ``timestamp`` (seconds since the epoch). A fix older than
    ``max_age`` seconds counts as a timeout.
    """

    def __init__(
        self,
        fix_path: str,
        permissions: PermissionBroker,
        max_age: Optional[float] = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            fix_path (str): Path of the JSON fix file
            permissions (PermissionBroker): Grants the location permission
            max_age (Optional[float]): Oldest acceptable fix in seconds, None
                to accept any age
            clock (Callable[[], float]): Seconds since the epoch
        """
        self.fix_path = os.path.abspath(fix_path)
        self._permissions = permissions
        self._max_age = max_age
        self._clock = clock

    def current_position(self) -> Position:
        if not self._permissions.request(Permission.LOCATION):
            raise PermissionDeniedError("Location permission denied")

        try:
            with open(self.fix_path, 'r', encoding='utf-8') as f:
                fix = json.load(f)
        except (OSError, ValueError) as e:
            raise AcquisitionError(f"No GPS fix available: {e}") from e

        if not isinstance(fix, dict):
            raise AcquisitionError("GPS fix is not a JSON object")

        timestamp = fix.get('timestamp')
        if self._max_age is not None and timestamp is not None:
            try:
                age = self._clock() - float(timestamp)
            except (TypeError, ValueError) as e:
                raise AcquisitionError(f"Invalid fix timestamp: {timestamp!r}") from e
            if not math.isfinite(age):
                raise AcquisitionError(f"Invalid fix timestamp: {timestamp!r}")
            if age > self._max_age:
                raise AcquisitionError(f"GPS fix is {age:.0f}s old")

        position = _validated(fix.get('latitude'), fix.get('longitude'))
        logger.debug(f"Position from {self.fix_path}: {position}")
        return position
