from abc import ABC, abstractmethod

from route_obstacles.domain.models.obstacle import Position


class LocationProvider(ABC):

    @abstractmethod
    def current_position(self) -> Position:
        """
        Acquire the current device position.

        Returns:
            Position: Current position

        Raises:
            PermissionDeniedError: If location permission is refused
            AcquisitionError: If no position could be obtained
        """
        pass
