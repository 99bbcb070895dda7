from abc import ABC, abstractmethod
from typing import List, Sequence

from route_obstacles.domain.models.obstacle import Obstacle


class ObstacleStore(ABC):
    """
    Abstract base class defining the contract for obstacle persistence.
    The whole collection is read and written as one unit.
    """

    @abstractmethod
    def read_all(self) -> List[Obstacle]:
        """
        Read the persisted collection.

        Returns:
            List[Obstacle]: Stored obstacles in insertion order, empty if
            nothing has ever been written

        Raises:
            StorageReadError: If the stored collection cannot be read or decoded
        """
        pass

    @abstractmethod
    def write_all(self, obstacles: Sequence[Obstacle]) -> None:
        """
        Atomically replace the persisted collection.

        Args:
            obstacles (Sequence[Obstacle]): Full collection snapshot

        Raises:
            StorageWriteError: If the collection cannot be written
        """
        pass
