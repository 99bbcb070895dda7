import json
import logging
from typing import List, Sequence

from route_obstacles.domain.errors import StorageReadError, StorageWriteError
from route_obstacles.domain.models.obstacle import Obstacle
from route_obstacles.domain.repositories.key_value_store import KeyValueStore
from route_obstacles.domain.repositories.obstacle_store import ObstacleStore

logger = logging.getLogger(__name__)


class KeyValueObstacleStore(ObstacleStore):
    """
    Concrete ObstacleStore keeping the whole collection as one JSON array
    under a single key.

    Each element carries ``id``, ``title``, ``description``, ``latitude``,
    ``longitude`` and ``imageUri`` (empty string for "no image"). Field names
    are part of the on-disk format and must not change without a migration.
    """

    STORAGE_KEY = 'obstacles'

    def __init__(self, substrate: KeyValueStore, key: str = STORAGE_KEY):
        """
        Args:
            substrate (KeyValueStore): Persistent key-value backend
            key (str): Entry holding the serialized collection
        """
        self._substrate = substrate
        self._key = key

    def read_all(self) -> List[Obstacle]:
        try:
            blob = self._substrate.get_item(self._key)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Failed to read '{self._key}': {e}") from e

        if not blob:
            return []

        try:
            records = json.loads(blob)
        except ValueError as e:
            raise StorageReadError(f"Stored obstacles are not valid JSON: {e}") from e

        if not isinstance(records, list):
            raise StorageReadError("Stored obstacles are not a JSON array")

        obstacles = []
        for index, record in enumerate(records):
            try:
                obstacles.append(Obstacle.from_record(record))
            except (KeyError, TypeError, ValueError) as e:
                raise StorageReadError(
                    f"Stored obstacle #{index} is malformed: {e!r}"
                ) from e

        logger.debug(f"Read {len(obstacles)} obstacles from '{self._key}'")
        return obstacles

    def write_all(self, obstacles: Sequence[Obstacle]) -> None:
        blob = json.dumps([o.to_record() for o in obstacles], ensure_ascii=False)
        try:
            self._substrate.set_item(self._key, blob)
        except OSError as e:
            raise StorageWriteError(f"Failed to write '{self._key}': {e}") from e
        logger.debug(f"Wrote {len(obstacles)} obstacles to '{self._key}'")
