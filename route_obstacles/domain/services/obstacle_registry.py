import logging
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

from route_obstacles.domain.errors import (
    ObstacleLoadError,
    ObstaclePersistError,
    ObstacleValidationError,
    ProviderError,
    StorageReadError,
    StorageWriteError,
)
from route_obstacles.domain.models.obstacle import (
    SENTINEL_POSITION,
    ImageSource,
    Obstacle,
    Position,
)
from route_obstacles.domain.providers.image_provider import ImageProvider
from route_obstacles.domain.providers.location_provider import LocationProvider
from route_obstacles.domain.repositories.obstacle_store import ObstacleStore

logger = logging.getLogger(__name__)


class ObstacleRegistry:
    """
    Application service owning the obstacle collection.

    Validates input, gathers position and image from the providers, and
    persists the full collection through the store after every mutation.
    The in-memory collection only changes once the store has accepted the
    new snapshot, so a failed write leaves the last persisted state visible.
    """

    def __init__(
        self,
        store: ObstacleStore,
        location_provider: LocationProvider,
        image_provider: ImageProvider,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the registry with its collaborators.

        Args:
            store (ObstacleStore): Persistence for the full collection
            location_provider (LocationProvider): Source of the current position
            image_provider (ImageProvider): Source of obstacle photos
            clock (Callable[[], float]): Seconds since the epoch, used for ids
        """
        self._store = store
        self._location_provider = location_provider
        self._image_provider = image_provider
        self._clock = clock
        self._obstacles: Tuple[Obstacle, ...] = ()
        self._lock = threading.Lock()

    def load(self) -> List[Obstacle]:
        """
        Replace the in-memory collection with the persisted one.

        Returns:
            List[Obstacle]: The loaded collection

        Raises:
            ObstacleLoadError: If the store cannot be read; the collection is
            left empty
        """
        with self._lock:
            try:
                obstacles = self._store.read_all()
            except StorageReadError as e:
                self._obstacles = ()
                logger.error(f"Failed to load obstacles: {e}")
                raise ObstacleLoadError(f"Unable to load obstacles: {e}") from e

            self._obstacles = tuple(obstacles)
            logger.debug(f"Loaded {len(self._obstacles)} obstacles")
            return list(self._obstacles)

    def list(self) -> Tuple[Obstacle, ...]:
        """
        Snapshot of the current collection in insertion order.
        """
        return self._obstacles

    def create(
        self,
        title: str,
        description: str,
        wants_image: ImageSource = ImageSource.NONE,
    ) -> Obstacle:
        """
        Create, store and return a new obstacle.

        Args:
            title (str): Obstacle title, must not be blank
            description (str): Obstacle description, must not be blank
            wants_image (ImageSource): Where to obtain a photo, if anywhere

        Returns:
            Obstacle: The newly created and persisted obstacle. Its
            coordinates are ``SENTINEL_POSITION`` when no position was obtained.

        Raises:
            ObstacleValidationError: If title or description is blank
            ObstaclePersistError: If the updated collection cannot be written
        """
        title = (title or '').strip()
        description = (description or '').strip()
        if not title or not description:
            raise ObstacleValidationError("Title and description are required")

        position = self._acquire_position()
        image_uri = self._acquire_image(wants_image)

        with self._lock:
            obstacle = Obstacle(
                id=self._next_id(self._obstacles),
                title=title,
                description=description,
                latitude=position.latitude,
                longitude=position.longitude,
                image_uri=image_uri,
            )
            updated = self._obstacles + (obstacle,)
            try:
                self._store.write_all(updated)
            except StorageWriteError as e:
                logger.error(f"Failed to save obstacle {obstacle.id}: {e}")
                if image_uri:
                    self._discard_image(image_uri)
                raise ObstaclePersistError(f"Unable to save obstacle: {e}") from e

            self._obstacles = updated

        logger.info(f"Created obstacle {obstacle.id} ({obstacle.title})")
        return obstacle

    def delete(self, obstacle_id: str) -> Optional[Obstacle]:
        """
        Delete an obstacle by id. Deleting an unknown id changes nothing.

        Args:
            obstacle_id (str): Id of the obstacle to delete

        Returns:
            Optional[Obstacle]: The removed obstacle, or None if absent

        Raises:
            ObstaclePersistError: If the updated collection cannot be written
        """
        with self._lock:
            removed = next((o for o in self._obstacles if o.id == obstacle_id), None)
            if removed is None:
                logger.debug(f"Obstacle {obstacle_id} not found, nothing deleted")
                return None

            updated = tuple(o for o in self._obstacles if o.id != obstacle_id)
            try:
                self._store.write_all(updated)
            except StorageWriteError as e:
                logger.error(f"Failed to delete obstacle {obstacle_id}: {e}")
                raise ObstaclePersistError(f"Unable to delete obstacle: {e}") from e

            self._obstacles = updated

        logger.info(f"Deleted obstacle {obstacle_id}")
        if removed.image_uri:
            self._discard_image(removed.image_uri)
        return removed

    def _acquire_position(self) -> Position:
        try:
            return self._location_provider.current_position()
        except ProviderError as e:
            logger.warning(f"No position for new obstacle, using sentinel: {e!r}")
            return SENTINEL_POSITION

    def _acquire_image(self, source: ImageSource) -> Optional[str]:
        if source is ImageSource.NONE:
            return None

        try:
            if source is ImageSource.LIBRARY:
                return self._image_provider.pick_from_library()
            return self._image_provider.capture_from_camera()
        except ProviderError as e:
            logger.warning(f"No image for new obstacle: {e!r}")
            return None

    def _discard_image(self, image_uri: str) -> None:
        try:
            self._image_provider.discard(image_uri)
        except OSError as e:
            logger.warning(f"Could not remove image {image_uri}: {e}")

    def _next_id(self, existing: Sequence[Obstacle]) -> str:
        """
        Millisecond timestamp, bumped until unused in the collection.
        """
        taken = {o.id for o in existing}
        candidate = int(self._clock() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)
