import enum
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Position:
    """Geographic position in decimal degrees."""
    latitude: float
    longitude: float

    def __str__(self):
        return f"{self.latitude}, {self.longitude}"


# Stored when no real position was obtained. Indistinguishable on disk from a
# genuine fix at (0, 0); callers must not treat it as a real location.
SENTINEL_POSITION = Position(0.0, 0.0)


def _has_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


class ImageSource(enum.Enum):
    NONE = "none"
    LIBRARY = "library"
    CAMERA = "camera"


@dataclass(frozen=True)
class Obstacle:
    """
    Domain model representing an obstacle recorded on a route.
    Immutable once created; the registry is the only place new ones are built.
    """
    id: str
    title: str
    description: str
    latitude: float = SENTINEL_POSITION.latitude
    longitude: float = SENTINEL_POSITION.longitude
    image_uri: Optional[str] = None

    def __post_init__(self):
        """
        Validate obstacle attributes after initialization.
        """
        if not _has_text(self.id):
            raise ValueError("Obstacle must have an id")
        if not _has_text(self.title) or not _has_text(self.description):
            raise ValueError("Obstacle must have a title and a description")

    @property
    def position(self) -> Position:
        return Position(self.latitude, self.longitude)

    @property
    def has_position(self) -> bool:
        """False when the stored coordinates are the sentinel."""
        return self.position != SENTINEL_POSITION

    def to_record(self) -> Dict[str, Any]:
        """
        Encode the obstacle in the persisted record layout.

        Returns:
            dict: Record with ``imageUri`` set to an empty string when absent
        """
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'imageUri': self.image_uri or '',
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Obstacle':
        """
        Decode a persisted record.

        Args:
            record (Mapping[str, Any]): One element of the stored JSON array

        Returns:
            Obstacle: The decoded obstacle

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field holds an unusable value
        """
        latitude = record['latitude']
        longitude = record['longitude']
        for name, value in (('latitude', latitude), ('longitude', longitude)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")

        texts = {name: record[name] for name in ('id', 'title', 'description')}
        image_uri = record.get('imageUri', '')
        if image_uri is not None:
            texts['imageUri'] = image_uri
        for name, value in texts.items():
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {value!r}")

        return cls(
            id=texts['id'],
            title=texts['title'],
            description=texts['description'],
            latitude=float(latitude),
            longitude=float(longitude),
            image_uri=image_uri or None,
        )
