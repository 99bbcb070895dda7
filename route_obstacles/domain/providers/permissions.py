import enum
from abc import ABC, abstractmethod


class Permission(enum.Enum):
    LOCATION = "location"
    MEDIA_LIBRARY = "media_library"
    CAMERA = "camera"


class PermissionBroker(ABC):
    """
    Grants or refuses runtime permissions for platform capabilities.
    """

    @abstractmethod
    def request(self, permission: Permission) -> bool:
        """
        Request a permission, prompting only if it is not already granted.

        Args:
            permission (Permission): Capability being requested

        Returns:
            bool: Whether the permission is granted
        """
        pass
