import logging
from typing import Callable, Iterable, Set

from route_obstacles.domain.providers.permissions import Permission, PermissionBroker

logger = logging.getLogger(__name__)


class ConfiguredPermissionBroker(PermissionBroker):
    """
    Grants exactly the permissions listed in the configuration.
    """

    def __init__(self, granted: Iterable[Permission]):
        self._granted: Set[Permission] = set(granted)

    def request(self, permission: Permission) -> bool:
        granted = permission in self._granted
        if not granted:
            logger.warning(f"Permission '{permission.value}' is not granted")
        return granted


class PromptPermissionBroker(PermissionBroker):
    """
    Asks the user once per permission and remembers the answer for the
    lifetime of the broker.
    """

    PROMPTS = {
        Permission.LOCATION: "Allow access to your location?",
        Permission.MEDIA_LIBRARY: "Allow access to your photo library?",
        Permission.CAMERA: "Allow access to the camera?",
    }

    def __init__(
        self,
        ask: Callable[[str], bool],
        granted: Iterable[Permission] = (),
    ):
        """
        Args:
            ask (Callable[[str], bool]): Shows a question, returns the answer
            granted (Iterable[Permission]): Permissions granted without asking
        """
        self._ask = ask
        self._answers = {permission: True for permission in granted}

    def request(self, permission: Permission) -> bool:
        if permission not in self._answers:
            self._answers[permission] = bool(self._ask(self.PROMPTS[permission]))
        granted = self._answers[permission]
        if not granted:
            logger.warning(f"Permission '{permission.value}' was refused")
        return granted
