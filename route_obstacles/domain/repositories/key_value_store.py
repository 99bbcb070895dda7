from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract persistent key-value substrate holding string values.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key (str): Entry key

        Returns:
            Optional[str]: Stored value, or None if the key was never written

        Raises:
            OSError: If the substrate cannot be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Atomically replace the value stored under a key.

        Args:
            key (str): Entry key
            value (str): New value

        Raises:
            OSError: If the substrate cannot be written
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is not an error.

        Args:
            key (str): Entry key
        """
        pass
