import logging
import os
import re
import tempfile
from typing import Optional

from route_obstacles.domain.repositories.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value substrate keeping each entry in its own file under a directory.

    Writes go to a temporary file in the same directory which then replaces
    the entry, so a reader sees either the old or the new value, never a
    partial one.
    """

    KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')
    FILE_SUFFIX = '.json'

    def __init__(self, base_directory: str):
        """
        Initialize the store with a base directory for its entries.

        Args:
            base_directory (str): Directory holding one file per key
        """
        self.base_directory = os.path.abspath(base_directory)
        os.makedirs(self.base_directory, exist_ok=True)

    def _path_for(self, key: str) -> str:
        if not self.KEY_PATTERN.match(key) or key.startswith('.'):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.base_directory, f"{key}{self.FILE_SUFFIX}")

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{key}.", suffix='.tmp', dir=self.base_directory
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug(f"Wrote {len(value)} characters to {path}")

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
