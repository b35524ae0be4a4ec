import hashlib
import logging
import os
import pickle
from typing import Any, Dict, Optional

from bindwire.domain import IPersistentCache

logger = logging.getLogger(__name__)


class ArrayCache(IPersistentCache):
    """In-memory persistent cache, lives as long as the object does."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    def fetch(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def save(self, key: str, instance: Any) -> None:
        self._entries[key] = instance

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class PickleFileCache(IPersistentCache):
    """File-backed cache sharing instances between process invocations.

    Each entry is pickled into its own file named after a hash of the key.
    Instances that cannot be pickled are logged and left uncached.

    Attributes:
        directory: Directory holding the cache files.
    """

    def __init__(self, directory: str) -> None:
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, hashlib.sha256(key.encode()).hexdigest() + ".pickle")

    def fetch(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "rb") as f:
                return pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ImportError) as e:
            # Stale or corrupt entries are rebuilt
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            return None

    def save(self, key: str, instance: Any) -> None:
        path = self._path(key)
        tmp_path = f"{path}.{os.getpid()}.tmp"
        try:
            with open(tmp_path, "wb") as f:
                pickle.dump(instance, f)
            os.replace(tmp_path, path)
        except (OSError, pickle.PicklingError, AttributeError, TypeError) as e:
            logger.warning("Not caching %s: %s", key, e)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
