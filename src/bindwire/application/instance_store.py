import logging
from typing import Any, Callable, Dict, Hashable, Iterator, Optional

from bindwire.domain import ContainerLockedError, IInstanceStore

logger = logging.getLogger(__name__)


class InstanceStore(IInstanceStore):
    """Holds singleton instances keyed by binding identity.

    Once locked, the store refuses structural mutation: the owning injector
    cannot replace its module and the store cannot be cleared. Storing new
    singletons is still allowed.

    Attributes:
        _instances: Cache of singleton instances.
        _locked: Whether the store has been locked.
    """

    def __init__(self, instances: Optional[Dict[Hashable, Any]] = None) -> None:
        """Initialize the store.

        Args:
            instances: Optional initial instances, copied into the store.
        """
        self._instances: Dict[Hashable, Any] = dict(instances) if instances else {}
        self._locked = False

    def has(self, key: Hashable) -> bool:
        return key in self._instances

    def get(self, key: Hashable) -> Any:
        """Return the instance stored under ``key``.

        Raises:
            KeyError: If nothing is stored under ``key``.
        """
        return self._instances[key]

    def set(self, key: Hashable, instance: Any) -> None:
        self._instances[key] = instance

    def get_or_create(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the stored instance or create, store and return a new one.

        Args:
            key: Store key.
            factory: Function creating the instance when missing.

        Example:
            >>> store = InstanceStore()
            >>> db = store.get_or_create((Database, "*"), lambda: Database())
            >>> assert store.get_or_create((Database, "*"), lambda: Database()) is db
        """
        if key not in self._instances:
            self._instances[key] = factory()
            logger.debug("Storing singleton %s", key)
        return self._instances[key]

    def lock(self) -> None:
        if not self._locked:
            logger.debug("Instance store locked")
        self._locked = True

    def is_locked(self) -> bool:
        return self._locked

    def clear(self) -> None:
        """Drop every stored instance.

        Raises:
            ContainerLockedError: If the store is locked.
        """
        if self._locked:
            raise ContainerLockedError("Cannot clear a locked instance store")
        self._instances.clear()

    def copy(self) -> "InstanceStore":
        """Return a store holding the same instances, keeping the lock state."""
        clone = InstanceStore(self._instances)
        clone._locked = self._locked
        return clone

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._instances)
