import logging
from typing import Any, Dict, Iterator, List, Tuple

from bindwire.domain import Definition, DIException, InstantiationError, PreDestroyError

logger = logging.getLogger(__name__)


class LifecycleTracker:
    """Runs post-construct hooks and tracks pre-destroy hooks.

    Registered instances are held by strong reference until teardown, so
    every registered hook fires exactly once, in registration order.

    Attributes:
        _pre_destroy: Registered ``(instance, method_name)`` pairs keyed by instance id.
    """

    def __init__(self) -> None:
        self._pre_destroy: Dict[int, Tuple[Any, str]] = {}

    def apply(self, instance: Any, definition: Definition) -> None:
        """Run the post-construct hook and register the pre-destroy hook.

        Args:
            instance: Fully injected instance.
            definition: Definition of the instance's class.

        Raises:
            InstantiationError: If the post-construct hook raises.
        """
        if definition.post_construct:
            self.post_construct(instance, definition.post_construct)
        if definition.pre_destroy:
            self.register(instance, definition.pre_destroy)

    def post_construct(self, instance: Any, method_name: str) -> None:
        try:
            getattr(instance, method_name)()
        except DIException:
            raise
        except Exception as e:
            raise InstantiationError(type(instance), f"post-construct {method_name}() failed: {e}") from e

    def register(self, instance: Any, method_name: str) -> None:
        """Register a pre-destroy hook.

        Registering the same instance again replaces its method name but
        keeps its original position.
        """
        self._pre_destroy[id(instance)] = (instance, method_name)

    def notify_pre_shutdown(self) -> None:
        """Invoke every registered pre-destroy hook in registration order.

        The registry is emptied first, so hooks run once even if teardown is
        triggered again. A failing hook does not stop the sweep.

        Raises:
            PreDestroyError: After the sweep, if any hook raised.
        """
        registered = list(self._pre_destroy.values())
        self._pre_destroy.clear()
        errors: List[Tuple[Any, str, BaseException]] = []
        for instance, method_name in registered:
            try:
                getattr(instance, method_name)()
            except Exception as e:
                logger.exception("Pre-destroy %s.%s() failed", type(instance).__name__, method_name)
                errors.append((instance, method_name, e))
        if errors:
            raise PreDestroyError(errors)

    def __len__(self) -> int:
        return len(self._pre_destroy)

    def __iter__(self) -> Iterator[Tuple[Any, str]]:
        return iter(list(self._pre_destroy.values()))
