import inspect
from typing import Any, Hashable

from bindwire.domain import (
    BindingKind,
    DIException,
    IInjector,
    IInstanceGetter,
    IInstanceStore,
    InstantiationError,
    Scope,
)


class InstanceGetter(IInstanceGetter):
    """Resolves class, constructor, provider and callable bindings with scope handling.

    Attributes:
        _injector: Injector used for recursive construction.
        _store: Instance store holding singletons.
    """

    def __init__(self, injector: IInjector, store: IInstanceStore) -> None:
        self._injector = injector
        self._store = store

    def get(self, scope: Scope, kind: BindingKind, target: Any, key: Hashable) -> Any:
        """Return an instance for a binding.

        Singleton-scoped bindings are served from the store when present and
        stored after creation otherwise.

        Args:
            scope: Effective scope of the binding.
            kind: PROVIDER for provider bindings, CALLABLE for factory functions;
                anything else constructs ``target``.
            target: Class, provider or factory function.
            key: Instance store key.
        """
        if scope == Scope.SINGLETON:
            return self._store.get_or_create(key, lambda: self._create(kind, target, key))
        return self._create(kind, target, key)

    def _create(self, kind: BindingKind, target: Any, key: Hashable) -> Any:
        if kind == BindingKind.PROVIDER:
            return self.provide(target)
        if kind == BindingKind.CALLABLE:
            return self.call(target, key)
        return self._injector.construct(target)

    def provide(self, provider: Any) -> Any:
        """Call ``get()`` on a provider, constructing the provider first if it is a class.

        Raises:
            InstantiationError: If the provider's ``get()`` raises a non-DI error.
        """
        if inspect.isclass(provider):
            provider = self._injector.construct(provider)
        try:
            return provider.get()
        except DIException:
            raise
        except Exception as e:
            raise InstantiationError(type(provider), f"provider get() failed: {e}") from e

    @staticmethod
    def call(func: Any, key: Hashable) -> Any:
        """Call a factory function bound with ``to_callable()``.

        Raises:
            InstantiationError: If the function raises a non-DI error.
        """
        try:
            return func()
        except DIException:
            raise
        except Exception as e:
            bound_type = key[0] if isinstance(key, tuple) and key else func
            raise InstantiationError(bound_type, f"callable binding failed: {e}") from e
