from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from bindwire.domain.enums import BindingKind, Scope
from bindwire.domain.lazy import Lazy
from bindwire.domain.models import DEFAULT_QUALIFIER, BindingEntry, Definition

T = TypeVar("T")

Params = Union[Sequence[Any], Mapping[str, Any]]


class IInjector(ABC):
    """Abstract interface of the resolution engine."""

    @abstractmethod
    def construct(self, dependency_type: Any, params: Optional[Params] = None) -> Any:
        """Return a fully injected instance of the requested type.

        Args:
            dependency_type: Class or dotted import path to resolve.
            params: Optional constructor overrides, positional or by name.
        """

    @abstractmethod
    def lazy(self, dependency_type: Any, params: Optional[Params] = None) -> Lazy:
        """Return a Lazy value that constructs the type when called."""

    @abstractmethod
    def set_module(self, module: "IModule", activate: bool = True) -> "IInjector":
        """Replace the active binding module.

        Raises:
            ContainerLockedError: If the instance store is locked.
        """

    @abstractmethod
    def get_module(self) -> "IModule":
        """Return the active binding module."""

    @abstractmethod
    def lock(self) -> None:
        """Lock the instance store against structural mutation."""


class IModule(ABC):
    """Abstract interface of a binding module."""

    @property
    @abstractmethod
    def bindings(self) -> Dict[Tuple[Any, str], BindingEntry]:
        """All bindings keyed by ``(type, qualifier)``."""

    @property
    @abstractmethod
    def identity(self) -> str:
        """Stable identity of the module configuration."""

    @abstractmethod
    def get_binding(self, dependency_type: Any, qualifier: str = DEFAULT_QUALIFIER) -> Optional[BindingEntry]:
        """Return the binding entry for a type and qualifier, if any."""

    @abstractmethod
    def activate(self, injector: IInjector) -> None:
        """Attach the module to the injector that will use it."""

    @abstractmethod
    def __call__(self, cls: type, bind: "IAspectBinder") -> "IAspectBinder":
        """Weave the module's pointcuts for ``cls`` into an aspect binder."""


class IMetadataProvider(ABC):
    """Abstract interface for reading injection metadata."""

    @abstractmethod
    def fetch(self, cls: type) -> Definition:
        """Return the Definition of a class.

        Raises:
            NotReadableError: If the class cannot be introspected.
        """


class IInstanceStore(ABC):
    """Abstract interface of the singleton instance store."""

    @abstractmethod
    def has(self, key: Hashable) -> bool:
        """Return whether an instance is stored under ``key``."""

    @abstractmethod
    def get(self, key: Hashable) -> Any:
        """Return the instance stored under ``key``."""

    @abstractmethod
    def set(self, key: Hashable, instance: Any) -> None:
        """Store an instance under ``key``."""

    @abstractmethod
    def get_or_create(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the instance stored under ``key``, creating and storing it when missing."""

    @abstractmethod
    def lock(self) -> None:
        """Lock the store. There is no way back."""

    @abstractmethod
    def is_locked(self) -> bool:
        """Return whether the store is locked."""


class IMethodInterceptor(ABC):
    """Cross-cutting behaviour wrapped around an intercepted method."""

    @abstractmethod
    def invoke(self, invocation: Any) -> Any:
        """Run around the invocation; call ``invocation.proceed()`` to continue."""


class IAspectBinder(ABC):
    """Decides which methods of a class are intercepted."""

    @abstractmethod
    def bind(self, cls: type, pointcuts: Sequence[Any]) -> "IAspectBinder":
        """Collect the interceptors that apply to the methods of ``cls``."""

    @abstractmethod
    def has_binding(self, cls: type, params: Mapping[str, Any]) -> bool:
        """Return whether any interceptor applies."""

    @property
    @abstractmethod
    def bindings(self) -> Dict[str, List[IMethodInterceptor]]:
        """Interceptors keyed by method name."""


class ICompiler(ABC):
    """Produces intercepted instances."""

    @abstractmethod
    def new_instance(self, cls: Type[T], params: Mapping[str, Any], bind: IAspectBinder) -> T:
        """Instantiate ``cls`` with its bound methods intercepted."""


class IProvider(ABC):
    """Factory object used by ``to-provider`` bindings."""

    @abstractmethod
    def get(self) -> Any:
        """Return the provided instance."""


class IPersistentCache(ABC):
    """Key-value cache of constructed instances that outlives the process."""

    @abstractmethod
    def fetch(self, key: str) -> Optional[Any]:
        """Return the cached instance or None."""

    @abstractmethod
    def save(self, key: str, instance: Any) -> None:
        """Cache an instance."""


class IInjectionLogger(ABC):
    """Receives diagnostics about each constructed instance."""

    @abstractmethod
    def log(
        self,
        cls: type,
        params: Mapping[str, Any],
        setters: Mapping[str, Mapping[str, Any]],
        instance: Any,
        bind: IAspectBinder,
    ) -> None:
        """Record one construction. Must not alter resolution."""


class IInstanceGetter(ABC):
    """Produces parameter values for class, provider and callable bindings."""

    @abstractmethod
    def get(self, scope: Scope, kind: BindingKind, target: Any, key: Hashable) -> Any:
        """Return an instance, reusing or storing it when singleton-scoped.

        Args:
            scope: Effective scope of the binding.
            kind: Binding kind (class, constructor, provider or callable).
            target: Class, provider or factory function to resolve.
            key: Instance store key of the binding.
        """
