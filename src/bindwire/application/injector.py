import builtins
import copy
import importlib
import inspect
import logging
import threading
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Set, Tuple, Type, TypeVar, Union

from bindwire.application.aop import AspectBinder, Compiler
from bindwire.application.instance_getter import InstanceGetter
from bindwire.application.instance_store import InstanceStore
from bindwire.application.lifecycle import LifecycleTracker
from bindwire.application.metadata_provider import AnnotationMetadataProvider, is_interface
from bindwire.application.module import AbstractModule, EmptyModule
from bindwire.application.resolver import DependencyResolver
from bindwire.domain import (
    DEFAULT_QUALIFIER,
    BindingEntry,
    BindingKind,
    BoundClass,
    CacheSession,
    ContainerLockedError,
    Definition,
    DIException,
    IAspectBinder,
    ICompiler,
    IInjectionLogger,
    IInjector,
    IMetadataProvider,
    IModule,
    InjectorConfig,
    InstantiationError,
    IPersistentCache,
    Lazy,
    NotInstantiableError,
    NotReadableError,
    Params,
    ResolutionContext,
    Scope,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Classes loaded by injectors configured with CacheSession.PROCESS
_PROCESS_LOADED: Set[type] = set()


def _import_string(path: str) -> Any:
    parts = path.split(".")
    if len(parts) == 1:
        if hasattr(builtins, path):
            return getattr(builtins, path)
        raise NotReadableError(path, "cannot import")
    for index in range(len(parts) - 1, 0, -1):
        try:
            target = importlib.import_module(".".join(parts[:index]))
        except ImportError:
            continue
        try:
            for attr in parts[index:]:
                target = getattr(target, attr)
        except AttributeError as e:
            raise NotReadableError(path, str(e)) from e
        return target
    raise NotReadableError(path, "cannot import")


class Injector(IInjector):
    """Dependency injector.

    Turns a type reference into a fully injected instance: resolves the
    binding (explicit, just-in-time or none), serves singletons from the
    instance store, binds constructor and setter parameters, weaves aspects,
    runs lifecycle hooks and optionally persists top-level instances in an
    external cache.

    Each thread resolves against its own resolution stack, but singleton
    creation is not serialized: use one injector (or one ``create_scope()``)
    per thread or request when singletons must be built exactly once.

    Attributes:
        _module: Active binding module.
        _store: Singleton instance store.
        _metadata: Source of class definitions.
        _bind_factory: Creates an empty aspect binder for each construction.
        _compiler: Builds intercepted instances.
        _cache: Optional persistent cache.
        _log: Optional injection logger.
        _lifecycle: Post-construct and pre-destroy hook handling.
        _local: Thread-local holder of the resolution stack.
        _loaded: Classes already resolved once, gating the persistent cache.
    """

    def __init__(
        self,
        module: Optional[IModule] = None,
        *,
        metadata: Optional[IMetadataProvider] = None,
        store: Optional[InstanceStore] = None,
        bind_factory: Callable[[], IAspectBinder] = AspectBinder,
        compiler: Optional[ICompiler] = None,
        cache: Optional[IPersistentCache] = None,
        injection_logger: Optional[IInjectionLogger] = None,
        config: Optional[InjectorConfig] = None,
    ) -> None:
        """Initialize the injector and activate its module.

        Args:
            module: Binding module; an EmptyModule when omitted.
            metadata: Metadata provider; an AnnotationMetadataProvider when omitted.
            store: Instance store; a fresh one when omitted.
            bind_factory: Factory of aspect binders.
            compiler: Aspect compiler.
            cache: Persistent cache for top-level instances.
            injection_logger: Receives one record per constructed instance.
            config: Injector configuration.
        """
        self._config = config or InjectorConfig()
        self._metadata = metadata or AnnotationMetadataProvider(self._config.autowire_constructor)
        self._bind_factory = bind_factory
        self._compiler = compiler or Compiler()
        self._cache = cache
        self._log = injection_logger
        self._wire(store if store is not None else InstanceStore())
        self._module: IModule = module or EmptyModule()
        self._module.activate(self)

    def _wire(self, store: InstanceStore) -> None:
        """Create the per-injector state bound to an instance store."""
        self._store = store
        self._lifecycle = LifecycleTracker()
        self._local = threading.local()
        self._loaded: Set[type] = _PROCESS_LOADED if self._config.cache_session == CacheSession.PROCESS else set()
        self._getter = InstanceGetter(self, store)
        self._resolver = DependencyResolver(self._metadata, self._getter)

    @property
    def _context(self) -> ResolutionContext:
        """Resolution stack of the calling thread."""
        if not hasattr(self._local, "context"):
            self._local.context = ResolutionContext()
        return self._local.context

    @classmethod
    def create(
        cls,
        modules: Sequence[AbstractModule] = (),
        cache: Optional[IPersistentCache] = None,
        config: Optional[InjectorConfig] = None,
    ) -> "Injector":
        """Create an injector from modules.

        The first module installs the others, so its own bindings win.

        Example:
            >>> injector = Injector.create([AppModule(), DatabaseModule()])
            >>> service = injector.construct(UserService)
        """
        injector = cls(cache=cache, config=config)
        if modules:
            module, *extra_modules = modules
            for extra_module in extra_modules:
                module.install(extra_module)
            injector.set_module(module)
        return injector

    def construct(self, dependency_type: Union[Type[T], str], params: Optional[Params] = None) -> T:
        """Resolve and return an instance of the specified type.

        Args:
            dependency_type: Class or dotted import path.
            params: Constructor overrides, positional (``None`` entries are
                skipped) or by name. Ignored when a singleton already exists.

        Returns:
            Instance of the requested type with all dependencies injected.

        Raises:
            NotReadableError: If the type cannot be introspected.
            NotBoundError: If a required interface or parameter is not bound.
            NotInstantiableError: If the resolved class is abstract.
            CircularDependencyError: If the type is already being resolved.
            InstantiationError: If user code fails while building the instance.

        Example:
            >>> greeter = injector.construct(Greeter)
            >>> mailer = injector.construct(Mailer, {"host": "localhost"})
        """
        cls = self._normalize(dependency_type)
        cache_key, cached = self._get_cached_object(cls)
        if cached is not None:
            return cached

        self._context.push(cls)
        try:
            bound = self._resolve_binding(cls)
            if not isinstance(bound, BoundClass):
                return bound
            instance = self._build(bound, params)
        finally:
            self._context.pop()

        if cache_key is not None:
            self._cache.save(cache_key, instance)
        return instance

    def lazy(self, dependency_type: Union[Type[T], str], params: Optional[Params] = None) -> Lazy:
        """Return a Lazy value constructing the type each time it is called."""
        return Lazy(lambda: self.construct(dependency_type, params))

    def _normalize(self, dependency_type: Any) -> type:
        if isinstance(dependency_type, str):
            dependency_type = _import_string(dependency_type.lstrip("."))
        if not inspect.isclass(dependency_type):
            raise NotReadableError(dependency_type, "not a class")
        return dependency_type

    def _get_cached_object(self, cls: type) -> Tuple[Optional[str], Any]:
        """Return ``(cache_key, cached_instance)`` for a top-level first load.

        Only a top-level call resolving a class for the first time in the
        configured session reads or writes the persistent cache.
        """
        first_load = cls not in self._loaded
        self._loaded.add(cls)
        if self._cache is None or not self._context.is_top_level or not first_load:
            return None, None
        cache_key = f"{self._config.cache_context}:{self._module.identity}:{cls.__module__}.{cls.__qualname__}"
        cached = self._cache.fetch(cache_key)
        if cached is not None:
            logger.debug("Persistent cache hit for %s", cache_key)
        return cache_key, cached

    def _resolve_binding(self, cls: type) -> Any:
        """Return a BoundClass to construct, or the already available instance."""
        definition = self._metadata.fetch(cls)
        entry = self._module.get_binding(cls)
        key: Hashable = (cls, DEFAULT_QUALIFIER)

        if is_interface(cls):
            if entry is None or entry.kind is None:
                entry = self._resolver.jit_class_binding(cls, definition, self._module, entry)
                logger.debug("JIT binding %s -> %s %s", cls.__qualname__, entry.kind.value, entry.target)
            return self._bound_class(cls, entry, definition, key)

        if entry is not None and entry.kind is not None:
            return self._bound_class(cls, entry, definition, key)

        # Unbound concrete class, or a scope-only binding
        scope = entry.scope if entry is not None and entry.scope is not None else definition.scope
        is_singleton = scope == Scope.SINGLETON
        if is_singleton and self._store.has(key):
            return self._store.get(key)
        return BoundClass(cls=cls, is_singleton=is_singleton, key=key, definition=definition)

    def _bound_class(self, cls: type, entry: BindingEntry, definition: Definition, key: Hashable) -> Any:
        if entry.kind == BindingKind.INSTANCE:
            return entry.target

        if entry.kind == BindingKind.PROVIDER:
            scope = self._resolver.effective_scope(entry, cls, None)
            return self._getter.get(scope, BindingKind.PROVIDER, entry.target, key)

        if entry.kind == BindingKind.CALLABLE:
            scope = self._resolver.effective_scope(entry, cls, None)
            return self._getter.get(scope, BindingKind.CALLABLE, entry.target, key)

        target = self._normalize(entry.target) if entry.kind == BindingKind.CLASS else cls
        scope = self._resolver.effective_scope(entry, cls, target)
        is_singleton = scope == Scope.SINGLETON
        if is_singleton and self._store.has(key):
            return self._store.get(key)

        target_definition = definition if target is cls else self._metadata.fetch(target)
        constructor_binding = entry if entry.kind == BindingKind.CONSTRUCTOR else None
        if target is not cls:
            target_entry = self._module.get_binding(target)
            if target_entry is not None and target_entry.kind == BindingKind.CONSTRUCTOR:
                constructor_binding = target_entry
        logger.debug("Bound %s -> %s (%s)", cls.__qualname__, target.__qualname__, scope.value)
        return BoundClass(
            cls=target,
            is_singleton=is_singleton,
            key=key,
            definition=target_definition,
            constructor_binding=constructor_binding,
        )

    def _build(self, bound: BoundClass, params: Optional[Params]) -> Any:
        cls = bound.cls
        definition = bound.definition

        overrides = self._override_params(cls, definition, params)
        provided = set(overrides)
        if bound.constructor_binding is not None:
            provided.update(bound.constructor_binding.target)
        constructor_params, setters = self._resolver.bind_module(cls, definition, self._module, provided)

        # Overrides take precedence over bound values
        assembled: Dict[str, Any] = {**constructor_params, **overrides}
        for name, value in assembled.items():
            if isinstance(value, Lazy):
                assembled[name] = value()

        self._resolver.constructor_inject(cls, definition, assembled, self._module, bound.constructor_binding)

        if is_interface(cls):
            raise NotInstantiableError(cls)

        bind = self._module(cls, self._bind_factory())
        instance = self._new_instance(cls, assembled, bind)
        self._setter_method(cls, setters, instance)

        if self._log is not None:
            self._log.log(cls, assembled, setters, instance, bind)

        self._lifecycle.apply(instance, definition)

        if bound.is_singleton:
            self._store.set(bound.key, instance)
        return instance

    @staticmethod
    def _override_params(cls: type, definition: Definition, params: Optional[Params]) -> Dict[str, Any]:
        if params is None:
            return {}
        if isinstance(params, Mapping):
            return dict(params)
        names = [param.name for param in definition.constructor_parameters]
        if len(params) > len(names):
            raise InstantiationError(cls, f"{len(params)} override arguments given, constructor takes {len(names)}")
        return {name: value for name, value in zip(names, params) if value is not None}

    def _new_instance(self, cls: type, params: Dict[str, Any], bind: IAspectBinder) -> Any:
        try:
            if bind.has_binding(cls, params):
                return self._compiler.new_instance(cls, params, bind)
            return cls(**params)
        except DIException:
            raise
        except Exception as e:
            raise InstantiationError(cls, str(e)) from e

    @staticmethod
    def _setter_method(cls: type, setters: Mapping[str, Mapping[str, Any]], instance: Any) -> None:
        for method_name, values in setters.items():
            # Declared setters missing on the instance are skipped
            method = getattr(instance, method_name, None)
            if not callable(method):
                continue
            try:
                method(**values)
            except DIException:
                raise
            except Exception as e:
                raise InstantiationError(cls, f"setter {method_name}() failed: {e}") from e

    def set_module(self, module: IModule, activate: bool = True) -> "Injector":
        """Replace the active binding module.

        Raises:
            ContainerLockedError: If the injector has been locked.
        """
        if self._store.is_locked():
            raise ContainerLockedError("Cannot replace the module of a locked injector")
        if activate:
            module.activate(self)
        self._module = module
        return self

    def get_module(self) -> IModule:
        return self._module

    def lock(self) -> None:
        """Lock the injector: the module can no longer be replaced."""
        self._store.lock()

    def is_locked(self) -> bool:
        return self._store.is_locked()

    def set_logger(self, injection_logger: IInjectionLogger) -> "Injector":
        self._log = injection_logger
        return self

    def get_logger(self) -> Optional[IInjectionLogger]:
        return self._log

    def set_cache(self, cache: IPersistentCache) -> "Injector":
        self._cache = cache
        return self

    def get_instance_store(self) -> InstanceStore:
        return self._store

    @property
    def config(self) -> InjectorConfig:
        return self._config

    @property
    def pre_destroy_objects(self) -> List[Tuple[Any, str]]:
        """Registered ``(instance, method_name)`` pairs in registration order."""
        return list(self._lifecycle)

    def create_scope(self) -> "Injector":
        """Create a child injector sharing configuration and existing singletons.

        Singletons created later in either injector are not shared. The child
        tracks its own pre-destroy hooks and its own resolution stack.

        The module stays activated against the parent: ``request_injection()``
        and ``to_constructor()`` lazies declared by the module construct with
        the parent injector, not with the scope.

        Example:
            >>> with injector.create_scope() as scoped:
            ...     handler = scoped.construct(RequestHandler)
        """
        scoped = copy.copy(self)
        scoped._wire(self._store.copy())
        return scoped

    def shutdown(self) -> None:
        """Invoke every registered pre-destroy hook once, in registration order.

        Raises:
            PreDestroyError: If one or more hooks raised.
        """
        logger.debug("Shutting down injector (%d pre-destroy hooks)", len(self._lifecycle))
        self._lifecycle.notify_pre_shutdown()

    def __enter__(self) -> "Injector":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.shutdown()
        return False

    def __str__(self) -> str:
        return str(self._module)
