import logging
from abc import abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from bindwire.application.aop import Matcher, Pointcut
from bindwire.domain import (
    DEFAULT_QUALIFIER,
    BindingEntry,
    BindingKind,
    DIException,
    IAspectBinder,
    IInjector,
    IMethodInterceptor,
    IModule,
    Scope,
)

logger = logging.getLogger(__name__)

BindingKey = Tuple[Any, str]


def _name(value: Any) -> str:
    return getattr(value, "__qualname__", None) or repr(value)


class BindingBuilder:
    """Fluent builder returned by ``AbstractModule.bind``.

    The first declaration of a key in a module replaces whatever an installed
    module bound under it; later declarations in the same module refine it.

    Example:
        >>> self.bind(Greeter).to(EnglishGreeter).in_scope(Scope.SINGLETON)
        >>> self.bind(str).annotated_with("db_dsn").to_instance("sqlite://")
    """

    def __init__(
        self,
        bindings: Dict[BindingKey, BindingEntry],
        declared: Set[BindingKey],
        dependency_type: Any,
    ) -> None:
        self._bindings = bindings
        self._declared = declared
        self._dependency_type = dependency_type
        self._qualifier = DEFAULT_QUALIFIER

    def annotated_with(self, qualifier: str) -> "BindingBuilder":
        """Qualify the binding; only parameters named the same way receive it."""
        old_key = (self._dependency_type, self._qualifier)
        self._qualifier = qualifier
        if old_key in self._declared and old_key in self._bindings:
            new_key = (self._dependency_type, qualifier)
            self._bindings[new_key] = self._bindings.pop(old_key)
            self._declared.discard(old_key)
            self._declared.add(new_key)
        return self

    def to(self, cls: type) -> "BindingBuilder":
        return self._update(kind=BindingKind.CLASS, target=cls)

    def to_instance(self, instance: Any) -> "BindingBuilder":
        return self._update(kind=BindingKind.INSTANCE, target=instance)

    def to_provider(self, provider: Any) -> "BindingBuilder":
        return self._update(kind=BindingKind.PROVIDER, target=provider)

    def to_constructor(self, **params: Any) -> "BindingBuilder":
        """Bind named constructor values; Lazy values are evaluated at construction."""
        return self._update(kind=BindingKind.CONSTRUCTOR, target=dict(params))

    def to_callable(self, func: Callable[[], Any]) -> "BindingBuilder":
        return self._update(kind=BindingKind.CALLABLE, target=func)

    def in_scope(self, scope: Scope) -> "BindingBuilder":
        return self._update(scope=Scope(scope))

    def _update(self, **changes: Any) -> "BindingBuilder":
        key = (self._dependency_type, self._qualifier)
        if key in self._declared:
            entry = self._bindings.get(key, BindingEntry())
        else:
            entry = BindingEntry()
            self._declared.add(key)
        self._bindings[key] = entry.model_copy(update=changes)
        return self


class AbstractModule(IModule):
    """Base class of binding modules.

    Subclasses declare bindings in ``configure()``, which runs on
    construction.

    Example:
        >>> class AppModule(AbstractModule):
        ...     def configure(self):
        ...         self.bind(Greeter).to(EnglishGreeter).in_scope(Scope.SINGLETON)
        ...         self.bind(Database).to_provider(DatabaseProvider)
        ...         self.install(LoggingModule())

    Attributes:
        _bindings: Binding entries keyed by ``(type, qualifier)``.
        _pointcuts: Aspect pointcuts in declaration order.
        _installed: Identities of installed modules.
        _declared: Keys bound by this module's own ``bind()`` calls.
        _injector: Injector the module was activated against.
    """

    def __init__(self, module: Optional["AbstractModule"] = None) -> None:
        """Initialize and configure the module.

        Args:
            module: Optional module whose bindings this module starts from.
        """
        self._bindings: Dict[BindingKey, BindingEntry] = {}
        self._pointcuts: List[Pointcut] = []
        self._installed: List[str] = []
        self._declared: Set[BindingKey] = set()
        self._injector: Optional[IInjector] = None
        if module is not None:
            self.install(module)
        self.configure()

    @abstractmethod
    def configure(self) -> None:
        """Declare the module's bindings."""

    def bind(self, dependency_type: Any) -> BindingBuilder:
        return BindingBuilder(self._bindings, self._declared, dependency_type)

    def bind_interceptor(
        self,
        class_matcher: Matcher,
        method_matcher: Matcher,
        interceptors: Sequence[IMethodInterceptor],
    ) -> None:
        """Intercept the methods selected by both matchers."""
        self._pointcuts.append(
            Pointcut(class_matcher=class_matcher, method_matcher=method_matcher, interceptors=tuple(interceptors))
        )

    def install(self, module: "AbstractModule") -> None:
        """Add another module's bindings; bindings already declared here win."""
        for key, entry in module.bindings.items():
            self._bindings.setdefault(key, entry)
        self._pointcuts.extend(module.pointcuts)
        self._installed.append(module.identity)
        logger.debug("Installed %s into %s", module.identity, _name(type(self)))

    def override(self, module: "AbstractModule") -> None:
        """Add another module's bindings, replacing those declared here."""
        self._bindings.update(module.bindings)
        self._pointcuts.extend(module.pointcuts)
        self._installed.append(module.identity)
        logger.debug("Overrode %s with %s", _name(type(self)), module.identity)

    def activate(self, injector: IInjector) -> None:
        self._injector = injector

    def request_injection(self, dependency_type: Any) -> Any:
        """Construct an instance with the injector this module is active in.

        Raises:
            DIException: If the module has not been activated.
        """
        if self._injector is None:
            raise DIException(f"Module {_name(type(self))} is not activated")
        return self._injector.construct(dependency_type)

    @property
    def bindings(self) -> Dict[BindingKey, BindingEntry]:
        return self._bindings

    @property
    def pointcuts(self) -> List[Pointcut]:
        return self._pointcuts

    @property
    def identity(self) -> str:
        own = f"{type(self).__module__}.{type(self).__qualname__}"
        return "+".join([own] + self._installed)

    def get_binding(self, dependency_type: Any, qualifier: str = DEFAULT_QUALIFIER) -> Optional[BindingEntry]:
        return self._bindings.get((dependency_type, qualifier))

    def __call__(self, cls: type, bind: IAspectBinder) -> IAspectBinder:
        return bind.bind(cls, self._pointcuts)

    def __contains__(self, key: Any) -> bool:
        if not isinstance(key, tuple):
            key = (key, DEFAULT_QUALIFIER)
        return key in self._bindings

    def __str__(self) -> str:
        lines = []
        for (dependency_type, qualifier), entry in self._bindings.items():
            line = f"bind({_name(dependency_type)})"
            if qualifier != DEFAULT_QUALIFIER:
                line += f".annotated_with({qualifier!r})"
            if entry.kind is not None:
                method = "to" if entry.kind is BindingKind.CLASS else f"to_{entry.kind.value}"
                line += f".{method}({_name(entry.target)})"
            if entry.scope is not None:
                line += f".in_scope({entry.scope.value})"
            lines.append(line)
        for pointcut in self._pointcuts:
            lines.append(f"bind_interceptor({pointcut.class_matcher!r}, {pointcut.method_matcher!r})")
        return "\n".join(lines)


class EmptyModule(AbstractModule):
    """Module without bindings."""

    def configure(self) -> None:
        pass
