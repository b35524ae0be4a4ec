import sys
from typing import Any, Hashable, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from bindwire.domain.enums import BindingKind, CacheSession, JitKind, Scope
from bindwire.domain.exceptions import CircularDependencyError

DEFAULT_QUALIFIER = "*"


class BindingEntry(BaseModel):
    """Value object describing how a bound type is produced.

    Attributes:
        kind: Construction strategy, or None for a scope-only binding.
        target: Class, provider, literal value, callable or parameter map,
            depending on ``kind``.
        scope: Scope requested by the binding, or None to defer to the
            target's declared scope.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Optional[BindingKind] = Field(default=None, description="Construction strategy of the binding.")
    target: Any = Field(default=None, description="Payload interpreted according to the kind.")
    scope: Optional[Scope] = Field(default=None, description="Scope requested by the binding.")


class JitSource(BaseModel):
    """Default-binding hint declared by a type for itself."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: JitKind
    target: Any


class ParameterSpec(BaseModel):
    """Injection metadata of one constructor or setter parameter.

    Attributes:
        name: Parameter name.
        declared_type: Annotated class, None when untyped or not a class.
        qualifier: Binding qualifier, ``"*"`` for the default binding.
        has_default: Whether the signature declares a default value.
        default_value: The declared default value.
        is_optional: Whether a missing binding is acceptable.
        jit_source: Default implementation or provider hint of the declared type.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    declared_type: Optional[Type] = None
    qualifier: str = DEFAULT_QUALIFIER
    has_default: bool = False
    default_value: Any = None
    is_optional: bool = False
    jit_source: Optional[JitSource] = None


class MethodSpec(BaseModel):
    """An injection method and its ordered parameters."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    parameters: List[ParameterSpec] = Field(default_factory=list)


class Definition(BaseModel):
    """Per-class injection metadata produced by a metadata provider.

    Attributes:
        constructor_parameters: Ordered constructor parameters.
        inject_constructor: Whether constructor parameters go through module binding.
        setter_methods: Ordered setter injection methods.
        scope: Scope the class declares for itself.
        post_construct: Name of the post-construct method, if any.
        pre_destroy: Name of the pre-destroy method, if any.
        implemented_by: Default implementation declared by the class.
        provided_by: Default provider declared by the class.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    constructor_parameters: List[ParameterSpec] = Field(default_factory=list)
    inject_constructor: bool = False
    setter_methods: List[MethodSpec] = Field(default_factory=list)
    scope: Scope = Scope.PROTOTYPE
    post_construct: Optional[str] = None
    pre_destroy: Optional[str] = None
    implemented_by: Optional[Type] = None
    provided_by: Optional[Any] = None


class BoundClass(BaseModel):
    """Outcome of binding resolution when construction must proceed.

    Attributes:
        cls: The concrete class to construct.
        is_singleton: Whether the result is stored in the instance store.
        key: Instance store key of the binding.
        definition: Definition of ``cls``.
        constructor_binding: ``to-constructor`` entry of ``cls``, if any.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cls: Type
    is_singleton: bool = False
    key: Hashable
    definition: Definition
    constructor_binding: Optional[BindingEntry] = None


class ResolutionContext(BaseModel):
    """Tracks the current dependency resolution stack.

    Used for circular dependency detection and to tell top-level
    ``construct`` calls from nested ones. One context belongs to one
    injector.

    Attributes:
        stack: List of dependency types currently being resolved.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stack: List[Any] = Field(
        default_factory=list,
        description="Stack of dependency types currently being resolved.",
    )

    @property
    def is_top_level(self) -> bool:
        """True when no resolution is in progress."""
        return not self.stack

    @property
    def current(self) -> Optional[Any]:
        """The type most recently pushed, if any."""
        return self.stack[-1] if self.stack else None

    def push(self, dependency_type: Any) -> None:
        """Add a dependency to the resolution stack.

        Args:
            dependency_type: The type being resolved.

        Raises:
            CircularDependencyError: If the type is already in the stack.
        """
        if dependency_type in self.stack:
            cycle = self.stack[self.stack.index(dependency_type) :] + [dependency_type]
            raise CircularDependencyError(cycle)
        self.stack.append(dependency_type)

    def pop(self) -> None:
        """Remove the last (most recent) dependency from the stack."""
        if self.stack:
            self.stack.pop()

    def clear(self) -> None:
        """Clear the entire resolution stack."""
        self.stack.clear()


def _default_cache_context() -> str:
    return sys.implementation.cache_tag or sys.implementation.name


class InjectorConfig(BaseModel):
    """Injector configuration.

    Attributes:
        autowire_constructor: Resolve every constructor parameter through
            module bindings, not only constructors marked with ``@inject``.
        cache_session: Boundary of the persistent cache "already loaded" gate.
        cache_context: Process-context component of persistent cache keys.
    """

    model_config = ConfigDict(frozen=True)

    autowire_constructor: bool = True
    cache_session: CacheSession = CacheSession.INJECTOR
    cache_context: str = Field(default_factory=_default_cache_context)
