"""
Domain layer - Core business logic and models.

This layer contains the fundamental rules and models for dependency injection.
It has no dependencies on other layers.
"""

from .annotations import (
    Named,
    annotate,
    implemented_by,
    inject,
    post_construct,
    pre_destroy,
    provided_by,
    scope,
    singleton,
)
from .enums import BindingKind, CacheSession, JitKind, Scope
from .exceptions import (
    CircularDependencyError,
    ContainerLockedError,
    DIException,
    InstantiationError,
    NotBoundError,
    NotInstantiableError,
    NotReadableError,
    OptionalInjectionNotBound,
    PreDestroyError,
)
from .interfaces import (
    IAspectBinder,
    ICompiler,
    IInjectionLogger,
    IInjector,
    IInstanceGetter,
    IInstanceStore,
    IMetadataProvider,
    IMethodInterceptor,
    IModule,
    IPersistentCache,
    IProvider,
    Params,
)
from .lazy import Lazy
from .models import (
    DEFAULT_QUALIFIER,
    BindingEntry,
    BoundClass,
    Definition,
    InjectorConfig,
    JitSource,
    MethodSpec,
    ParameterSpec,
    ResolutionContext,
)

__all__ = [
    # Enums
    "Scope",
    "BindingKind",
    "JitKind",
    "CacheSession",
    # Exceptions
    "DIException",
    "NotReadableError",
    "NotBoundError",
    "NotInstantiableError",
    "OptionalInjectionNotBound",
    "ContainerLockedError",
    "CircularDependencyError",
    "InstantiationError",
    "PreDestroyError",
    # Interfaces
    "IInjector",
    "IModule",
    "IMetadataProvider",
    "IInstanceStore",
    "IAspectBinder",
    "ICompiler",
    "IMethodInterceptor",
    "IProvider",
    "IPersistentCache",
    "IInjectionLogger",
    "IInstanceGetter",
    "Params",
    # Models
    "DEFAULT_QUALIFIER",
    "BindingEntry",
    "JitSource",
    "ParameterSpec",
    "MethodSpec",
    "Definition",
    "BoundClass",
    "ResolutionContext",
    "InjectorConfig",
    # Values
    "Lazy",
    # Annotations
    "Named",
    "inject",
    "scope",
    "singleton",
    "implemented_by",
    "provided_by",
    "post_construct",
    "pre_destroy",
    "annotate",
]
