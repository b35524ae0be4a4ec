"""
bindwire: Binding-module based Dependency Injection with scopes, JIT bindings,
aspect weaving and lifecycle hooks.

Public API exports for the bindwire package.
"""

# Application exports
from bindwire.application import AbstractModule, EmptyModule, Injector, Matcher, MethodInvocation

# Domain exports
from bindwire.domain import (
    CacheSession,
    CircularDependencyError,
    ContainerLockedError,
    DIException,
    IMethodInterceptor,
    InjectorConfig,
    InstantiationError,
    IProvider,
    Lazy,
    Named,
    NotBoundError,
    NotInstantiableError,
    NotReadableError,
    PreDestroyError,
    Scope,
    annotate,
    implemented_by,
    inject,
    post_construct,
    pre_destroy,
    provided_by,
    scope,
    singleton,
)

__version__ = "0.1.0"

__all__ = [
    # Injector
    "Injector",
    "InjectorConfig",
    "CacheSession",
    # Modules
    "AbstractModule",
    "EmptyModule",
    "Matcher",
    "MethodInvocation",
    "IMethodInterceptor",
    "IProvider",
    # Values
    "Scope",
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
    # Exceptions
    "DIException",
    "NotReadableError",
    "NotBoundError",
    "NotInstantiableError",
    "ContainerLockedError",
    "CircularDependencyError",
    "InstantiationError",
    "PreDestroyError",
]
