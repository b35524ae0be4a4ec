"""
Application layer - Use cases and orchestration.

This layer contains the resolution engine and the collaborators it
orchestrates. It depends only on the Domain layer.
"""

from .aop import AspectBinder, Compiler, Matcher, MethodInvocation, Pointcut
from .injector import Injector
from .instance_getter import InstanceGetter
from .instance_store import InstanceStore
from .lifecycle import LifecycleTracker
from .metadata_provider import AnnotationMetadataProvider
from .module import AbstractModule, BindingBuilder, EmptyModule
from .resolver import DependencyResolver

__all__ = [
    "Injector",
    "DependencyResolver",
    "InstanceGetter",
    "InstanceStore",
    "LifecycleTracker",
    "AnnotationMetadataProvider",
    "AbstractModule",
    "BindingBuilder",
    "EmptyModule",
    "Matcher",
    "Pointcut",
    "AspectBinder",
    "Compiler",
    "MethodInvocation",
]
