"""
Infrastructure layer - External integrations.

This layer contains caches, diagnostics and integrations with external
frameworks and tools. It depends on both Application and Domain layers.
"""

from . import fastapi_integration, testing
from .cache import ArrayCache, PickleFileCache
from .injection_logger import InjectionLogger

__all__ = [
    "ArrayCache",
    "PickleFileCache",
    "InjectionLogger",
    "fastapi_integration",
    "testing",
]
