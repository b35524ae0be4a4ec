"""
FastAPI integration module.

Provides helpers and utilities for integrating bindwire with FastAPI.
"""

from .integration import (
    ScopedInjectorMiddleware,
    create_fastapi_dependency,
    create_scoped_dependency,
    inject_dependencies,
)

__all__ = [
    "create_fastapi_dependency",
    "create_scoped_dependency",
    "inject_dependencies",
    "ScopedInjectorMiddleware",
]
