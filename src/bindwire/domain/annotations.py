"""
Declarative injection annotations.

Decorators and markers read by the metadata provider to build class
definitions. They only attach attributes; nothing is resolved here.
"""

from typing import Any, Callable, Optional, Type, TypeVar, Union, overload

from bindwire.domain.enums import Scope

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

INJECT_ATTR = "__bindwire_inject__"
SCOPE_ATTR = "__bindwire_scope__"
IMPLEMENTED_BY_ATTR = "__bindwire_implemented_by__"
PROVIDED_BY_ATTR = "__bindwire_provided_by__"
POST_CONSTRUCT_ATTR = "__bindwire_post_construct__"
PRE_DESTROY_ATTR = "__bindwire_pre_destroy__"
ANNOTATIONS_ATTR = "__bindwire_annotations__"


class InjectMarker:
    """Marks a method as an injection point."""

    __slots__ = ("optional",)

    def __init__(self, optional: bool = False) -> None:
        self.optional = optional

    def __repr__(self) -> str:
        return f"InjectMarker(optional={self.optional})"


class Named:
    """Binding qualifier for a parameter, used inside ``typing.Annotated``.

    Example:
        >>> class Repository:
        ...     def __init__(self, dsn: Annotated[str, Named("db_dsn")]):
        ...         self.dsn = dsn
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Named) and other.name == self.name

    def __hash__(self) -> int:
        return hash((Named, self.name))

    def __repr__(self) -> str:
        return f"Named({self.name!r})"


@overload
def inject(method: F) -> F: ...


@overload
def inject(*, optional: bool = False) -> Callable[[F], F]: ...


def inject(method: Optional[F] = None, *, optional: bool = False) -> Union[F, Callable[[F], F]]:
    """Mark ``__init__`` or a setter method as an injection point.

    Can be used bare (``@inject``) or with arguments
    (``@inject(optional=True)``). Parameters of an optional injection point
    that have no binding are left unset instead of failing.
    """

    def decorator(func: F) -> F:
        setattr(func, INJECT_ATTR, InjectMarker(optional=optional))
        return func

    if method is not None:
        return decorator(method)
    return decorator


def scope(value: Scope) -> Callable[[Type[T]], Type[T]]:
    """Declare the scope of a class."""

    def decorator(cls: Type[T]) -> Type[T]:
        setattr(cls, SCOPE_ATTR, Scope(value))
        return cls

    return decorator


def singleton(cls: Type[T]) -> Type[T]:
    """Declare a class as singleton-scoped."""
    return scope(Scope.SINGLETON)(cls)


def implemented_by(implementation: type) -> Callable[[Type[T]], Type[T]]:
    """Declare the default implementation of an interface (JIT binding hint)."""

    def decorator(cls: Type[T]) -> Type[T]:
        setattr(cls, IMPLEMENTED_BY_ATTR, implementation)
        return cls

    return decorator


def provided_by(provider: Any) -> Callable[[Type[T]], Type[T]]:
    """Declare the default provider of an interface (JIT binding hint)."""

    def decorator(cls: Type[T]) -> Type[T]:
        setattr(cls, PROVIDED_BY_ATTR, provider)
        return cls

    return decorator


def post_construct(method: F) -> F:
    """Mark the method called once injection is complete."""
    setattr(method, POST_CONSTRUCT_ATTR, True)
    return method


def pre_destroy(method: F) -> F:
    """Mark the method called when the injector shuts down."""
    setattr(method, PRE_DESTROY_ATTR, True)
    return method


def annotate(*markers: Any) -> Callable[[F], F]:
    """Attach markers to a method so aspect pointcuts can match it.

    Example:
        >>> class Transactional:
        ...     pass
        >>> class Repository:
        ...     @annotate(Transactional)
        ...     def save(self, entity): ...
    """

    def decorator(func: F) -> F:
        existing = getattr(func, ANNOTATIONS_ATTR, ())
        setattr(func, ANNOTATIONS_ATTR, tuple(existing) + markers)
        return func

    return decorator
