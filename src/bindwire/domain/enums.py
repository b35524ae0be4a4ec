from enum import Enum


class Scope(str, Enum):
    """Defines how many instances a binding produces.

    Attributes:
        SINGLETON: One shared instance per binding, kept in the instance store.
        PROTOTYPE: New instance created on each resolution.
    """

    SINGLETON = "singleton"
    PROTOTYPE = "prototype"

    def __str__(self) -> str:
        return self.value


class BindingKind(str, Enum):
    """Construction strategy of a binding entry.

    Attributes:
        INSTANCE: Return a literal object.
        CLASS: Construct another (concrete) class.
        PROVIDER: Construct a provider and return the result of its ``get()``.
        CONSTRUCTOR: Construct the bound class with named constructor values.
        CALLABLE: Invoke a zero-argument callable.
    """

    INSTANCE = "instance"
    CLASS = "class"
    PROVIDER = "provider"
    CONSTRUCTOR = "constructor"
    CALLABLE = "callable"

    def __str__(self) -> str:
        return self.value


class JitKind(str, Enum):
    """Kind of default-binding hint a type declares for itself."""

    IMPLEMENTED_BY = "implemented_by"
    PROVIDED_BY = "provided_by"

    def __str__(self) -> str:
        return self.value


class CacheSession(str, Enum):
    """Boundary of the "already loaded" gate used by the persistent cache.

    Attributes:
        INJECTOR: Each injector tracks the classes it has loaded.
        PROCESS: All injectors of the process share one loaded set.
    """

    INJECTOR = "injector"
    PROCESS = "process"

    def __str__(self) -> str:
        return self.value
