from typing import Any, List, Optional, Tuple, Type


def _type_name(value: Any) -> str:
    return getattr(value, "__qualname__", None) or getattr(value, "__name__", None) or str(value)


class DIException(Exception):
    """Base exception for DI-related errors."""


class NotReadableError(DIException):
    """Raised when a type reference cannot be introspected.

    This occurs when:
    - A dotted path string cannot be imported.
    - The reference is not a class.
    - Constructor type hints cannot be evaluated.

    Attributes:
        type_reference: The reference that could not be read.
        reason: Optional reason for the failure.
    """

    def __init__(self, type_reference: Any, reason: Optional[str] = None) -> None:
        self.type_reference = type_reference
        self.reason = reason
        message = f"Cannot read type: {_type_name(type_reference)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class NotBoundError(DIException):
    """Raised when a required interface or parameter has no binding.

    Attributes:
        module: The binding module active when the lookup failed, if known.
    """

    def __init__(self, message: str, module: Optional[Any] = None) -> None:
        self.module = module
        super().__init__(message)


class NotInstantiableError(DIException):
    """Raised when the final resolved class is abstract or a protocol.

    Attributes:
        cls: The class that cannot be constructed.
    """

    def __init__(self, cls: Type) -> None:
        self.cls = cls
        super().__init__(f"Class {_type_name(cls)} is not instantiable")


class OptionalInjectionNotBound(DIException):
    """Signals that an optional parameter has no binding.

    Caught where the parameter is bound and turned into "leave unset";
    never reaches the caller of ``construct``.

    Attributes:
        parameter_name: Name of the parameter left unset.
    """

    def __init__(self, parameter_name: str) -> None:
        self.parameter_name = parameter_name
        super().__init__(f"Optional parameter '{parameter_name}' is not bound")


class ContainerLockedError(DIException):
    """Raised on structural mutation after the instance store was locked."""

    def __init__(self, message: str = "Container is locked") -> None:
        super().__init__(message)


class CircularDependencyError(DIException):
    """Raised when a circular dependency is detected.

    Attributes:
        dependency_chain: List of types involved in the circular dependency.
    """

    def __init__(self, dependency_chain: List[Type]) -> None:
        self.dependency_chain = dependency_chain
        message = f"Circular dependency detected: {' -> '.join([_type_name(cls) for cls in dependency_chain])}"
        super().__init__(message)


class InstantiationError(DIException):
    """Raised when user code fails while an instance is being built.

    Wraps exceptions from constructors, provider ``get()`` calls and
    post-construct hooks. The original exception is chained.

    Attributes:
        cls: The class being built.
        reason: Description of the failure.
    """

    def __init__(self, cls: Any, reason: str) -> None:
        self.cls = cls
        self.reason = reason
        super().__init__(f"Failed to create instance of {_type_name(cls)}: {reason}")


class PreDestroyError(DIException):
    """Raised after teardown when one or more pre-destroy hooks failed.

    Attributes:
        errors: ``(instance, method_name, exception)`` for each failure.
    """

    def __init__(self, errors: List[Tuple[Any, str, BaseException]]) -> None:
        self.errors = errors
        failed = ", ".join(f"{_type_name(type(instance))}.{method}()" for instance, method, _ in errors)
        super().__init__(f"Pre-destroy hooks failed: {failed}")
