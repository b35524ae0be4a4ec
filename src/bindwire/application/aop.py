"""Application layer - Aspect weaving.

Pointcuts pair a class matcher and a method matcher with interceptors. The
AspectBinder collects the interceptors that apply to one class; the Compiler
builds a subclass whose matched methods run through the interceptor chain.
"""

import functools
import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from bindwire.domain import IAspectBinder, ICompiler, IMethodInterceptor
from bindwire.domain.annotations import ANNOTATIONS_ATTR

logger = logging.getLogger(__name__)


class Matcher:
    """Predicate over classes or methods used by pointcuts.

    Matchers compose with ``&``, ``|`` and ``~``.

    Example:
        >>> Matcher.subclass_of(Repository) & ~Matcher.starts_with("Fake")
    """

    def __init__(self, predicate: Callable[[Any], bool], description: str) -> None:
        self._predicate = predicate
        self._description = description

    def matches(self, target: Any) -> bool:
        return bool(self._predicate(target))

    @classmethod
    def any(cls) -> "Matcher":
        return cls(lambda target: True, "any()")

    @classmethod
    def subclass_of(cls, base: type) -> "Matcher":
        return cls(lambda target: inspect.isclass(target) and issubclass(target, base), f"subclass_of({base.__name__})")

    @classmethod
    def starts_with(cls, prefix: str) -> "Matcher":
        return cls(lambda target: getattr(target, "__name__", "").startswith(prefix), f"starts_with({prefix!r})")

    @classmethod
    def annotated_with(cls, marker: Any) -> "Matcher":
        return cls(
            lambda target: marker in getattr(target, ANNOTATIONS_ATTR, ()),
            f"annotated_with({getattr(marker, '__name__', marker)!r})",
        )

    def __and__(self, other: "Matcher") -> "Matcher":
        return Matcher(lambda target: self.matches(target) and other.matches(target), f"({self} & {other})")

    def __or__(self, other: "Matcher") -> "Matcher":
        return Matcher(lambda target: self.matches(target) or other.matches(target), f"({self} | {other})")

    def __invert__(self) -> "Matcher":
        return Matcher(lambda target: not self.matches(target), f"~{self}")

    def __repr__(self) -> str:
        return self._description


class Pointcut(BaseModel):
    """Interceptors applied to the methods selected by two matchers."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    class_matcher: Matcher
    method_matcher: Matcher
    interceptors: Tuple[IMethodInterceptor, ...] = Field(default_factory=tuple)


def _public_methods(cls: type) -> Dict[str, Callable[..., Any]]:
    methods: Dict[str, Callable[..., Any]] = {}
    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            if inspect.isfunction(member) and not name.startswith("__"):
                methods[name] = member
    return methods


class AspectBinder(IAspectBinder):
    """Collects the interceptors bound to the methods of one class."""

    def __init__(self) -> None:
        self._bindings: Dict[str, List[IMethodInterceptor]] = {}

    def bind(self, cls: type, pointcuts: Sequence[Pointcut]) -> "AspectBinder":
        for pointcut in pointcuts:
            if not pointcut.class_matcher.matches(cls):
                continue
            for name, method in _public_methods(cls).items():
                if pointcut.method_matcher.matches(method):
                    self._bindings.setdefault(name, []).extend(pointcut.interceptors)
        return self

    def has_binding(self, cls: type, params: Mapping[str, Any]) -> bool:
        return bool(self._bindings)

    @property
    def bindings(self) -> Dict[str, List[IMethodInterceptor]]:
        return self._bindings

    def __repr__(self) -> str:
        return f"AspectBinder({sorted(self._bindings)})"


class MethodInvocation:
    """One call of an intercepted method travelling through its interceptors.

    Attributes:
        this: The intercepted instance.
        method: The original, unbound method.
        arguments: Positional arguments of the call.
        named_arguments: Keyword arguments of the call.
    """

    def __init__(
        self,
        this: Any,
        method: Callable[..., Any],
        arguments: Tuple[Any, ...],
        named_arguments: Dict[str, Any],
        interceptors: Sequence[IMethodInterceptor],
    ) -> None:
        self.this = this
        self.method = method
        self.arguments = arguments
        self.named_arguments = named_arguments
        self._interceptors = interceptors
        self._index = 0

    def proceed(self) -> Any:
        """Call the next interceptor, or the original method once all have run."""
        if self._index < len(self._interceptors):
            interceptor = self._interceptors[self._index]
            self._index += 1
            return interceptor.invoke(self)
        return self.method(self.this, *self.arguments, **self.named_arguments)


def _intercepted(method: Callable[..., Any], interceptors: Tuple[IMethodInterceptor, ...]) -> Callable[..., Any]:
    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        return MethodInvocation(self, method, args, kwargs, interceptors).proceed()

    return wrapper


class Compiler(ICompiler):
    """Builds intercepted subclasses and instantiates them.

    Generated classes are cached per class and interceptor set.
    """

    def __init__(self) -> None:
        self._classes: Dict[Tuple[Any, ...], type] = {}

    def compile(self, cls: type, bind: IAspectBinder) -> type:
        """Return a subclass of ``cls`` with the bound methods intercepted."""
        bindings = tuple((name, tuple(interceptors)) for name, interceptors in sorted(bind.bindings.items()))
        key = (cls, bindings)
        weaved = self._classes.get(key)
        if weaved is None:
            methods = _public_methods(cls)
            namespace: Dict[str, Any] = {
                name: _intercepted(methods[name], interceptors) for name, interceptors in bindings if name in methods
            }
            namespace["__module__"] = cls.__module__
            namespace["__qualname__"] = cls.__qualname__
            weaved = type(cls.__name__, (cls,), namespace)
            self._classes[key] = weaved
            logger.debug("Weaved %s: %s", cls.__qualname__, [name for name, _ in bindings])
        return weaved

    def new_instance(self, cls: type, params: Mapping[str, Any], bind: IAspectBinder) -> Any:
        return self.compile(cls, bind)(**params)
