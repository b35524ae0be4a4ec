import inspect
import logging
from types import UnionType
from typing import Annotated, Any, Callable, Dict, List, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from bindwire.domain import (
    DEFAULT_QUALIFIER,
    Definition,
    IMetadataProvider,
    JitKind,
    JitSource,
    MethodSpec,
    Named,
    NotReadableError,
    ParameterSpec,
    Scope,
)
from bindwire.domain.annotations import (
    IMPLEMENTED_BY_ATTR,
    INJECT_ATTR,
    POST_CONSTRUCT_ATTR,
    PRE_DESTROY_ATTR,
    PROVIDED_BY_ATTR,
    SCOPE_ATTR,
)

logger = logging.getLogger(__name__)

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def is_interface(cls: type) -> bool:
    """Return True for abstract classes and ``typing.Protocol`` classes."""
    return inspect.isabstract(cls) or bool(getattr(cls, "_is_protocol", False))


def is_builtin(cls: type) -> bool:
    return getattr(cls, "__module__", None) == "builtins"


class AnnotationMetadataProvider(IMetadataProvider):
    """Builds class definitions from signatures, type hints and annotations.

    Uses Python's inspect module to analyze constructor and setter
    signatures. Definitions are cached per class.

    Attributes:
        _autowire_constructor: Treat every ``__init__`` as an injection point.
        _definitions: Cache of definitions already built.
    """

    def __init__(self, autowire_constructor: bool = True) -> None:
        self._autowire_constructor = autowire_constructor
        self._definitions: Dict[type, Definition] = {}

    def fetch(self, cls: type) -> Definition:
        """Return the Definition of a class.

        Args:
            cls: The class to describe.

        Returns:
            Definition with constructor and setter parameters, scope,
            lifecycle hooks and default-binding hints.

        Raises:
            NotReadableError: If ``cls`` is not a class or its type hints
                cannot be evaluated.

        Example:
            >>> class UserService:
            ...     def __init__(self, repo: UserRepository):
            ...         self.repo = repo
            >>>
            >>> definition = AnnotationMetadataProvider().fetch(UserService)
            >>> definition.constructor_parameters[0].declared_type
            <class 'UserRepository'>
        """
        if not inspect.isclass(cls):
            raise NotReadableError(cls, "not a class")
        definition = self._definitions.get(cls)
        if definition is None:
            definition = self._read(cls)
            self._definitions[cls] = definition
        return definition

    def _read(self, cls: type) -> Definition:
        own = vars(cls)
        constructor_parameters: List[ParameterSpec] = []
        inject_constructor = False
        if not is_interface(cls) and inspect.isfunction(cls.__init__):
            marker = getattr(cls.__init__, INJECT_ATTR, None)
            constructor_parameters = self._read_parameters(cls, cls.__init__, marker is not None and marker.optional)
            inject_constructor = marker is not None or self._autowire_constructor

        setter_methods: List[MethodSpec] = []
        post_construct: Optional[str] = None
        pre_destroy: Optional[str] = None
        for name, member in self._members(cls):
            if getattr(member, POST_CONSTRUCT_ATTR, False):
                post_construct = name
            if getattr(member, PRE_DESTROY_ATTR, False):
                pre_destroy = name
            marker = getattr(member, INJECT_ATTR, None)
            if marker is not None and name != "__init__":
                setter_methods.append(
                    MethodSpec(name=name, parameters=self._read_parameters(cls, member, marker.optional))
                )

        return Definition(
            constructor_parameters=constructor_parameters,
            inject_constructor=inject_constructor,
            setter_methods=setter_methods,
            scope=own.get(SCOPE_ATTR, Scope.PROTOTYPE),
            post_construct=post_construct,
            pre_destroy=pre_destroy,
            implemented_by=own.get(IMPLEMENTED_BY_ATTR),
            provided_by=own.get(PROVIDED_BY_ATTR),
        )

    @staticmethod
    def _members(cls: type) -> List[Tuple[str, Callable[..., Any]]]:
        """Plain functions of the class in definition order, base classes first."""
        members: Dict[str, Callable[..., Any]] = {}
        for klass in reversed(cls.__mro__):
            for name, member in vars(klass).items():
                if inspect.isfunction(member):
                    members.pop(name, None)
                    members[name] = member
        return list(members.items())

    def _read_parameters(self, cls: type, method: Callable[..., Any], optional: bool) -> List[ParameterSpec]:
        try:
            signature = inspect.signature(method)
            type_hints = get_type_hints(method, include_extras=True)
        except (NameError, TypeError, ValueError) as e:
            logger.warning("Cannot read type hints of %s.%s: %s", cls.__qualname__, method.__name__, e)
            raise NotReadableError(cls, f"cannot read signature of {method.__name__}(): {e}") from e

        parameters: List[ParameterSpec] = []
        for index, (param_name, param) in enumerate(signature.parameters.items()):
            # Skip the bound instance
            if index == 0 and param_name in ("self", "cls"):
                continue
            if param.kind in _SKIPPED_KINDS:
                continue
            parameters.append(self._read_parameter(param, type_hints.get(param_name), optional))
        return parameters

    def _read_parameter(self, param: inspect.Parameter, hint: Any, optional: bool) -> ParameterSpec:
        qualifier = DEFAULT_QUALIFIER
        if get_origin(hint) is Annotated:
            for extra in hint.__metadata__:
                if isinstance(extra, Named):
                    qualifier = extra.name
            hint = get_args(hint)[0]

        # Optional[X] is injected as X and may stay unbound
        if get_origin(hint) in (Union, UnionType):
            members = [arg for arg in get_args(hint) if arg is not type(None)]
            if len(members) == 1 and len(get_args(hint)) == 2:
                hint = members[0]
                optional = True

        declared_type = hint if inspect.isclass(hint) and get_origin(hint) is None else None
        has_default = param.default is not inspect.Parameter.empty
        return ParameterSpec(
            name=param.name,
            declared_type=declared_type,
            qualifier=qualifier,
            has_default=has_default,
            default_value=param.default if has_default else None,
            is_optional=optional,
            jit_source=self._jit_source(declared_type),
        )

    @staticmethod
    def _jit_source(declared_type: Optional[type]) -> Optional[JitSource]:
        if declared_type is None:
            return None
        own = vars(declared_type)
        if own.get(IMPLEMENTED_BY_ATTR) is not None:
            return JitSource(kind=JitKind.IMPLEMENTED_BY, target=own[IMPLEMENTED_BY_ATTR])
        if own.get(PROVIDED_BY_ATTR) is not None:
            return JitSource(kind=JitKind.PROVIDED_BY, target=own[PROVIDED_BY_ATTR])
        if not is_builtin(declared_type) and not is_interface(declared_type):
            # A concrete class is implemented by itself
            return JitSource(kind=JitKind.IMPLEMENTED_BY, target=declared_type)
        return None

    def clear(self) -> None:
        """Forget every cached definition."""
        self._definitions.clear()
