import logging
from typing import AbstractSet, Any, Dict, Optional, Tuple

from bindwire.application.metadata_provider import is_builtin, is_interface
from bindwire.domain import (
    DEFAULT_QUALIFIER,
    BindingEntry,
    BindingKind,
    Definition,
    IInstanceGetter,
    IMetadataProvider,
    IModule,
    JitKind,
    Lazy,
    MethodSpec,
    NotBoundError,
    NotInstantiableError,
    OptionalInjectionNotBound,
    ParameterSpec,
    Scope,
)

logger = logging.getLogger(__name__)

CONSTRUCTOR = "__init__"


def _name(value: Any) -> str:
    return getattr(value, "__qualname__", None) or str(value)


class DependencyResolver:
    """Resolves constructor and setter parameters from bindings.

    Explicit module bindings win over declared defaults, which win over
    just-in-time bindings derived from a type's own ``@implemented_by`` or
    ``@provided_by`` hints (a concrete class is implemented by itself).

    Attributes:
        _metadata: Source of class definitions.
        _getter: Capability producing class and provider instances.
    """

    def __init__(self, metadata: IMetadataProvider, getter: IInstanceGetter) -> None:
        self._metadata = metadata
        self._getter = getter

    def bind_module(
        self,
        owner: type,
        definition: Definition,
        module: IModule,
        provided: AbstractSet[str] = frozenset(),
    ) -> Tuple[Dict[str, Any], Dict[str, Dict[str, Any]]]:
        """Bind the injection points of a class.

        Args:
            owner: The class being constructed.
            definition: Definition of ``owner``.
            module: Active binding module.
            provided: Constructor parameter names already supplied by the caller.

        Returns:
            Constructor values by parameter name, and setter values by
            method name then parameter name.
        """
        constructor_params: Dict[str, Any] = {}
        if definition.inject_constructor:
            method = MethodSpec(name=CONSTRUCTOR, parameters=definition.constructor_parameters)
            constructor_params = self.bind_method(owner, method, module, provided) or {}

        setters: Dict[str, Dict[str, Any]] = {}
        for method in definition.setter_methods:
            values = self.bind_method(owner, method, module)
            if values is not None:
                setters[method.name] = values
        return constructor_params, setters

    def bind_method(
        self,
        owner: type,
        method: MethodSpec,
        module: IModule,
        provided: AbstractSet[str] = frozenset(),
    ) -> Optional[Dict[str, Any]]:
        """Bind every parameter of one injection method.

        Optional parameters without a binding are left unset. A setter that
        would then miss a required argument is skipped altogether (None).
        """
        values: Dict[str, Any] = {}
        for index, param in enumerate(method.parameters):
            if param.name in provided:
                continue
            try:
                values[param.name] = self.bind_one_parameter(owner, param, module, index)
            except OptionalInjectionNotBound:
                logger.debug("Optional $%s of %s.%s() left unset", param.name, _name(owner), method.name)
                if method.name != CONSTRUCTOR and not param.has_default:
                    return None
        return values

    def bind_one_parameter(
        self,
        owner: type,
        param: ParameterSpec,
        module: IModule,
        index: Optional[int] = None,
    ) -> Any:
        """Return the value of one parameter.

        An optional parameter resolved just in time is left unset when its
        own dependencies turn out to be unbound.

        Raises:
            OptionalInjectionNotBound: The parameter is optional and cannot be resolved.
            NotBoundError: The parameter is required and has no binding.
        """
        binding = None
        if param.declared_type is not None:
            binding = module.get_binding(param.declared_type, param.qualifier)
        just_in_time = binding is None or binding.kind is None
        if just_in_time:
            if param.has_default:
                return param.default_value
            binding = self.jit_binding(owner, param, module, binding, index)
            if binding is None:
                raise OptionalInjectionNotBound(param.name)

        if binding.kind == BindingKind.INSTANCE:
            return binding.target

        target = param.declared_type if binding.kind == BindingKind.CONSTRUCTOR else binding.target
        scope_target = None if binding.kind == BindingKind.CALLABLE else target
        scope = self.effective_scope(binding, param.declared_type, scope_target)
        key = (param.declared_type, param.qualifier)
        if not (just_in_time and param.is_optional):
            return self._getter.get(scope, binding.kind, target, key)
        try:
            return self._getter.get(scope, binding.kind, target, key)
        except (NotBoundError, NotInstantiableError) as e:
            logger.debug("Optional $%s of %s not resolvable: %s", param.name, _name(owner), e)
            raise OptionalInjectionNotBound(param.name) from e

    def jit_binding(
        self,
        owner: type,
        param: ParameterSpec,
        module: IModule,
        explicit: Optional[BindingEntry] = None,
        index: Optional[int] = None,
    ) -> Optional[BindingEntry]:
        """Synthesize a binding from the declared type's default-binding hint.

        A scope-only explicit binding lends its scope to the synthesized one.

        Returns:
            The synthesized binding, or None for an optional parameter.

        Raises:
            NotBoundError: If there is no hint and the parameter is required.
        """
        source = param.jit_source
        scope = explicit.scope if explicit is not None else None
        if source is None:
            if param.is_optional:
                return None
            declared = _name(param.declared_type) if param.declared_type is not None else "untyped parameter"
            position = f"at argument #{index}" if index is not None else "for"
            raise NotBoundError(
                f"{declared} (qualifier '{param.qualifier}') is not bound. "
                f"Injection requested {position} ${param.name} in class {_name(owner)}.",
                module,
            )
        kind = BindingKind.CLASS if source.kind == JitKind.IMPLEMENTED_BY else BindingKind.PROVIDER
        logger.debug("JIT binding %s -> %s %s", _name(param.declared_type), kind.value, _name(source.target))
        return BindingEntry(kind=kind, target=source.target, scope=scope)

    def jit_class_binding(
        self,
        cls: type,
        definition: Definition,
        module: IModule,
        explicit: Optional[BindingEntry] = None,
    ) -> BindingEntry:
        """Synthesize the binding of an unbound interface from its own hints.

        Raises:
            NotBoundError: If the interface declares no default implementation or provider.
        """
        scope = explicit.scope if explicit is not None else None
        if definition.implemented_by is not None:
            return BindingEntry(kind=BindingKind.CLASS, target=definition.implemented_by, scope=scope)
        if definition.provided_by is not None:
            return BindingEntry(kind=BindingKind.PROVIDER, target=definition.provided_by, scope=scope)
        raise NotBoundError(f"Interface {_name(cls)} is not bound.", module)

    def effective_scope(self, binding: BindingEntry, bound_type: Optional[type], target: Any) -> Scope:
        """Scope of a binding: its own, else singleton if the bound or target class declares it."""
        if binding.scope is not None:
            return binding.scope
        for cls in (bound_type, target):
            if isinstance(cls, type) and self._metadata.fetch(cls).scope == Scope.SINGLETON:
                return Scope.SINGLETON
        return Scope.PROTOTYPE

    def constructor_inject(
        self,
        owner: type,
        definition: Definition,
        params: Dict[str, Any],
        module: IModule,
        constructor_binding: Optional[BindingEntry] = None,
    ) -> None:
        """Fill the constructor parameters still missing from ``params`` in place.

        For each missing parameter, in order: a ``to-constructor`` value, the
        declared default (left to Python), None when optional, a freshly
        constructed instance when the declared type is a concrete class.

        Raises:
            NotBoundError: For a required interface, builtin or untyped parameter.
        """
        named_values = constructor_binding.target if constructor_binding is not None else {}
        for index, param in enumerate(definition.constructor_parameters):
            if param.name in params:
                continue
            if param.name in named_values:
                value = named_values[param.name]
                params[param.name] = value() if isinstance(value, Lazy) else value
                continue
            if param.has_default:
                continue
            if param.is_optional:
                params[param.name] = None
                continue
            declared = param.declared_type
            if declared is not None and not is_interface(declared) and not is_builtin(declared):
                key = (declared, DEFAULT_QUALIFIER)
                params[param.name] = self._getter.get(Scope.PROTOTYPE, BindingKind.CLASS, declared, key)
                continue
            if declared is None or is_builtin(declared):
                message = "Valid interface is not found."
            else:
                message = f"Interface [{_name(declared)}] is not bound."
            message += f" Injection requested at argument #{index} ${param.name} in {_name(owner)} constructor."
            raise NotBoundError(message, module)
