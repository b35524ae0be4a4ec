from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from bindwire.application import AbstractModule, EmptyModule, Injector
from bindwire.domain import DEFAULT_QUALIFIER, BindingEntry, BindingKind, InjectorConfig, Scope

T = TypeVar("T")


class TestInjector(Injector):
    """Injector for testing with binding override capabilities.

    Starts from a production module and lets tests replace selected
    bindings with instances, classes or factories. Overrides are layered on
    top of the module and can be reset at any time.

    This is useful for:
    - Mocking external services (databases, APIs, etc.)
    - Replacing implementations with test doubles
    - Isolating tests from shared singletons

    Attributes:
        _base_module: The module whose bindings are overridden.
        _overrides: Override entries keyed by ``(type, qualifier)``.

    Example:
        >>> def test_user_service():
        ...     test_injector = TestInjector(AppModule())
        ...
        ...     # Override EmailService with mock
        ...     mock_email = MockEmailService()
        ...     test_injector.mock_instance(EmailService, mock_email)
        ...
        ...     # UserService will get mocked EmailService
        ...     service = test_injector.construct(UserService)
        ...     service.send_welcome_email(user)
        ...
        ...     assert mock_email.send_called
    """

    __test__ = False  # Tell pytest not to collect this class as a test

    def __init__(self, module: Optional[AbstractModule] = None, config: Optional[InjectorConfig] = None) -> None:
        """Initialize the test injector.

        Args:
            module: Optional module to start from. If None, no bindings exist.
            config: Optional injector configuration.
        """
        self._base_module = module or EmptyModule()
        self._overrides: Dict[Tuple[Any, str], BindingEntry] = {}
        super().__init__(self._compose(), config=config)

    def _compose(self) -> AbstractModule:
        module = EmptyModule()
        module.install(self._base_module)
        module.bindings.update(self._overrides)
        return module

    def _refresh(self) -> None:
        # Singletons built from replaced bindings must not survive
        self._store.clear()
        self.set_module(self._compose())

    def mock_instance(self, dependency_type: Type[T], mock_instance: T, qualifier: str = DEFAULT_QUALIFIER) -> None:
        """Bind a type to a mock instance.

        Example:
            >>> test_injector = TestInjector(AppModule())
            >>> mock_db = MockDatabase()
            >>> test_injector.mock_instance(DatabaseConnection, mock_db)
            >>> assert test_injector.construct(UserService).db is mock_db
        """
        self._overrides[(dependency_type, qualifier)] = BindingEntry(kind=BindingKind.INSTANCE, target=mock_instance)
        self._refresh()

    def mock_class(
        self,
        dependency_type: Type[T],
        implementation: type,
        scope: Optional[Scope] = None,
        qualifier: str = DEFAULT_QUALIFIER,
    ) -> None:
        """Bind a type to a replacement class."""
        self._overrides[(dependency_type, qualifier)] = BindingEntry(
            kind=BindingKind.CLASS,
            target=implementation,
            scope=scope,
        )
        self._refresh()

    def mock_factory(
        self,
        dependency_type: Type[T],
        factory: Callable[[], T],
        qualifier: str = DEFAULT_QUALIFIER,
    ) -> None:
        """Bind a type to a factory called on each resolution.

        Example:
            >>> test_injector.mock_factory(RequestHandler, lambda: MockRequestHandler())
            >>> handler1 = test_injector.construct(RequestHandler)
            >>> handler2 = test_injector.construct(RequestHandler)
            >>> assert handler1 is not handler2
        """
        self._overrides[(dependency_type, qualifier)] = BindingEntry(kind=BindingKind.CALLABLE, target=factory)
        self._refresh()

    def reset_overrides(self) -> None:
        """Remove all overrides and restore the module's bindings."""
        self._overrides.clear()
        self._refresh()

    def __enter__(self) -> "TestInjector":
        """Context manager entry - returns self."""
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        """Context manager exit - run pre-destroy hooks and drop overrides."""
        self.shutdown()
        self.reset_overrides()
        return False


def create_mock_injector(*instances: Tuple[Type, Any]) -> TestInjector:
    """Create a test injector with pre-configured mock instances.

    Args:
        *instances: Tuples of (dependency_type, mock_instance).

    Returns:
        TestInjector with mocked dependencies.

    Example:
        >>> test_injector = create_mock_injector(
        ...     (DatabaseConnection, mock_db),
        ...     (CacheService, mock_cache),
        ... )
        >>> service = test_injector.construct(UserService)
    """
    injector = TestInjector()

    for dependency_type, mock_instance in instances:
        injector.mock_instance(dependency_type, mock_instance)

    return injector


class MockScope:
    """Context manager for scoped testing with automatic teardown.

    Example:
        >>> with MockScope(injector) as scoped:
        ...     service = scoped.construct(RequestService)
        ...
        ... # Pre-destroy hooks of the scope have run here
    """

    def __init__(self, parent_injector: Injector) -> None:
        """Initialize the mock scope.

        Args:
            parent_injector: The injector to create the scope from.
        """
        self._parent_injector = parent_injector
        self._scoped_injector: Optional[Injector] = None

    def __enter__(self) -> Injector:
        """Enter the scoped context and create a scoped injector.

        Returns:
            The scoped injector instance.
        """
        self._scoped_injector = self._parent_injector.create_scope()
        return self._scoped_injector

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        """Exit the scoped context and shut the scoped injector down."""
        if self._scoped_injector:
            self._scoped_injector.shutdown()
            self._scoped_injector = None
        return False
