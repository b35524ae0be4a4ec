import functools
import inspect
from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from bindwire.application import Injector

T = TypeVar("T")


def create_fastapi_dependency(injector: Injector, dependency_type: Type[T]) -> Callable[[], T]:
    """Create a FastAPI Depends() callable that constructs from the injector.

    The constructed instance follows the scope of its binding (singleton or
    prototype).

    Args:
        injector: The injector to construct dependencies with.
        dependency_type: The type to construct when the dependency is called.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> injector = Injector.create([AppModule()])
        >>> get_user_repo = create_fastapi_dependency(injector, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> T:
        """Construct the dependency with the injector."""
        return injector.construct(dependency_type)

    return dependency


def create_scoped_dependency(dependency_type: Type[T]) -> Callable[[Request], T]:
    """Create a FastAPI dependency that uses the request-scoped injector.

    Requires the ScopedInjectorMiddleware to be installed.

    Args:
        dependency_type: The type to construct with the request's injector.

    Returns:
        A callable that constructs with the request-scoped injector.

    Example:
        >>> app.add_middleware(ScopedInjectorMiddleware, injector=injector)
        >>>
        >>> get_request_context = create_scoped_dependency(RequestContext)
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx: RequestContext = Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    def scoped_dependency(request: Request) -> T:
        """Construct with the request's scoped injector."""
        if not hasattr(request.state, "injector"):
            raise RuntimeError(
                "Request does not have a scoped injector. Did you forget to add ScopedInjectorMiddleware?"
            )
        scoped_injector: Injector = request.state.injector
        return scoped_injector.construct(dependency_type)

    return scoped_dependency


class ScopedInjectorMiddleware(BaseHTTPMiddleware):
    """Middleware that creates an injector scope for each request.

    Singletons created during the request stay in the request's scope, and
    the scope's pre-destroy hooks run once the response is produced.

    The scoped injector is accessible via `request.state.injector`.

    Attributes:
        injector: The parent injector to create scopes from.
    """

    def __init__(self, app: FastAPI, injector: Injector):
        """Initialize the middleware with a parent injector.

        Args:
            app: The FastAPI/Starlette application.
            injector: The parent injector to create scopes from.
        """
        super().__init__(app)
        self.injector = injector

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Create a scoped injector for the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        scoped_injector = self.injector.create_scope()
        request.state.injector = scoped_injector

        try:
            response = await call_next(request)
            return response
        finally:
            scoped_injector.shutdown()


def inject_dependencies(injector: Injector, **dependency_types: Type[Any]) -> Callable:
    """Decorator that constructs dependencies for an endpoint function.

    Each keyword maps a parameter name to the type constructed for it. The
    parameters are hidden from the endpoint signature FastAPI inspects.

    Args:
        injector: The injector to construct with.
        **dependency_types: Parameter names mapped to types.

    Returns:
        A decorator function.

    Example:
        >>> @app.get("/users")
        >>> @inject_dependencies(injector, user_service=UserService)
        >>> async def list_users(user_service: UserService):
        ...     return await user_service.get_all()
    """

    def decorator(func: Callable) -> Callable:
        """Wrap the function with injection logic."""
        signature = inspect.signature(func)
        visible = [param for name, param in signature.parameters.items() if name not in dependency_types]

        def resolve(kwargs: Dict[str, Any]) -> Dict[str, Any]:
            for param_name, dependency_type in dependency_types.items():
                if param_name not in kwargs:
                    kwargs[param_name] = injector.construct(dependency_type)
            return kwargs

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                return await func(*args, **resolve(kwargs))

            wrapper: Callable = async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args, **kwargs):
                return func(*args, **resolve(kwargs))

            wrapper = sync_wrapper

        wrapper.__signature__ = signature.replace(parameters=visible)  # type: ignore[attr-defined]
        return wrapper

    return decorator
