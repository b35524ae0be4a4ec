from typing import Any, Callable


class Lazy:
    """Wraps a zero-argument callable for deferred evaluation.

    Every call re-runs the wrapped callable; results are not memoized.

    Example:
        >>> lazy_db = Lazy(lambda: injector.construct(Database))
        >>> db = lazy_db()
    """

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[], Any]) -> None:
        self._func = func

    def __call__(self) -> Any:
        return self._func()

    def __repr__(self) -> str:
        return f"Lazy({self._func!r})"
