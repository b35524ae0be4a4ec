import logging
from typing import Any, Mapping, Optional

from bindwire.domain import IAspectBinder, IInjectionLogger


class InjectionLogger(IInjectionLogger):
    """Writes one log record per constructed instance.

    Example:
        >>> injector.set_logger(InjectionLogger())
        >>> injector.construct(UserService)
        # DEBUG bindwire.injection: UserService(repo=<UserRepository ...>) setters=[] aspects=[]
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> None:
        self.logger = logger or logging.getLogger("bindwire.injection")
        self.level = level

    def log(
        self,
        cls: type,
        params: Mapping[str, Any],
        setters: Mapping[str, Mapping[str, Any]],
        instance: Any,
        bind: IAspectBinder,
    ) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        arguments = ", ".join(f"{name}={self._describe(value)}" for name, value in params.items())
        self.logger.log(
            self.level,
            "%s(%s) setters=%s aspects=%s instance=%s",
            cls.__qualname__,
            arguments,
            sorted(setters),
            sorted(bind.bindings),
            hex(id(instance)),
        )

    @staticmethod
    def _describe(value: Any) -> str:
        if isinstance(value, (str, int, float, bool, type(None))):
            return repr(value)
        return f"<{type(value).__qualname__} {hex(id(value))}>"
