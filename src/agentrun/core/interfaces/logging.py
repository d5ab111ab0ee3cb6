from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Logging interface the core emits through.

    Messages carry a bracketed component tag (`[job:poll]`, `[catalog:list]`)
    followed by key=value pairs so a single agent run can be followed in the
    logs by tag and correlation id.
    """

    @abstractmethod
    def info(self, msg: str, *args): ...

    @abstractmethod
    def warning(self, msg: str, *args): ...

    @abstractmethod
    def error(self, msg: str, *args): ...

    @abstractmethod
    def debug(self, msg: str, *args): ...
