from rich.console import Console

from taskgraph.logging import Logger, LogLevel

# Applied to messages that don't bring their own style; report lines (INFO) stay plain
LEVEL_STYLES = {
    LogLevel.FATAL: "bold red",
    LogLevel.ERROR: "red",
    LogLevel.WARN: "yellow",
    LogLevel.DEBUG: "dim",
    LogLevel.TRACE: "dim",
}


class ConsoleLogger(Logger):
    """Logger that prints to a Rich console, colouring diagnostics by level.

    The report itself is logged at INFO and printed unstyled. Errors, prompts
    and provider diagnostics get a level style so they stand out from it.
    """

    def __init__(self, console: Console, level: LogLevel = LogLevel.INFO) -> None:
        self.console = console
        self._stack = [level]

    @property
    def level(self) -> LogLevel:
        return self._stack[-1]

    def enabled(self, level: LogLevel) -> bool:
        """Whether a message at ``level`` would currently be printed."""
        return level.value <= self.level.value

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        if not self.enabled(level):
            return
        style = LEVEL_STYLES.get(level)
        if style is not None:
            kwargs.setdefault("style", style)
        self.console.print(*args, **kwargs)

    def push_level(self, level: LogLevel) -> None:
        self._stack.append(level)

    def pop_level(self) -> LogLevel:
        """
        Raises:
            RuntimeError: If only the level the logger was created with is left
        """
        if len(self._stack) == 1:
            raise RuntimeError("Cannot pop the base log level")
        return self._stack.pop()
