from taskgraph.logging import Logger, LogLevel


class RecordingLogger(Logger):
    """
    Logger that keeps the first positional argument of every message as a line.
    """

    def __init__(self, level: LogLevel = LogLevel.TRACE):
        self.level = level
        self.records: list[tuple[LogLevel, str]] = []

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        if level.value <= self.level.value:
            self.records.append((level, str(args[0]) if args else ""))

    def push_level(self, level: LogLevel) -> None:
        pass

    def pop_level(self) -> LogLevel:
        return self.level

    def lines(self, level: LogLevel | None = None) -> list[str]:
        """Recorded lines, optionally only those logged at ``level``."""
        return [line for lvl, line in self.records if level is None or lvl is level]

    def text(self) -> str:
        return "\n".join(self.lines()) + "\n"
