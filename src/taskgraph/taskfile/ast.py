"""Taskfile document model and YAML decoding."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

from taskgraph.errors import ResolutionError

MINIMUM_SCHEMA_MAJOR = 3


class TaskfileDecodeError(ResolutionError):
    """Raised when a Taskfile's YAML structure is invalid."""

    def __init__(self, message: str, location: str = ""):
        self.location = location
        if location:
            message = f"{location}: {message}"
        super().__init__(message)


@dataclass(frozen=True)
class LiteralCmd:
    """A shell command executed as-is."""

    cmd: str
    deferred: bool = False


@dataclass(frozen=True)
class TaskCall:
    """A command entry that invokes another task by name."""

    task: str
    deferred: bool = False


Cmd = Union[LiteralCmd, TaskCall]


@dataclass(frozen=True)
class Dep:
    """An explicit dependency on another task."""

    task: str


@dataclass
class Task:
    """Represents a task definition."""

    name: str
    desc: str = ""
    deps: list[Dep] = field(default_factory=list)
    cmds: list[Cmd] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)

    def task_calls(self) -> list[TaskCall]:
        """Command entries that call other tasks, in declared order."""
        return [cmd for cmd in self.cmds if isinstance(cmd, TaskCall)]


@dataclass
class Include:
    """An entry of a Taskfile's ``includes`` section."""

    namespace: str
    taskfile: str
    optional: bool = False
    flatten: bool = False
    aliases: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)

    def __post_init__(self):
        """Ensure lists are always lists."""
        if isinstance(self.aliases, str):
            self.aliases = [self.aliases]
        if isinstance(self.excludes, str):
            self.excludes = [self.excludes]


@dataclass
class Taskfile:
    """A single decoded Taskfile, or the result of merging several."""

    location: str
    version: str
    includes: dict[str, Include] = field(default_factory=dict)
    tasks: dict[str, Task] = field(default_factory=dict)

    @property
    def major_version(self) -> int:
        return int(self.version.split(".", 1)[0])

    def get_task(self, name: str) -> Task | None:
        """Get task by name or alias.

        Args:
            name: Task name (may be namespaced like 'docs:build')

        Returns:
            Task if found, None otherwise
        """
        task = self.tasks.get(name)
        if task is not None:
            return task
        for candidate in self.tasks.values():
            if name in candidate.aliases:
                return candidate
        return None

    def task_names(self) -> list[str]:
        """Get all task names in iteration order."""
        return list(self.tasks.keys())

    def copy(self) -> Taskfile:
        """Shallow copy with fresh task and include mappings."""
        return replace(
            self,
            includes=dict(self.includes),
            tasks={name: replace(task) for name, task in self.tasks.items()},
        )


def normalize_version(raw: Any, location: str = "") -> str:
    """Normalize a schema version to ``major.minor.patch``.

    Examples:
        >>> normalize_version(3)
        '3.0.0'
        >>> normalize_version("3.1")
        '3.1.0'
    """
    if raw is None or raw == "":
        raise TaskfileDecodeError("missing schema version", location)

    parts = str(raw).strip().split(".")
    if len(parts) > 3 or not all(part.isdigit() for part in parts):
        raise TaskfileDecodeError(f"invalid schema version '{raw}'", location)
    while len(parts) < 3:
        parts.append("0")

    if int(parts[0]) < MINIMUM_SCHEMA_MAJOR:
        raise TaskfileDecodeError(
            f"schema version {raw} is no longer supported, use version {MINIMUM_SCHEMA_MAJOR}",
            location,
        )
    return ".".join(str(int(part)) for part in parts)


def decode_taskfile(data: Any, location: str) -> Taskfile:
    """Decode a loaded YAML document into a Taskfile.

    Args:
        data: Result of ``yaml.safe_load`` on the Taskfile contents
        location: URI the document was read from (used in error messages)

    Returns:
        Decoded Taskfile

    Raises:
        TaskfileDecodeError: If the document structure is invalid
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TaskfileDecodeError("Taskfile must be a mapping", location)

    version = normalize_version(data.get("version"), location)

    includes: dict[str, Include] = {}
    includes_data = data.get("includes") or {}
    if not isinstance(includes_data, dict):
        raise TaskfileDecodeError("'includes' must be a mapping", location)
    for namespace, include_data in includes_data.items():
        includes[str(namespace)] = _decode_include(str(namespace), include_data, location)

    tasks: dict[str, Task] = {}
    tasks_data = data.get("tasks") or {}
    if not isinstance(tasks_data, dict):
        raise TaskfileDecodeError("'tasks' must be a mapping", location)
    for task_name, task_data in tasks_data.items():
        tasks[str(task_name)] = _decode_task(str(task_name), task_data, location)

    return Taskfile(location=location, version=version, includes=includes, tasks=tasks)


def _decode_include(namespace: str, include_data: Any, location: str) -> Include:
    if isinstance(include_data, str):
        return Include(namespace=namespace, taskfile=include_data)

    if not isinstance(include_data, dict):
        raise TaskfileDecodeError(
            f"include '{namespace}' must be a string or a mapping", location
        )

    taskfile = include_data.get("taskfile")
    if not taskfile or not isinstance(taskfile, str):
        raise TaskfileDecodeError(
            f"include '{namespace}' is missing required 'taskfile' field", location
        )

    return Include(
        namespace=namespace,
        taskfile=taskfile,
        optional=bool(include_data.get("optional", False)),
        flatten=bool(include_data.get("flatten", False)),
        aliases=include_data.get("aliases", []) or [],
        excludes=include_data.get("excludes", []) or [],
    )


def _decode_task(task_name: str, task_data: Any, location: str) -> Task:
    # Short forms: a bare command string or a list of commands
    if task_data is None:
        return Task(name=task_name)
    if isinstance(task_data, str):
        return Task(name=task_name, cmds=[LiteralCmd(task_data)])
    if isinstance(task_data, list):
        return Task(
            name=task_name,
            cmds=[_decode_cmd(task_name, entry, location) for entry in task_data],
        )
    if not isinstance(task_data, dict):
        raise TaskfileDecodeError(
            f"task '{task_name}' must be a string, a list, or a mapping", location
        )

    deps_data = task_data.get("deps") or []
    if not isinstance(deps_data, list):
        raise TaskfileDecodeError(f"task '{task_name}': 'deps' must be a list", location)

    cmds_data = task_data.get("cmds")
    if cmds_data is None:
        cmds_data = [task_data["cmd"]] if task_data.get("cmd") else []
    if not isinstance(cmds_data, list):
        raise TaskfileDecodeError(f"task '{task_name}': 'cmds' must be a list", location)

    aliases = task_data.get("aliases") or []
    if isinstance(aliases, str):
        aliases = [aliases]

    return Task(
        name=task_name,
        desc=str(task_data.get("desc") or ""),
        deps=[_decode_dep(task_name, entry, location) for entry in deps_data],
        cmds=[_decode_cmd(task_name, entry, location) for entry in cmds_data],
        aliases=[str(alias) for alias in aliases],
    )


def _decode_dep(task_name: str, dep_data: Any, location: str) -> Dep:
    if isinstance(dep_data, str):
        return Dep(task=dep_data)
    if isinstance(dep_data, dict) and isinstance(dep_data.get("task"), str):
        return Dep(task=dep_data["task"])
    raise TaskfileDecodeError(
        f"task '{task_name}': dependency must be a task name or have a 'task' field",
        location,
    )


def _decode_cmd(task_name: str, cmd_data: Any, location: str, deferred: bool = False) -> Cmd:
    if isinstance(cmd_data, str):
        return LiteralCmd(cmd_data, deferred=deferred)

    if isinstance(cmd_data, dict):
        if isinstance(cmd_data.get("task"), str):
            return TaskCall(cmd_data["task"], deferred=deferred)
        if isinstance(cmd_data.get("cmd"), str):
            return LiteralCmd(cmd_data["cmd"], deferred=deferred)
        if "defer" in cmd_data and not deferred:
            return _decode_cmd(task_name, cmd_data["defer"], location, deferred=True)

    raise TaskfileDecodeError(
        f"task '{task_name}': command must be a string or have a 'cmd', 'task' or 'defer' field",
        location,
    )
