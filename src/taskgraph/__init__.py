"""taskgraph - Inspect a Taskfile's includes and task dependency tree."""

__version__ = "0.1.0"

from taskgraph.errors import (
    CycleError,
    ErrorKind,
    MergeError,
    ResolutionError,
    TaskgraphError,
    TaskNotFoundError,
)
from taskgraph.provider import DocumentProvider, TaskfileProvider
from taskgraph.render import (
    print_inclusion_graph,
    print_report,
    print_task_list,
    show_dependency_tree,
    show_start_tree,
)

__all__ = [
    "__version__",
    "CycleError",
    "ErrorKind",
    "MergeError",
    "ResolutionError",
    "TaskgraphError",
    "TaskNotFoundError",
    "DocumentProvider",
    "TaskfileProvider",
    "print_inclusion_graph",
    "print_report",
    "print_task_list",
    "show_dependency_tree",
    "show_start_tree",
]
