"""Text rendering of a Taskfile's inclusion graph and task dependencies."""

from __future__ import annotations

from rich.markup import escape

from taskgraph.errors import TaskNotFoundError
from taskgraph.logging import Logger
from taskgraph.taskfile import TaskCall, Taskfile, TaskfileGraph

INDENT = "  "


def print_report(
    logger: Logger,
    graph: TaskfileGraph,
    taskfile: Taskfile,
    start_task: str,
    strict: bool = False,
) -> None:
    """Print the full analysis of a merged Taskfile.

    Args:
        logger: Logger interface for output
        graph: Inclusion graph the Taskfile was merged from
        taskfile: Merged Taskfile
        start_task: Task the dependency tree is rooted at
        strict: Raise TaskNotFoundError when ``start_task`` doesn't exist

    Raises:
        CycleError: If the inclusion graph is cyclic
        TaskNotFoundError: In strict mode, if ``start_task`` doesn't exist
    """
    logger.info("=== Taskfile Graph Analysis ===")
    logger.info(f"Location: {escape(taskfile.location)}")
    logger.info(f"Version: {taskfile.version}")
    logger.info("")

    logger.info("=== Taskfile Inclusion Graph ===")
    print_inclusion_graph(logger, graph)
    logger.info("")

    logger.info("=== Task Dependencies ===")
    print_task_list(logger, taskfile)

    show_start_tree(logger, taskfile, start_task, strict=strict)


def print_inclusion_graph(logger: Logger, graph: TaskfileGraph) -> None:
    """Print every Taskfile in topological order with the includes it declares.

    Raises:
        CycleError: If the inclusion graph is cyclic
    """
    for position, uri in enumerate(graph.topological_sort(), 1):
        vertex = graph.vertex(uri)
        logger.info(f"{position}. Taskfile: {escape(vertex.uri)}")

        includes = vertex.taskfile.includes
        if includes:
            logger.info("   Includes:")
            for namespace, include in includes.items():
                logger.info(f"     - {escape(namespace)}: {escape(include.taskfile)}")


def print_task_list(logger: Logger, taskfile: Taskfile) -> None:
    """Print each task with its direct dependencies and commands."""
    for name, task in taskfile.tasks.items():
        header = f"Task: {escape(name)}"
        if task.desc:
            header += f" - {escape(task.desc)}"
        logger.info(header)

        if task.deps:
            logger.info("  Dependencies:")
            for dep in task.deps:
                logger.info(f"    - {escape(dep.task)}")

        if task.cmds:
            logger.info("  Commands:")
            for cmd in task.cmds:
                if isinstance(cmd, TaskCall):
                    logger.info(f"    - task: {escape(cmd.task)}")
                else:
                    logger.info(f"    - cmd: {escape(cmd.cmd)}")

        logger.info("")


def show_dependency_tree(
    logger: Logger,
    taskfile: Taskfile,
    task_name: str,
    depth: int = 0,
    path: frozenset[str] = frozenset(),
) -> None:
    """Print the dependency tree rooted at ``task_name``, depth first.

    Dependencies are visited before task calls, each in declared order. Shared
    subtrees are printed every time they are reached. A task already on the
    current path is printed with a ``(cycle)`` marker and not expanded again.

    Args:
        logger: Logger interface for output
        taskfile: Merged Taskfile
        task_name: Task to print
        depth: Indentation level (two spaces each)
        path: Names of the tasks between the root and this one
    """
    indent = INDENT * depth

    task = taskfile.get_task(task_name)
    if task is None:
        logger.info(f"{indent}{escape(task_name)} (not found)")
        return

    if task.name in path:
        logger.info(f"{indent}{escape(task_name)} (cycle)")
        return

    line = f"{indent}{escape(task_name)}"
    if task.desc:
        line += f" - {escape(task.desc)}"
    logger.info(line)

    path = path | {task.name}
    for dep in task.deps:
        show_dependency_tree(logger, taskfile, dep.task, depth + 1, path)
    for call in task.task_calls():
        show_dependency_tree(logger, taskfile, call.task, depth + 1, path)


def show_start_tree(
    logger: Logger,
    taskfile: Taskfile,
    start_task: str,
    strict: bool = False,
) -> None:
    """Print the dependency tree of ``start_task``, or list all tasks if it doesn't exist.

    Raises:
        TaskNotFoundError: In strict mode, after the listing, if ``start_task`` doesn't exist
    """
    logger.info(f"=== Complete Dependency Tree from '{escape(start_task)}' task ===")

    if taskfile.get_task(start_task) is not None:
        show_dependency_tree(logger, taskfile, start_task)
        return

    logger.info(f"Task '{escape(start_task)}' not found")
    logger.info("Available tasks:")
    for name in taskfile.task_names():
        logger.info(f"  - {escape(name)}")

    if strict:
        raise TaskNotFoundError(f"'{start_task}'")
