from __future__ import annotations

from taskgraph.logging import Logger
from taskgraph.provider import DocumentProvider
from taskgraph.render import print_report


def show_report(
    logger: Logger,
    provider: DocumentProvider,
    locator: str,
    start_task: str,
    strict: bool = False,
) -> None:
    """
    Load a Taskfile through the provider and print its analysis.

    Args:
        logger: Logger interface for output
        provider: Source of the inclusion graph and merged Taskfile
        locator: Local path, directory, URL or git reference of the root Taskfile
        start_task: Task the dependency tree is rooted at
        strict: Treat a missing start task as an error

    Raises:
        TaskgraphError: On any fatal resolution, merge or cycle failure
    """
    logger.trace(f"Resolving {locator}")
    graph = provider.resolve(locator)
    logger.trace(f"Read {len(graph.vertices)} Taskfile(s)")

    taskfile = provider.merge(graph)
    logger.trace(f"Merged {len(taskfile.tasks)} task(s)")

    print_report(logger, graph, taskfile, start_task, strict=strict)
