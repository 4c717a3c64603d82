"""Document provider: turns a locator into an inclusion graph and a merged Taskfile."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from taskgraph.taskfile import Reader, ReaderOptions, Taskfile, TaskfileGraph, new_root_node


class DocumentProvider(Protocol):
    """What the renderer needs from whatever loads Taskfiles."""

    def resolve(self, locator: str) -> TaskfileGraph:
        """Read the Taskfile at ``locator`` and all of its includes.

        Raises:
            ResolutionError: If any Taskfile cannot be located, fetched or decoded
        """
        ...

    def merge(self, graph: TaskfileGraph) -> Taskfile:
        """Merge an inclusion graph into a single Taskfile.

        Raises:
            MergeError: If included Taskfiles conflict
            CycleError: If the inclusion graph is cyclic
        """
        ...


class TaskfileProvider:
    """DocumentProvider backed by the local Taskfile reader."""

    def __init__(self, options: ReaderOptions | None = None, start_dir: Path | None = None):
        self.options = options or ReaderOptions()
        self.start_dir = start_dir
        self.reader = Reader(self.options)

    def resolve(self, locator: str) -> TaskfileGraph:
        root = new_root_node(
            locator,
            start_dir=self.start_dir,
            insecure=self.options.insecure,
            timeout=self.options.timeout,
        )
        return self.reader.read(root)

    def merge(self, graph: TaskfileGraph) -> Taskfile:
        return graph.merge()
