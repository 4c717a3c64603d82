"""Taskfile inclusion graph: topological ordering and merging."""

from __future__ import annotations

import graphlib
from dataclasses import dataclass, replace

from taskgraph.errors import CycleError, MergeError
from taskgraph.taskfile.ast import Dep, Include, Task, TaskCall, Taskfile

NAMESPACE_SEPARATOR = ":"


@dataclass
class Vertex:
    """A resolved Taskfile in the inclusion graph."""

    uri: str
    taskfile: Taskfile


@dataclass
class Edge:
    """``source`` includes ``target`` under ``include.namespace``."""

    source: str
    target: str
    include: Include


class TaskfileGraph:
    """Directed graph of Taskfiles and the includes between them.

    Vertices are keyed by resolved URI and keep insertion order; the first
    vertex added is the root.
    """

    def __init__(self) -> None:
        self.vertices: dict[str, Vertex] = {}
        self.edges: list[Edge] = []

    @property
    def root(self) -> str | None:
        return next(iter(self.vertices), None)

    def add_vertex(self, vertex: Vertex) -> bool:
        """Add a vertex. Returns False if the URI was already present."""
        if vertex.uri in self.vertices:
            return False
        self.vertices[vertex.uri] = vertex
        return True

    def add_edge(self, source: str, target: str, include: Include) -> None:
        self.edges.append(Edge(source=source, target=target, include=include))

    def vertex(self, uri: str) -> Vertex:
        return self.vertices[uri]

    def outgoing(self, uri: str) -> list[Edge]:
        """Edges authored by the Taskfile at ``uri``, in declaration order."""
        return [edge for edge in self.edges if edge.source == uri]

    def topological_sort(self) -> list[str]:
        """Order vertex URIs so every Taskfile precedes the Taskfiles it includes.

        Returns:
            List of URIs, root first

        Raises:
            CycleError: If the include graph contains a cycle
        """
        sorter: graphlib.TopologicalSorter[str] = graphlib.TopologicalSorter()
        for uri in self.vertices:
            sorter.add(uri)
        for edge in self.edges:
            sorter.add(edge.target, edge.source)

        try:
            return list(sorter.static_order())
        except graphlib.CycleError as e:
            cycle = e.args[1] if len(e.args) > 1 else []
            raise CycleError(
                f"include cycle detected: {' -> '.join(cycle)}" if cycle else "include cycle detected"
            ) from e

    def merge(self) -> Taskfile:
        """Merge every included Taskfile into the root Taskfile.

        Included Taskfiles are merged bottom-up so that nested includes are
        namespaced by their full include chain (``a:b:task``).

        Raises:
            CycleError: If the include graph contains a cycle
            MergeError: If Taskfiles conflict
        """
        if self.root is None:
            raise MergeError("Taskfile graph is empty")

        merged: dict[str, Taskfile] = {}
        for uri in reversed(self.topological_sort()):
            taskfile = self.vertices[uri].taskfile.copy()
            for edge in self.outgoing(uri):
                merge_taskfile(taskfile, merged[edge.target], edge.include)
            merged[uri] = taskfile

        return merged[self.root]


def namespaced(name: str, include: Include) -> str:
    """Rewrite a task reference made inside an included Taskfile.

    A leading ``:`` refers to the root namespace and is stripped. Flattened
    includes keep names unchanged.
    """
    if name.startswith(NAMESPACE_SEPARATOR):
        return name[len(NAMESPACE_SEPARATOR):]
    if include.flatten:
        return name
    return f"{include.namespace}{NAMESPACE_SEPARATOR}{name}"


def merge_taskfile(target: Taskfile, included: Taskfile, include: Include) -> None:
    """Merge the tasks of ``included`` into ``target`` in place.

    Raises:
        MergeError: On a schema major version mismatch or a duplicate task name
    """
    if target.major_version != included.major_version:
        raise MergeError(
            f"Taskfile versions should match. {target.location} is version "
            f"{target.version} but {included.location} is version {included.version}"
        )

    for name, task in included.tasks.items():
        if name in include.excludes:
            continue

        merged_task = _namespaced_task(name, task, include)
        if merged_task.name in target.tasks:
            raise MergeError(
                f"Found multiple tasks ({merged_task.name}) included by '{include.namespace}'"
            )
        target.tasks[merged_task.name] = merged_task


def _namespaced_task(name: str, task: Task, include: Include) -> Task:
    full_name = name if include.flatten else f"{include.namespace}{NAMESPACE_SEPARATOR}{name}"

    aliases = list(task.aliases) if include.flatten else [
        namespaced(alias, include) for alias in task.aliases
    ]
    for include_alias in include.aliases:
        aliases.append(f"{include_alias}{NAMESPACE_SEPARATOR}{name}")
        aliases.extend(f"{include_alias}{NAMESPACE_SEPARATOR}{alias}" for alias in task.aliases)
    if name == "default" and not include.flatten:
        # Included default tasks can be called by the bare namespace
        aliases.append(include.namespace)
        aliases.extend(include.aliases)

    cmds = [
        replace(cmd, task=namespaced(cmd.task, include)) if isinstance(cmd, TaskCall) else cmd
        for cmd in task.cmds
    ]

    return replace(
        task,
        name=full_name,
        deps=[Dep(task=namespaced(dep.task, include)) for dep in task.deps],
        cmds=cmds,
        aliases=aliases,
    )
