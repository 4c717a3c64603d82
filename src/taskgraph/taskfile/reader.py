"""Read a Taskfile and everything it includes into a TaskfileGraph."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import yaml

from taskgraph.errors import ResolutionError
from taskgraph.taskfile.ast import Taskfile, decode_taskfile
from taskgraph.taskfile.cache import RemoteCache, checksum
from taskgraph.taskfile.graph import TaskfileGraph, Vertex
from taskgraph.taskfile.nodes import (
    DEFAULT_TIMEOUT,
    Node,
    RemoteFetchError,
    TaskfileNotFoundError,
    new_node,
)

DebugFn = Callable[[str], None]
# Returns normally to accept, raises PromptDeclinedError to decline
PromptFn = Callable[[str], None]

DEFAULT_CACHE_EXPIRY = 24 * 60 * 60.0


def default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "taskgraph"


TRUST_PROMPT = (
    "The task you are attempting to run depends on the remote Taskfile at {location}.\n"
    "--- Make sure you trust the source of this Taskfile before continuing ---\n"
    "Continue?"
)
CHANGED_PROMPT = (
    "The Taskfile at {location} has changed since you last used it!\n"
    "--- Make sure you trust the source of this Taskfile before continuing ---\n"
    "Continue?"
)


class PromptDeclinedError(ResolutionError):
    """Raised when the user refuses to trust a remote Taskfile."""


def _no_debug(message: str) -> None:
    pass


def _accept(prompt: str) -> None:
    pass


@dataclass
class ReaderOptions:
    """Configuration passed through to the Taskfile reader.

    Attributes:
        insecure: Allow plain HTTP locations
        download: Always re-fetch remote Taskfiles, bypassing a fresh cache
        offline: Never touch the network; remote Taskfiles come from the cache
        temp_dir: Directory holding the remote cache
        cache_expiry: Seconds a cached remote Taskfile stays fresh
        timeout: Seconds allowed for each remote fetch
        debug_func: Sink for diagnostic messages
        prompt_func: Trust confirmation hook
    """

    insecure: bool = False
    download: bool = False
    offline: bool = False
    temp_dir: Path = field(default_factory=default_temp_dir)
    cache_expiry: float = DEFAULT_CACHE_EXPIRY
    timeout: float = DEFAULT_TIMEOUT
    debug_func: DebugFn = _no_debug
    prompt_func: PromptFn = _accept


class Reader:
    """Builds a TaskfileGraph by following includes from a root node."""

    def __init__(self, options: ReaderOptions | None = None):
        self.options = options or ReaderOptions()
        self.cache = RemoteCache(self.options.temp_dir, debug=self.debug)

    def debug(self, message: str) -> None:
        self.options.debug_func(message)

    def read(self, root: Node) -> TaskfileGraph:
        """Read the root Taskfile and, recursively, all of its includes.

        A Taskfile included more than once becomes a single vertex with
        several incoming edges. Include cycles are recorded as edges; they
        are reported when the graph is sorted. An optional include is skipped
        only when its own Taskfile doesn't exist; it never leaves a vertex
        behind, and any other failure beneath it is raised.

        Raises:
            ResolutionError: If any Taskfile cannot be read or decoded
        """
        graph = TaskfileGraph()
        self._include(graph, root, self.read_node(root))
        return graph

    def _include(self, graph: TaskfileGraph, node: Node, taskfile: Taskfile) -> None:
        graph.add_vertex(Vertex(uri=node.location, taskfile=taskfile))

        for namespace, include in taskfile.includes.items():
            try:
                child = new_node(
                    node.resolve_entrypoint(include.taskfile),
                    insecure=self.options.insecure,
                    timeout=self.options.timeout,
                    parent=node,
                )
                # Read before recursing so a missing file is caught here and nowhere deeper
                child_taskfile = (
                    None if child.location in graph.vertices else self.read_node(child)
                )
            except TaskfileNotFoundError as e:
                if not include.optional:
                    raise
                self.debug(f"skipping optional include '{namespace}': {e}")
                continue

            if child_taskfile is not None:
                self._include(graph, child, child_taskfile)
            graph.add_edge(node.location, child.location, include)

    def read_node(self, node: Node) -> Taskfile:
        """Read and decode a single node, going through the cache for remote nodes."""
        content = self._read_remote(node) if node.remote else node.read()
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ResolutionError(f"Error parsing YAML in {node.location}: {e}") from e
        return decode_taskfile(data, node.location)

    def _read_remote(self, node: Node) -> bytes:
        options = self.options
        location = node.location

        if options.offline:
            cached = self.cache.read(location)
            if cached is None:
                raise ResolutionError(
                    f"Taskfile {location} is not cached and offline mode is enabled"
                )
            self.debug(f"offline mode, using cached copy of {location}")
            return cached

        if not options.download and self.cache.is_fresh(location, options.cache_expiry):
            cached = self.cache.read(location)
            if cached is not None:
                self.debug(f"using cached copy of {location}")
                return cached

        try:
            self.debug(f"fetching {location}")
            content = node.read()
        except RemoteFetchError as e:
            cached = self.cache.read(location)
            if cached is None:
                raise
            self.debug(f"{e}; falling back to cached copy of {location}")
            return cached

        self._confirm_trust(location, content)
        self.cache.write(location, content)
        return content

    def _confirm_trust(self, location: str, content: bytes) -> None:
        entry = self.cache.entry(location)
        if entry is None:
            prompt = TRUST_PROMPT.format(location=location)
        elif entry.checksum != checksum(content):
            prompt = CHANGED_PROMPT.format(location=location)
        else:
            return

        self.options.prompt_func(prompt)

