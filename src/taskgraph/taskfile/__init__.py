"""Taskfile reading, include resolution and merging."""

from taskgraph.taskfile.ast import (
    Cmd,
    Dep,
    Include,
    LiteralCmd,
    Task,
    TaskCall,
    Taskfile,
    TaskfileDecodeError,
    decode_taskfile,
)
from taskgraph.taskfile.graph import Edge, TaskfileGraph, Vertex
from taskgraph.taskfile.nodes import (
    Node,
    TaskfileNotFoundError,
    find_taskfile,
    new_node,
    new_root_node,
)
from taskgraph.taskfile.reader import PromptDeclinedError, Reader, ReaderOptions

__all__ = [
    "Cmd",
    "Dep",
    "Include",
    "LiteralCmd",
    "Task",
    "TaskCall",
    "Taskfile",
    "TaskfileDecodeError",
    "decode_taskfile",
    "Edge",
    "TaskfileGraph",
    "Vertex",
    "Node",
    "TaskfileNotFoundError",
    "find_taskfile",
    "new_node",
    "new_root_node",
    "PromptDeclinedError",
    "Reader",
    "ReaderOptions",
]
