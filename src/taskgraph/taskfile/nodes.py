"""Taskfile locations: local files, HTTP(S) URLs and git repositories."""

from __future__ import annotations

import posixpath
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urljoin, urlsplit

import httpx

from taskgraph.errors import ResolutionError

DEFAULT_TASKFILES = [
    "Taskfile.yml",
    "taskfile.yml",
    "Taskfile.yaml",
    "taskfile.yaml",
    "Taskfile.dist.yml",
    "taskfile.dist.yml",
    "Taskfile.dist.yaml",
    "taskfile.dist.yaml",
]

DEFAULT_TIMEOUT = 30.0


class TaskfileNotFoundError(ResolutionError):
    """Raised when nothing exists at a Taskfile location.

    This is the only failure an optional include tolerates.
    """


class RemoteFetchError(ResolutionError):
    """Raised when a remote Taskfile cannot be downloaded."""


class RemoteNotFoundError(RemoteFetchError, TaskfileNotFoundError):
    """Raised when a server or repository reports the Taskfile as missing."""


class Node(ABC):
    """A resolvable Taskfile location."""

    remote = False

    def __init__(self, location: str, parent: Node | None = None):
        self.location = location
        self.parent = parent

    @abstractmethod
    def read(self) -> bytes:
        """Return the raw Taskfile contents."""

    @abstractmethod
    def resolve_entrypoint(self, entrypoint: str) -> str:
        """Resolve an include locator relative to this node."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.location!r})"


class FileNode(Node):
    """A Taskfile on the local filesystem."""

    def __init__(self, location: str, parent: Node | None = None):
        super().__init__(str(Path(location).expanduser().resolve()), parent)

    @property
    def dir(self) -> Path:
        return Path(self.location).parent

    def read(self) -> bytes:
        try:
            return Path(self.location).read_bytes()
        except FileNotFoundError as e:
            raise TaskfileNotFoundError(f"Taskfile not found: {self.location}") from e
        except OSError as e:
            raise ResolutionError(f"Cannot read {self.location}: {e.strerror or e}") from e

    def resolve_entrypoint(self, entrypoint: str) -> str:
        if is_remote_entrypoint(entrypoint):
            return entrypoint

        path = Path(entrypoint).expanduser()
        if not path.is_absolute():
            path = self.dir / path
        if path.is_dir():
            found = _search_dir(path)
            if found is None:
                raise TaskfileNotFoundError(f"No Taskfile found in directory {path}")
            return str(found.resolve())
        return str(path.resolve())


class HTTPNode(Node):
    """A Taskfile served over HTTP(S)."""

    remote = True

    def __init__(
        self,
        location: str,
        insecure: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        parent: Node | None = None,
    ):
        scheme = urlsplit(location).scheme
        if scheme not in ("http", "https"):
            raise ResolutionError(f"Unsupported URL scheme in {location}")
        if scheme == "http" and not insecure:
            raise ResolutionError(
                f"URL {location} uses insecure HTTP; pass --insecure to allow it"
            )
        super().__init__(location, parent)
        self.insecure = insecure
        self.timeout = timeout

    def read(self) -> bytes:
        try:
            response = httpx.get(self.location, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == httpx.codes.NOT_FOUND:
                raise RemoteNotFoundError(f"Taskfile not found: {self.location}") from e
            raise RemoteFetchError(
                f"Unexpected status {e.response.status_code} fetching {self.location}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"Error fetching {self.location}: {e}") from e
        return response.content

    def resolve_entrypoint(self, entrypoint: str) -> str:
        if is_remote_entrypoint(entrypoint):
            return entrypoint
        return urljoin(self.location, entrypoint)


class GitNode(Node):
    """A Taskfile inside a git repository.

    Locators look like ``https://host/org/repo.git//path/Taskfile.yml?ref=v1``
    or ``git@host:org/repo.git//Taskfile.yml``. The path defaults to
    ``Taskfile.yml`` and the ref to the remote's default branch.
    """

    remote = True

    def __init__(
        self,
        location: str,
        insecure: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        parent: Node | None = None,
    ):
        self.repo, self.path, self.ref = parse_git_locator(location)
        if self.repo.startswith("http://") and not insecure:
            raise ResolutionError(
                f"URL {location} uses insecure HTTP; pass --insecure to allow it"
            )
        super().__init__(format_git_locator(self.repo, self.path, self.ref), parent)
        self.insecure = insecure
        self.timeout = timeout

    def read(self) -> bytes:
        cmd = ["git", "clone", "--quiet", "--depth", "1"]
        if self.ref:
            cmd += ["--branch", self.ref]

        with tempfile.TemporaryDirectory(prefix="taskgraph-git-") as checkout:
            try:
                subprocess.run(
                    cmd + [self.repo, checkout],
                    check=True,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except FileNotFoundError as e:
                raise RemoteFetchError("git executable not found") from e
            except subprocess.TimeoutExpired as e:
                raise RemoteFetchError(f"Timed out cloning {self.repo}") from e
            except subprocess.CalledProcessError as e:
                raise RemoteFetchError(
                    f"Error cloning {self.repo}: {e.stderr.strip()}"
                ) from e

            taskfile = Path(checkout) / self.path
            try:
                return taskfile.read_bytes()
            except OSError as e:
                raise RemoteNotFoundError(f"No file {self.path} in {self.repo}") from e

    def resolve_entrypoint(self, entrypoint: str) -> str:
        if is_remote_entrypoint(entrypoint):
            return entrypoint
        path = posixpath.normpath(posixpath.join(posixpath.dirname(self.path), entrypoint))
        return format_git_locator(self.repo, path, self.ref)


def is_git_entrypoint(entrypoint: str) -> bool:
    if entrypoint.startswith(("git::", "git@")):
        return True
    return entrypoint.startswith(("https://", "http://", "ssh://")) and ".git//" in entrypoint


def is_remote_entrypoint(entrypoint: str) -> bool:
    return is_git_entrypoint(entrypoint) or entrypoint.startswith(("https://", "http://"))


def parse_git_locator(locator: str) -> tuple[str, str, str]:
    """Split a git locator into (repository, path, ref).

    Examples:
        >>> parse_git_locator("https://github.com/org/repo.git//tasks/Taskfile.yml?ref=v1")
        ('https://github.com/org/repo.git', 'tasks/Taskfile.yml', 'v1')
        >>> parse_git_locator("git@github.com:org/repo.git")
        ('git@github.com:org/repo.git', 'Taskfile.yml', '')
    """
    if locator.startswith("git::"):
        locator = locator[len("git::"):]

    ref = ""
    if "?" in locator:
        locator, query = locator.split("?", 1)
        for pair in query.split("&"):
            key, _, value = pair.partition("=")
            if key == "ref":
                ref = value

    if ".git//" in locator:
        repo, path = locator.split(".git//", 1)
        repo += ".git"
    else:
        repo, path = locator, ""

    return repo, path.strip("/") or "Taskfile.yml", ref


def format_git_locator(repo: str, path: str, ref: str) -> str:
    if repo.endswith(".git"):
        location = f"{repo}//{path}"
    else:
        location = f"{repo}.git//{path}"
    if ref:
        location += f"?ref={ref}"
    return location


def find_taskfile(start_dir: Path | None = None) -> Path | None:
    """Find a Taskfile in the current or parent directories.

    Args:
        start_dir: Directory to start searching from (defaults to cwd)

    Returns:
        Path to the Taskfile if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    # Search up the directory tree
    while True:
        found = _search_dir(current)
        if found is not None:
            return found

        parent = current.parent
        if parent == current:
            # Reached root
            break
        current = parent

    return None


def _search_dir(directory: Path) -> Path | None:
    for filename in DEFAULT_TASKFILES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def new_node(
    entrypoint: str,
    insecure: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    parent: Node | None = None,
) -> Node:
    """Create the node type matching an already resolved entrypoint."""
    if is_git_entrypoint(entrypoint):
        return GitNode(entrypoint, insecure=insecure, timeout=timeout, parent=parent)
    if is_remote_entrypoint(entrypoint):
        return HTTPNode(entrypoint, insecure=insecure, timeout=timeout, parent=parent)
    return FileNode(entrypoint, parent=parent)


def new_root_node(
    entrypoint: str,
    start_dir: Path | None = None,
    insecure: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> Node:
    """Create the node for the Taskfile a run starts from.

    An empty entrypoint or a directory is searched for one of the default
    Taskfile names, walking up parent directories.

    Raises:
        ResolutionError: If no Taskfile can be found
    """
    if entrypoint and is_remote_entrypoint(entrypoint):
        return new_node(entrypoint, insecure=insecure, timeout=timeout)

    base = start_dir or Path.cwd()
    if not entrypoint:
        found = find_taskfile(base)
        if found is None:
            raise TaskfileNotFoundError(
                f"No Taskfile found in {base} or its parents "
                f"(tried {', '.join(DEFAULT_TASKFILES)})"
            )
        return FileNode(str(found))

    path = Path(entrypoint).expanduser()
    if not path.is_absolute():
        path = base / path
    if path.is_dir():
        found = _search_dir(path)
        if found is None:
            raise TaskfileNotFoundError(f"No Taskfile found in directory {path}")
        return FileNode(str(found))
    if not path.exists():
        raise TaskfileNotFoundError(f"Taskfile not found: {path}")
    return FileNode(str(path))
