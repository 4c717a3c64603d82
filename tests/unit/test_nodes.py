"""Tests for Taskfile node resolution."""

import os
import subprocess
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock, patch

import httpx

from taskgraph.errors import ResolutionError
from taskgraph.taskfile.nodes import (
    FileNode,
    GitNode,
    HTTPNode,
    RemoteFetchError,
    RemoteNotFoundError,
    TaskfileNotFoundError,
    find_taskfile,
    format_git_locator,
    is_git_entrypoint,
    is_remote_entrypoint,
    new_node,
    new_root_node,
    parse_git_locator,
)


class TestEntrypointKinds(unittest.TestCase):
    def test_local_paths_are_not_remote(self):
        self.assertFalse(is_remote_entrypoint("Taskfile.yml"))
        self.assertFalse(is_remote_entrypoint("/abs/Taskfile.yml"))
        self.assertFalse(is_remote_entrypoint("~/Taskfile.yml"))

    def test_http_urls_are_remote(self):
        self.assertTrue(is_remote_entrypoint("https://example.com/Taskfile.yml"))
        self.assertFalse(is_git_entrypoint("https://example.com/Taskfile.yml"))

    def test_git_references(self):
        self.assertTrue(is_git_entrypoint("git@github.com:org/repo.git//Taskfile.yml"))
        self.assertTrue(is_git_entrypoint("https://github.com/org/repo.git//Taskfile.yml?ref=v1"))
        self.assertTrue(is_git_entrypoint("git::https://github.com/org/repo.git"))

    def test_new_node_picks_type(self):
        self.assertIsInstance(new_node("https://example.com/Taskfile.yml"), HTTPNode)
        self.assertIsInstance(new_node("git@github.com:org/repo.git//Taskfile.yml"), GitNode)
        self.assertIsInstance(new_node("/tmp/Taskfile.yml"), FileNode)


class TestGitLocator(unittest.TestCase):
    def test_parse_with_path_and_ref(self):
        self.assertEqual(
            parse_git_locator("https://github.com/org/repo.git//tasks/Taskfile.yml?ref=v1"),
            ("https://github.com/org/repo.git", "tasks/Taskfile.yml", "v1"),
        )

    def test_parse_defaults(self):
        self.assertEqual(
            parse_git_locator("git::git@github.com:org/repo.git"),
            ("git@github.com:org/repo.git", "Taskfile.yml", ""),
        )

    def test_format_round_trip(self):
        locator = "git@github.com:org/repo.git//sub/Taskfile.yml?ref=main"
        self.assertEqual(format_git_locator(*parse_git_locator(locator)), locator)

    def test_relative_include_stays_in_repository(self):
        node = GitNode("https://github.com/org/repo.git//ci/Taskfile.yml?ref=v2")

        self.assertEqual(
            node.resolve_entrypoint("../lib/Taskfile.yml"),
            "https://github.com/org/repo.git//lib/Taskfile.yml?ref=v2",
        )

    def test_insecure_git_rejected(self):
        with self.assertRaises(ResolutionError):
            GitNode("http://example.com/repo.git//Taskfile.yml")

    @patch("taskgraph.taskfile.nodes.subprocess.run")
    def test_clone_failure_is_fetch_error(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(
            128, ["git"], stderr="repository not found\n"
        )
        node = GitNode("https://github.com/org/missing.git//Taskfile.yml?ref=v1")

        with self.assertRaises(RemoteFetchError) as cm:
            node.read()
        self.assertIn("repository not found", str(cm.exception))
        cmd = mock_run.call_args[0][0]
        self.assertEqual(cmd[:5], ["git", "clone", "--quiet", "--depth", "1"])
        self.assertIn("--branch", cmd)
        self.assertIn("v1", cmd)

    @patch("taskgraph.taskfile.nodes.subprocess.run")
    def test_clone_reads_path_in_checkout(self, mock_run):
        def fake_clone(cmd, **kwargs):
            checkout = Path(cmd[-1])
            (checkout / "ci").mkdir(parents=True)
            (checkout / "ci" / "Taskfile.yml").write_text("version: 3\n")

        mock_run.side_effect = fake_clone
        node = GitNode("https://github.com/org/repo.git//ci/Taskfile.yml")

        self.assertEqual(node.read(), b"version: 3\n")


class TestHTTPNode(unittest.TestCase):
    def test_plain_http_rejected_by_default(self):
        with self.assertRaises(ResolutionError) as cm:
            HTTPNode("http://example.com/Taskfile.yml")
        self.assertIn("insecure", str(cm.exception))

    def test_plain_http_allowed_when_insecure(self):
        node = HTTPNode("http://example.com/Taskfile.yml", insecure=True)
        self.assertTrue(node.remote)

    def test_relative_include_joins_url(self):
        node = HTTPNode("https://example.com/ci/Taskfile.yml")

        self.assertEqual(
            node.resolve_entrypoint("../lib/Taskfile.yml"),
            "https://example.com/lib/Taskfile.yml",
        )
        self.assertEqual(
            node.resolve_entrypoint("https://other.org/Taskfile.yml"),
            "https://other.org/Taskfile.yml",
        )

    @patch("taskgraph.taskfile.nodes.httpx.get")
    def test_read_returns_content(self, mock_get):
        response = MagicMock()
        response.content = b"version: 3\n"
        mock_get.return_value = response

        node = HTTPNode("https://example.com/Taskfile.yml", timeout=5)

        self.assertEqual(node.read(), b"version: 3\n")
        mock_get.assert_called_once_with(
            "https://example.com/Taskfile.yml", timeout=5, follow_redirects=True
        )

    @patch("taskgraph.taskfile.nodes.httpx.get")
    def test_network_error_is_fetch_error(self, mock_get):
        mock_get.side_effect = httpx.ConnectError("connection refused")

        with self.assertRaises(RemoteFetchError):
            HTTPNode("https://example.com/Taskfile.yml").read()

    @patch("taskgraph.taskfile.nodes.httpx.get")
    def test_error_status_is_fetch_error(self, mock_get):
        request = httpx.Request("GET", "https://example.com/Taskfile.yml")
        mock_get.return_value = httpx.Response(500, request=request)

        with self.assertRaises(RemoteFetchError) as cm:
            HTTPNode("https://example.com/Taskfile.yml").read()
        self.assertIn("500", str(cm.exception))
        self.assertNotIsInstance(cm.exception, TaskfileNotFoundError)

    @patch("taskgraph.taskfile.nodes.httpx.get")
    def test_missing_remote_file_is_not_found(self, mock_get):
        request = httpx.Request("GET", "https://example.com/Taskfile.yml")
        mock_get.return_value = httpx.Response(404, request=request)

        with self.assertRaises(TaskfileNotFoundError) as cm:
            HTTPNode("https://example.com/Taskfile.yml").read()
        self.assertIsInstance(cm.exception, RemoteNotFoundError)
        self.assertIsInstance(cm.exception, RemoteFetchError)


class TestFileNodes(unittest.TestCase):
    def test_find_taskfile_walks_up(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "Taskfile.yml").write_text("version: 3\n")
            nested = root / "a" / "b"
            nested.mkdir(parents=True)

            self.assertEqual(find_taskfile(nested), (root / "Taskfile.yml").resolve())

    def test_find_taskfile_name_priority(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "Taskfile.dist.yml").write_text("version: 3\n")
            (root / "Taskfile.yaml").write_text("version: 3\n")

            self.assertEqual(find_taskfile(root).name, "Taskfile.yaml")

    def test_root_node_from_directory(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "taskfile.yml").write_text("version: 3\n")

            node = new_root_node(str(root))

            self.assertIsInstance(node, FileNode)
            self.assertEqual(Path(node.location).name, "taskfile.yml")

    def test_root_node_empty_entrypoint_searches(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "Taskfile.yml").write_text("version: 3\n")

            node = new_root_node("", start_dir=root)

            self.assertEqual(node.location, str((root / "Taskfile.yml").resolve()))

    def test_root_node_relative_to_start_dir(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "custom.yml").write_text("version: 3\n")

            node = new_root_node("custom.yml", start_dir=root)

            self.assertEqual(node.location, str((root / "custom.yml").resolve()))

    def test_root_node_missing_file(self):
        with TemporaryDirectory() as tmpdir:
            with self.assertRaises(TaskfileNotFoundError):
                new_root_node("nope.yml", start_dir=Path(tmpdir))

    def test_root_node_remote(self):
        node = new_root_node("https://example.com/Taskfile.yml")
        self.assertIsInstance(node, HTTPNode)

    def test_file_include_resolution(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            (root / "docs").mkdir()
            (root / "docs" / "Taskfile.yml").write_text("version: 3\n")
            (root / "Taskfile.yml").write_text("version: 3\n")
            node = FileNode(str(root / "Taskfile.yml"))

            self.assertEqual(
                node.resolve_entrypoint("./docs"), str(root / "docs" / "Taskfile.yml")
            )
            self.assertEqual(
                node.resolve_entrypoint("docs/Taskfile.yml"),
                str(root / "docs" / "Taskfile.yml"),
            )
            self.assertEqual(
                node.resolve_entrypoint("https://example.com/x.yml"),
                "https://example.com/x.yml",
            )

    def test_file_include_directory_without_taskfile(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "empty").mkdir()
            node = FileNode(str(root / "Taskfile.yml"))

            with self.assertRaises(ResolutionError):
                node.resolve_entrypoint("empty")

    def test_read_missing_file(self):
        with TemporaryDirectory() as tmpdir:
            node = FileNode(os.path.join(tmpdir, "Taskfile.yml"))

            with self.assertRaises(TaskfileNotFoundError):
                node.read()

    def test_read_unreadable_path_is_not_a_missing_file(self):
        with TemporaryDirectory() as tmpdir:
            # Reading a directory fails, but something does exist there
            node = FileNode(tmpdir)

            with self.assertRaises(ResolutionError) as cm:
                node.read()
            self.assertNotIsInstance(cm.exception, TaskfileNotFoundError)


if __name__ == "__main__":
    unittest.main()
