"""Shared fixtures and an in-memory repository for testing."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import structlog

from gitprompt.core.config import PromptSettings
from gitprompt.exceptions import ResolutionError
from gitprompt.git.models import ConfigSource, LastCommit


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Prevent .env files and shell env from leaking into tests."""
    monkeypatch.setitem(PromptSettings.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("GITPROMPT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _structlog_to_stdlib():
    """Route structlog through stdlib logging so nothing is printed to stdout."""
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer()],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


def linear_history(prefix: str, length: int, base: str | None = None) -> dict:
    """Build ``{id: [parent]}`` for a chain prefix1 -> prefix2 -> ... -> base.

    ``prefix1`` is the newest commit.
    """
    graph: dict[str, list[str]] = {}
    for i in range(1, length + 1):
        parent = f"{prefix}{i + 1}" if i < length else base
        graph[f"{prefix}{i}"] = [parent] if parent else []
    return graph


class FakeRepository:
    """In-memory stand-in for GitRepository."""

    def __init__(
        self,
        root: Path,
        *,
        graph: dict[str, list[str]] | None = None,
        refs: dict[str, str] | None = None,
        status: str = "## main\n",
        remotes: list[str] | None = None,
        last: LastCommit | None = None,
        branch_remotes: dict[str, str] | None = None,
        remote_urls: dict[str, str] | None = None,
        stash: int = 0,
        subdir: str = ".",
    ) -> None:
        self.root = root
        self.graph = graph or {}
        self.refs = refs or {}
        self._status = status
        self._remotes = remotes or []
        self._last = last or LastCommit()
        self._branch_remotes = branch_remotes or {}
        self._remote_urls = remote_urls or {}
        self._stash = stash
        self._subdir = subdir
        self.parent_calls: list[str] = []

    def subdir(self) -> str:
        return self._subdir

    def status(self) -> str:
        return self._status

    def resolve(self, ref: str) -> str:
        if ref in self.refs:
            return self.refs[ref]
        if ref in self.graph:
            return ref
        raise ResolutionError(ref)

    def parents(self, commit_id: str) -> list[str]:
        self.parent_calls.append(commit_id)
        if commit_id not in self.graph:
            raise ResolutionError(commit_id)
        return list(self.graph[commit_id])

    def remote_branches(self) -> list[str]:
        return list(self._remotes)

    def last_commit(self) -> LastCommit:
        return self._last

    def branch_remote(self, branch: str) -> str:
        return self._branch_remotes.get(branch, "")

    def remote_url(self, remote: str) -> str:
        return self._remote_urls.get(remote, "")

    def stash_count(self) -> int:
        return self._stash


@pytest.fixture
def no_config_sources(tmp_path) -> list[ConfigSource]:
    return [ConfigSource(location=tmp_path / "missing-gitconfig", rank=0)]


@pytest.fixture
def make_repo(tmp_path):
    """Factory for FakeRepository instances rooted at a temp directory."""

    def _make(**kwargs) -> FakeRepository:
        root = kwargs.pop("root", tmp_path / "project")
        return FakeRepository(root, **kwargs)

    return _make


@pytest.fixture
def chain():
    return linear_history
