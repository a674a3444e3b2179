"""Synchronous wrapper for the git CLI queries a prompt needs."""

from __future__ import annotations

import contextlib
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import NamedTuple

import structlog

from gitprompt.exceptions import NotARepositoryError, RepositoryError, ResolutionError
from gitprompt.git.cache import QueryCache
from gitprompt.git.models import CommitId, LastCommit
from gitprompt.git.parsing import (
    LOG_FORMAT,
    count_lines,
    parse_last_commit,
    parse_parent_map,
    parse_remote_branches,
)

logger = structlog.get_logger()

_DEFAULT_TIMEOUT = 5.0
_STASH_LOG = "logs/refs/stash"
# Commits fetched per rev-list call while walking history
PARENT_BATCH_SIZE = 256


class GitOutput(NamedTuple):
    code: int
    stdout: str
    stderr: str


class GitRepository:
    """Read-only access to one working tree through the ``git`` binary.

    Every query is bounded by ``timeout`` and memoized for the lifetime of the
    handle. Use :meth:`open` as a context manager so the private index copy
    is cleaned up.
    """

    def __init__(
        self,
        root: Path,
        *,
        cwd: Path | None = None,
        git_binary: str = "git",
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self.root = root
        self.cwd = cwd if cwd is not None else root
        self.git_binary = git_binary
        self.timeout = timeout
        self._cache: QueryCache[GitOutput] = QueryCache()
        self._parent_map: QueryCache[list[CommitId]] = QueryCache()
        self._env: dict[str, str] | None = None
        self._index_copy: Path | None = None

    @classmethod
    def open(
        cls,
        cwd: Path,
        *,
        git_binary: str = "git",
        timeout: float = _DEFAULT_TIMEOUT,
        isolate_index: bool = True,
    ) -> GitRepository:
        """Locate the work tree containing *cwd* and return a handle on it."""
        if not cwd.is_dir():
            raise NotARepositoryError(f"Directory does not exist: {cwd}")

        probe = cls(cwd, git_binary=git_binary, timeout=timeout)
        inside = probe._exec("rev-parse", "--is-inside-work-tree")
        if inside.code != 0 or inside.stdout.strip() != "true":
            raise NotARepositoryError(f"Not inside a git working tree: {cwd}")

        toplevel = probe._exec("rev-parse", "--show-toplevel")
        if toplevel.code != 0:
            raise RepositoryError(
                f"Failed to locate repository root: {toplevel.stderr.strip()}"
            )

        repo = cls(
            Path(toplevel.stdout.strip()),
            cwd=cwd,
            git_binary=git_binary,
            timeout=timeout,
        )
        if isolate_index:
            repo._isolate_index()
        logger.debug("repository_opened", root=str(repo.root), cwd=str(cwd))
        return repo

    def close(self) -> None:
        self._cache.clear()
        self._parent_map.clear()
        if self._index_copy is not None:
            with contextlib.suppress(FileNotFoundError):
                self._index_copy.unlink()
            self._index_copy = None
            self._env = None

    def __enter__(self) -> GitRepository:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def cache(self) -> QueryCache[GitOutput]:
        return self._cache

    def subdir(self) -> str:
        """Path of the working directory relative to the root, '.' at the root."""
        return os.path.relpath(self.cwd.resolve(), self.root.resolve())

    def git_path(self, name: str) -> Path:
        """Resolve a path inside the git directory (handles worktrees)."""
        path = Path(self.run("rev-parse", "--git-path", name).strip())
        return path if path.is_absolute() else self.root / path

    def resolve(self, ref: str) -> CommitId:
        """Resolve *ref* to a full commit id or raise ResolutionError."""
        out = self.query("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        commit_id = out.stdout.strip()
        if out.code != 0 or not commit_id:
            raise ResolutionError(ref)
        return commit_id

    def parents(self, commit_id: CommitId) -> list[CommitId]:
        """Parents of a full commit id, first parent first.

        A miss fetches the commit together with up to ``PARENT_BATCH_SIZE - 1``
        ancestors in one ``rev-list`` call and remembers all of them.
        """
        known = self._parent_map.get((commit_id,))
        if known is not None:
            return known

        out = self.query(
            "rev-list", "--parents", f"--max-count={PARENT_BATCH_SIZE}", commit_id
        )
        fetched = parse_parent_map(out.stdout) if out.code == 0 else {}
        if commit_id not in fetched:
            raise ResolutionError(commit_id)
        for node, node_parents in fetched.items():
            self._parent_map.put((node,), node_parents)
        logger.debug("parents_fetched", start=commit_id, commits=len(fetched))
        return fetched[commit_id]

    def status(self) -> str:
        """Raw ``git status --branch --porcelain`` text."""
        return self.run("status", "--branch", "--porcelain")

    def remote_branches(self) -> list[str]:
        return parse_remote_branches(self.run("branch", "-r"))

    def last_commit(self) -> LastCommit:
        out = self.query("log", "-n1", f"--format={LOG_FORMAT}")
        if out.code != 0:
            # No commits yet on the current branch
            return LastCommit()
        return parse_last_commit(out.stdout)

    def branch_remote(self, branch: str) -> str:
        out = self.query("config", "--local", "--get", f"branch.{branch}.remote")
        return out.stdout.strip() if out.code == 0 else ""

    def remote_url(self, remote: str) -> str:
        out = self.query("remote", "get-url", remote)
        return out.stdout.strip() if out.code == 0 else ""

    def stash_count(self) -> int:
        """Number of stash entries, read from the stash reflog."""
        path = self.git_path(_STASH_LOG)
        try:
            return count_lines(path.read_text(encoding="utf-8", errors="replace"))
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise RepositoryError(f"Failed to read stash log {path}: {e}") from e

    def run(self, *args: str) -> str:
        """Run a query that must succeed; a non-zero exit is fatal."""
        out = self.query(*args)
        if out.code != 0:
            raise RepositoryError(
                f"git {' '.join(args)} failed ({out.code}): {out.stderr.strip()}"
            )
        return out.stdout

    def query(self, *args: str) -> GitOutput:
        """Run a query, memoized by its exact arguments."""
        return self._cache.get_or_run(args, lambda: self._exec(*args))

    def _isolate_index(self) -> None:
        index = self.git_path("index")
        if not index.is_file():
            return
        fd, name = tempfile.mkstemp(prefix="gitprompt-", suffix=".index")
        os.close(fd)
        try:
            shutil.copyfile(index, name)
        except OSError as e:
            Path(name).unlink(missing_ok=True)
            raise RepositoryError(f"Failed to copy index file {index}: {e}") from e
        self._index_copy = Path(name)
        self._env = {**os.environ, "GIT_INDEX_FILE": name}
        self._cache.clear()

    def _exec(self, *args: str) -> GitOutput:
        """Execute a git command via subprocess.run with a deadline."""
        cmd = (self.git_binary, *args)
        logger.debug("git_exec", command=cmd, cwd=str(self.root))

        try:
            proc = subprocess.run(  # noqa: S603
                cmd,
                cwd=self.root,
                env=self._env,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("git_exec_timeout", command=cmd, timeout=self.timeout)
            raise RepositoryError(
                f"git {' '.join(args)} timed out after {self.timeout}s"
            ) from e
        except FileNotFoundError as e:
            raise RepositoryError(
                f"{self.git_binary} is not installed or not in PATH"
            ) from e
        except OSError as e:
            logger.error("git_exec_error", command=cmd, error=str(e))
            raise RepositoryError(str(e)) from e

        stdout = proc.stdout.decode("utf-8", errors="replace")
        stderr = proc.stderr.decode("utf-8", errors="replace")
        return GitOutput(proc.returncode, stdout, stderr)
