"""Abstract repository adapter protocol."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gitprompt.git.models import CommitId, LastCommit


@runtime_checkable
class Repository(Protocol):
    root: Path

    def subdir(self) -> str: ...

    def status(self) -> str: ...

    def resolve(self, ref: str) -> CommitId: ...

    def parents(self, commit_id: CommitId) -> list[CommitId]: ...

    def remote_branches(self) -> list[str]: ...

    def last_commit(self) -> LastCommit: ...

    def branch_remote(self, branch: str) -> str: ...

    def remote_url(self, remote: str) -> str: ...

    def stash_count(self) -> int: ...
