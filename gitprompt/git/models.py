"""Data models for repository facts and the final status snapshot."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

CommitId = str


class CommitNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: CommitId
    parents: list[CommitId] = []


class ConfigSource(BaseModel):
    """One git config file, consulted in ascending ``rank`` order."""

    model_config = ConfigDict(frozen=True)

    location: Path
    rank: int
    present: bool = True


class BranchCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    remote_qualified_name: str
    local_suffix: str
    match_length: int


class BranchHeader(BaseModel):
    """Parsed ``## ...`` line of ``git status --branch --porcelain``."""

    model_config = ConfigDict(frozen=True)

    branch: str = ""
    upstream: str = ""
    initial: bool = False
    detached: bool = False


class WorkingTreeFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    staged: bool = False
    unstaged: bool = False
    untracked: bool = False


class LastCommit(BaseModel):
    model_config = ConfigDict(frozen=True)

    author_email: str = ""
    message: str = ""
    short_hash: str = ""


class StatusSnapshot(BaseModel):
    """Everything a prompt needs to know about one working tree.

    Built once per invocation and never mutated; serializable to a plain
    key/value document independent of any template.
    """

    model_config = ConfigDict(frozen=True)

    root: str
    subdir: str = "."
    base_name: str = ""
    branch: str = ""
    revision: str = ""
    upstream: str = ""
    ahead: int = 0
    behind: int = 0
    base_branch: str = ""
    base_behind: int = 0
    staged: bool = False
    unstaged: bool = False
    untracked: bool = False
    stash_count: int = 0
    email: str = ""
    last_email: str = ""
    last_message: str = ""
    last_hash: str = ""

    def to_document(self) -> dict[str, Any]:
        return self.model_dump()

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_document(), indent=indent, ensure_ascii=False)
