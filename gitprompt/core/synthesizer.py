"""Assembles repository facts into one StatusSnapshot."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from gitprompt.core.branches import DEFAULT_BASE_BRANCH, BaseBranchMatcher
from gitprompt.core.gitconfig import ConfigResolver, default_sources
from gitprompt.core.graph import AncestryComparator, CommitGraphWalker
from gitprompt.exceptions import ResolutionError
from gitprompt.git.models import StatusSnapshot
from gitprompt.git.parsing import (
    github_repo_name,
    parse_branch_header,
    parse_working_tree_flags,
)

if TYPE_CHECKING:
    from gitprompt.git.base import Repository
    from gitprompt.git.models import BranchHeader, CommitId, ConfigSource

logger = structlog.get_logger()

_DETACHED_PREFIX_LEN = 6
EMAIL_KEY = "user.email"


class StatusSynthesizer:
    """Query a repository in dependency order and build a snapshot.

    Missing upstreams, unborn branches and unresolvable base branches become
    empty values and zero counts. Repository and config failures propagate
    and no snapshot is produced.
    """

    def __init__(
        self,
        repo: Repository,
        *,
        fallback_base_branch: str = DEFAULT_BASE_BRANCH,
        config_sources: list[ConfigSource] | None = None,
    ) -> None:
        self._repo = repo
        self._matcher = BaseBranchMatcher(fallback_base_branch)
        self._comparator = AncestryComparator(CommitGraphWalker(repo.parents))
        if config_sources is None:
            config_sources = default_sources(repo.root)
        self._config = ConfigResolver(config_sources)

    def snapshot(self) -> StatusSnapshot:
        repo = self._repo
        fields: dict[str, Any] = {
            "root": str(repo.root),
            "subdir": repo.subdir(),
            "base_name": repo.root.name,
        }

        status = repo.status()
        header = parse_branch_header(status)
        fields.update(parse_working_tree_flags(status).model_dump())
        fields["email"] = self._config.resolve(EMAIL_KEY)
        fields["stash_count"] = repo.stash_count()
        fields["branch"] = header.branch
        fields["base_branch"] = self._matcher.match(
            header.branch, repo.remote_branches()
        )

        try:
            head = repo.resolve("HEAD")
        except ResolutionError as e:
            logger.warning("head_unresolved", branch=header.branch, error=str(e))
            return self._finish(fields)

        fields["revision"] = head
        if header.detached:
            fields["branch"] = head[:_DETACHED_PREFIX_LEN] + "..."

        last = repo.last_commit()
        fields["last_email"] = last.author_email
        fields["last_message"] = last.message
        fields["last_hash"] = last.short_hash

        fields.update(self._upstream_counts(header, head))
        fields["base_behind"] = self._base_behind(fields["base_branch"], head)

        if not header.detached and (name := self._display_name(header.branch)):
            fields["base_name"] = name

        return self._finish(fields)

    def _upstream_counts(
        self, header: BranchHeader, head: CommitId
    ) -> dict[str, Any]:
        if not header.upstream:
            logger.info("upstream_not_configured", branch=header.branch)
            return {}
        try:
            upstream = self._repo.resolve(header.upstream)
        except ResolutionError as e:
            logger.warning(
                "upstream_unresolved", upstream=header.upstream, error=str(e)
            )
            return {}
        ahead, behind = self._comparator.ahead_behind(head, upstream)
        return {"upstream": header.upstream, "ahead": ahead, "behind": behind}

    def _base_behind(self, base_branch: str, head: CommitId) -> int:
        try:
            base = self._repo.resolve(base_branch)
        except ResolutionError as e:
            logger.info(
                "base_branch_unresolved", base_branch=base_branch, error=str(e)
            )
            return 0
        return self._comparator.count(base, head)

    def _display_name(self, branch: str) -> str:
        remote = self._repo.branch_remote(branch)
        if not remote:
            return ""
        return github_repo_name(self._repo.remote_url(remote))

    def _finish(self, fields: dict[str, Any]) -> StatusSnapshot:
        snapshot = StatusSnapshot(**fields)
        logger.debug("snapshot_built", **snapshot.to_document())
        return snapshot
