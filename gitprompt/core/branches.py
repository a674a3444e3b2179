"""Heuristic inference of the remote branch a feature branch was forked from."""

from __future__ import annotations

import structlog

from gitprompt.git.models import BranchCandidate

logger = structlog.get_logger()

DEFAULT_BASE_BRANCH = "origin/master"
_SEPARATORS = ("/", "-")


class BaseBranchMatcher:
    """Pick the remote branch whose leaf name is the longest prefix of a branch.

    ``feature-123`` and ``feature/123`` both derive from ``origin/feature``;
    ``feature`` itself matches ``origin/feature`` exactly. When two remotes
    share an equally long leaf, the one listed later wins, so true ties
    depend on listing order.
    """

    def __init__(self, fallback: str = DEFAULT_BASE_BRANCH) -> None:
        self.fallback = fallback

    def candidates(self, branch: str, remotes: list[str]) -> list[BranchCandidate]:
        found: list[BranchCandidate] = []
        for remote in remotes:
            terms = remote.split("/", 1)
            if len(terms) < 2 or not terms[1]:
                continue
            leaf = terms[1]
            if _derives_from(branch, leaf):
                found.append(
                    BranchCandidate(
                        remote_qualified_name=remote,
                        local_suffix=leaf,
                        match_length=len(leaf),
                    )
                )
        return found

    def best(self, branch: str, remotes: list[str]) -> BranchCandidate | None:
        chosen: BranchCandidate | None = None
        for candidate in self.candidates(branch, remotes):
            if chosen is None or candidate.match_length >= chosen.match_length:
                chosen = candidate
        return chosen

    def match(self, branch: str, remotes: list[str]) -> str:
        """Return the inferred base branch, or the fallback when none matches."""
        chosen = self.best(branch, remotes)
        if chosen is None:
            logger.debug("base_branch_fallback", branch=branch, fallback=self.fallback)
            return self.fallback
        return chosen.remote_qualified_name


def _derives_from(branch: str, leaf: str) -> bool:
    if branch == leaf:
        return True
    return any(branch.startswith(leaf + sep) for sep in _SEPARATORS)
