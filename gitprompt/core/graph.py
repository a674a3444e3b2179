"""Commit ancestry traversal and ahead/behind counting.

The comparator never computes full ancestor sets. It advances two lazy
preorder walks in strict alternation and stops at the first commit seen by
both sides, so the cost is bounded by the distance to that commit rather than
by the size of the history.

The first shared commit is found in traversal order, not by commit date. On
graphs with heavy merge topology it is not guaranteed to be the
chronologically nearest common ancestor; for prompt display this
approximation is accepted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

import structlog

from gitprompt.git.models import CommitId, CommitNode

logger = structlog.get_logger()

ParentLookup = Callable[[CommitId], list[CommitId]]


class CommitGraphWalker:
    """Lazily yields a commit and its ancestors in depth-first preorder.

    The start commit comes first, first parents are explored before later
    parents, and every commit is yielded once. Parents are fetched from
    *parents_of* only when the walk moves past a commit, so the history never
    needs to fit in memory. Each call to :meth:`walk` is an independent
    generator; several can be advanced in lockstep.
    """

    def __init__(self, parents_of: ParentLookup) -> None:
        self._parents_of = parents_of

    def node(self, commit_id: CommitId) -> CommitNode:
        return CommitNode(id=commit_id, parents=self._parents_of(commit_id))

    def walk(self, start: CommitId) -> Iterator[CommitId]:
        seen: set[CommitId] = set()
        stack = [start]
        while stack:
            commit_id = stack.pop()
            if commit_id in seen:
                continue
            seen.add(commit_id)
            yield commit_id
            parents = self._parents_of(commit_id)
            stack.extend(p for p in reversed(parents) if p not in seen)


class AncestryComparator:
    """Counts commits reachable from one commit but not from another."""

    def __init__(self, walker: CommitGraphWalker) -> None:
        self._walker = walker

    def count(self, to: CommitId, from_: CommitId) -> int:
        """Number of commits on the *to* side before the shared boundary.

        With ``to`` = local branch and ``from_`` = upstream this is the
        "ahead" count; swapping the arguments gives "behind". When the two
        histories share no commit, the full length of the *to* walk is
        returned.
        """
        to_seen: set[CommitId] = {to}
        from_seen: set[CommitId] = {from_}
        to_visited: list[CommitId] = []

        to_iter = self._walker.walk(to)
        from_iter = self._walker.walk(from_)
        boundary: CommitId | None = None

        while True:
            remain = False

            to_next = next(to_iter, None)
            if to_next is not None:
                remain = True
                to_seen.add(to_next)
                if to_next in from_seen:
                    boundary = to_next
                    break
                to_visited.append(to_next)

            from_next = next(from_iter, None)
            if from_next is not None:
                remain = True
                from_seen.add(from_next)
                if from_next in to_seen:
                    boundary = from_next
                    break

            if not remain:
                break

        if boundary is None:
            logger.debug(
                "ancestry_unrelated", to=to, from_=from_, walked=len(to_visited)
            )
            return len(to_visited)

        try:
            return to_visited.index(boundary)
        except ValueError:
            return len(to_visited)

    def ahead_behind(self, local: CommitId, upstream: CommitId) -> tuple[int, int]:
        """Return ``(ahead, behind)`` of *local* relative to *upstream*."""
        ahead = self.count(local, upstream)
        behind = self.count(upstream, local)
        return ahead, behind
