"""Pure parsers for raw git output."""

from gitprompt.git.models import BranchHeader, LastCommit, WorkingTreeFlags

_HEADER_PREFIX = "## "
_INITIAL_PREFIX = _HEADER_PREFIX + "No commits yet on "
_LEGACY_INITIAL_PREFIX = _HEADER_PREFIX + "Initial commit on "
_DETACHED_HEADER = "HEAD (no branch)"
_UPSTREAM_SEPARATOR = "..."

_STAGED_CODES = frozenset("MDRA")
_UNSTAGED_CODES = frozenset("MD")

LOG_FIELD_SEPARATOR = "\x00"
LOG_FORMAT = "%ae%x00%s%x00%h"


def parse_branch_header(output: str) -> BranchHeader:
    """Parse the first line of ``git status --branch --porcelain``.

    The header reads ``## <branch>[...<upstream>][ [ahead N, behind M]]``.
    Ref names cannot contain ``..`` or spaces, so the first ``...`` always
    separates the branch from its upstream, whether local or remote.
    """
    line = output.split("\n", 1)[0].rstrip("\r")
    if not line.startswith(_HEADER_PREFIX):
        return BranchHeader()

    for prefix in (_INITIAL_PREFIX, _LEGACY_INITIAL_PREFIX):
        if line.startswith(prefix):
            branch, upstream = _split_tracking(line[len(prefix) :])
            return BranchHeader(branch=branch, upstream=upstream, initial=True)

    rest = line[len(_HEADER_PREFIX) :]
    if rest == _DETACHED_HEADER:
        return BranchHeader(branch="HEAD", detached=True)
    branch, upstream = _split_tracking(rest)
    return BranchHeader(branch=branch, upstream=upstream)


def _split_tracking(text: str) -> tuple[str, str]:
    # "[ahead 1]" and "[gone]" suffixes follow the first space
    ref = text.split(" ", 1)[0]
    branch, _, upstream = ref.partition(_UPSTREAM_SEPARATOR)
    return branch, upstream


def parse_working_tree_flags(output: str) -> WorkingTreeFlags:
    """Scan porcelain status lines for staged, unstaged and untracked paths."""
    staged = unstaged = untracked = False
    for line in output.splitlines():
        if len(line) < 2 or line.startswith(_HEADER_PREFIX):
            continue
        x, y = line[0], line[1]
        if x == "?" or y == "?":
            untracked = True
        if x in _STAGED_CODES:
            staged = True
        if y in _UNSTAGED_CODES:
            unstaged = True
    return WorkingTreeFlags(staged=staged, unstaged=unstaged, untracked=untracked)


def parse_remote_branches(output: str) -> list[str]:
    """Turn ``git branch -r`` output into ``remote/branch`` short names."""
    names: list[str] = []
    for line in output.splitlines():
        name = line.strip()
        if not name:
            continue
        # Skip symbolic pointers like "origin/HEAD -> origin/main"
        if " -> " in name:
            continue
        names.append(name)
    return names


def parse_last_commit(output: str) -> LastCommit:
    """Parse one ``git log -n1 --format=LOG_FORMAT`` line."""
    line = output.strip("\n")
    if not line:
        return LastCommit()
    parts = line.split(LOG_FIELD_SEPARATOR, 2)
    parts += [""] * (3 - len(parts))
    return LastCommit(
        author_email=parts[0].strip(),
        message=parts[1].strip(),
        short_hash=parts[2].strip(),
    )


def parse_parent_map(output: str) -> dict[str, list[str]]:
    """Parse ``git rev-list --parents`` lines: each id followed by its parents."""
    parents: dict[str, list[str]] = {}
    for line in output.splitlines():
        fields = line.split()
        if fields:
            parents[fields[0]] = fields[1:]
    return parents


def count_lines(output: str) -> int:
    return sum(1 for line in output.splitlines() if line.strip())


def github_repo_name(url: str) -> str:
    """Return ``owner/repo`` for an ``https://github.com/`` remote URL, else ''."""
    prefix = "https://github.com/"
    if not url.startswith(prefix):
        return ""
    name = url[len(prefix) :]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name
