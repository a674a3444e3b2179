"""Shared exception types for gitprompt."""


class GitPromptError(Exception):
    """Base exception for all gitprompt errors."""


class ConfigError(GitPromptError):
    """A configuration source or setting is malformed or unreadable."""


class RepositoryError(GitPromptError):
    """The git binary failed, timed out, or is not available."""


class NotARepositoryError(RepositoryError):
    """The target directory is not inside a git work tree."""


class ResolutionError(GitPromptError):
    """A reference or commit id does not resolve to a commit."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"cannot resolve {ref!r} to a commit")
        self.ref = ref


class RenderError(GitPromptError):
    """The requested output style is unknown or its template is invalid."""
