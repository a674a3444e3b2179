"""Layered git configuration lookup.

Values are resolved across the system, XDG, home and repository config files,
lowest precedence first. A missing file is skipped; a file that exists but
cannot be read or parsed aborts the lookup, since silently falling back to a
lower-precedence value would misreport the user's identity.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

import structlog

from gitprompt.exceptions import ConfigError
from gitprompt.git.models import ConfigSource

logger = structlog.get_logger()

SYSTEM_CONFIG = Path("/etc/gitconfig")

_SECTION_RE = re.compile(r"^[A-Za-z0-9.-]+$")
_VARIABLE_RE = re.compile(r"[A-Za-z][A-Za-z0-9-]*")
_ESCAPES = {"n": "\n", "t": "\t", "b": "\b", "\\": "\\", '"': '"'}
_COMMENT_CHARS = ("#", ";")


def default_sources(
    root: Path | None,
    *,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[ConfigSource]:
    """The standard git config files, ranked lowest to highest precedence."""
    env = os.environ if environ is None else environ
    home = home if home is not None else Path(env.get("HOME") or Path.home())
    xdg_home = Path(env["XDG_CONFIG_HOME"]) if env.get("XDG_CONFIG_HOME") else None
    if xdg_home is None:
        xdg_home = home / ".config"

    locations = [
        SYSTEM_CONFIG,
        xdg_home / "git" / "config",
        home / ".gitconfig",
    ]
    if root is not None:
        locations.append(root / ".git" / "config")

    return [
        ConfigSource(location=path, rank=rank, present=path.is_file())
        for rank, path in enumerate(locations)
    ]


def normalize_key(key: str) -> str:
    """Lower-case the section and variable name; subsections keep their case."""
    parts = key.split(".")
    if len(parts) < 2:
        raise ConfigError(f"key does not contain a section: {key}")
    section, *middle, name = parts
    return ".".join([section.lower(), *middle, name.lower()])


def parse_config(text: str, source: str = "<string>") -> list[tuple[str, str]]:
    """Parse git config text into ``(key, value)`` pairs in file order."""
    return _Parser(text, source).parse()


class ConfigResolver:
    """Resolve single config keys across ranked sources."""

    def __init__(self, sources: list[ConfigSource]) -> None:
        self._sources = sorted(sources, key=lambda s: s.rank)

    @property
    def sources(self) -> list[ConfigSource]:
        return list(self._sources)

    def resolve(self, key: str) -> str:
        """Return the effective value of *key*, or '' if no source defines it."""
        wanted = normalize_key(key)
        value = ""
        for source in self._sources:
            if not source.present:
                continue
            text = _read_source(source.location)
            if text is None:
                continue
            for entry_key, entry_value in parse_config(text, str(source.location)):
                if entry_key == wanted and entry_value:
                    value = entry_value
        logger.debug("config_resolved", key=wanted, found=bool(value))
        return value


def _read_source(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"failed to read config {path}: {e}") from e


class _Parser:
    def __init__(self, text: str, source: str) -> None:
        self._lines = text.splitlines()
        self._source = source
        self._pos = 0
        self._section: str | None = None

    def parse(self) -> list[tuple[str, str]]:
        entries: list[tuple[str, str]] = []
        while self._pos < len(self._lines):
            line = self._lines[self._pos].strip()
            self._pos += 1
            if line.startswith("["):
                line = self._parse_header(line)
            if not line or line.startswith(_COMMENT_CHARS):
                continue
            entries.append(self._parse_variable(line))
        return entries

    def _error(self, reason: str) -> ConfigError:
        return ConfigError(f"bad config line {self._pos} in {self._source}: {reason}")

    def _parse_header(self, line: str) -> str:
        """Consume a section header, returning any text that follows it."""
        body = line[1:]
        close = body.find("]")
        quote = body.find('"')

        if quote != -1 and (close == -1 or quote < close):
            name = body[:quote]
            if not name[-1:].isspace():
                raise self._error("missing space before subsection")
            subsection, end = self._parse_subsection(body, quote + 1)
            if end >= len(body) or body[end] != "]":
                raise self._error("unterminated section header")
            self._section = f"{self._section_name(name.strip())}.{subsection}"
            return body[end + 1 :].strip()

        if close == -1:
            raise self._error("unterminated section header")
        # Legacy "[section.subsection]" form is case-insensitive throughout
        self._section = self._section_name(body[:close].strip())
        return body[close + 1 :].strip()

    def _parse_subsection(self, body: str, pos: int) -> tuple[str, int]:
        chars: list[str] = []
        while True:
            if pos >= len(body):
                raise self._error("unterminated subsection name")
            c = body[pos]
            pos += 1
            if c == '"':
                return "".join(chars), pos
            if c == "\\":
                if pos >= len(body):
                    raise self._error("unterminated subsection name")
                c = body[pos]
                pos += 1
            chars.append(c)

    def _section_name(self, name: str) -> str:
        if not _SECTION_RE.match(name):
            raise self._error(f"invalid section name {name!r}")
        return name.lower()

    def _parse_variable(self, line: str) -> tuple[str, str]:
        if self._section is None:
            raise self._error("variable outside of any section")
        match = _VARIABLE_RE.match(line)
        if match is None:
            raise self._error("invalid variable name")
        name = match.group(0).lower()
        rest = line[match.end() :].lstrip()

        if not rest or rest.startswith(_COMMENT_CHARS):
            value = "true"
        elif rest.startswith("="):
            value = self._parse_value(rest[1:])
        else:
            raise self._error(f"invalid variable name {line!r}")
        return f"{self._section}.{name}", value

    def _parse_value(self, text: str) -> str:
        out: list[str] = []
        keep = 0
        in_quote = False
        pos = 0
        while pos < len(text):
            c = text[pos]
            pos += 1
            if c == "\\":
                if pos >= len(text):
                    text, pos = self._continuation(), 0
                    continue
                escaped = _ESCAPES.get(text[pos])
                if escaped is None:
                    raise self._error(f"bad escape sequence \\{text[pos]}")
                pos += 1
                out.append(escaped)
                keep = len(out)
            elif c == '"':
                in_quote = not in_quote
                keep = len(out)
            elif not in_quote and c in _COMMENT_CHARS:
                break
            elif not in_quote and c.isspace():
                if out:
                    out.append(c)
            else:
                out.append(c)
                keep = len(out)
        if in_quote:
            raise self._error("unterminated quoted value")
        return "".join(out[:keep])

    def _continuation(self) -> str:
        if self._pos >= len(self._lines):
            raise self._error("line continuation at end of file")
        line = self._lines[self._pos]
        self._pos += 1
        return line
