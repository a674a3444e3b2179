"""Turn a StatusSnapshot into prompt text."""

from __future__ import annotations

import string
from collections.abc import Iterator
from pathlib import Path

import structlog
import yaml

from gitprompt.exceptions import ConfigError, RenderError
from gitprompt.git.models import StatusSnapshot

logger = structlog.get_logger()

PRETTY = "pretty"
_INLINE_PREFIXES = ("format:", "f:")

BUILTIN_STYLES: dict[str, str] = {
    "plain": "{base_name}:{branch}",
    "counts": "{branch} +{ahead} -{behind} ({base_branch} -{base_behind})",
}


class Renderer:
    """Renders snapshots with a fixed table of named ``str.format`` templates.

    ``pretty`` and ``json`` are always available and emit the snapshot
    document. ``format:<template>`` (or ``f:<template>``) renders an inline
    template.
    """

    def __init__(self, styles: dict[str, str] | None = None) -> None:
        self._styles = {**BUILTIN_STYLES, **(styles or {})}

    @property
    def styles(self) -> list[str]:
        return sorted([PRETTY, "json", *self._styles])

    def render(self, snapshot: StatusSnapshot, style: str) -> str:
        if style == PRETTY:
            return snapshot.to_json()
        if style == "json":
            return snapshot.to_json(indent=None)
        for prefix in _INLINE_PREFIXES:
            if style.startswith(prefix):
                return render_template(style[len(prefix) :], snapshot)
        template = self._styles.get(style)
        if template is None:
            raise RenderError(f"Unknown style: {style}")
        return render_template(template, snapshot)


def render_template(template: str, snapshot: StatusSnapshot) -> str:
    """Fill a ``str.format`` template from the snapshot's fields."""
    fields = snapshot.to_document()
    try:
        for name in _field_names(template):
            if name not in fields:
                raise RenderError(f"Unknown field in template: {name!r}")
        return template.format_map(fields)
    except (ValueError, IndexError, KeyError, AttributeError) as e:
        raise RenderError(f"Invalid template {template!r}: {e}") from e


def _field_names(template: str) -> Iterator[str]:
    # Nested replacement fields may appear inside a format spec
    for _, name, spec, _ in string.Formatter().parse(template):
        if name is not None:
            yield name
        if spec:
            yield from _field_names(spec)


def load_styles(path: Path) -> dict[str, str]:
    """Load extra named templates from a YAML file with a ``styles:`` mapping."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Failed to read styles file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in styles file {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict) or not isinstance(raw.get("styles", {}), dict):
        raise ConfigError(f"Styles file {path} must contain a 'styles' mapping")

    styles: dict[str, str] = {}
    for name, template in (raw.get("styles") or {}).items():
        if not isinstance(template, str):
            raise ConfigError(f"Style {name!r} in {path} is not a string template")
        styles[str(name)] = template
    logger.debug("styles_loaded", path=str(path), names=list(styles))
    return styles
