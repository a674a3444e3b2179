"""Bootstrap: wires settings, logging, repository and renderer together."""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

import structlog

from gitprompt.core.config import PromptSettings
from gitprompt.core.synthesizer import StatusSynthesizer
from gitprompt.git.models import StatusSnapshot
from gitprompt.git.service import GitRepository
from gitprompt.render import Renderer, load_styles

logger = structlog.get_logger()

SYSLOG_ADDRESS = "/dev/log"
_VERBOSITY_LEVELS = {0: "WARNING", 1: "INFO"}


def level_for(verbosity: int, override: str | None = None) -> str:
    """Map a ``-v`` count to a log level name; an explicit override wins."""
    if override:
        return override
    return _VERBOSITY_LEVELS.get(verbosity, "DEBUG")


def configure_logging(verbosity: int = 0, *, level: str | None = None) -> None:
    """Set up structlog over stdlib logging.

    Without ``-v`` records go to syslog when it is reachable so the terminal
    only shows the prompt; otherwise they go to stderr.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(level_for(verbosity, level))
    root_logger.handlers.clear()

    handler = _syslog_handler() if verbosity == 0 else None
    if handler is not None:
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
            )
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=False),
            )
        )
    root_logger.addHandler(handler)

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _syslog_handler() -> logging.Handler | None:
    if not Path(SYSLOG_ADDRESS).exists():
        return None
    try:
        handler = logging.handlers.SysLogHandler(
            address=SYSLOG_ADDRESS,
            facility=logging.handlers.SysLogHandler.LOG_USER,
        )
    except OSError:
        return None
    handler.ident = "gitprompt: "
    return handler


def build_renderer(settings: PromptSettings) -> Renderer:
    styles = load_styles(settings.styles_file) if settings.styles_file else {}
    return Renderer(styles)


def collect_snapshot(directory: Path, settings: PromptSettings) -> StatusSnapshot:
    """Open the repository containing *directory* and build its snapshot."""
    with GitRepository.open(
        directory,
        git_binary=settings.git_binary,
        timeout=settings.command_timeout,
        isolate_index=settings.isolate_index,
    ) as repo:
        synthesizer = StatusSynthesizer(
            repo, fallback_base_branch=settings.fallback_base_branch
        )
        snapshot = synthesizer.snapshot()
        logger.info(
            "snapshot_collected",
            root=snapshot.root,
            branch=snapshot.branch,
            cached_queries=len(repo.cache),
            cache_hits=repo.cache.hits,
        )
        return snapshot
