"""structlog configuration for docqa.

One processor chain serves both structlog loggers and the standard
library: ``configure_logging`` installs it for structlog and wraps it in a
``ProcessorFormatter`` on the root handler, so records from uvicorn, httpx
and chromadb come out in the same shape as ours.  Production
(``APP_ENV=production`` or ``json_output=True``) renders JSON lines;
everything else gets the coloured console renderer.
"""

import logging
import os
import sys

import structlog

# Libraries that log every request or heartbeat at INFO.
_CHATTY_LOGGERS = ("chromadb", "httpx", "httpcore", "openai", "multipart")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]


def _renderer(as_json: bool) -> structlog.types.Processor:
    if as_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Install the docqa logging pipeline and return a root logger.

    Parameters
    ----------
    log_level:
        Minimum level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
    json_output:
        Render JSON regardless of ``APP_ENV``.
    """
    level = logging.getLevelName(log_level.upper())
    as_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    processors = _shared_processors()
    renderer = _renderer(as_json)

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger(service="docqa")


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
