"""structlog-backed logging for the API server.

Service modules log through plain ``logging.getLogger(__name__)``; the
handler installed here renders those records with structlog, tagged with the
id of the ingestion run they belong to.
"""

import logging
import sys
from contextvars import ContextVar

import structlog

# Id of the ingestion run the current task is executing, if any
current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)

NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "google_genai",
    "google_genai.models",
    "yt_dlp",
    "urllib3.connectionpool",
)


def add_run_id(_logger, _method_name, event_dict):
    """Processor tagging each event with the active ingestion run."""
    run_id = current_run_id.get()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def set_run_context(run_id: str) -> None:
    current_run_id.set(run_id)


def clear_run_context() -> None:
    current_run_id.set(None)


def _record_processors() -> list:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_run_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]


def build_formatter(json_output: bool) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering stdlib records as JSON lines or colored console text."""
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_record_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Route all logging through structlog at ``log_level``.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        json_output: Emit JSON lines instead of colored console output
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *_record_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(json_output))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
