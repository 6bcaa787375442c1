import sys
import logging
import structlog

def configure_logging(log_level: str = "INFO"):
    """
    Configures structlog to output JSON logs to stderr.
    Stdout is left to the runner's verdict output.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ],
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        cache_logger_on_first_use=True,
    )

def bind_run_context(**values):
    """Attach run-scoped fields (scenario, seed) to every log line."""
    structlog.contextvars.bind_contextvars(**values)

def clear_run_context():
    structlog.contextvars.clear_contextvars()

def get_logger(name: str):
    return structlog.get_logger(name)
