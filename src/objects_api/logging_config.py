import logging
import os
import sys
import structlog

AUDIT_LOGGER_NAME = "objects_api.audit"

def configure_logging(level: str = None):
    """Configure structured logging for the Lambda runtime.

    Everything goes to stdout through the stdlib root logger so CloudWatch
    collects both the JSON diagnostics and the AUDIT_LOG lines.
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger().setLevel(level)
    # Audit records are emitted whatever LOG_LEVEL says
    logging.getLogger(AUDIT_LOGGER_NAME).setLevel(logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
