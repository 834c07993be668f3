"""
Logging configuration shared by the app and uvicorn
"""

import logging
import logging.config
import re
from typing import Dict, Any

REDACTED = "[REDACTED]"

# bcrypt digests and bearer credentials
SENSITIVE_PATTERNS = (
    re.compile(r"\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}"),
    re.compile(r"bearer\s+\S+", re.IGNORECASE),
)


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from log records before they are emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern in SENSITIVE_PATTERNS:
            redacted = pattern.sub(REDACTED, redacted)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration for the app loggers and uvicorn."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "sensitive_data_filter": {
                "()": SensitiveDataFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["sensitive_data_filter"]
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(get_logging_config(level))
