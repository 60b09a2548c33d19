# logging_config.py
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, List, Optional

# third-party loggers that are noisy at INFO (job runs, connection pool churn)
QUIET_LOGGERS = ("apscheduler", "urllib3")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _logger_entry(handlers: List[str], level: str) -> Dict[str, Any]:
    return {'handlers': list(handlers), 'level': level, 'propagate': False}


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Route lessonsync logs to stdout, and to a rotating file when log_file is set.

    Only the package logger and the QUIET_LOGGERS are configured; the root
    logger is left to the host application.
    """
    handlers = {
        'console': {
            'level': log_level,
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'stream': 'ext://sys.stdout'
        }
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers['file'] = {
            'level': log_level,
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'detailed',
            'filename': log_file,
            'maxBytes': LOG_FILE_MAX_BYTES,
            'backupCount': LOG_FILE_BACKUPS
        }

    handler_names = list(handlers)
    loggers = {'lessonsync': _logger_entry(handler_names, log_level)}
    for name in QUIET_LOGGERS:
        loggers[name] = _logger_entry(handler_names, 'WARNING')

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            }
        },
        'handlers': handlers,
        'loggers': loggers,
    })

    logger = logging.getLogger(__name__)
    logger.info(f"lessonsync logging at {log_level}" + (f", writing to {log_file}" if log_file else ""))
