"""
Logging for slackecho
Every logger feeds one background listener that writes to stderr and rotating files
"""
import logging
import os
import queue
import sys
import threading
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import Dict, List, Optional
try:
    from concurrent_log_handler import ConcurrentRotatingFileHandler
    USE_CONCURRENT_HANDLER = True
except ImportError:
    USE_CONCURRENT_HANDLER = False

from config import config

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(threadName)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Loggers configured so far, and the listener they all share
_setup_lock = threading.Lock()
_configured: Dict[str, logging.Logger] = {}
_records: Optional[queue.Queue] = None
_listener: Optional[QueueListener] = None


class ColoredFormatter(logging.Formatter):
    """Colors the level name for terminal output"""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # File handlers format the same record after us
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno)
        if color:
            colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _rotating_file(path: str, level: int = logging.NOTSET) -> logging.Handler:
    if USE_CONCURRENT_HANDLER:
        handler = ConcurrentRotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT)
    else:
        handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _build_handlers(logs_dir: str) -> List[logging.Handler]:
    """stderr (optional), app.log with everything and error.log with errors only"""
    os.makedirs(logs_dir, exist_ok=True)
    handlers = []

    # stdout carries the pairing prompt and command output
    if config.console_logging_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(console)

    handlers.append(_rotating_file(os.path.join(logs_dir, "app.log")))
    handlers.append(_rotating_file(os.path.join(logs_dir, "error.log"), logging.ERROR))
    return handlers


def get_log_level(level_name: str) -> int:
    """Translate a level name into a logging constant, INFO when unknown"""
    level = getattr(logging, str(level_name).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _is_slack_logger(name: str) -> bool:
    """Loggers of the Slack client, not of slackecho itself"""
    if name.startswith("slackecho."):
        name = name[len("slackecho."):]
    elif name == "slackecho":
        return False
    return "slack" in name.lower()


def _resolve_level(name: str, level: Optional[str]) -> int:
    if config.debug_mode:
        return logging.DEBUG
    if level is None:
        level = config.slack_log_level if _is_slack_logger(name) else config.log_level
    return get_log_level(level)


def _shared_queue_handler() -> QueueHandler:
    """QueueHandler feeding the listener, which is started on first use"""
    global _records, _listener

    if _records is None:
        _records = queue.Queue(-1)
    if _listener is None:
        _listener = QueueListener(_records, *_build_handlers(config.log_directory), respect_handler_level=True)
        _listener.start()
    return QueueHandler(_records)


def setup_logger(
    name: str = "slackecho",
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    use_queue: bool = True
) -> logging.Logger:
    """
    Configure a logger once and return it

    Args:
        name: Logger name, classes use "slackecho.<ClassName>"
        level: Level name; defaults to LOG_LEVEL, or SLACK_LOG_LEVEL for the Slack client
        log_file: Extra rotating file that receives only this logger's records
        use_queue: Hand records to the background listener instead of writing in the caller's thread

    Returns:
        The configured logger; later calls with the same name return it unchanged
    """
    with _setup_lock:
        if name in _configured:
            return _configured[name]

        logger = logging.getLogger(name)
        logger.setLevel(_resolve_level(name, level))
        logger.propagate = False
        logger.handlers.clear()

        if use_queue:
            logger.addHandler(_shared_queue_handler())
        else:
            for handler in _build_handlers(config.log_directory):
                logger.addHandler(handler)

        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            logger.addHandler(_rotating_file(log_file))

        _configured[name] = logger
        return logger


class LoggerMixin:
    """Gives a class a logger named after it"""

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = setup_logger(f"slackecho.{type(self).__name__}")
        return self._logger

    def log_debug(self, message: str):
        self.logger.debug(message)

    def log_info(self, message: str):
        self.logger.info(message)

    def log_warning(self, message: str):
        self.logger.warning(message)

    def log_error(self, message: str, exc_info=False):
        self.logger.error(message, exc_info=exc_info)

    def log_critical(self, message: str, exc_info=False):
        self.logger.critical(message, exc_info=exc_info)


main_logger = setup_logger("slackecho")

if not USE_CONCURRENT_HANDLER:
    main_logger.warning("concurrent-log-handler not installed, log rotation is not process-safe")


def log_session_start(command: str):
    """Mark the start of a CLI run in the logs"""
    main_logger.info(f"---- slackecho {command} started {datetime.now().isoformat()} ----")
    main_logger.debug(f"connections file={config.connections_file} level={config.log_level} "
                      f"interval={config.min_send_interval}s limit={config.message_length_limit}")


def log_session_end():
    """Mark the end of a CLI run and drain the log queue"""
    global _listener

    main_logger.info(f"---- slackecho finished {datetime.now().isoformat()} ----")

    if _listener is not None:
        _listener.stop()
        _listener = None
