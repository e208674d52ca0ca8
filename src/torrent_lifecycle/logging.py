"""
Logging setup for torrent lifecycle automation

Root logger always runs at DEBUG; the console handler honours the configured
level and the file handler records everything.
"""

import logging
import sys

LOG_FORMAT_SIMPLE = '%(asctime)s | %(levelname)-8s | %(message)s'
LOG_FORMAT_DETAILED = '%(asctime)s | %(levelname)-8s | %(name)s | %(module)s.%(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ('urllib3', 'qbittorrentapi', 'requests')


def setup_logging(config, trace_mode: bool = False) -> None:
    """
    Configure root logger with console and file handlers

    Args:
        config: Config object providing get_log_level() and get_log_file()
        trace_mode: Use detailed format (module/function/line) when True
    """
    log_format = LOG_FORMAT_DETAILED if trace_mode else LOG_FORMAT_SIMPLE
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    level_name = config.get_log_level()
    console_level = getattr(logging, str(level_name).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers when called more than once
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = config.get_log_file()
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"WARNING: Failed to setup file logging at {log_file}: {type(e).__name__}: {e}",
                  file=sys.stderr)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger"""
    return logging.getLogger(name)
