"""Structured logging: complete log file, terminal quiet in production"""

import structlog
import logging
import sys
from pathlib import Path

# Third-party loggers that would flood the terminal
NOISY_LOGGERS = ["sounddevice", "numba", "urllib3", "asyncio"]

# Applied to structlog events and to plain stdlib records alike
SHARED_PROCESSORS = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _key_value_formatter(fmt: str = "%(message)s") -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        fmt=fmt,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        foreign_pre_chain=SHARED_PROCESSORS,
    )


def _file_handler(log_file: str, level: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_key_value_formatter())
    return handler


def _console_handler(development: bool, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if development:
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=True),
            ],
            foreign_pre_chain=SHARED_PROCESSORS,
        ))
    else:
        handler.setFormatter(_key_value_formatter("❌ %(message)s"))
    return handler


def setup_logging(
    mode: str = "production",
    terminal_level: str = "ERROR",
    file_level: str = "DEBUG",
    log_file: str = "logs/ambient_voice.log"
):
    """
    Route every structlog event through stdlib logging to two handlers:
    - File: complete key=value logs (DEBUG+)
    - Terminal: errors only in production, everything in development
    """
    development = mode == "development"
    if development:
        terminal_level = "DEBUG"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_file_handler(
        log_file, getattr(logging, file_level.upper(), logging.DEBUG)
    ))
    root_logger.addHandler(_console_handler(
        development, getattr(logging, terminal_level.upper(), logging.ERROR)
    ))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.ERROR)

    return root_logger


def setup_production_logging(log_file: str = "logs/ambient_voice.log"):
    """Production mode - clean terminal, errors only"""
    return setup_logging(mode="production", log_file=log_file)


def setup_dev_logging(log_file: str = "logs/ambient_voice.log"):
    """Development mode - verbose, colored terminal"""
    return setup_logging(mode="development", log_file=log_file)
