"""
Unified logging system
Supports output to files and console based on project configuration
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

from core.settings import load_project_config

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def _resolve_level(logging_config: dict) -> str:
    """PLANNER_LOG_LEVEL overrides [logging] level"""
    return os.environ.get("PLANNER_LOG_LEVEL") or logging_config.get("level", "INFO")


# Initialize root logger at module import time so all loggers inherit the level
def _init_root_logger_early():
    """Set the root logger level before handlers are configured"""
    try:
        logging_config = load_project_config().get("logging", {})
        log_level = _resolve_level(logging_config)
        logging.getLogger().setLevel(getattr(logging, log_level.upper()))
    except (OSError, ValueError, AttributeError):
        logging.getLogger().setLevel(logging.INFO)


_init_root_logger_early()


class LoggerManager:
    """Log manager"""

    def __init__(self):
        self._loggers: dict = {}
        self._setup_root_logger()

    def _setup_root_logger(self):
        """Setup root logger from the [logging] section of config.toml"""
        logging_config = load_project_config().get("logging", {})
        log_level = _resolve_level(logging_config)
        logs_dir = logging_config.get("logs_dir", "./logs")
        max_file_size = logging_config.get("max_file_size", "10MB")
        backup_count = logging_config.get("backup_count", 5)

        Path(logs_dir).mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))
        root_logger.handlers.clear()

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(console_handler)

        file_format = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
        )

        # File handler
        file_handler = logging.handlers.RotatingFileHandler(
            Path(logs_dir) / "planner_backend.log",
            maxBytes=self._parse_size(max_file_size),
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_format)
        root_logger.addHandler(file_handler)

        # Error log file handler
        error_handler = logging.handlers.RotatingFileHandler(
            Path(logs_dir) / "error.log",
            maxBytes=self._parse_size(max_file_size),
            backupCount=backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_format)
        root_logger.addHandler(error_handler)

    def _parse_size(self, size_str: str) -> int:
        """Parse file size string such as '10MB'"""
        size_str = str(size_str).upper()
        if size_str.endswith("KB"):
            return int(size_str[:-2]) * 1024
        elif size_str.endswith("MB"):
            return int(size_str[:-2]) * 1024 * 1024
        elif size_str.endswith("GB"):
            return int(size_str[:-2]) * 1024 * 1024 * 1024
        else:
            return int(size_str)

    def get_logger(self, name: str) -> logging.Logger:
        """Get logger with specified name"""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


# Global log manager instance (lazy initialization to avoid circular imports)
_logger_manager: Optional[LoggerManager] = None


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get logger"""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()

    return _logger_manager.get_logger(name)


def setup_logging():
    """Setup logging system (for initialization or reloading)"""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()
    else:
        _logger_manager._setup_root_logger()
