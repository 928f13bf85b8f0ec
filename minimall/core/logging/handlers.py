"""
Logging handlers for MINIMALL
"""

import os
import logging
import logging.handlers

from .formatters import build_formatter


class FileHandler:
    """Rotating file handler factory for app and error logs"""

    @staticmethod
    def _create_rotating(
        filename: str,
        log_dir: str,
        max_bytes: int,
        backup_count: int,
        level: int,
        formatter_type: str,
        service_name: str,
    ) -> logging.handlers.RotatingFileHandler:
        os.makedirs(log_dir, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, filename),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        # ANSI colours make no sense in files
        if formatter_type == "console":
            formatter_type = "simple"
        handler.setFormatter(build_formatter(formatter_type, service_name))
        return handler

    @staticmethod
    def create_app_handler(
        log_dir: str = "logs",
        max_bytes: int = 10485760,  # 10MB
        backup_count: int = 5,
        level: int = logging.INFO,
        formatter_type: str = "console",
        service_name: str = "minimall",
    ) -> logging.handlers.RotatingFileHandler:
        """Create application log handler"""
        return FileHandler._create_rotating(
            "app.log",
            log_dir,
            max_bytes,
            backup_count,
            level,
            formatter_type,
            service_name,
        )

    @staticmethod
    def create_error_handler(
        log_dir: str = "logs",
        max_bytes: int = 10485760,  # 10MB
        backup_count: int = 5,
        formatter_type: str = "console",
        service_name: str = "minimall",
    ) -> logging.handlers.RotatingFileHandler:
        """Create error log handler"""
        return FileHandler._create_rotating(
            "errors.log",
            log_dir,
            max_bytes,
            backup_count,
            logging.ERROR,
            formatter_type,
            service_name,
        )


class ConsoleHandler:
    """Console handler factory"""

    @staticmethod
    def create_handler(
        level: int = logging.INFO,
        formatter_type: str = "console",
        service_name: str = "minimall",
    ) -> logging.StreamHandler:
        """Create console handler with specified formatter"""
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(build_formatter(formatter_type, service_name))
        return handler
