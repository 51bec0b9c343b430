import json
import logging
import sys
import os
import traceback
from datetime import datetime
from typing import Optional

from fastapi import Request

from apv.config import settings

SERVICE_NAME = "apv-web"


class CustomJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder that can handle exceptions and other special types"""
    def default(self, obj):
        if isinstance(obj, Exception):
            return str(obj)
        return super().default(obj)


class StructuredLogger:
    """
    Structured JSON logger for consistent, machine-parseable logs
    """

    def __init__(self, name: str, level: str = None, log_to_file: bool = False, file_path: Optional[str] = None):
        self.name = name
        self.logger = logging.getLogger(name)

        # Set log level from settings if not explicitly provided
        self.logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper()))

        # Remove existing handlers to avoid duplicate logs
        if self.logger.handlers:
            self.logger.handlers.clear()

        # Each logger owns its handlers; "apv.*" records must not reach "apv" again
        self.logger.propagate = False

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(console_handler)

        if log_to_file:
            self._setup_file_handler(file_path)

    def _setup_file_handler(self, file_path: Optional[str] = None):
        """Set up a file handler for logging to a file"""
        if not file_path:
            logs_dir = os.path.join(os.getcwd(), settings.LOG_DIR)
            os.makedirs(logs_dir, exist_ok=True)
            file_path = os.path.join(logs_dir, f"{self.name.replace('.', '_')}.log")

        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(file_handler)

        self.info(f"File logging enabled, writing to: {file_path}")

    def log(self, level: str, message: str, **kwargs) -> None:
        """Base logging method"""
        log_level = getattr(logging, level.upper())

        log_data = {"level": level, "message": message, "logger": self.name, **kwargs}

        if "exception" in kwargs and isinstance(kwargs["exception"], Exception):
            log_data["exception"] = str(kwargs["exception"])

        self.logger.log(log_level, json.dumps(log_data, cls=CustomJSONEncoder))

    def info(self, message: str, **kwargs) -> None:
        """Log at INFO level"""
        self.log("INFO", message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        """Log at DEBUG level"""
        self.log("DEBUG", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log at WARNING level"""
        self.log("WARNING", message, **kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log at ERROR level with optional exception details"""
        if exception:
            kwargs["exception"] = str(exception)
            kwargs["traceback"] = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )
        self.log("ERROR", message, **kwargs)

    def critical(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log at CRITICAL level with optional exception details"""
        if exception:
            kwargs["exception"] = str(exception)
            kwargs["traceback"] = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )
        self.log("CRITICAL", message, **kwargs)

    def request_log(
        self,
        request: Request,
        status_code: int,
        duration_ms: float,
        correlation_id: Optional[str] = None,
        **kwargs,
    ) -> None:
        """Log page request details"""
        self.info(
            f"Request {request.method} {request.url.path}",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            duration_ms=duration_ms,
            correlation_id=correlation_id,
            client_ip=request.client.host if request.client else None,
            **kwargs,
        )


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON strings"""

    def format(self, record):
        if isinstance(record.msg, str):
            try:
                message_dict = json.loads(record.msg)
            except json.JSONDecodeError:
                message_dict = {"message": record.getMessage()}
        else:
            message_dict = {"message": record.getMessage()}

        if not isinstance(message_dict, dict):
            message_dict = {"message": record.getMessage()}

        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "service": SERVICE_NAME,
            "environment": settings.ENVIRONMENT,
            **message_dict,
        }

        return json.dumps(log_data, cls=CustomJSONEncoder)


def get_logger(name: Optional[str] = None, log_to_file: Optional[bool] = None, file_path: Optional[str] = None) -> StructuredLogger:
    """Create a structured logger; file output follows LOG_TO_FILE unless given"""
    if log_to_file is None:
        log_to_file = settings.LOG_TO_FILE
    return StructuredLogger(name or __name__, log_to_file=log_to_file, file_path=file_path)


logger = get_logger("apv")
