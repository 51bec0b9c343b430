from apv.core.exceptions import (
    AppException,
    ConfigurationError,
    DatabaseConnectionError,
    TemplateError,
)

__all__ = [
    "AppException",
    "ConfigurationError",
    "DatabaseConnectionError",
    "TemplateError",
]
