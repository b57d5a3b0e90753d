"""
Centralized error handling utilities.

Each layer translates errors to be more useful at the next level up:

```
┌─────────────────────────────────────────┐
│  USER LAYER (CLI)                   │
│  - Formats error.user_message       │
│  - Shows error.recovery_hint        │
└─────────────────────────────────────────┘
                  ↑
                  │ LoadLightError
                  │
┌─────────────────────────────────────────┐
│  APPLICATION LAYER (control loop)   │
│  - Catches LoadLightError subclasses│
│  - Logs and drives reconnects       │
└─────────────────────────────────────────┘
                  ↑
                  │ OSError, NVMLError, psutil.Error, ...
                  │
┌─────────────────────────────────────────┐
│  ADAPTERS (OpenRGB, psutil, NVML)   │
│  - Wrap library errors with `from e`│
└─────────────────────────────────────────┘
```

## Handling Patterns

| Pattern | Code |
|---------|------|
| Critical section with auto-logging | `with ErrorContext("open metrics providers"): ...` |
| Library error at the OpenRGB boundary | `raise wrap_controller_error(e, address, "write LEDs") from e` |
| Pydantic error while loading JSON | `raise wrap_pydantic_error(e, str(path)) from e` |
| Show an error in the CLI | `message, hint = format_error_for_display(e)` |
"""

import logging
from typing import Optional

from .base import LoadLightError
from .config import ConfigFileInvalidError, ConfigValidationError
from .lighting import ControllerConnectionError


logger = logging.getLogger(__name__)


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Use this for critical sections where you want consistent error handling.

    Example:
        ```python
        with ErrorContext("open metrics providers", logger_instance=logger):
            metrics.open()
        ```
    """

    def __init__(
        self,
        operation: str,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """
        Initialize error context.

        Args:
            operation: Description of the operation
            logger_instance: Logger to use (defaults to module logger)
        """
        self.operation = operation
        self.logger = logger_instance or logger
        self.error: Optional[BaseException] = None

    def __enter__(self):
        """Enter the context."""
        self.logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Log any exception and let it propagate.

        Returns:
            False, so the exception is never suppressed
        """
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation}")
            return False

        self.error = exc_val

        if isinstance(exc_val, LoadLightError):
            self.logger.error(
                f"Failed to {self.operation}: {exc_val.technical_message}"
            )
        else:
            self.logger.error(
                f"Failed to {self.operation}: {exc_val}",
                exc_info=True
            )

        return False


def wrap_pydantic_error(error: Exception, file_path: str) -> LoadLightError:
    """
    Convert Pydantic validation errors to loadlight exceptions.

    Args:
        error: The Pydantic ValidationError
        file_path: Path to the JSON file that failed validation

    Returns:
        A ConfigurationError with appropriate type and message
    """
    from pydantic import ValidationError

    error_msg = str(error)

    # Format: "Invalid JSON: <actual error> [type=json_invalid, ..."
    if "Invalid JSON" in error_msg or "json_invalid" in error_msg:
        if "Invalid JSON:" in error_msg:
            parse_error = error_msg.split("Invalid JSON:")[1].split("[type=")[0].strip()
        else:
            parse_error = error_msg

        return ConfigFileInvalidError(file_path, parse_error)

    if isinstance(error, ValidationError):
        errors = error.errors()
        if len(errors) == 1:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get('loc', ('unknown',)))
            return ConfigValidationError(
                field=field,
                value=first_error.get('input', None),
                error_msg=first_error.get('msg', 'validation failed'),
                file_path=file_path
            )
        if errors:
            error_lines = []
            for err in errors:
                field = ".".join(str(loc) for loc in err.get('loc', ('unknown',)))
                error_lines.append(f"  - {field}: {err.get('msg', 'validation failed')}")

            return ConfigValidationError(
                field="multiple fields",
                value=None,
                error_msg=f"{len(errors)} validation errors:\n" + "\n".join(error_lines),
                file_path=file_path
            )

    return ConfigValidationError(
        field="unknown",
        value=None,
        error_msg=error_msg,
        file_path=file_path
    )


def wrap_controller_error(
    error: Exception, address: str, operation: str = "connect"
) -> ControllerConnectionError:
    """
    Convert low-level OpenRGB client errors to a ControllerConnectionError.

    The client library surfaces refused connections, dropped sockets and
    protocol hiccups as assorted OSError subclasses; the control loop only
    needs to know that the link is gone.

    Args:
        error: The original exception from openrgb-python or the socket layer
        address: host:port of the SDK server
        operation: What was being attempted

    Returns:
        ControllerConnectionError carrying the original message
    """
    if isinstance(error, ControllerConnectionError):
        return error

    error_msg = str(error) or type(error).__name__
    if isinstance(error, ConnectionRefusedError):
        error_msg = f"connection refused ({error_msg})"
    elif isinstance(error, TimeoutError):
        error_msg = f"timed out ({error_msg})"

    return ControllerConnectionError(address, original_error=error_msg, operation=operation)


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """
    Format an exception for user display.

    Args:
        error: The exception to format

    Returns:
        Tuple of (user_message, recovery_hint or None)
    """
    if isinstance(error, LoadLightError):
        return error.user_message, error.recovery_hint

    error_type = type(error).__name__
    return f"{error_type}: {error}", None
