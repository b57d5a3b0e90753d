"""
Custom exception hierarchy for loadlight.

## Exception Hierarchy

```
LoadLightError (base)
├── LightingError
│   ├── ControllerConnectionError
│   ├── TopologyMismatchError
│   └── LedCountMismatchError
├── MetricsProviderError
└── ConfigurationError
    ├── ConfigFileInvalidError
    └── ConfigValidationError
```

All custom exceptions inherit from `LoadLightError`, which provides:

- `user_message`: Human-friendly message for display to users
- `technical_message`: Detailed message for logging
- `recoverable`: Whether the error can be recovered from
- `recovery_hint`: Optional suggestion for how to fix the issue

### Example: OpenRGB not running

```python
from loadlight.exceptions import ControllerConnectionError

raise ControllerConnectionError("127.0.0.1:6742", original_error="[Errno 111] Connection refused")

# User sees: "Could not connect to OpenRGB at 127.0.0.1:6742."
# Recovery hint: "Make sure OpenRGB is running with the SDK server enabled ..."
```

The control loop retries `ControllerConnectionError` forever and restarts the
session on `MetricsProviderError`; `TopologyMismatchError` and
`LedCountMismatchError` only skip the
affected controller for one cycle.
"""

from .base import LoadLightError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .handlers import (
    ErrorContext,
    format_error_for_display,
    wrap_controller_error,
    wrap_pydantic_error,
)
from .lighting import (
    ControllerConnectionError,
    LedCountMismatchError,
    LightingError,
    TopologyMismatchError,
)
from .metrics import MetricsProviderError

__all__ = [
    # Base
    "LoadLightError",
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    # Lighting
    "ControllerConnectionError",
    "LedCountMismatchError",
    "LightingError",
    "TopologyMismatchError",
    # Metrics
    "MetricsProviderError",
    # Handlers
    "ErrorContext",
    "format_error_for_display",
    "wrap_controller_error",
    "wrap_pydantic_error",
]
