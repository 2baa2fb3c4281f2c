"""Default configuration values.

DEFAULT_CONFIG is a plain dict so it can be merged with deep_merge. Section
defaults that depend on the host (temp dir, state dir) live on the models.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "text",
        "file": "",
    },
    "watchdog": {
        "restart_delay": 5.0,
        "max_crashes_per_hour": 10,
        "window": 3600.0,
        "threshold_cooldown": 60.0,
        "shutdown_grace": 5.0,
    },
    "deploy": {
        "shell": "/bin/sh",
        "cleanup": [],
        "targets": [],
    },
}
