from __future__ import annotations

import os

PRIMARY_PREFIX = "FIT_ROADMAP_"
LEGACY_PREFIX = "FIT_"


def get_env(name: str, default: str | None = None) -> str | None:
    """
    Resolve configuration environment variables.

    Prefers the FIT_ROADMAP_ prefix while still honouring the short FIT_ names
    used by the first deployments.
    """
    for prefix in (PRIMARY_PREFIX, LEGACY_PREFIX):
        value = os.getenv(f"{prefix}{name}")
        if value is not None:
            return value
    return default
