"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
Copy ``.env.example`` to ``.env`` and adjust values for your environment.
"""

import os

# ---------------------------------------------------------------------------
# Content store (we connect to it as a gRPC client)
# ---------------------------------------------------------------------------

CONTENT_STORE_ADDRESS: str = os.getenv("CONTENT_STORE_ADDRESS", "localhost:50052")

# Deadline applied to every store call.  There is no other timeout.
CONTENT_STORE_TIMEOUT_SECONDS: float = float(
    os.getenv("CONTENT_STORE_TIMEOUT_SECONDS", "10")
)

# ---------------------------------------------------------------------------
# Suggestion engine
# ---------------------------------------------------------------------------

# How long (seconds) a cached corpus or ranking stays valid.
SUGGESTION_CACHE_TTL_SECONDS: int = int(
    os.getenv("SUGGESTION_CACHE_TTL_SECONDS", "300")
)

READING_HISTORY_LIMIT: int = int(os.getenv("READING_HISTORY_LIMIT", "50"))

DEFAULT_SUGGESTION_LIMIT: int = 6   # "for you" suggestions per request
DEFAULT_RELATED_LIMIT: int = 4      # related articles per post

# ---------------------------------------------------------------------------
# Reading behaviour tracking
# ---------------------------------------------------------------------------

ANONYMOUS_USER_ID: str = os.getenv("ANONYMOUS_USER_ID", "anonymous")

# Seconds of reading between two checkpoint observations.
TRACKING_CHECKPOINT_SECONDS: int = int(
    os.getenv("TRACKING_CHECKPOINT_SECONDS", "10")
)

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
