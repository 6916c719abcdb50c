"""Shared slowapi limiter for the content routes.

Lives in its own module so routers and the app factory can both import it.
Set WORDSPLAINER_NO_RATE_LIMIT=true to turn every ``@limiter.limit`` into a
no-op; the test suite does this in conftest.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

_enabled = os.environ.get("WORDSPLAINER_NO_RATE_LIMIT", "").lower() != "true"

# Keyed by client address: each caller gets its own 20/minute budget
limiter = Limiter(key_func=get_remote_address, enabled=_enabled)
