"""
Client-side timeouts for Microsoft Graph and token requests.

Every remote call made by the reconcilers shares one fixed timeout. Values are
read from the environment once, when this module is imported; individual calls
cannot change them.

Environment Variables:
    - B2C_IEF_TIMEOUT_GRAPH_REQUEST: seconds per Graph request (default: 10)
    - B2C_IEF_TIMEOUT_TOKEN_REQUEST: seconds per token acquisition (default: 30)
"""

import logging
import os
from typing import Final

logger = logging.getLogger(__name__)


def _get_timeout(env_var: str, default: int) -> int:
    """Read a positive whole number of seconds from ``env_var``.

    Unset, non-integer and non-positive values fall back to ``default``.
    """
    raw = os.environ.get(env_var)
    if raw is None:
        return default
    try:
        seconds = int(raw)
    except ValueError:
        logger.warning(
            f"Ignoring {env_var}={raw!r}: Must be integer. Using {default}s"
        )
        return default
    if seconds <= 0:
        logger.warning(
            f"Ignoring {env_var}={raw!r}: Must be positive. Using {default}s"
        )
        return default
    return seconds


class Timeouts:
    """Timeout constants, in seconds."""

    GRAPH_REQUEST: Final[int] = _get_timeout("B2C_IEF_TIMEOUT_GRAPH_REQUEST", 10)
    TOKEN_REQUEST: Final[int] = _get_timeout("B2C_IEF_TIMEOUT_TOKEN_REQUEST", 30)
