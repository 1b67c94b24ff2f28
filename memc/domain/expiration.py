from __future__ import annotations

import logging
from datetime import timedelta

from .constraints import MAX_RELATIVE_TTL_SECONDS
from .errors import ExpirationNotValidError

logger = logging.getLogger(__name__)


def to_seconds(duration: timedelta) -> int:
    """Convert a ttl into the relative seconds memcached expects.

    Zero means no expiration. Durations with a sub-second part are rejected
    rather than rounded.
    """
    if not isinstance(duration, timedelta):
        raise ExpirationNotValidError(
            f"Expiration must be a timedelta, got {type(duration).__name__}"
        )
    if duration < timedelta(0):
        raise ExpirationNotValidError(f"Expiration cannot be negative, got {duration}")
    if duration.microseconds:
        raise ExpirationNotValidError(
            f"Expiration must be a whole number of seconds, got {duration}"
        )

    seconds = duration.days * 86400 + duration.seconds
    if seconds > MAX_RELATIVE_TTL_SECONDS:
        # TODO: switch to an absolute unix timestamp past 30 days once the
        # expected behaviour for long-lived entries is agreed on.
        logger.warning(
            "Expiration of %s seconds exceeds %s; memcached reads it as a unix timestamp",
            seconds,
            MAX_RELATIVE_TTL_SECONDS,
        )
    return seconds
