from __future__ import annotations

MAX_KEY_LENGTH = 250

# memcached reads larger expirations as absolute unix timestamps.
MAX_RELATIVE_TTL_SECONDS = 30 * 24 * 60 * 60
