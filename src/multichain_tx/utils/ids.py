"""Identifier generation."""

from __future__ import annotations

import itertools
import secrets
import time

_counter = itertools.count()


def generate_id(prefix: str = "tx", *, timestamp: bool = True) -> str:
    """
    Generate a process-unique identifier such as ``tx_1718000000000_1a2b3c4d5e6f7a8b``.

    A monotonically increasing counter is mixed in, so ids stay unique even
    when two are generated within the same millisecond.

    Args:
        prefix: Leading label
        timestamp: Include the current time in milliseconds
    """
    parts = [prefix]
    if timestamp:
        parts.append(str(int(time.time() * 1000)))
    parts.append(f"{next(_counter):x}{secrets.token_hex(6)}")
    return "_".join(parts)
