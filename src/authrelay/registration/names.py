"""Device-name normalization.

Headscale user names end up as DNS labels, so they are squeezed into
``[a-z0-9-]{1,63}`` without leading or trailing hyphens.
"""

from __future__ import annotations

import re

MAX_NAME_LENGTH = 63

_INVALID_CHARS = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-{2,}")
VALID_NAME = re.compile(r"^[a-z0-9-]{1,63}$")


def normalize_device_name(name: str) -> str:
    """Return the DNS-label form of *name*; empty if nothing usable is left.

    >>> normalize_device_name("My Device!!")
    'my-device'
    """
    label = _INVALID_CHARS.sub("-", name.lower())
    label = _HYPHEN_RUNS.sub("-", label).strip("-")
    # Truncation can expose a hyphen at the cut point
    return label[:MAX_NAME_LENGTH].rstrip("-")
