"""
Identifier Generator

Every entity gets an opaque string ID tagged with its kind
(e.g. ``job_3f2a...``) so IDs are readable in logs and exported CSVs.
"""

import itertools
import random
import time
from uuid import uuid4

_fallback_counter = itertools.count(1)


def new_id(kind: str = "id") -> str:
    """
    Return a new identifier prefixed with ``kind``.

    Uses a random UUID. If the platform has no randomness source for
    ``uuid4`` the ID falls back to timestamp + random suffix + a
    process-wide counter, which still cannot repeat within one run.
    """
    prefix = (kind or "id").strip() or "id"
    try:
        return f"{prefix}_{uuid4().hex}"
    except NotImplementedError:
        return (
            f"{prefix}_{time.time_ns()}_"
            f"{random.randrange(1_000_000):06d}_{next(_fallback_counter)}"
        )
