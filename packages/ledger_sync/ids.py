"""Opaque transaction identifiers.

Operations that stamp new ``ID``/``RID`` keys take an :data:`IdSource`
keyword argument rather than reaching for a global, so callers (and tests)
can supply their own generator. :func:`new_id` is the default.
"""

from __future__ import annotations

import itertools
import threading
import uuid
from collections.abc import Callable

type IdSource = Callable[[], str]
"""A zero-argument callable returning a fresh, process-unique string."""

_COUNTER = itertools.count()
_LOCK = threading.Lock()
# One random prefix per process; the counter keeps values unique within it.
_PREFIX = uuid.uuid4().hex[:12]


def new_id() -> str:
    """Return a new identifier that never repeats within this process.

    Safe to call concurrently.
    """

    with _LOCK:
        n = next(_COUNTER)
    return f"{_PREFIX}{n:08x}"


def sequential_ids(prefix: str = "id") -> IdSource:
    """Return a deterministic :data:`IdSource` (``id0001``, ``id0002``, ...)."""

    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter):04d}"


__all__ = ["IdSource", "new_id", "sequential_ids"]
