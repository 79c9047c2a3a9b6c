"""Constrained type aliases for decode-time validation.

Validated automatically by msgspec when a config is decoded or converted
from a mapping, so a bad ``timeout_ms`` is rejected where it enters the
system instead of surfacing later as a confusing harness verdict.

Usage:
    >>> import msgspec
    >>> from promise_chan.types import TimeoutMillis
    >>>
    >>> class Cfg(msgspec.Struct):
    ...     timeout_ms: TimeoutMillis
    >>>
    >>> msgspec.convert({'timeout_ms': 0}, Cfg)
    # ValidationError: Expected `int` >= 1 - at `$.timeout_ms`
"""

from __future__ import annotations

from typing import Annotated

import msgspec

__all__ = [
    'LogLevel',
    'TimeoutMillis',
]

TimeoutMillis = Annotated[int, msgspec.Meta(ge=1, le=86_400_000)]
"""Deadline in milliseconds.

Valid range: 1 to 86,400,000 (24 hours, inclusive). The upper bound catches
seconds-vs-milliseconds typos in the other direction.
"""

LogLevel = Annotated[
    str,
    msgspec.Meta(pattern=r'^(?i:debug|info|warning|error|critical)$'),
]
"""Standard logging level name, case-insensitive."""
