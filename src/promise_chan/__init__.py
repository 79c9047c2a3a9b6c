"""promise-chan: promise channels and error propagation for anyio.

Write-once, broadcast-read promise channels on top of anyio memory
streams, a propagation protocol that carries raised failures as channel
values and re-raises them at read sites, adapters for foreign futures, and
a deadline-bound harness for testing async code.

Flat imports (preferred):
    from promise_chan import PromiseChannel, resolve_with, take, take_raw
    from promise_chan import Payload, Failure, async_test, run_async_test

Submodule imports (for organization):
    from promise_chan.promise import PromiseChannel, CancellationToken
    from promise_chan.take import take_blocking, take_maybe
    from promise_chan.harness import TestExecution, CollectingSink
"""

# Configuration
from promise_chan._config import DEFAULT_TIMEOUT_MS, HarnessConfig, get_config, init

# Logging
from promise_chan._logging import configure_logging, get_logger

# Channels
from promise_chan.channels import MemoryChannel, SuspensionChannel

# Errors
from promise_chan.errors import (
    AlreadyResolvedError,
    CancelledError,
    ChannelClosedError,
    DeadlineExceededError,
    TimeoutError,
)

# Foreign promises
from promise_chan.foreign import adapt_foreign_promise, is_foreign_promise, settle_foreign

# Harness
from promise_chan.harness import (
    CollectingSink,
    Failed,
    LoggingSink,
    Passed,
    RaisingSink,
    TestExecution,
    TimedOut,
    Verdict,
    VerdictSink,
    async_test,
    run_async_test,
)

# Outcomes
from promise_chan.outcome import NIL, Failure, Outcome, Payload

# Promise channels
from promise_chan.promise import CancellationToken, PromiseChannel, resolve, resolve_with

# Propagation
from promise_chan.propagate import capture, capture_async, captured, captured_async, unwrap, unwrap_raw

# Read operators
from promise_chan.take import (
    is_channel,
    take,
    take_blocking,
    take_maybe,
    take_maybe_blocking,
    take_raw,
    take_raw_blocking,
    take_raw_maybe,
)

__all__ = [
    'DEFAULT_TIMEOUT_MS',
    'NIL',
    'AlreadyResolvedError',
    'CancellationToken',
    'CancelledError',
    'ChannelClosedError',
    'CollectingSink',
    'DeadlineExceededError',
    'Failed',
    'Failure',
    'HarnessConfig',
    'LoggingSink',
    'MemoryChannel',
    'Outcome',
    'Passed',
    'Payload',
    'PromiseChannel',
    'RaisingSink',
    'SuspensionChannel',
    'TestExecution',
    'TimedOut',
    'TimeoutError',
    'Verdict',
    'VerdictSink',
    'adapt_foreign_promise',
    'async_test',
    'capture',
    'capture_async',
    'captured',
    'captured_async',
    'configure_logging',
    'get_config',
    'get_logger',
    'init',
    'is_channel',
    'is_foreign_promise',
    'resolve',
    'resolve_with',
    'run_async_test',
    'settle_foreign',
    'take',
    'take_blocking',
    'take_maybe',
    'take_maybe_blocking',
    'take_raw',
    'take_raw_blocking',
    'take_raw_maybe',
    'unwrap',
    'unwrap_raw',
]
