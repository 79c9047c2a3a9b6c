"""Suspension channels: the rendezvous primitive under promise channels.

- `SuspensionChannel[T]`: protocol with put/take/close; a take on a closed,
  drained channel returns None.
- `MemoryChannel[T]`: in-process implementation over
  anyio.create_memory_object_stream().

## Cancellation & Timeouts

Channels integrate with anyio/trio cancellation semantics:
- put/take can be cancelled via anyio.CancelScope()
- Timeouts are enforced by the caller using anyio.fail_after() or anyio.move_on_after()

Example with timeout:
    ```python
    with anyio.fail_after(5):
        item = await ch.take()  # Raises TimeoutError if takes >5s
    ```
"""

from promise_chan.channels.memory import MemoryChannel
from promise_chan.channels.protocols import SuspensionChannel

__all__ = [
    'MemoryChannel',
    'SuspensionChannel',
]
