"""Per-frame tick scheduling.

The playback controller never drives itself. It asks a host scheduler for
the next frame callback and cancels that request when playback stops. A GUI
host would wrap its animation-frame API; ManualScheduler is the
deterministic host used for headless playback and tests.

Example:
    >>> from projectile.scheduling import ManualScheduler
    >>>
    >>> scheduler = ManualScheduler()
    >>> token = scheduler.request(lambda: print("frame"))
    >>> scheduler.fire()
    frame
    1
"""

from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from beartype import beartype

TickCallback = Callable[[], None]


@runtime_checkable
class TickScheduler(Protocol):
    """Host capability for requesting and cancelling frame callbacks."""

    def request(self, callback: TickCallback) -> Hashable:
        """Schedule callback for the next frame; return a cancellation token."""
        ...

    def cancel(self, token: Hashable) -> None:
        """Cancel a pending request. Unknown or fired tokens are ignored."""
        ...


@beartype
@dataclass
class ManualScheduler:
    """Frame scheduler advanced explicitly by the caller.

    Each ``fire()`` is one frame: it runs the callbacks pending at the time
    of the call. Callbacks requested while firing wait for the next frame.
    """
    _pending: dict[int, TickCallback] = field(default_factory=dict, init=False, repr=False)
    _next_token: int = field(default=1, init=False, repr=False)

    def request(self, callback: TickCallback) -> int:
        token = self._next_token
        self._next_token += 1
        self._pending[token] = callback
        return token

    def cancel(self, token: Hashable) -> None:
        self._pending.pop(token, None)

    @property
    def pending(self) -> int:
        """Number of outstanding requests."""
        return len(self._pending)

    def fire(self) -> int:
        """Run one frame.

        Returns:
            Number of callbacks run
        """
        count = 0
        for token in list(self._pending):
            # May have been cancelled by an earlier callback this frame
            callback = self._pending.pop(token, None)
            if callback is None:
                continue
            callback()
            count += 1
        return count
