"""
handshake.py -- one-shot request/acknowledge transactions.

The engines behave like small register-mapped devices: a caller places
operands on the data-in fields, raises a level-triggered request line,
waits for the acknowledge (or output-valid) line, samples the result and
drops the request again.  In software this is a three-state machine::

    IDLE --rising edge--> REQUESTED --device done--> ACKNOWLEDGED
      ^                                                  |
      +------------------ request dropped ---------------+

Only a 0 -> 1 transition of the request starts a transaction; holding
the request high after the acknowledge does nothing until the line has
been dropped.  The acknowledge clears as soon as the request returns to
0.

:class:`Handshake` models the device side (request/ack lines plus an
optional response latency in polls).  :class:`Channel` is the caller
side: a blocking, timeout-bounded ``transact()`` that serializes access
with a lock so only one request is ever in flight.
"""

from __future__ import annotations

import enum
import threading
import time
from typing import Any, Callable, Optional, Tuple

from .errors import TransactionTimeout


class HandshakeState(enum.Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    ACKNOWLEDGED = "acknowledged"


class Handshake:
    """Device side of a request/acknowledge pair."""
    __slots__ = ("name", "action", "latency", "request", "ack", "state",
                 "result", "transactions", "_operands", "_countdown")

    def __init__(self, action: Callable[..., Any], latency: int = 0,
                 name: str = "handshake") -> None:
        self.name = name
        self.action = action
        self.latency = latency
        self.request = 0
        self.ack = 0
        self.state = HandshakeState.IDLE
        self.result: Any = None
        self.transactions = 0
        self._operands: Tuple[Any, ...] = ()
        self._countdown = 0

    def drive(self, level: int, *operands: Any) -> bool:
        """Set the request line; returns True when this was a rising edge."""
        level = 1 if level else 0
        rising = bool(level and not self.request)
        self.request = level
        if rising:
            self._operands = operands
            self._countdown = self.latency
            self.result = None
            self.state = HandshakeState.REQUESTED
        elif not level:
            self.ack = 0
            self.state = HandshakeState.IDLE
        return rising

    def poll(self) -> int:
        """Advance the device by one step and sample the acknowledge line."""
        if self.state is HandshakeState.REQUESTED:
            if self._countdown > 0:
                self._countdown -= 1
            else:
                self.result = self.action(*self._operands)
                self.transactions += 1
                self.ack = 1
                self.state = HandshakeState.ACKNOWLEDGED
        return self.ack


class Channel:
    """Caller side: blocking, timeout-bounded transactions over a Handshake."""

    def __init__(self, action: Callable[..., Any], retries: int,
                 name: str = "channel", latency: int = 0,
                 poll_interval: float = 0.0,
                 lock: Optional[threading.Lock] = None) -> None:
        self.line = Handshake(action, latency=latency, name=name)
        self.name = name
        self.retries = retries
        self.poll_interval = poll_interval
        self._lock = lock if lock is not None else threading.Lock()

    @property
    def state(self) -> HandshakeState:
        return self.line.state

    @property
    def transactions(self) -> int:
        return self.line.transactions

    def transact(self, *operands: Any) -> Any:
        """Run one request/acknowledge exchange and return the device result.

        Raises :class:`TransactionTimeout` when the acknowledge is not seen
        within ``retries`` polls.  The request is always dropped before
        returning, so the next call produces a fresh rising edge.
        """
        with self._lock:
            line = self.line
            line.drive(1, *operands)
            try:
                for _ in range(self.retries):
                    if line.poll():
                        return line.result
                    if self.poll_interval:
                        time.sleep(self.poll_interval)
                raise TransactionTimeout(self.name, self.retries)
            finally:
                line.drive(0)
