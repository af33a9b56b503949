"""Call context: the value every handler and every client call receives.

A CallContext bundles a CancellationToken with an optional deadline. On the
client it bounds how long a call may wait; on the server the dispatcher builds
one per request and fills in the request id and method name.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any

from rpcwire.core.cancel import CancellationToken


@dataclass(frozen=True)
class CallContext:
    """Cancellation and deadline scope for a single RPC.

    Attributes:
        token: Cancellation token observed while waiting on the transport.
        deadline: Absolute time.monotonic() value after which the call is
            considered expired. None means no deadline.
        request_id: Id of the request being served (server side only).
        method: Method name being served (server side only).
    """

    token: CancellationToken = field(default_factory=CancellationToken)
    deadline: float | None = None
    request_id: Any = None
    method: str | None = None

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        token: CancellationToken | None = None,
    ) -> CallContext:
        """Create a context that expires `seconds` from now.

        A zero or negative value yields an already-expired context.
        """
        return cls(
            token=token if token is not None else CancellationToken(),
            deadline=time.monotonic() + seconds,
        )

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        """True once the deadline has passed."""
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        """True if the context was cancelled or its deadline passed."""
        return self.token.is_cancelled or self.expired

    def reason(self) -> str | None:
        """Why the context is done, or None while it is still live."""
        if self.token.is_cancelled:
            return "context cancelled"
        if self.expired:
            return "context deadline exceeded"
        return None

    def for_request(self, request_id: Any, method: str) -> CallContext:
        """Return a copy scoped to one inbound request."""
        return replace(self, request_id=request_id, method=method)
