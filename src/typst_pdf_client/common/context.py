"""Request-scoped context carrying the correlation id and an optional deadline.

A ``RequestContext`` is an immutable value handed to every gateway call.
Deriving a new context never changes the parent, so one context can be
shared by several threads.
"""
from __future__ import annotations
import time
import uuid
from dataclasses import dataclass, replace

@dataclass(frozen=True)
class RequestContext:
    """Immutable per-request values. Use the module helpers to derive new ones."""
    correlation_id: str = ""
    deadline: float | None = None  # time.monotonic() based

BACKGROUND = RequestContext()

def _ensure(ctx: RequestContext | None) -> RequestContext:
    return BACKGROUND if ctx is None else ctx

def with_correlation_id(ctx: RequestContext | None, correlation_id: str) -> RequestContext:
    """
    Return a context carrying ``correlation_id``.

    An empty id returns ``ctx`` unchanged.
    """
    ctx = _ensure(ctx)
    if not correlation_id:
        return ctx
    return replace(ctx, correlation_id=correlation_id)

def correlation_id_from(ctx: RequestContext | None) -> str:
    """Return the correlation id carried by ``ctx``, or an empty string."""
    return _ensure(ctx).correlation_id

def with_deadline(ctx: RequestContext | None, deadline: float) -> RequestContext:
    """Return a context that expires at ``deadline`` (a ``time.monotonic()`` value).

    A parent deadline that is already earlier is kept.
    """
    ctx = _ensure(ctx)
    if ctx.deadline is not None and ctx.deadline <= deadline:
        return ctx
    return replace(ctx, deadline=deadline)

def with_timeout(ctx: RequestContext | None, seconds: float) -> RequestContext:
    return with_deadline(ctx, time.monotonic() + seconds)

def remaining(ctx: RequestContext | None) -> float | None:
    """Seconds left before the deadline (may be negative), or None without one."""
    deadline = _ensure(ctx).deadline
    if deadline is None:
        return None
    return deadline - time.monotonic()

def new_correlation_id() -> str:
    return str(uuid.uuid4())
