"""Construction-time options for the gateway client.

Options are plain callables applied in order to a ``ClientBuilder``. Each one
may raise, which aborts construction at the first bad option.
"""
from __future__ import annotations
from typing import Callable

import httpx

from typst_pdf_client.common.errors import InvalidConfigurationError

DEFAULT_TIMEOUT = 120.0
HANDSHAKE_TIMEOUT = 10.0
MAX_IDLE_CONNECTIONS = 10
IDLE_TIMEOUT = 30.0

def phase_timeout(overall: float | None) -> httpx.Timeout:
    """httpx per-phase timeout: each phase capped at ``overall``, connect also at the handshake limit."""
    if overall is None:
        return httpx.Timeout(None, connect=HANDSHAKE_TIMEOUT)
    return httpx.Timeout(overall, connect=min(HANDSHAKE_TIMEOUT, overall))

class ClientBuilder:
    """Mutable client settings, filled with defaults and then adjusted by options."""

    def __init__(self) -> None:
        self.timeout: float | None = DEFAULT_TIMEOUT
        self.limits = httpx.Limits(
            max_keepalive_connections=MAX_IDLE_CONNECTIONS,
            keepalive_expiry=IDLE_TIMEOUT,
        )
        self.verify = True
        self.transport: httpx.BaseTransport = self._default_transport()
        self._owns_transport = True

    def _default_transport(self) -> httpx.HTTPTransport:
        return httpx.HTTPTransport(verify=self.verify, limits=self.limits)

    def httpx_timeout(self) -> httpx.Timeout:
        return phase_timeout(self.timeout)

    def build(self) -> httpx.Client:
        return httpx.Client(transport=self.transport, timeout=self.httpx_timeout())

    def discard(self) -> None:
        """Release a transport created by the builder when construction fails."""
        if self._owns_transport:
            self.transport.close()

Option = Callable[[ClientBuilder], None]

def with_timeout(seconds: float | None) -> Option:
    """Override the overall request timeout. ``None`` disables it."""
    def apply(builder: ClientBuilder) -> None:
        if seconds is not None and seconds < 0:
            raise InvalidConfigurationError(f"timeout cannot be negative: {seconds}")
        builder.timeout = seconds
    return apply

def with_transport(transport: httpx.BaseTransport | None) -> Option:
    """Use a caller-supplied transport instead of the default pooled one."""
    def apply(builder: ClientBuilder) -> None:
        if transport is None:
            raise InvalidConfigurationError("transport cannot be None")
        builder.discard()
        builder.transport = transport
        builder._owns_transport = False
    return apply

def with_insecure_skip_verify() -> Option:
    """
    Disable TLS certificate verification.

    Any ``httpx.HTTPTransport`` is replaced by one built with ``verify=False``
    and the builder's pool limits; httpx transports cannot be cloned, so other
    settings of a caller-supplied transport are not carried over. Any other
    transport kind raises instead of doing nothing.
    """
    def apply(builder: ClientBuilder) -> None:
        if not isinstance(builder.transport, httpx.HTTPTransport):
            raise InvalidConfigurationError(
                "cannot disable TLS verification on a non-HTTPTransport "
                f"({type(builder.transport).__name__})"
            )
        builder.discard()
        builder.verify = False
        builder.transport = builder._default_transport()
        builder._owns_transport = True
    return apply
