"""Span keys and carrier keys shared by the HTTP plug-ins."""

from __future__ import annotations

from instrumenter.api.carrier import create_carrier_key

__all__ = ["HTTP_CLIENT_KEY", "HTTP_SERVER_KEY", "CLIENT_RESEND_KEY"]

HTTP_CLIENT_KEY = "opentelemetry-traces-span-key-http-client"
"""Span key reported by HTTP client extractors."""

HTTP_SERVER_KEY = "opentelemetry-traces-span-key-http-server"
"""Span key reported by HTTP server extractors."""

CLIENT_RESEND_KEY = create_carrier_key("opentelemetry-http-client-resend-key")
"""Carrier key holding the :class:`~instrumenter.api.carrier.ResendCounter` of a logical request."""
