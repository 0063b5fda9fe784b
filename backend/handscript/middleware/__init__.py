# Middleware package init
"""
Handscript Backend: Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so the access log line and error envelopes
      carry the correlation ID.
    - Logging captures response status and duration on the way out.
"""
