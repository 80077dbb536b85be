# Middleware package init
"""
Readlog Backend — Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any other work
    2. Request ID: correlation id for logs and error envelopes
    3. Logging: one access line per request, including the request id
"""
