"""
Notekeep Backend: Middleware Package
====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and any error body carry
    the same correlation id. Authentication is not middleware; it is the
    `get_current_user` dependency, so /signup, /login and /health stay open.
"""
