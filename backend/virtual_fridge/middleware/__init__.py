"""
Virtual Fridge Backend — Middleware Package
=============================================

Middleware chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

Responses travel back through the same chain in reverse, so the request ID
header and the access-log duration are both set on the way out.
"""
