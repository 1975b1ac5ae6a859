"""
LegalTendr Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    - Rate Limit rejects abusive clients before any work is done
    - Request ID is set before the access log reads it
    - The access log sees the final status code and duration
"""
