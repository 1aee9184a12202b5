# Middleware package init
"""
API Boilerplate - Middleware Package
=====================================

    api_response.py  APIResponseRequestLoggingMiddleware (ASGI wiring)
    outcome.py       Outcome tagging and envelope normalization (pure)
    audit.py         Audit deny-list, truncation and record building (pure)

Middleware Chain:
    Request → [CORS] → [GZip] → [Envelope + Audit] → Route Handler
"""
