# Routes package init
"""
API Boilerplate - API Routes Package
=====================================

Route Inventory:
    - email.py:   POST /api/email/send   (validate and send a templated email)
    - health.py:  GET  /health           (service health check, not enveloped)

Routes stay thin: handlers either return plain data (the envelope middleware
wraps it under "Success") or an APIResponse when they need their own message.
"""
