# Services package init
"""
API Boilerplate - Services Layer
=================================

Service Inventory:
    - ApiLogService: Persists audit records (SQLAlchemy + tenacity retries)
    - identity:      Reads the authenticated caller's subject claim
"""
