"""
API Boilerplate - Application Package Initializer
==================================================

What: Marks the `boilerplate` directory as a Python package.
Who:  Used by uvicorn (boilerplate.main:app), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Middleware (Envelope + Audit)   │  ← Wraps every /api response
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Audit writer)     │  ← Persistence orchestration
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

`__version__` is also the `version` field stamped on every response envelope.
"""

__version__ = "0.1.9"
