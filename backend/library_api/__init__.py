"""
Library Lending API — Application Package Initializer
=====================================================

What: Marks the `library_api` directory as a Python package.
Why:  Enables module imports like `from library_api.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered architecture throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Registries/Coordinator) │  ← Business rules, transactions
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    - Routes translate HTTP requests into validated DTOs and typed errors into status codes
    - Book and reader services own CRUD and validation for one entity type each
    - The lending service drives the two-row loan/return transition atomically
    - Models describe the three tables; schemas describe the wire contract
"""

__version__ = "1.0.0"
