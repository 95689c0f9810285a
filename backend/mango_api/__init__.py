"""
Mango API — Application Package Initializer
=============================================

What: Marks the `mango_api` directory as a Python package.
Why:  Enables module imports like `from mango_api.config import get_settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend is a set of resource modules composed under one router:

    ┌─────────────────────────────────────┐
    │      Routes (Router + Controller)   │  ← HTTP concerns, envelope mapping
    ├─────────────────────────────────────┤
    │     Repositories (CRUD operations)  │  ← validation, explicit results
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   AppContext (Engine & lifecycle)   │  ← one connection pool per process
    └─────────────────────────────────────┘

    A resource module is a model, a schema set and a repository subclass.
    The controller and router are generic and instantiated per resource by
    the route aggregator in `mango_api.routes`.
"""

__version__ = "1.0.0"
