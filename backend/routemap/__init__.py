"""
Route Map Backend: Application Package Initializer
===================================================

What: Marks the `routemap` directory as a Python package.
Who:  Imported by uvicorn (`uvicorn routemap.main:app`), pytest and the routes.

Architecture Note:
    The backend is a thin proxy between the browser route-mapping tool and
    its data sources (PostgREST store, Overpass, postal boundary service):

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (validation, enrichment) │  ← Query building, reshaping
    ├─────────────────────────────────────┤
    │        Schemas (request bodies)     │  ← Pydantic models
    ├─────────────────────────────────────┤
    │     Store client (PostgREST over    │  ← httpx, one pooled client
    │     HTTP) and external services     │
    └─────────────────────────────────────┘

    Routes handle status codes and headers and delegate everything else to
    services. Services receive their upstream client per call so they can be
    tested with a mock client and no network.
"""

__version__ = "1.0.0"
