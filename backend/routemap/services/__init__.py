# Services package init
"""
Route Map Backend: Services Layer
==================================

What:  Query building, enrichment and reshaping between the routes (HTTP)
       and the upstreams (store, Overpass, postal boundary API).
How:   Services are module-level singletons without per-request state. The
       upstream client is passed in on every call, so tests hand them a
       mock client and never touch the network.

Service Inventory:
    - store_client.py:    StoreClient, PostgREST requests over httpx
    - normalizer.py:      value coercion and business-number variants
    - colors.py:          deterministic route colors
    - resolver.py:        batch vendor / camp lookups
    - enrichment.py:      RouteEnricher, the route row pipeline
    - route_service.py:   list / save / soft-delete routes
    - search.py:          ranking shared by camp and vendor search
    - camp_service.py:    camp location search and upsert
    - vendor_service.py:  vendor search and upsert
    - address_service.py: raw address listing (degrades on failure)
    - geo_service.py:     Overpass and postal boundary proxies
    - share_service.py:   share page meta rewriting, /config.js
"""
