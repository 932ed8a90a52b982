# Routes package init
"""
Route Map Backend: API Routes Package
======================================

Route Inventory:
    - health.py:    GET  /health
    - routes.py:    GET / POST / DELETE /route
    - addresses.py: GET  /addresses
    - camps.py:     GET / POST /camps
    - vendors.py:   GET / POST /vendors
    - geo.py:       GET  /osm, GET / and /zip
    - frontend.py:  GET  /share, /share.html, /config.js
    - deps.py:      shared dependencies (http client, store, JSON body)

Routes are thin: read parameters, call a service, set status and cache
headers. Errors are raised as exceptions and rendered by the handlers in
main.py.
"""
