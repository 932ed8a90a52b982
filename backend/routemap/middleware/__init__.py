# Middleware package init
"""
Route Map Backend: Middleware Package
======================================

Middleware Chain (outermost first):
    Request → [Preflight] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Preflight FIRST: every OPTIONS request is answered with 204 and the
       CORS headers, whatever the path
    2. Request ID: correlation ID for logging and the X-Request-ID header
    3. Logging: method, path, status and duration with the request ID
    4. CORS: Access-Control-Allow-Origin on the actual responses
"""
