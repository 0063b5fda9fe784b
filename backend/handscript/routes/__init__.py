# Routes package init
"""
Handscript Backend: API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - images.py:  GET    /api/images                 (list images)
                  POST   /api/images                 (render and upload)
                  GET    /api/images/{id}/download   (image bytes)
                  DELETE /api/images/{id}            (delete image)
    - health.py:  GET    /health                     (service health check)

Routes stay thin: extract request data, call ImageService, wrap the result.
"""
