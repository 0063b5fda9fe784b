# Services package init
"""
Handscript Backend: Services Layer
====================================

What:  Business logic between routes (HTTP) and the two external collaborators.

Service Inventory:
    - PageRenderer (abstract): Interface for text-to-handwriting renderers
    - HandwritingRenderer: Pillow implementation drawing ruled or plain pages
    - MediaStore: Cloudinary adapter (list, upload, delete, lookup, download)
    - ImageService: Orchestrates validate → render → upload, list and delete
"""
