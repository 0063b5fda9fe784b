"""
Handscript Backend: Application Package Initializer
====================================================

What: Marks the `handscript` directory as a Python package.
Who:  Used by uvicorn (`handscript.main:app`), pytest, and the service modules.

Architecture Note:
    The backend is a thin layer in front of two collaborators:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      ImageService (Orchestration)   │  ← validate, render, upload
    ├──────────────────┬──────────────────┤
    │    Renderer      │   Media Store    │  ← Pillow / Cloudinary SDK
    └──────────────────┴──────────────────┘

    Nothing is persisted locally. Every image lives in the remote media
    store under one configured folder.
"""

__version__ = "1.0.0"
