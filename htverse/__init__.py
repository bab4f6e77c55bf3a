# htverse/__init__.py
"""
HTVerse hackathon platform API.

FastAPI application backed by MongoDB: user accounts, hackathon listing,
creation and registration.

Usage (development):
    python -m uvicorn htverse.main:app --reload

Install in editable mode for a reliable import path during auto-reload:
    pip install -e .
"""

__version__ = "1.0.0"
