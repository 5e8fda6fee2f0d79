"""
Compatibility module exposing the FastAPI application for tests.

The actual application entrypoint lives in `backend/main.py`; the same object
is re-exported here so consumers can import `push_engine.main`.
"""

from main import app  # noqa: F401  (re-export for consumers expecting push_engine.main)
