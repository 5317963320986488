"""
api - FastAPI backend for Skin Market Watch.

Provides RESTful API endpoints for:
- Cross-marketplace skin search
- Price history with source fallback
- Current consumer marketplace price
- Exchange rate
"""

__version__ = "0.1.0"
