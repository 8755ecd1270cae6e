"""
Device Catalog - API Layer

Read-only HTTP surface of the service: its own index, registration and
announcement state, task introspection and static files.

Structure:
- routes/     : Endpoint handlers
- schemas/    : Pydantic schemas
- middleware/ : Error handling, request logging
"""

from api.main import create_app

__all__ = ["create_app"]
