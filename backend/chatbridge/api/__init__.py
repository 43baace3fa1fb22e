"""
API Routes Module

Exposes all route modules for registration in main app.
"""
from . import routes_auth
from . import routes_conversations
from . import routes_images

__all__ = ["routes_auth", "routes_conversations", "routes_images"]
