"""API routes package."""

from docstore.routes.collaborator_routes import router as collaborator_router
from docstore.routes.document_routes import router as document_router
from docstore.routes.internal_routes import router as internal_router
from docstore.routes.user_routes import router as user_router

__all__ = ["collaborator_router", "document_router", "internal_router", "user_router"]
